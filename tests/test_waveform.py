import math

import numpy as np
import pytest

from wipshare.services.audio.errors import DecodeError, TranscodeError
from wipshare.services.audio.waveform import WaveformData, generate_waveform, simplify_waveform

from conftest import sine_pcm


def test_ten_seconds_at_twenty_per_second_gives_200_peaks(make_decoder, pcm_temp_dir):
    decoder = make_decoder(samples=sine_pcm(10), duration=10.0)
    waveform = generate_waveform("song.mp3", 20, decoder=decoder)
    assert len(waveform.peaks) == 200
    assert waveform.duration == 10
    assert waveform.sample_rate == 20
    assert all(0.02 <= p <= 1.0 for p in waveform.peaks)
    assert max(waveform.peaks) == 1.0


@pytest.mark.parametrize("duration,sps", [(3.2, 20), (0.05, 20), (61.7, 10), (1.0, 3)])
def test_peak_count_is_ceil_of_duration_times_rate(make_decoder, pcm_temp_dir, duration, sps):
    decoder = make_decoder(samples=sine_pcm(duration), duration=duration)
    waveform = generate_waveform("song.wav", sps, decoder=decoder)
    assert len(waveform.peaks) == math.ceil(duration * sps)
    assert waveform.duration == math.floor(duration + 0.5)


def test_silence_yields_floor_values(make_decoder, pcm_temp_dir):
    decoder = make_decoder(samples=np.zeros(8000 * 2, dtype="<i2"), duration=2.0)
    waveform = generate_waveform("quiet.wav", 20, decoder=decoder)
    assert waveform.peaks == [0.02] * 40


def test_empty_pcm_still_yields_one_peak_per_window(make_decoder, pcm_temp_dir):
    decoder = make_decoder(samples=np.zeros(0, dtype="<i2"), duration=2.0)
    waveform = generate_waveform("x.wav", 20, decoder=decoder)
    assert waveform.peaks == [0.02] * 40
    assert waveform.duration == 2


@pytest.mark.parametrize("duration,expected", [(2.5, 3), (3.5, 4), (2.49, 2), (0.5, 1)])
def test_duration_rounds_half_up(make_decoder, pcm_temp_dir, duration, expected):
    decoder = make_decoder(samples=sine_pcm(duration), duration=duration)
    waveform = generate_waveform("song.wav", 20, decoder=decoder)
    assert waveform.duration == expected


def test_zero_duration_has_no_peaks_and_skips_transcode(make_decoder, pcm_temp_dir):
    decoder = make_decoder(samples=sine_pcm(1), duration=0.0)
    waveform = generate_waveform("empty.wav", decoder=decoder)
    assert waveform.peaks == []
    assert decoder.transcoded_to == []


def test_no_audio_stream_raises_decode_error_and_leaves_no_files(make_decoder, pcm_temp_dir):
    decoder = make_decoder(has_audio=False)
    with pytest.raises(DecodeError):
        generate_waveform("cover.jpg", decoder=decoder)
    assert list(pcm_temp_dir.iterdir()) == []


def test_transcode_failure_removes_temp_artifact(make_decoder, pcm_temp_dir):
    decoder = make_decoder(samples=sine_pcm(1), duration=1.0, fail_transcode=True)
    with pytest.raises(TranscodeError):
        generate_waveform("broken.mp3", decoder=decoder)
    assert decoder.transcoded_to[0].parent == pcm_temp_dir
    assert list(pcm_temp_dir.iterdir()) == []


def test_success_removes_temp_artifact(make_decoder, pcm_temp_dir):
    decoder = make_decoder(samples=sine_pcm(1), duration=1.0)
    generate_waveform("song.mp3", decoder=decoder)
    assert not decoder.transcoded_to[0].exists()


def test_explicit_temp_dir_is_used(make_decoder, tmp_path):
    decoder = make_decoder(samples=sine_pcm(1), duration=1.0)
    generate_waveform("song.mp3", decoder=decoder, temp_dir=str(tmp_path))
    assert decoder.transcoded_to[0].parent == tmp_path
    assert list(tmp_path.iterdir()) == []


def test_simplify_alternating_signal():
    peaks = [1.0, 0.0] * 50
    out = simplify_waveform(peaks, 50)
    assert len(out) == 50
    assert all(0.02 <= v <= 1.0 for v in out)
    # edge buckets: 0.8 * max + 0.2 * rms
    assert out[0] == pytest.approx(0.8 + 0.2 * math.sqrt(0.5))
    assert out[1] == pytest.approx((0.8 + 0.2 * math.sqrt(0.5)) * 0.9 + 0.1)


def test_simplify_passes_short_input_through():
    peaks = [0.3, 0.9, 0.0]
    assert simplify_waveform(peaks, 3) == peaks
    assert simplify_waveform(peaks, 50) == peaks
    assert simplify_waveform([], 50) == []


def test_simplify_twice_is_a_no_op():
    rng = np.random.default_rng(7)
    peaks = rng.random(437).tolist()
    once = simplify_waveform(peaks, 50)
    assert simplify_waveform(once, 50) == once


def test_simplify_clamps_to_visible_range():
    out = simplify_waveform([0.0] * 120, 40)
    assert out == [0.02] * 40
    out = simplify_waveform([5.0] * 120, 40)
    assert out == [1.0] * 40


def test_simplify_non_positive_target():
    assert simplify_waveform([0.5] * 10, 0) == []


def test_payload_shape():
    waveform = WaveformData(peaks=[0.5] * 300, duration=15, sample_rate=20)
    payload = waveform.to_payload(100)
    assert set(payload) == {"full", "simplified", "sampleRate"}
    assert len(payload["full"]) == 300
    assert len(payload["simplified"]) == 100
    assert payload["sampleRate"] == 20
