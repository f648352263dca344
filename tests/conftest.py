from pathlib import Path

import numpy as np
import pytest

from wipshare.services.audio.decoder import AudioProbe
from wipshare.services.audio.errors import TranscodeError


class FakeDecoder:
    """Serves canned probe results and PCM samples instead of running ffmpeg."""

    def __init__(self, samples=None, duration=10.0, has_audio=True, fail_transcode=False, fail_paths=()):
        self.samples = np.zeros(0, dtype="<i2") if samples is None else np.asarray(samples, dtype="<i2")
        self.duration = duration
        self.has_audio = has_audio
        self.fail_transcode = fail_transcode
        self.fail_paths = {Path(p).name for p in fail_paths}
        self.transcoded_to = []

    def probe(self, audio_path):
        return AudioProbe(
            duration_seconds=self.duration if self.has_audio else 0.0,
            sample_rate=44100 if self.has_audio else 0,
            audio_stream_present=self.has_audio,
        )

    def transcode_to_pcm(self, audio_path, output_path, sample_rate):
        self.transcoded_to.append(Path(output_path))
        if self.fail_transcode or Path(audio_path).name in self.fail_paths:
            # leave a partial artifact behind like a crashed ffmpeg would
            Path(output_path).write_bytes(b"\x00\x01\x02")
            raise TranscodeError(f"cannot transcode {audio_path}")
        Path(output_path).write_bytes(self.samples.tobytes())


def sine_pcm(seconds: float, rate: int = 8000, freq: float = 220.0, amplitude: float = 0.5):
    t = np.arange(int(seconds * rate)) / rate
    return (np.sin(2 * np.pi * freq * t) * amplitude * 32767).astype("<i2")


@pytest.fixture
def make_decoder():
    return FakeDecoder


@pytest.fixture
def pcm_temp_dir(tmp_path, monkeypatch):
    d = tmp_path / "pcm"
    d.mkdir()
    monkeypatch.setattr("wipshare.core.config.settings.TEMP_DIR", str(d))
    return d
