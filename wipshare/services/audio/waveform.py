"""Waveform peak extraction for uploaded tracks.

Usage:
    from wipshare.services.audio.waveform import generate_waveform, simplify_waveform
    waveform = generate_waveform("path/to/track.mp3")
    card_peaks = simplify_waveform(waveform.peaks, 50)

``generate_waveform`` decodes the file to low-rate mono PCM, takes the peak of
each window (``samples_per_second`` windows per second of audio) and rescales
the result so the loudest window is 1.0. ``simplify_waveform`` squeezes an
existing peak list down for small displays such as dashboard cards.
"""
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from wipshare.core.config import settings
from wipshare.core.logging import logger
from wipshare.services.audio.decoder import AudioDecoder, get_decoder
from wipshare.services.audio.errors import DecodeError
from wipshare.services.audio.io import temporary_pcm_path
from wipshare.services.audio.peaks import (
    MIN_VISIBLE_PEAK,
    extract_peaks,
    normalize_peaks,
    read_pcm,
)

DEFAULT_SAMPLES_PER_SECOND = 20
DEFAULT_SIMPLIFIED_LENGTH = 50

# simplify_waveform blend weights
MAX_WEIGHT = 0.8
RMS_WEIGHT = 0.2
NEIGHBOR_WEIGHT = 0.1


@dataclass
class WaveformData:
    peaks: list[float] = field(default_factory=list)
    duration: int = 0        # seconds, rounded
    sample_rate: int = 0     # peaks per second

    def to_payload(self, simplified_length: Optional[int] = None) -> dict:
        """JSON stored on track and version rows."""
        length = simplified_length or settings.WAVEFORM_SIMPLIFIED_LENGTH
        return {
            "full": list(self.peaks),
            "simplified": simplify_waveform(self.peaks, length),
            "sampleRate": self.sample_rate,
        }


def generate_waveform(
    audio_path: str | Path,
    samples_per_second: int = DEFAULT_SAMPLES_PER_SECOND,
    *,
    decoder: Optional[AudioDecoder] = None,
    pcm_sample_rate: Optional[int] = None,
    temp_dir: Optional[str] = None,
) -> WaveformData:
    """
    Compute normalized waveform peaks for an audio file.

    Args:
        audio_path: Any file the decoder understands
        samples_per_second: Peaks per second of audio
        decoder: AudioDecoder to use (default: settings.WAVEFORM_DECODER)
        pcm_sample_rate: Rate of the intermediate PCM (default: settings.WAVEFORM_PCM_SAMPLE_RATE)
        temp_dir: Where the intermediate PCM file is written (default: settings.TEMP_DIR)

    Returns:
        WaveformData with ceil(duration * samples_per_second) peaks in [0.02, 1.0]

    Raises:
        DecodeError: The file has no audio stream (or cannot be probed)
        TranscodeError: The decoder failed to produce PCM
        OSError: The intermediate PCM file could not be read
    """
    audio_path = Path(audio_path)
    decoder = decoder or get_decoder()
    pcm_rate = pcm_sample_rate or settings.WAVEFORM_PCM_SAMPLE_RATE

    probe = decoder.probe(audio_path)
    if not probe.audio_stream_present:
        raise DecodeError(f"No audio stream found in {audio_path.name}")

    duration = max(probe.duration_seconds, 0.0)
    total_peaks = math.ceil(duration * samples_per_second)
    if total_peaks <= 0:
        logger.info("waveform: %s has zero duration, no peaks", audio_path.name)
        return WaveformData(peaks=[], duration=0, sample_rate=samples_per_second)

    with temporary_pcm_path(directory=temp_dir) as pcm_path:
        decoder.transcode_to_pcm(audio_path, pcm_path, pcm_rate)
        samples = read_pcm(pcm_path)

    peaks = normalize_peaks(extract_peaks(samples, total_peaks))
    logger.debug(
        "waveform: %s duration=%.2fs pcm_samples=%d peaks=%d",
        audio_path.name, duration, samples.size, len(peaks),
    )
    return WaveformData(
        peaks=peaks,
        duration=round_half_up(duration),
        sample_rate=samples_per_second,
    )


def round_half_up(value: float) -> int:
    # 2.5 -> 3, not banker's rounding
    return math.floor(value + 0.5)


def _clamp(value: float) -> float:
    return min(1.0, max(MIN_VISIBLE_PEAK, value))


def simplify_waveform(peaks: Sequence[float], target_length: int = DEFAULT_SIMPLIFIED_LENGTH) -> list[float]:
    """
    Reduce `peaks` to `target_length` values for compact displays.

    Each output bar mixes the bucket max (dynamics) with its RMS (energy);
    interior bars also take a little of the max around their neighbours so
    adjacent bars do not jump. Shorter inputs come back unchanged.
    """
    if len(peaks) <= target_length:
        return list(peaks)
    if target_length < 1:
        return []

    values = np.asarray(peaks, dtype=np.float64)
    n = values.size
    chunk_size = n / target_length
    simplified: list[float] = []

    for i in range(target_length):
        start = math.floor(i * chunk_size)
        end = min(math.floor((i + 1) * chunk_size), n)
        bucket = values[start:end]

        if bucket.size:
            max_peak = max(float(bucket.max()), 0.0)
            rms_peak = float(np.sqrt(np.mean(bucket ** 2)))
        else:
            max_peak = rms_peak = 0.0
        combined = max_peak * MAX_WEIGHT + rms_peak * RMS_WEIGHT

        if 0 < i < target_length - 1:
            prev_start = math.floor((i - 1) * chunk_size)
            next_end = min(math.floor((i + 2) * chunk_size), n)
            neighbor = values[prev_start:next_end]
            neighbor_max = max(float(neighbor.max()), 0.0) if neighbor.size else 0.0
            combined = combined * (1 - NEIGHBOR_WEIGHT) + neighbor_max * NEIGHBOR_WEIGHT

        simplified.append(_clamp(combined))

    return simplified
