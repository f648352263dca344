"""Audio decoding backends used by waveform extraction.

Waveform generation only needs two things from a decoder: stream metadata and
a raw mono 16-bit PCM rendition of the file at a fixed sample rate. Anything
implementing :class:`AudioDecoder` can be passed to ``generate_waveform``.
"""

from __future__ import annotations

import json
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

import numpy as np
import soundfile as sf

from wipshare.core.config import settings
from wipshare.core.logging import logger
from wipshare.services.audio.errors import DecodeError, TranscodeError

DEFAULT_SOURCE_SAMPLE_RATE = 44100


@dataclass(frozen=True)
class AudioProbe:
    duration_seconds: float
    sample_rate: int
    audio_stream_present: bool


class AudioDecoder(Protocol):
    def probe(self, audio_path: Path) -> AudioProbe: ...

    def transcode_to_pcm(self, audio_path: Path, output_path: Path, sample_rate: int) -> None:
        """Write raw mono s16le PCM at `sample_rate` to `output_path`."""
        ...


class FFmpegDecoder:
    """Decoder backed by the ffprobe/ffmpeg command line tools."""

    def __init__(self, ffmpeg_bin: Optional[str] = None, ffprobe_bin: Optional[str] = None):
        self.ffmpeg_bin = ffmpeg_bin or settings.FFMPEG_BIN
        self.ffprobe_bin = ffprobe_bin or settings.FFPROBE_BIN

    def probe(self, audio_path: Path) -> AudioProbe:
        cmd = [
            self.ffprobe_bin,
            "-v",
            "error",
            "-print_format",
            "json",
            "-show_format",
            "-show_streams",
            str(audio_path),
        ]
        try:
            result = subprocess.run(cmd, check=True, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise TranscodeError(f"{self.ffprobe_bin} is not installed") from e
        except subprocess.CalledProcessError as e:
            raise DecodeError(f"ffprobe could not read {audio_path}: {e.stderr.strip()}") from e

        try:
            metadata = json.loads(result.stdout or "{}")
        except json.JSONDecodeError as e:
            raise DecodeError(f"ffprobe returned unreadable metadata for {audio_path}") from e

        return parse_ffprobe_metadata(metadata)

    def transcode_to_pcm(self, audio_path: Path, output_path: Path, sample_rate: int) -> None:
        cmd = [
            self.ffmpeg_bin,
            "-y",
            "-hide_banner",
            "-loglevel",
            "error",
            "-i",
            str(audio_path),
            "-f",
            "s16le",  # 16-bit signed little-endian
            "-ac",
            "1",  # mono
            "-ar",
            str(sample_rate),
            "-acodec",
            "pcm_s16le",
            str(output_path),
        ]
        try:
            subprocess.run(cmd, check=True, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise TranscodeError(f"{self.ffmpeg_bin} is not installed") from e
        except subprocess.CalledProcessError as e:
            raise TranscodeError(f"ffmpeg failed to transcode {audio_path}: {e.stderr.strip()}") from e


def parse_ffprobe_metadata(metadata: dict) -> AudioProbe:
    """Build an AudioProbe from `ffprobe -show_format -show_streams` JSON."""
    streams = metadata.get("streams") or []
    audio_stream = next((s for s in streams if s.get("codec_type") == "audio"), None)
    if audio_stream is None:
        return AudioProbe(duration_seconds=0.0, sample_rate=0, audio_stream_present=False)

    fmt = metadata.get("format") or {}
    try:
        duration = float(fmt.get("duration") or 0)
    except (TypeError, ValueError):
        duration = 0.0

    try:
        sample_rate = int(audio_stream.get("sample_rate") or DEFAULT_SOURCE_SAMPLE_RATE)
    except (TypeError, ValueError):
        sample_rate = DEFAULT_SOURCE_SAMPLE_RATE

    return AudioProbe(duration_seconds=duration, sample_rate=sample_rate, audio_stream_present=True)


class SoundFileDecoder:
    """In-process decoder using libsndfile (wav, flac, ogg, mp3 on libsndfile>=1.1)."""

    def probe(self, audio_path: Path) -> AudioProbe:
        try:
            info = sf.info(str(audio_path))
        except sf.SoundFileError as e:
            raise DecodeError(f"libsndfile could not read {audio_path}: {e}") from e
        if info.channels <= 0 or info.samplerate <= 0:
            return AudioProbe(duration_seconds=0.0, sample_rate=0, audio_stream_present=False)
        return AudioProbe(
            duration_seconds=info.frames / info.samplerate,
            sample_rate=int(info.samplerate),
            audio_stream_present=True,
        )

    def transcode_to_pcm(self, audio_path: Path, output_path: Path, sample_rate: int) -> None:
        try:
            data, source_rate = sf.read(str(audio_path), dtype="float32", always_2d=True)
        except sf.SoundFileError as e:
            raise TranscodeError(f"libsndfile failed to decode {audio_path}: {e}") from e

        mono = data.mean(axis=1)
        resampled = resample_linear(mono, int(source_rate), sample_rate)
        sf.write(
            str(output_path),
            resampled,
            sample_rate,
            format="RAW",
            subtype="PCM_16",
            endian="LITTLE",
        )


def resample_linear(signal: np.ndarray, source_rate: int, target_rate: int) -> np.ndarray:
    # linear interpolation is plenty for peak envelopes
    if source_rate == target_rate or signal.size == 0:
        return signal
    n_out = int(round(signal.size * target_rate / source_rate))
    positions = np.arange(n_out) * (source_rate / target_rate)
    return np.interp(positions, np.arange(signal.size), signal).astype(np.float32)


DECODERS = {
    "ffmpeg": FFmpegDecoder,
    "soundfile": SoundFileDecoder,
}


def get_decoder(name: Optional[str] = None) -> AudioDecoder:
    key = (name or settings.WAVEFORM_DECODER).lower()
    try:
        decoder_cls = DECODERS[key]
    except KeyError:
        raise ValueError(f"Unknown waveform decoder '{key}' (expected one of {sorted(DECODERS)})") from None
    logger.debug("using %s waveform decoder", key)
    return decoder_cls()
