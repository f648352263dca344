from pathlib import Path
from typing import Optional, Tuple

from wipshare.core.config import settings
from wipshare.core.logging import logger
from wipshare.db.models.track import Track
from wipshare.db.models.track_version import TrackVersion
from wipshare.services.audio.decoder import AudioDecoder
from wipshare.services.audio.errors import WaveformError
from wipshare.services.audio.waveform import generate_waveform

SUPPORTED_EXTENSIONS = (".mp3", ".wav", ".flac", ".m4a", ".aac", ".ogg")


def is_supported_audio(filename: str | None) -> bool:
    return bool(filename) and Path(filename).suffix.lower() in SUPPORTED_EXTENSIONS


def waveform_for_upload(
    audio_path: str | Path,
    decoder: Optional[AudioDecoder] = None,
    samples_per_second: Optional[int] = None,
    simplified_length: Optional[int] = None,
) -> Tuple[Optional[dict], Optional[int]]:
    """
    Waveform payload and duration for a freshly uploaded file.

    A missing waveform never blocks an upload: on failure the error is logged
    and (None, None) is returned so the row is stored without one.
    """
    try:
        waveform = generate_waveform(
            audio_path,
            samples_per_second or settings.WAVEFORM_SAMPLES_PER_SECOND,
            decoder=decoder,
        )
    except (WaveformError, OSError):
        logger.exception("Error generating waveform for %s", Path(audio_path).name)
        return None, None
    return waveform.to_payload(simplified_length), waveform.duration


def format_version(version_number: int) -> str:
    return f"{version_number:03d}"


def next_version_number(latest: Optional[int]) -> int:
    return latest + 1 if latest else 1


def pin_version(track: Track, version: TrackVersion) -> None:
    """Make `version` the one the track plays and displays."""
    version.is_pinned = True
    track.version = format_version(version.version_number)
    track.file_path = version.file_path
    track.duration = version.duration
    if version.waveform_data is not None:
        track.waveform_data = version.waveform_data
