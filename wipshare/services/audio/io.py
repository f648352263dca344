import os
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from wipshare.core.config import settings
from wipshare.core.logging import logger


def unique_temp_path(prefix: str, suffix: str, directory: Optional[str] = None) -> Path:
    # timestamp alone collides under concurrent uploads
    name = f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex}{suffix}"
    return Path(directory or settings.TEMP_DIR) / name


def remove_quietly(path: Path) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError:
        logger.warning("failed to remove temporary file %s", path, exc_info=True)


@contextmanager
def temporary_pcm_path(prefix: str = "waveform", directory: Optional[str] = None) -> Iterator[Path]:
    """
    Yield a unique path for an intermediate raw PCM file.

    The file (if the caller created one) is deleted when the block exits,
    whether it exits normally or with an exception. A failed delete is only
    logged so it never replaces the error raised inside the block.
    """
    path = unique_temp_path(prefix, ".raw", directory)
    try:
        yield path
    finally:
        remove_quietly(path)
