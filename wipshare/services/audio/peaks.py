from pathlib import Path
from typing import Sequence

import numpy as np

INT16_SCALE = 32768.0
MIN_VISIBLE_PEAK = 0.02


def read_pcm(pcm_path: Path) -> np.ndarray:
    """Read raw mono s16le PCM into an int16 array (trailing odd byte dropped)."""
    raw = Path(pcm_path).read_bytes()
    usable = len(raw) - (len(raw) % 2)
    return np.frombuffer(raw[:usable], dtype="<i2")


def extract_peaks(samples: Sequence[int] | np.ndarray, count: int) -> list[float]:
    """
    Max absolute amplitude (0-1) for each of `count` equal windows.

    Window size is floor(len(samples) / count); samples past the last full
    window are ignored. When there are fewer samples than windows (or none
    at all) every window is empty and reports 0.
    """
    data = np.asarray(samples, dtype=np.int16)
    if count <= 0:
        return []

    step = data.size // count
    if step == 0:
        return [0.0] * count

    # widen before abs(): abs(-32768) overflows int16
    blocks = data[: step * count].astype(np.float64).reshape(count, step)
    peaks = np.max(np.abs(blocks), axis=1) / INT16_SCALE
    return [float(p) for p in peaks]


def normalize_peaks(peaks: Sequence[float], floor: float = MIN_VISIBLE_PEAK) -> list[float]:
    # loudest window -> 1.0, nothing below `floor` so silent bars stay visible
    if len(peaks) == 0:
        return []
    values = np.asarray(peaks, dtype=np.float64)
    max_peak = float(np.max(values))
    if max_peak > 0:
        values = values / max_peak
    else:
        values = np.zeros_like(values)
    return [float(v) for v in np.maximum(values, floor)]
