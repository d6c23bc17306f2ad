from __future__ import annotations

import os

import numpy as np
import soundfile as sf

AUDIO_EXTENSIONS = (".wav", ".aif", ".aiff")


# ---------------------------------------------------------------------------
# Conversion helpers
# ---------------------------------------------------------------------------

def ticks_to_samples(ticks: int, sample_rate: int, ticks_per_second: int) -> int:
    """Convert a beat length in ticks to a whole number of samples (floored)."""
    return int(ticks) * int(sample_rate) // int(ticks_per_second)


def format_duration(samples: int, samplerate: int) -> str:
    if samplerate <= 0:
        return "00:00.000"
    seconds = samples / samplerate
    m = int(seconds // 60)
    s = int(seconds % 60)
    ms = int((seconds % 1) * 1000)
    return f"{m:02d}:{s:02d}.{ms:03d}"


def to_mono(data: np.ndarray) -> np.ndarray:
    """Average a ``frames x channels`` array down to one channel."""
    if data.ndim > 1:
        if data.shape[1] == 1:
            return data[:, 0]
        return np.mean(data, axis=1)
    return data


# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------

def is_audio_file(filename: str) -> bool:
    return filename.lower().endswith(AUDIO_EXTENSIONS)


def read_samples(filepath: str) -> tuple[np.ndarray, int]:
    """Read an uncompressed audio file as mono float64 in ``[-1, 1]``.

    Integer PCM is scaled by soundfile, so 16-bit material arrives divided
    by 32768.  Raises whatever soundfile raises for unreadable files.
    """
    data, samplerate = sf.read(filepath, dtype="float64", always_2d=True)
    return to_mono(data), int(samplerate)


def list_dir_sorted(path: str) -> list[str]:
    """Directory entries in numeric-aware order (``2`` before ``10``)."""
    def key(name: str):
        stem = name.split(".", 1)[0]
        return (0, int(stem), name) if stem.isdigit() else (1, 0, name.lower())
    return sorted(os.listdir(path), key=key)
