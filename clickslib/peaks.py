"""Waveform summaries for the playback lane.

A clip is reduced to one value per ``bucket_size`` samples:

1. Each bucket is the plain mean of the signed samples in its window.
   The final, possibly partial, bucket is also divided by the full
   ``bucket_size``, so a short tail reads quieter than it is.  Bucket
   positions elsewhere are derived from ``sample // bucket_size`` and
   rely on this convention.
2. Buckets are divided by the largest magnitude so the loudest one is 1.0.
   A silent clip keeps a divisor of 1.0 and stays at zero.
3. Every value is replaced by ``cbrt(|v|)``, which lifts quiet passages
   while keeping the magnitude order intact.

The result is only meant for drawing; it cannot be turned back into audio.
"""

from __future__ import annotations

import numpy as np

PEAK_BUCKET_SIZE = 256


def bucket_count(n_samples: int, bucket_size: int = PEAK_BUCKET_SIZE) -> int:
    """``ceil(n / bucket_size)``, never less than one."""
    return max(1, -(-int(n_samples) // int(bucket_size)))


def bucket_means(samples: np.ndarray, bucket_size: int = PEAK_BUCKET_SIZE) -> np.ndarray:
    """Per-bucket sums divided by the full bucket size."""
    if bucket_size <= 0:
        raise ValueError(f"bucket_size must be positive, got {bucket_size}")
    flat = np.asarray(samples, dtype=np.float64)
    if flat.ndim > 1:
        flat = np.mean(flat, axis=1)
    n = flat.size
    count = bucket_count(n, bucket_size)
    padded = np.zeros(count * bucket_size, dtype=np.float64)
    padded[:n] = flat
    return padded.reshape(count, bucket_size).sum(axis=1) / float(bucket_size)


def normalize(buckets: np.ndarray) -> np.ndarray:
    peak = float(np.max(np.abs(buckets))) if buckets.size else 0.0
    divisor = peak if peak > 0.0 else 1.0
    return buckets / divisor


def inflate(buckets: np.ndarray) -> np.ndarray:
    return np.cbrt(np.abs(buckets))


def summarize_peaks(samples: np.ndarray, bucket_size: int = PEAK_BUCKET_SIZE) -> np.ndarray:
    """Build the normalized, inflated peak summary of *samples*.

    Accepts a 1-D buffer or a ``frames x channels`` array (averaged to
    mono).  Returns a float32 array of ``ceil(N / bucket_size)`` values in
    ``[0, 1]``.
    """
    return inflate(normalize(bucket_means(samples, bucket_size))).astype(np.float32)
