"""Small numeric primitives shared by the analyzers.

Each function is pure and handles its own degenerate inputs so callers
never divide by zero.
"""

import numpy as np
from scipy import fft as sp_fft
from scipy.signal import get_window
from typing import Sequence, Tuple


def hann_window(n: int) -> np.ndarray:
    """Periodic Hann window of length ``n``."""
    return get_window("hann", n, fftbins=True).astype(np.float64)


def fit_to_length(samples: np.ndarray, n: int) -> np.ndarray:
    """Zero-pad or truncate ``samples`` to exactly ``n`` values."""
    out = np.zeros(n, dtype=np.float64)
    count = min(len(samples), n)
    out[:count] = samples[:count]
    return out


def magnitude_spectrum(
    samples: np.ndarray,
    n_fft: int,
    window: np.ndarray = None,
) -> np.ndarray:
    """
    Windowed magnitude spectrum.

    Args:
        samples: Mono samples (padded or truncated to ``n_fft``)
        n_fft: FFT size
        window: Analysis window of length ``n_fft`` (Hann if None)

    Returns:
        Magnitudes for the ``n_fft // 2 + 1`` non-negative frequency bins
    """
    if window is None:
        window = hann_window(n_fft)
    frame = fit_to_length(samples, n_fft) * window
    return np.abs(sp_fft.rfft(frame))


def bin_frequencies(n_fft: int, sample_rate: float) -> np.ndarray:
    """Center frequency in Hz of each rFFT bin."""
    return sp_fft.rfftfreq(n_fft, d=1.0 / sample_rate)


def band_energy(
    power: np.ndarray,
    freqs: np.ndarray,
    band: Tuple[float, float],
) -> float:
    """Sum of ``power`` over bins with ``low <= f < high``."""
    low, high = band
    mask = (freqs >= low) & (freqs < high)
    return float(np.sum(power[mask]))


def log_band_energies(
    power: np.ndarray,
    sample_rate: float,
    n_fft: int,
    edges: Sequence[float],
) -> np.ndarray:
    """
    Energy in consecutive bands delimited by ``edges`` (Hz).

    Band ``k`` sums bins ``max(1, edges[k] / res)`` through
    ``min(n_fft/2 - 1, edges[k+1] / res)`` inclusive, where ``res`` is the
    bin spacing. Bands that collapse to fewer than two bins stay at zero.
    """
    resolution = sample_rate / n_fft
    half = n_fft // 2
    energies = np.zeros(len(edges) - 1, dtype=np.float64)
    for k in range(len(edges) - 1):
        lo = max(1, int(edges[k] / resolution))
        hi = min(half - 1, int(edges[k + 1] / resolution))
        if hi <= lo:
            continue
        energies[k] = float(np.sum(power[lo:hi + 1]))
    return energies


def l2_normalize(vector: np.ndarray, epsilon: float = 1e-8) -> np.ndarray:
    """
    Scale to unit L2 norm.

    Vectors whose norm is at or below ``epsilon`` are returned unchanged.
    """
    vector = np.asarray(vector, dtype=np.float64)
    norm = float(np.sqrt(np.sum(vector ** 2)))
    if norm <= epsilon:
        return vector.copy()
    return vector / norm


def parabolic_interpolation(
    values: np.ndarray,
    index: int,
    epsilon: float = 1e-6,
) -> float:
    """
    Sub-sample position of the extremum around ``values[index]``.

    Defined for ``index`` strictly interior to ``values``. At either
    boundary, or when the three points are collinear, ``index`` is
    returned unchanged.
    """
    if index <= 0 or index + 1 >= len(values):
        return float(index)

    y0, y1, y2 = values[index - 1], values[index], values[index + 1]
    denom = 2.0 * (2.0 * y1 - y2 - y0)
    if abs(denom) <= epsilon:
        return float(index)

    return float(index) + float((y2 - y0) / denom)


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine of the angle between ``a`` and ``b``; 0 for empty or zero vectors."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape or a.size == 0:
        return 0.0
    denom = np.sqrt(np.dot(a, a)) * np.sqrt(np.dot(b, b))
    if denom <= 0:
        return 0.0
    return float(np.dot(a, b) / denom)


def euclidean_distance(a: np.ndarray, b: np.ndarray) -> float:
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape:
        return 0.0
    return float(np.sqrt(np.sum((a - b) ** 2)))
