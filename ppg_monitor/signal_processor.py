"""
PPG signal processing.

Algorithm
---------
1. Keep a rolling window of the last ``window_seconds`` red-channel samples.
2. Subtract a centred half-second moving average (removes DC offset and slow
   illumination drift).
3. Smooth with a single-pole IIR low-pass filter (removes sensor noise).
4. Apply a Hanning window and compute the magnitude spectrum.
5. The largest bin inside the plausible heart-rate band gives the
   instantaneous BPM estimate.

References
----------
- Verkruysse W. et al., "Remote plethysmographic imaging using ambient light."
  Opt Express, 2008.
- Jonathan E., Leahy M., "Investigating a smartphone imaging unit for
  photoplethysmography." Physiol. Meas., 2010.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from typing import Deque, Optional

import numpy as np
from scipy.signal import get_window, lfilter

logger = logging.getLogger(__name__)


class SampleWindow:
    """
    Fixed-capacity FIFO of accepted samples, oldest first.

    Parameters
    ----------
    capacity:
        Number of samples in a full window (``fps × window_seconds``).
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._buffer: Deque[float] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._buffer)

    @property
    def is_full(self) -> bool:
        return len(self._buffer) == self._buffer.maxlen

    @property
    def fill_ratio(self) -> float:
        """How full the window is (0 – 1)."""
        return len(self._buffer) / self._buffer.maxlen

    def append(self, sample: float) -> None:
        self._buffer.append(float(sample))

    def clear(self) -> None:
        self._buffer.clear()

    def to_array(self) -> np.ndarray:
        return np.array(self._buffer, dtype=np.float64)


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

def detrend(signal: np.ndarray, radius: int) -> np.ndarray:
    """
    Subtract a centred moving average of ``2 × radius + 1`` samples.

    The averaging window is clipped at both ends of the signal, so edge
    samples are detrended against fewer neighbours.  Signals shorter than
    three samples are returned unchanged.
    """
    signal = np.asarray(signal, dtype=np.float64)
    n = len(signal)
    if n < 3:
        return signal

    idx = np.arange(n)
    start = np.maximum(0, idx - radius)
    end = np.minimum(n - 1, idx + radius)

    cumsum = np.concatenate(([0.0], np.cumsum(signal)))
    local_mean = (cumsum[end + 1] - cumsum[start]) / (end - start + 1)
    return signal - local_mean


def low_pass_filter(signal: np.ndarray, alpha: float) -> np.ndarray:
    """
    Single-pole IIR low-pass: ``y[i] = α·x[i] + (1 − α)·y[i − 1]``.

    The filter state is primed so that ``y[0] == x[0]``.
    """
    signal = np.asarray(signal, dtype=np.float64)
    if len(signal) == 0:
        return signal
    zi = [(1.0 - alpha) * signal[0]]
    filtered, _ = lfilter([alpha], [1.0, alpha - 1.0], signal, zi=zi)
    return filtered


# ---------------------------------------------------------------------------
# Spectral analysis
# ---------------------------------------------------------------------------

def magnitude_spectrum(signal: np.ndarray) -> np.ndarray:
    """
    Return the Hanning-windowed magnitude spectrum of *signal*.

    The result holds ``N // 2`` bins, each normalised by ``N``.
    """
    signal = np.asarray(signal, dtype=np.float64)
    n = len(signal)
    if n < 2:
        return np.zeros(n // 2)
    # Symmetric window: 0.5 · (1 − cos(2πn / (N − 1)))
    windowed = signal * get_window("hann", n, fftbins=False)
    return np.abs(np.fft.rfft(windowed)[: n // 2]) / n


def find_peak_index(
    magnitudes: np.ndarray,
    n_samples: int,
    sample_rate: float,
    min_bpm: float,
    max_bpm: float,
) -> Optional[int]:
    """
    Return the index of the strongest bin inside ``[min_bpm, max_bpm]``.

    The lower band edge is floored and the upper one ceiled to bin indices.
    Ties resolve to the lowest index.  Returns *None* when the band holds no
    bins or no bin has positive magnitude.
    """
    lo = math.floor((min_bpm / 60.0) * n_samples / sample_rate)
    hi = math.ceil((max_bpm / 60.0) * n_samples / sample_rate)
    lo = max(lo, 0)
    hi = min(hi, len(magnitudes) - 1)
    if lo > hi:
        return None

    band = magnitudes[lo:hi + 1]
    peak = int(np.argmax(band))
    if not band[peak] > 0.0:
        return None
    return lo + peak


def bin_to_bpm(index: int, n_samples: int, sample_rate: float) -> float:
    """Convert a spectrum bin index to beats per minute."""
    return index * sample_rate / n_samples * 60.0


def find_peak_bpm(
    signal: np.ndarray,
    sample_rate: float,
    min_bpm: float,
    max_bpm: float,
) -> Optional[float]:
    """
    Estimate the dominant heart rate of *signal* in BPM.

    Returns *None* when no peak is found in the band; callers keep their
    previous estimate in that case.
    """
    n = len(signal)
    magnitudes = magnitude_spectrum(signal)
    index = find_peak_index(magnitudes, n, sample_rate, min_bpm, max_bpm)
    if index is None:
        logger.debug("No spectral peak in %.0f–%.0f BPM band", min_bpm, max_bpm)
        return None
    return bin_to_bpm(index, n, sample_rate)
