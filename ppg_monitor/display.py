"""
Adaptive vertical range for the plotted waveform.

The range starts out as :data:`AUTO_RANGE` and adopts the first computed
bounds outright; afterwards each bound drifts slowly towards the newly
computed one so the plot does not jump around from frame to frame.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import numpy as np


@dataclass(frozen=True)
class AutoRange:
    """Uninitialised range: the next computed bounds are adopted as-is."""


@dataclass(frozen=True)
class BoundedRange:
    low: float
    high: float

    @property
    def span(self) -> float:
        return self.high - self.low


DisplayRange = Union[AutoRange, BoundedRange]

AUTO_RANGE = AutoRange()


def padded_bounds(signal: np.ndarray, default_pad: float = 1.0) -> BoundedRange:
    """Return the min/max of *signal* widened by 10 % of its span."""
    signal_min = float(np.min(signal))
    signal_max = float(np.max(signal))
    pad = (signal_max - signal_min) * 0.1
    if pad == 0.0:
        pad = default_pad
    return BoundedRange(signal_min - pad, signal_max + pad)


class DisplayScaler:
    """
    Exponentially smoothed display range.

    Parameters
    ----------
    smoothing:
        Weight kept from the current bounds on every update (default 0.98).
    default_pad:
        Padding used when the signal is flat.
    """

    def __init__(self, smoothing: float = 0.98, default_pad: float = 1.0) -> None:
        self.smoothing = smoothing
        self.default_pad = default_pad
        self._range: DisplayRange = AUTO_RANGE

    @property
    def range(self) -> DisplayRange:
        return self._range

    def update(self, signal: np.ndarray) -> DisplayRange:
        if len(signal) == 0:
            return self._range

        target = padded_bounds(signal, self.default_pad)
        current = self._range
        if isinstance(current, AutoRange):
            self._range = target
        else:
            keep = self.smoothing
            self._range = BoundedRange(
                current.low * keep + target.low * (1.0 - keep),
                current.high * keep + target.high * (1.0 - keep),
            )
        return self._range

    def reset(self) -> None:
        self._range = AUTO_RANGE
