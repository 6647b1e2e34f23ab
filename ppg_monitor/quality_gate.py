"""
Per-frame reflectance extraction and quality gating.

When a fingertip covers the lens, the frame becomes a nearly uniform red
field whose brightness pulses by a few intensity units with each heartbeat.
Two cheap linear checks tell a usable frame from a bad one:

  - Coverage: a scene seen through an uncovered lens has a red-channel
    spatial spread an order of magnitude larger than a fingertip.
  - Motion: moving the finger makes the frame-to-frame brightness jump far
    more than the cardiac pulsation ever does.

Rejected frames contribute no sample; the pipeline resets its buffers and
recalibrates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)

RED_CHANNEL = 0   # RGBA layout


@dataclass(frozen=True)
class Reflectance:
    red_average: float
    red_std: float


def extract_reflectance(frame: np.ndarray) -> Reflectance:
    """
    Reduce *frame* to the mean and population standard deviation of its red
    channel.

    Parameters
    ----------
    frame:
        RGBA image array (H × W × 4).  Any numeric dtype is accepted.
    """
    if frame.ndim != 3:
        raise ValueError(f"Expected an H × W × C frame, got shape {frame.shape}")
    red = frame[:, :, RED_CHANNEL].astype(np.float64)
    red_average = float(red.mean())
    red_std = float(np.sqrt(np.mean((red - red_average) ** 2)))
    return Reflectance(red_average, red_std)


class Verdict(Enum):
    ACCEPT         = auto()
    NEEDS_COVERAGE = auto()   # lens not fully covered
    MOTION         = auto()   # brightness jumped between frames


class QualityGate:
    """
    Decide whether a frame's reflectance may enter the sample window.

    Both comparisons are strict: a value exactly at a threshold passes.

    Parameters
    ----------
    coverage_std_threshold:
        Maximum red standard deviation of a covered lens.
    motion_threshold:
        Maximum allowed change of the red average between two frames.
    """

    def __init__(self, coverage_std_threshold: float, motion_threshold: float) -> None:
        self.coverage_std_threshold = coverage_std_threshold
        self.motion_threshold = motion_threshold
        self._previous: Optional[float] = None

    @property
    def previous_average(self) -> Optional[float]:
        """Red average the next frame is compared against, if any."""
        return self._previous

    def evaluate(self, reading: Reflectance) -> Verdict:
        if reading.red_std > self.coverage_std_threshold:
            # A coverage fault is not a valid reference for motion checks.
            logger.debug(
                "Coverage fault: red std %.2f > %.2f",
                reading.red_std, self.coverage_std_threshold,
            )
            return Verdict.NEEDS_COVERAGE

        previous, self._previous = self._previous, reading.red_average
        if previous is not None:
            delta = abs(reading.red_average - previous)
            if delta > self.motion_threshold:
                logger.debug("Motion artifact: delta %.2f > %.2f", delta, self.motion_threshold)
                return Verdict.MOTION

        return Verdict.ACCEPT

    def reset(self) -> None:
        """Forget the previous average."""
        self._previous = None
