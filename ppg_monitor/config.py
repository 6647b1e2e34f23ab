"""
Monitor configuration.

All tuning constants of the pipeline live here as module-level defaults and
are bundled into :class:`MonitorConfig`, which every component receives.
Override individual values with keyword arguments or
:func:`dataclasses.replace`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

# Capture
FRAME_WIDTH = 320
FRAME_HEIGHT = 240
FRAME_RATE = 30
WINDOW_SECONDS = 20

# Plausible heart-rate band
MIN_BPM = 45
MAX_BPM = 200

# Smoothing knobs
LOW_PASS_ALPHA = 0.5        # IIR low-pass weight of the newest sample
RATE_SMOOTHING = 0.9        # weight kept from the previous BPM estimate
DISPLAY_SMOOTHING = 0.98    # weight kept from the previous display bounds
DISPLAY_DEFAULT_PAD = 1.0   # vertical padding when the signal is flat

# Quality gate
MOTION_THRESHOLD = 4.0             # max red-average jump between frames
COVERAGE_STD_DEV_THRESHOLD = 16.0  # max red std-dev of a covered lens


@dataclass(frozen=True)
class MonitorConfig:
    """
    Fixed parameters of a monitoring session.

    Parameters
    ----------
    resolution:
        (width, height) of the frames handed to the pipeline.
    nominal_frame_rate:
        Frames per second the capture is expected to deliver.  Used both for
        the window capacity and as the sample rate of the spectral analysis.
    window_seconds:
        Span of the rolling sample window.
    min_bpm, max_bpm:
        Heart-rate band searched in the spectrum.
    low_pass_alpha:
        Smoothing factor of the single-pole low-pass filter, in (0, 1].
    motion_threshold:
        A frame whose red average differs from the previous one by more
        than this is treated as a motion artifact.
    coverage_std_threshold:
        A frame whose red standard deviation exceeds this is treated as an
        uncovered lens.
    rate_smoothing:
        Retention factor of the heart-rate moving average.
    display_smoothing:
        Retention factor of the display range bounds.
    display_default_pad:
        Padding applied to a flat signal so the range never has zero height.
    """

    resolution: Tuple[int, int] = (FRAME_WIDTH, FRAME_HEIGHT)
    nominal_frame_rate: int = FRAME_RATE
    window_seconds: float = WINDOW_SECONDS
    min_bpm: float = MIN_BPM
    max_bpm: float = MAX_BPM
    low_pass_alpha: float = LOW_PASS_ALPHA
    motion_threshold: float = MOTION_THRESHOLD
    coverage_std_threshold: float = COVERAGE_STD_DEV_THRESHOLD
    rate_smoothing: float = RATE_SMOOTHING
    display_smoothing: float = DISPLAY_SMOOTHING
    display_default_pad: float = DISPLAY_DEFAULT_PAD

    def __post_init__(self) -> None:
        if self.nominal_frame_rate <= 0:
            raise ValueError(f"nominal_frame_rate must be positive, got {self.nominal_frame_rate}")
        if self.window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive, got {self.window_seconds}")
        if not 0 < self.min_bpm < self.max_bpm:
            raise ValueError(
                f"BPM band must satisfy 0 < min_bpm < max_bpm, got {self.min_bpm}–{self.max_bpm}"
            )
        if not 0.0 < self.low_pass_alpha <= 1.0:
            raise ValueError(f"low_pass_alpha must be in (0, 1], got {self.low_pass_alpha}")
        if not 0.0 <= self.rate_smoothing < 1.0:
            raise ValueError(f"rate_smoothing must be in [0, 1), got {self.rate_smoothing}")
        if not 0.0 <= self.display_smoothing < 1.0:
            raise ValueError(f"display_smoothing must be in [0, 1), got {self.display_smoothing}")
        if self.capacity < 3:
            raise ValueError(f"window capacity must be at least 3 samples, got {self.capacity}")

    @property
    def capacity(self) -> int:
        """Number of samples held by a full window."""
        return int(self.nominal_frame_rate * self.window_seconds)

    @property
    def detrend_radius(self) -> int:
        """Half-second radius of the detrending moving average, in samples."""
        return int(self.nominal_frame_rate // 2)
