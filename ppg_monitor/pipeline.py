"""
Per-frame PPG pipeline.

:class:`PulsePipeline` owns every piece of signal state of a monitoring
session.  The host calls :meth:`PulsePipeline.process_sample` once per
captured frame and receives a :class:`CycleResult` describing the outcome;
the pipeline never schedules itself and never touches the UI.

Per frame::

    extract_reflectance → QualityGate ─ reject ─→ clear window / rate / range
                               │
                             accept
                               ↓
                          SampleWindow ─ not full ─→ Calibrating(pct)
                               │
                              full
                               ↓
        detrend → low_pass_filter ─┬→ find_peak_bpm → RateSmoother
                                   └→ DisplayScaler
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple

import numpy as np

from ppg_monitor.config import MonitorConfig
from ppg_monitor.display import AUTO_RANGE, DisplayRange, DisplayScaler
from ppg_monitor.quality_gate import QualityGate, Reflectance, Verdict, extract_reflectance
from ppg_monitor.signal_processor import SampleWindow, detrend, find_peak_bpm, low_pass_filter
from ppg_monitor.status import Status, status_message

logger = logging.getLogger(__name__)


class RateSmoother:
    """
    Exponential moving average of instantaneous BPM estimates.

    A rate of 0 means "not yet available"; once a positive estimate has been
    folded in the rate stays positive until :meth:`reset`.
    """

    def __init__(self, smoothing: float = 0.9) -> None:
        self.smoothing = smoothing
        self._rate = 0.0

    @property
    def rate(self) -> float:
        return self._rate

    def update(self, bpm: Optional[float]) -> float:
        """Fold *bpm* into the rate; *None* leaves the rate unchanged."""
        if bpm is not None:
            self._rate = self._rate * self.smoothing + bpm * (1.0 - self.smoothing)
        return self._rate

    def reset(self) -> None:
        self._rate = 0.0


@dataclass(frozen=True)
class CycleResult:
    """Everything a display needs after one pipeline pass."""

    status: Status
    heart_rate: float = 0.0
    calibration_pct: int = 0
    signal: np.ndarray = field(default_factory=lambda: np.zeros(0), compare=False)
    display_range: DisplayRange = AUTO_RANGE
    active: bool = True

    @property
    def message(self) -> str:
        return status_message(self.status, self.calibration_pct)

    def chart_points(self) -> Iterator[Tuple[int, float]]:
        """Yield ``(index, value)`` pairs of the processed signal."""
        for index, value in enumerate(self.signal):
            yield index, float(value)


class PulsePipeline:
    """
    Rolling heart-rate estimator driven one frame at a time.

    Parameters
    ----------
    config:
        Session parameters; defaults to :class:`MonitorConfig()`.
    """

    def __init__(self, config: Optional[MonitorConfig] = None) -> None:
        self.config = config or MonitorConfig()
        cfg = self.config

        self.gate = QualityGate(cfg.coverage_std_threshold, cfg.motion_threshold)
        self.window = SampleWindow(cfg.capacity)
        self.rate = RateSmoother(cfg.rate_smoothing)
        self.scaler = DisplayScaler(cfg.display_smoothing, cfg.display_default_pad)

        self._last_status: Optional[Status] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def heart_rate(self) -> float:
        return self.rate.rate

    @property
    def display_range(self) -> DisplayRange:
        return self.scaler.range

    def process_sample(self, frame: np.ndarray) -> CycleResult:
        """
        Run one full pipeline pass for *frame*.

        Parameters
        ----------
        frame:
            RGBA image array (H × W × 4) at the configured resolution.
        """
        return self.process_reading(extract_reflectance(frame))

    def process_reading(self, reading: Reflectance) -> CycleResult:
        """Run one pipeline pass from an already extracted reflectance."""
        verdict = self.gate.evaluate(reading)
        if verdict is Verdict.NEEDS_COVERAGE:
            self._clear()
            return self._emit(Status.NEEDS_COVERAGE)
        if verdict is Verdict.MOTION:
            self._clear()
            return self._emit(Status.MOTION_DETECTED)

        self.window.append(reading.red_average)
        if not self.window.is_full:
            pct = int(100.0 * self.window.fill_ratio + 0.5)
            return self._emit(Status.CALIBRATING, calibration_pct=pct)

        cfg = self.config
        signal = detrend(self.window.to_array(), cfg.detrend_radius)
        signal = low_pass_filter(signal, cfg.low_pass_alpha)

        bpm = find_peak_bpm(signal, cfg.nominal_frame_rate, cfg.min_bpm, cfg.max_bpm)
        self.rate.update(bpm)
        self.scaler.update(signal)

        return self._emit(Status.PROCESSING, signal=signal)

    def reset(self) -> None:
        """Drop all session state, including the quality gate's memory."""
        self._clear()
        self.gate.reset()
        self._last_status = None

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _clear(self) -> None:
        self.window.clear()
        self.rate.reset()
        self.scaler.reset()

    def _emit(
        self,
        status: Status,
        calibration_pct: int = 0,
        signal: Optional[np.ndarray] = None,
    ) -> CycleResult:
        if status is not self._last_status and status is not Status.CALIBRATING:
            logger.info("Pipeline status: %s", status_message(status))
        self._last_status = status

        return CycleResult(
            status=status,
            heart_rate=self.rate.rate,
            calibration_pct=calibration_pct,
            signal=signal if signal is not None else np.zeros(0),
            display_range=self.scaler.range,
        )
