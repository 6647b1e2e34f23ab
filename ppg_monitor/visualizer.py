"""
Preview overlay.

Draws the following onto each BGR preview frame:
  • Rate readout ("--" until a rate is available) with a pulsing marker.
  • Status line and finger-placement hint.
  • Calibration progress bar.
  • Waveform strip, scaled by the pipeline's display range.
"""

from __future__ import annotations

from typing import Tuple

import cv2
import numpy as np

from ppg_monitor.display import BoundedRange, padded_bounds
from ppg_monitor.pipeline import CycleResult
from ppg_monitor.status import Status, beat_period, format_rate, is_calculating, placement_hint

# ---------------------------------------------------------------------------
# Colour palette (BGR)
# ---------------------------------------------------------------------------
_GREEN  = (120, 211,  52)   # emerald
_YELLOW = (0, 210, 210)
_RED    = (0,  50, 220)
_WHITE  = (255, 255, 255)
_GREY   = (140, 140, 140)
_BLACK  = (0, 0, 0)
_CYAN   = (220, 200,  0)
_DARK   = (30, 30, 30)

_FAULTS = (Status.NEEDS_COVERAGE, Status.MOTION_DETECTED)


class Visualizer:
    """
    Draws monitoring state onto OpenCV frames in-place.

    Parameters
    ----------
    resolution:
        (width, height) of the preview frame.
    waveform_height:
        Pixel height of the waveform panel at the bottom of the frame.
    """

    def __init__(
        self,
        resolution: Tuple[int, int] = (320, 240),
        waveform_height: int = 60,
    ) -> None:
        self.w, self.h = resolution
        self.waveform_height = waveform_height
        self._start_time = cv2.getTickCount()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def draw(self, frame: np.ndarray, result: CycleResult) -> np.ndarray:
        """
        Annotate *frame* in-place and return it.

        Parameters
        ----------
        frame:
            BGR preview frame.
        result:
            Latest pipeline output.
        """
        self._draw_rate(frame, result)

        status_colour = _RED if result.status in _FAULTS else _WHITE
        cv2.putText(
            frame, result.message,
            (10, 62), cv2.FONT_HERSHEY_SIMPLEX, 0.45, status_colour, 1, cv2.LINE_AA,
        )
        cv2.putText(
            frame, placement_hint(result.status, result.active),
            (10, 80), cv2.FONT_HERSHEY_SIMPLEX, 0.4, _GREY, 1, cv2.LINE_AA,
        )

        if result.status is Status.CALIBRATING:
            self._draw_fill_bar(frame, result.calibration_pct / 100.0)

        if len(result.signal) > 1:
            self._draw_waveform(frame, result)

        return frame

    # ------------------------------------------------------------------
    # Private drawing helpers
    # ------------------------------------------------------------------

    def _draw_rate(self, frame: np.ndarray, result: CycleResult) -> None:
        calculating = is_calculating(result.heart_rate, result.status)
        colour = _GREY if calculating else _GREEN
        text = f"{format_rate(result.heart_rate, result.status)} BPM"

        cv2.putText(frame, text, (34, 36), cv2.FONT_HERSHEY_SIMPLEX, 1.0, _BLACK, 4, cv2.LINE_AA)
        cv2.putText(frame, text, (34, 36), cv2.FONT_HERSHEY_SIMPLEX, 1.0, colour, 2, cv2.LINE_AA)

        # Heart marker pulsing at the current rate
        elapsed = (cv2.getTickCount() - self._start_time) / cv2.getTickFrequency()
        radius = 8
        if not calculating:
            phase = (elapsed % beat_period(result.heart_rate)) / beat_period(result.heart_rate)
            radius = int(6 + 4 * (1.0 - phase))
        cv2.circle(frame, (18, 26), radius, colour, -1, cv2.LINE_AA)

    def _draw_fill_bar(self, frame: np.ndarray, fill: float) -> None:
        bar_w = int((self.w - 20) * min(fill, 1.0))
        y0, y1 = self.h - self.waveform_height - 12, self.h - self.waveform_height - 4
        cv2.rectangle(frame, (10, y0), (self.w - 10, y1), _DARK, -1)
        cv2.rectangle(frame, (10, y0), (10 + bar_w, y1), _CYAN, -1)

    def _draw_waveform(self, frame: np.ndarray, result: CycleResult) -> None:
        """Plot the processed signal in a dark strip using the display range."""
        panel_top = self.h - self.waveform_height
        cv2.rectangle(frame, (0, panel_top), (self.w, self.h), _DARK, -1)

        sig = result.signal
        bounds = result.display_range
        if not isinstance(bounds, BoundedRange):
            bounds = padded_bounds(sig)
        span = bounds.span if bounds.span > 0 else 1.0
        norm = np.clip((sig - bounds.low) / span, 0.0, 1.0)

        margin = 4
        plot_h = self.waveform_height - 2 * margin
        xs = np.linspace(0, self.w - 1, len(norm)).astype(np.int32)
        ys = (panel_top + margin + (1.0 - norm) * plot_h).astype(np.int32)

        pts = np.column_stack([xs, ys])
        cv2.polylines(frame, [pts[:, None, :]], False, _GREEN, 1, cv2.LINE_AA)
        cv2.putText(
            frame, "PPG",
            (4, panel_top + 12), cv2.FONT_HERSHEY_SIMPLEX, 0.35, _WHITE, 1, cv2.LINE_AA,
        )
