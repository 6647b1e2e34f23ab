"""
Tests for MonitorConfig and the status presentation helpers.
Run with:  pytest tests/
"""

from __future__ import annotations

import dataclasses

import numpy as np
import pytest

from ppg_monitor.config import MonitorConfig
from ppg_monitor.display import BoundedRange
from ppg_monitor.pipeline import CycleResult
from ppg_monitor.status import (
    Status,
    beat_period,
    format_rate,
    placement_hint,
    status_message,
)
from ppg_monitor.visualizer import Visualizer


# ---------------------------------------------------------------------------
# MonitorConfig tests
# ---------------------------------------------------------------------------

class TestMonitorConfig:

    def test_defaults(self):
        cfg = MonitorConfig()
        assert cfg.resolution == (320, 240)
        assert cfg.capacity == 600
        assert cfg.detrend_radius == 15
        assert (cfg.min_bpm, cfg.max_bpm) == (45, 200)

    def test_override_with_replace(self):
        cfg = dataclasses.replace(MonitorConfig(), nominal_frame_rate=25, window_seconds=10)
        assert cfg.capacity == 250
        assert cfg.detrend_radius == 12

    @pytest.mark.parametrize("overrides", [
        {"nominal_frame_rate": 0},
        {"window_seconds": -1},
        {"min_bpm": 200, "max_bpm": 45},
        {"low_pass_alpha": 0.0},
        {"low_pass_alpha": 1.5},
        {"rate_smoothing": 1.0},
        {"nominal_frame_rate": 1, "window_seconds": 2},
    ])
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValueError):
            MonitorConfig(**overrides)


# ---------------------------------------------------------------------------
# Status helper tests
# ---------------------------------------------------------------------------

class TestStatusText:

    @pytest.mark.parametrize("status, text", [
        (Status.READY, "Ready"),
        (Status.INITIALIZING, "Initializing camera..."),
        (Status.NEEDS_COVERAGE, "Please cover the camera lens."),
        (Status.MOTION_DETECTED, "Motion detected. Please hold still."),
        (Status.PROCESSING, "Processing..."),
    ])
    def test_messages(self, status, text):
        assert status_message(status) == text

    def test_calibrating_message(self):
        assert status_message(Status.CALIBRATING, 42) == "Calibrating... (42%)"

    def test_rate_hidden_until_available(self):
        assert format_rate(0.0, Status.PROCESSING) == "--"
        assert format_rate(70.0, Status.CALIBRATING) == "--"

    def test_rate_rounded_for_display(self):
        assert format_rate(72.6, Status.PROCESSING) == "73"

    def test_placement_hint(self):
        assert placement_hint(Status.READY, active=False) == "Camera is off"
        assert placement_hint(Status.PROCESSING, active=True) == "Keep your finger steady..."
        assert placement_hint(Status.NEEDS_COVERAGE, active=True) == "Place your finger over the lens"

    def test_beat_period(self):
        assert beat_period(60.0) == pytest.approx(1.0)
        assert beat_period(0.0) == 1.5
        assert beat_period(40.0) == 1.5


# ---------------------------------------------------------------------------
# Visualizer smoke test
# ---------------------------------------------------------------------------

class TestVisualizer:

    def test_draw_processing_result(self):
        frame = np.zeros((240, 320, 3), dtype=np.uint8)
        signal = np.sin(np.linspace(0, 20, 600))
        result = CycleResult(
            status=Status.PROCESSING,
            heart_rate=75.0,
            signal=signal,
            display_range=BoundedRange(-1.2, 1.2),
        )
        out = Visualizer((320, 240)).draw(frame, result)
        assert out.shape == (240, 320, 3)
        assert out.any()

    def test_draw_calibrating_result(self):
        frame = np.zeros((240, 320, 3), dtype=np.uint8)
        result = CycleResult(status=Status.CALIBRATING, calibration_pct=30)
        out = Visualizer((320, 240)).draw(frame, result)
        assert out.any()
