"""
Status vocabulary and the user-facing text derived from it.

Nothing here feeds back into the pipeline; these helpers only turn a
:class:`~ppg_monitor.pipeline.CycleResult` into strings for a display.
"""

from __future__ import annotations

from enum import Enum


class Status(Enum):
    READY           = "ready"
    INITIALIZING    = "initializing"
    CALIBRATING     = "calibrating"
    NEEDS_COVERAGE  = "needs_coverage"
    MOTION_DETECTED = "motion_detected"
    PROCESSING      = "processing"


_MESSAGES = {
    Status.READY:           "Ready",
    Status.INITIALIZING:    "Initializing camera...",
    Status.NEEDS_COVERAGE:  "Please cover the camera lens.",
    Status.MOTION_DETECTED: "Motion detected. Please hold still.",
    Status.PROCESSING:      "Processing...",
}


def status_message(status: Status, calibration_pct: int = 0) -> str:
    if status is Status.CALIBRATING:
        return f"Calibrating... ({calibration_pct}%)"
    return _MESSAGES[status]


def placement_hint(status: Status, active: bool) -> str:
    """Instruction shown over the camera preview."""
    if not active:
        return "Camera is off"
    if status in (Status.CALIBRATING, Status.PROCESSING):
        return "Keep your finger steady..."
    return "Place your finger over the lens"


def is_calculating(heart_rate: float, status: Status) -> bool:
    """True while there is no rate worth showing yet."""
    return heart_rate == 0 or status is Status.CALIBRATING


def format_rate(heart_rate: float, status: Status) -> str:
    """Rounded BPM readout, or ``"--"`` while the rate is unavailable."""
    if is_calculating(heart_rate, status):
        return "--"
    return str(int(round(heart_rate)))


def beat_period(heart_rate: float) -> float:
    """Seconds per beat for animating a heart marker (1.5 s below 40 BPM)."""
    if heart_rate > 40:
        return 60.0 / heart_rate
    return 1.5
