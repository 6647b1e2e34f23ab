"""
Monitoring session: camera lifecycle around a :class:`PulsePipeline`.

The host drives the session::

    session = MonitoringSession(config, Camera(config.resolution))
    if session.start():
        while session.active:
            result = session.tick()
            show(result)
        ...
    session.stop()

Only camera acquisition can fail, and only in :meth:`MonitoringSession.start`.
Everything that goes wrong afterwards degrades to a recalibrating status.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from ppg_monitor.camera import Camera, CameraError
from ppg_monitor.config import MonitorConfig
from ppg_monitor.pipeline import CycleResult, PulsePipeline
from ppg_monitor.status import Status

logger = logging.getLogger(__name__)

ACCESS_DENIED_MESSAGE = (
    "Camera access was denied. Please allow camera access and try again."
)
MAX_EMPTY_READS = 10   # consecutive missing frames before the stream counts as stalled


class MonitoringSession:
    """
    Owns one camera and one pipeline between :meth:`start` and :meth:`stop`.

    Parameters
    ----------
    config:
        Session parameters shared by the camera and the pipeline.
    camera:
        Anything with ``open()``, ``close()`` and ``read_frame()``; defaults
        to an OpenCV :class:`~ppg_monitor.camera.Camera` at the configured
        resolution and frame rate.
    """

    def __init__(
        self,
        config: Optional[MonitorConfig] = None,
        camera: Optional[Camera] = None,
    ) -> None:
        self.config = config or MonitorConfig()
        self.camera = camera or Camera(
            resolution=self.config.resolution,
            fps=self.config.nominal_frame_rate,
        )
        self.pipeline = PulsePipeline(self.config)

        self.error: Optional[str] = None
        self.frame: Optional[np.ndarray] = None   # last frame handed to the pipeline
        self.empty_reads = 0   # consecutive ticks without a frame
        self._active = False
        self._last = CycleResult(status=Status.READY, active=False)

    @property
    def active(self) -> bool:
        return self._active

    @property
    def last_result(self) -> CycleResult:
        return self._last

    @property
    def skipped(self) -> bool:
        """True when the latest tick had no frame to process."""
        return self.empty_reads > 0

    @property
    def stalled(self) -> bool:
        """True once the camera has failed to deliver MAX_EMPTY_READS frames in a row."""
        return self.empty_reads >= MAX_EMPTY_READS

    def start(self) -> bool:
        """
        Open the camera and begin monitoring from a clean state.

        Returns *False* (and sets :attr:`error`) if the camera cannot be
        acquired; the pipeline is left untouched in that case.
        """
        if self._active:
            return True

        self.error = None
        self._last = CycleResult(status=Status.INITIALIZING, active=False)
        try:
            self.camera.open()
        except CameraError as exc:
            logger.error("Camera acquisition failed: %s", exc)
            self.error = ACCESS_DENIED_MESSAGE
            self._last = CycleResult(status=Status.READY, active=False)
            return False

        self.pipeline.reset()
        self.empty_reads = 0
        self._active = True
        self._last = CycleResult(status=Status.INITIALIZING, active=True)
        logger.info("Monitoring started.")
        return True

    def tick(self) -> CycleResult:
        """
        Run one pipeline pass on the next camera frame.

        When the session is stopped, or the camera has no frame ready, the
        previous result is returned and no state changes.
        """
        if not self._active:
            return self._last

        frame = self.camera.read_frame()
        if frame is None:
            self.empty_reads += 1
            return self._last

        self.empty_reads = 0
        self.frame = frame
        self._last = self.pipeline.process_sample(frame)
        return self._last

    def stop(self) -> None:
        """Release the camera and clear every piece of signal state."""
        if not self._active:
            return
        self._active = False
        self.camera.close()
        self.pipeline.reset()
        self.frame = None
        self.empty_reads = 0
        self._last = CycleResult(status=Status.READY, active=False)
        logger.info("Monitoring stopped.")

    def restart(self) -> bool:
        self.stop()
        return self.start()

