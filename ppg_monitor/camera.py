"""
Camera capture.

Wraps OpenCV ``VideoCapture`` to deliver fixed-resolution RGBA frames, the
layout the pipeline's reflectance extractor expects.
"""

from __future__ import annotations

import logging
from typing import Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class CameraError(RuntimeError):
    """The capture device could not be opened."""


class Camera:
    """
    Thin wrapper around an OpenCV capture device.

    Parameters
    ----------
    resolution:
        (width, height) of delivered frames.  Captured frames are resized
        when the device does not honour the requested size.
    fps:
        Requested frame rate.  Actual rate may differ slightly.
    flip_horizontal:
        Mirror the image left-to-right (selfie-style preview).
    camera_index:
        OpenCV device index.
    """

    def __init__(
        self,
        resolution: Tuple[int, int] = (320, 240),
        fps: int = 30,
        flip_horizontal: bool = False,
        camera_index: int = 0,
    ) -> None:
        self.resolution = resolution
        self.fps = fps
        self.flip_horizontal = flip_horizontal
        self.camera_index = camera_index

        self._cap: "cv2.VideoCapture | None" = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        """Open the capture device; raises :class:`CameraError` on failure."""
        cap = cv2.VideoCapture(self.camera_index)
        if not cap.isOpened():
            cap.release()
            raise CameraError(
                f"Cannot open video capture device index={self.camera_index}"
            )
        w, h = self.resolution
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
        cap.set(cv2.CAP_PROP_FPS, self.fps)
        self._cap = cap
        logger.info(
            "Camera opened – index=%d resolution=%s fps=%d",
            self.camera_index, self.resolution, self.fps,
        )

    def close(self) -> None:
        """Release the capture device."""
        if self._cap is None:
            return
        self._cap.release()
        self._cap = None
        logger.info("Camera closed.")

    # ------------------------------------------------------------------
    # Frame acquisition
    # ------------------------------------------------------------------

    def read_frame(self) -> np.ndarray | None:
        """
        Capture a single frame.

        Returns
        -------
        numpy.ndarray
            RGBA image array (H × W × 4, dtype uint8), or *None* when no frame
            is available.
        """
        if self._cap is None:
            raise RuntimeError("Camera is not open.  Call open() first.")

        ok, frame = self._cap.read()
        if not ok or frame is None:
            logger.warning("VideoCapture.read() returned no frame.")
            return None
        if self.flip_horizontal:
            frame = cv2.flip(frame, 1)
        w, h = self.resolution
        if frame.shape[1] != w or frame.shape[0] != h:
            frame = cv2.resize(frame, (w, h), interpolation=cv2.INTER_AREA)
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA)

