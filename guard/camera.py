from __future__ import annotations

import logging
from threading import Lock
from typing import Optional

import cv2
import numpy as np

from .errors import CaptureError

logger = logging.getLogger(__name__)


class CameraSource:
    def __init__(self, index: int = 0):
        self.index = index
        self._cap: Optional[cv2.VideoCapture] = None
        self._lock = Lock()

    @property
    def is_open(self) -> bool:
        return self._cap is not None

    def open(self) -> None:
        with self._lock:
            if self._cap is not None:
                return
            cap = cv2.VideoCapture(self.index)
            if not cap.isOpened():
                cap.release()
                raise CaptureError(f"Camera index {self.index} could not be opened (missing device or permission denied)")
            ok, _ = cap.read()
            if not ok:
                cap.release()
                raise CaptureError(f"Camera index {self.index} did not return frames")
            self._cap = cap
        logger.info("Camera %s opened", self.index)

    def read(self) -> np.ndarray:
        with self._lock:
            if self._cap is None:
                raise CaptureError("Camera is not open")
            ok, frame = self._cap.read()
        if not ok or frame is None:
            raise CaptureError(f"Camera {self.index} returned no frame")
        return frame

    def close(self) -> None:
        with self._lock:
            cap = self._cap
            self._cap = None
        if cap is not None:
            cap.release()
            logger.info("Camera %s released", self.index)
