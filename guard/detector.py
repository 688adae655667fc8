from __future__ import annotations

import logging
from threading import Lock
from typing import Callable, Optional

import cv2
import numpy as np

from .errors import DetectorInitError

logger = logging.getLogger(__name__)

FACE_CASCADE = "haarcascade_frontalface_default.xml"


def load_face_cascade() -> cv2.CascadeClassifier:
    cascade = cv2.CascadeClassifier(cv2.data.haarcascades + FACE_CASCADE)
    if cascade.empty():
        raise DetectorInitError(f"Failed to load face cascade {FACE_CASCADE}")
    return cascade


class FaceDetector:
    """Single-face presence check on top of OpenCV's Haar cascade.

    The model is loaded once, on first use or via ``ensure_loaded``, even if
    several threads ask for it at the same time.
    """

    def __init__(
        self,
        min_face_px: int = 48,
        scale: float = 0.5,
        loader: Callable[[], cv2.CascadeClassifier] = load_face_cascade,
    ):
        self.min_face_px = min_face_px
        self.scale = scale
        self._loader = loader
        self._cascade: Optional[cv2.CascadeClassifier] = None
        self._load_lock = Lock()

    @property
    def ready(self) -> bool:
        return self._cascade is not None

    def ensure_loaded(self) -> None:
        if self._cascade is not None:
            return
        with self._load_lock:
            if self._cascade is not None:
                return
            self._cascade = self._loader()
            logger.info("Face detector model loaded")

    def detect_presence(self, frame: np.ndarray) -> bool:
        self.ensure_loaded()
        gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY) if frame.ndim == 3 else frame
        if self.scale != 1.0:
            gray = cv2.resize(gray, None, fx=self.scale, fy=self.scale, interpolation=cv2.INTER_AREA)
        min_side = max(8, int(self.min_face_px * self.scale))
        faces = self._cascade.detectMultiScale(gray, scaleFactor=1.2, minNeighbors=5, minSize=(min_side, min_side))
        found = len(faces) > 0
        logger.debug("Faces found: %s", len(faces))
        return found
