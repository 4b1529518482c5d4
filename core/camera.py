"""
Webcam capture bound to a "latest frame" surface.

A reader thread keeps pulling frames from cv2.VideoCapture; consumers only
ever see the most recent one. `ready` mirrors a video element that has
enough data to play; it drops back to False once the stream stops
delivering frames.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Optional

import cv2
import numpy as np

from core.config import Settings
from core.errors import CameraError

logger = logging.getLogger(__name__)

# Consecutive failed reads after which the stream counts as ended
MAX_READ_FAILURES = 3


class Camera:
    def __init__(self, settings: Settings, camera_index: Optional[int] = None):
        self.s = settings
        self.index = settings.CAMERA_INDEX if camera_index is None else camera_index
        self._cap = None
        self._run = False
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._frame: Optional[np.ndarray] = None
        self._misses = 0

    # ---- lifecycle ----
    def open(self, threaded: bool = True) -> None:
        """Acquire the device. Raises CameraError if it cannot be opened."""
        logger.debug(f"[camera] opening index={self.index}")
        cap = cv2.VideoCapture(self.index)
        if not cap.isOpened():
            cap.release()
            raise CameraError(f"Could not open camera index {self.index}")
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.s.FRAME_WIDTH)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.s.FRAME_HEIGHT)
        self._cap = cap
        self._misses = 0
        self._run = True
        if threaded:
            self._thread = threading.Thread(target=self._reader_loop, daemon=True, name="camera-reader")
            self._thread.start()

    def release(self) -> None:
        self._run = False
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=1.0)
        self._thread = None
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        with self._lock:
            self._frame = None
        logger.debug(f"[camera] released index={self.index}")

    @property
    def is_open(self) -> bool:
        return self._cap is not None

    @property
    def ready(self) -> bool:
        with self._lock:
            return self._run and self._frame is not None

    @property
    def frame_size(self) -> tuple[int, int]:
        """(width, height) of the latest frame, or the requested size before one arrives."""
        with self._lock:
            if self._frame is None:
                return self.s.FRAME_WIDTH, self.s.FRAME_HEIGHT
            h, w = self._frame.shape[:2]
            return w, h

    def latest(self) -> Optional[np.ndarray]:
        with self._lock:
            return None if self._frame is None else self._frame.copy()

    # ---- reading ----
    def poll(self) -> bool:
        """Read one frame into the surface. Returns False when the device gave nothing."""
        if self._cap is None:
            return False
        ok, frame = self._cap.read()
        if not ok or frame is None:
            self._misses += 1
            if self._misses == MAX_READ_FAILURES:
                logger.warning(f"[camera] index={self.index} stopped delivering frames")
                with self._lock:
                    self._frame = None
            return False
        self._misses = 0
        with self._lock:
            self._frame = frame
        return True

    def _reader_loop(self):
        while self._run:
            if not self.poll():
                time.sleep(0.1)
                continue
            time.sleep(0.005)
