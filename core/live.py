# core/live.py
"""
Live overlay window.

Drives a CaptureController from an OpenCV window:
- loads the models, then starts detection automatically
- redraws the annotated preview on every loop iteration
- keys: 'q' quit, 's' snapshot, 'p' stop/start
"""

from __future__ import annotations

import logging
import os
import time
from typing import Optional

import cv2

# Prevent OpenMP oversubscription on CPU
os.environ.setdefault("OMP_NUM_THREADS", "1")
os.environ.setdefault("MKL_NUM_THREADS", "1")

from core.config import Settings
from core.controller import CaptureController
from core.models import ControllerState, ViewState

logger = logging.getLogger(__name__)

WINDOW_TITLE = "Real-Time Face Analysis (q to quit)"
REFRESH_MS = 15


def run_live_overlay(settings: Settings,
                     camera_index: Optional[int] = None,
                     controller: Optional[CaptureController] = None,
                     max_frames: Optional[int] = None) -> CaptureController:
    """
    Open the webcam window and run until 'q' is pressed (or `max_frames` redraws).

    Raises:
        RuntimeError: the library or a mandatory model failed to load.
    """
    if camera_index is not None:
        settings = settings.model_copy(update={"CAMERA_INDEX": camera_index})
    ctl = controller or CaptureController(settings)

    if ctl.state in (ControllerState.IDLE, ControllerState.FAILED):
        ctl.load()
    if ctl.state == ControllerState.FAILED:
        raise RuntimeError(ctl.presenter.view().status.message)
    ctl.start()

    shown = 0
    try:
        while True:
            cv2.imshow(WINDOW_TITLE, ctl.preview())
            shown += 1
            key = cv2.waitKey(REFRESH_MS) & 0xFF
            if key == ord("q"):
                break
            if key == ord("s"):
                path = ctl.save_snapshot()
                if path is None:
                    logger.info("[live] snapshot ignored; detection is not running")
            elif key == ord("p"):
                if ctl.detecting:
                    ctl.stop()
                else:
                    ctl.start()
            if max_frames is not None and shown >= max_frames:
                break
    finally:
        ctl.close()
        cv2.destroyAllWindows()
    return ctl


def run_headless(settings: Settings,
                 seconds: float,
                 controller: Optional[CaptureController] = None) -> ViewState:
    """
    Detect for `seconds` without a window.

    Returns:
        The view state as it was just before stopping (stop() resets results).
    """
    ctl = controller or CaptureController(settings)
    if ctl.state in (ControllerState.IDLE, ControllerState.FAILED):
        ctl.load()
    if ctl.state == ControllerState.FAILED or not (ctl.detecting or ctl.start()):
        raise RuntimeError(ctl.presenter.view().status.message)
    deadline = time.monotonic() + max(0.0, seconds)
    try:
        while time.monotonic() < deadline:
            time.sleep(0.05)
        return ctl.presenter.view()
    finally:
        ctl.close()
