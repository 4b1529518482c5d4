# core/controller.py
"""
Capture & detection-loop controller.

States: IDLE -> LOADING_LIBRARY -> LOADING_MODELS -> READY <-> DETECTING,
with FAILED for fatal load errors. Stopping returns to READY because the
models stay loaded.

All UI-facing changes go out as messages to the Presenter.
"""
from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Callable, Optional

import numpy as np

from core.aggregator import ResultAggregator
from core.camera import Camera
from core.config import Settings
from core.detector import FaceDetector
from core.errors import CameraError, LibraryLoadError, ModelLoadError
from core.loader import ResourceLoader
from core.models import (
    ControllerState,
    Detection,
    ModelStatus,
    ModelStatusUpdate,
    ResetResults,
    StateUpdate,
)
from core.presenter import Presenter
from core.scheduler import CancelToken, Scheduler
from core.visual import draw_idle, draw_overlays, encode_image

logger = logging.getLogger(__name__)


class CaptureController:
    def __init__(
        self,
        settings: Settings,
        presenter: Optional[Presenter] = None,
        loader: Optional[ResourceLoader] = None,
        scheduler: Optional[Scheduler] = None,
        camera_factory: Callable[[Settings], Camera] = Camera,
        aggregator: Optional[ResultAggregator] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.s = settings
        self.presenter = presenter or Presenter()
        self.loader = loader or ResourceLoader(settings)
        self.loader.on_ready = self._on_model_ready
        self.scheduler = scheduler or Scheduler()
        self.aggregator = aggregator or ResultAggregator(settings)
        self._camera_factory = camera_factory
        self._clock = clock

        self.state = ControllerState.IDLE
        self.detector: Optional[FaceDetector] = None
        self._lock = threading.RLock()
        self._camera: Optional[Camera] = None
        self._token: Optional[CancelToken] = None
        self._overlay: Optional[Detection] = None
        self._load_thread: Optional[threading.Thread] = None

    # ---- state ----
    @property
    def detecting(self) -> bool:
        return self.state == ControllerState.DETECTING

    @property
    def models(self) -> ModelStatus:
        return self.loader.status.model_copy()

    def _set_state(self, state: ControllerState) -> None:
        logger.debug(f"[controller] {self.state.value} -> {state.value}")
        self.state = state
        self.presenter.apply(StateUpdate(state=state))

    def _on_model_ready(self, name: str, ready: bool) -> None:
        self.presenter.apply(ModelStatusUpdate(models=self.loader.status.model_copy()))

    # ---- loading ----
    def load(self) -> ModelStatus:
        """
        Import the library, then build the models.

        Fatal failures leave the controller in FAILED with an error status;
        they are not raised. A missing age/gender model only produces a warning.
        """
        with self._lock:
            if self.state not in (ControllerState.IDLE, ControllerState.FAILED):
                return self.models
            self._set_state(ControllerState.LOADING_LIBRARY)

        self.presenter.status("Loading AI library...", "info")
        try:
            library = self.loader.load_library()
        except LibraryLoadError:
            self._set_state(ControllerState.FAILED)
            self.presenter.status("❌ Failed to load AI library.", "error")
            return self.models

        self._set_state(ControllerState.LOADING_MODELS)
        self.presenter.status("🤖 Loading AI models...", "info")
        try:
            self.loader.load_models()
        except ModelLoadError as e:
            self._set_state(ControllerState.FAILED)
            self.presenter.status(f"❌ Failed to load models: {e}", "error")
            return self.models

        if self.loader.age_gender_error is not None:
            self.presenter.status("Age/Gender model unavailable, continuing without it.", "warning")

        self.detector = FaceDetector(self.s, library, eye_cascade=self.loader.eye_cascade)
        self._set_state(ControllerState.READY)
        self.presenter.status("✅ Models loaded! Ready for detection.", "success")
        return self.models

    def load_async(self) -> threading.Thread:
        """Run load() on a background thread; returns the running thread."""
        with self._lock:
            if self._load_thread is not None and self._load_thread.is_alive():
                return self._load_thread
            self._load_thread = threading.Thread(target=self.load, daemon=True, name="model-loader")
            self._load_thread.start()
            return self._load_thread

    # ---- capture ----
    def start(self) -> bool:
        """Open the camera and start the detection timer. Returns True if detection started."""
        with self._lock:
            if self._camera is not None or self.state != ControllerState.READY:
                return False

            self.presenter.status("🎥 Accessing camera...", "info")
            camera = self._camera_factory(self.s)
            try:
                camera.open()
            except CameraError as e:
                logger.exception("[controller] camera open failed")
                self.presenter.status(f"❌ Camera error: Permission denied or unavailable ({e})", "error")
                return False

            self._camera = camera
            self.aggregator.reset()
            self._set_state(ControllerState.DETECTING)
            self._token = self.scheduler.every(self.s.detection_interval, self.tick, name="detection")
            self.presenter.status("🚀 Detection active!", "success")
            return True

    def stop(self) -> bool:
        """Cancel the timer, release the camera and reset displayed results."""
        with self._lock:
            if self.state != ControllerState.DETECTING:
                return False
            if self._token is not None:
                self._token.cancel()
                self._token = None
            if self._camera is not None:
                self._camera.release()
                self._camera = None
            self._overlay = None
            self.aggregator.reset()
            self.presenter.apply(ResetResults())
            self._set_state(ControllerState.READY)
            self.presenter.status("📷 Camera stopped.", "info")
            return True

    def close(self) -> None:
        self.stop()

    # ---- detection loop ----
    def tick(self) -> None:
        """One detection tick: skipped unless a frame is ready."""
        camera = self._camera
        detector = self.detector
        if not self.detecting or camera is None or detector is None or not camera.ready:
            return
        frame = camera.latest()
        if frame is None:
            return

        with_age_gender = self.loader.status.age_gender
        t0 = self._clock()
        try:
            det = detector.detect_once(frame, with_age_gender=with_age_gender)
        except Exception:
            logger.debug("[controller] detection failed; skipping tick", exc_info=True)
            return
        elapsed_ms = (self._clock() - t0) * 1000.0

        with self._lock:
            if not self.detecting or self._camera is not camera:
                return
            self._overlay = det
            messages = self.aggregator.record(
                age=det.age if (det is not None and with_age_gender) else None,
                expressions=det.expressions if det is not None else None,
                elapsed_ms=elapsed_ms,
                face_found=det is not None,
                gender=det.gender if (det is not None and with_age_gender) else None,
                gender_probability=det.gender_probability if det is not None else None,
                detection=det,
            )
            self.presenter.apply_all(messages)

    # ---- output ----
    def preview(self) -> np.ndarray:
        """Latest frame with box, landmarks and results panel; idle screen when not detecting."""
        view = self.presenter.view()
        camera = self._camera
        frame = camera.latest() if camera is not None else None
        if frame is None:
            size = camera.frame_size if camera is not None else (self.s.FRAME_WIDTH, self.s.FRAME_HEIGHT)
            return draw_idle(size, view, waiting=self.detecting)
        return draw_overlays(frame, self._overlay, view, mirror=self.s.MIRROR)

    def snapshot(self) -> Optional[tuple[str, bytes]]:
        """
        Compose the current frame and overlay into a PNG.

        Returns:
            (filename, png_bytes), or None when detection isn't running.
        """
        camera = self._camera
        if not self.detecting or camera is None:
            return None
        frame = camera.latest()
        if frame is None:
            return None
        try:
            png = encode_image(draw_overlays(frame, self._overlay, None, mirror=self.s.MIRROR), ".png")
        except Exception:
            logger.exception("[controller] snapshot failed")
            self.presenter.status("❌ Snapshot failed", "error")
            raise
        name = f"face-analysis-{int(time.time() * 1000)}.png"
        self.presenter.status("📸 Snapshot captured!", "success")
        return name, png

    def save_snapshot(self, directory: Optional[str] = None) -> Optional[Path]:
        shot = self.snapshot()
        if shot is None:
            return None
        name, png = shot
        out_dir = Path(directory or self.s.SNAPSHOT_DIR)
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / name
        path.write_bytes(png)
        logger.info(f"[controller] snapshot written to {path}")
        return path
