"""
Loads the vision library and its model weights.

Order: library import first, then the mandatory models (face detection,
landmarks, expressions), then the optional age/gender pair. Each model
reports readiness independently; only the optional one may fail without
aborting the load.
"""
from __future__ import annotations

import importlib
import logging
import os
from typing import Callable, Optional

import cv2

from core.config import Settings
from core.errors import LibraryLoadError, ModelLoadError
from core.models import ModelStatus

logger = logging.getLogger(__name__)

LANDMARK_CASCADE = "haarcascade_eye.xml"


class ResourceLoader:
    def __init__(self, settings: Settings,
                 on_ready: Optional[Callable[[str, bool], None]] = None):
        self.s = settings
        self.on_ready = on_ready
        self.library = None
        self.status = ModelStatus()
        self.eye_cascade = None
        self.age_gender_error: Optional[str] = None

    @property
    def library_loaded(self) -> bool:
        return self.library is not None

    @property
    def models_loaded(self) -> bool:
        st = self.status
        return st.face_detection and st.landmarks and st.expressions

    # ---- step 1: library ----
    def load_library(self):
        """Import DeepFace. Raises LibraryLoadError when the stack is missing or broken."""
        if self.library is not None:
            return self.library
        if self.s.MODEL_HOME:
            os.environ["DEEPFACE_HOME"] = self.s.MODEL_HOME
        logger.debug("[loader] importing deepface")
        try:
            module = importlib.import_module("deepface")
            self.library = module.DeepFace
        except Exception as e:
            logger.exception("[loader] deepface import failed")
            raise LibraryLoadError(f"DeepFace import failed: {e}") from e
        return self.library

    # ---- step 2: models ----
    def load_models(self) -> ModelStatus:
        """
        Build every model, mandatory ones first.

        Raises:
            ModelLoadError: a mandatory model failed.
        """
        lib = self.load_library()
        self._load("face_detection",
                   lambda: lib.build_model(model_name=self.s.DETECTOR_BACKEND, task="face_detector"))
        self._load("landmarks", self._load_landmarks)
        self._load("expressions",
                   lambda: lib.build_model(model_name="Emotion", task="facial_attribute"))

        try:
            lib.build_model(model_name="Age", task="facial_attribute")
            lib.build_model(model_name="Gender", task="facial_attribute")
        except Exception as e:
            self.age_gender_error = str(e)
            logger.warning(f"[loader] age/gender model failed to load: {e}")
        else:
            self._mark("age_gender")
        return self.status

    def _load_landmarks(self):
        """Eye cascade used when the detector returns no keypoints; keypoints only if OpenCV lacks it."""
        if not hasattr(cv2, "CascadeClassifier"):
            logger.warning("[loader] cv2.CascadeClassifier unavailable; landmarks from detector keypoints only")
            self.eye_cascade = None
            return None
        cascade = cv2.CascadeClassifier(cv2.data.haarcascades + LANDMARK_CASCADE)
        if cascade.empty():
            raise RuntimeError(f"could not read {LANDMARK_CASCADE}")
        self.eye_cascade = cascade
        return cascade

    def _load(self, name: str, build: Callable[[], object]) -> None:
        logger.debug(f"[loader] building {name}")
        try:
            build()
        except Exception as e:
            logger.exception(f"[loader] {name} failed")
            raise ModelLoadError(name, str(e)) from e
        self._mark(name)

    def _mark(self, name: str) -> None:
        setattr(self.status, name, True)
        logger.info(f"[loader] {name} ready")
        if self.on_ready is not None:
            self.on_ready(name, True)
