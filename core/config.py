"""
Configuration for the live face analysis app.
"""
from pydantic import BaseModel
import os

DETECTOR_BACKENDS = ("opencv", "ssd", "mtcnn", "retinaface", "mediapipe", "yunet", "centerface")


def _env_flag(name: str, default: str) -> bool:
    return (os.getenv(name, default) or default).strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """
    Runtime settings with environment-variable overrides.
    """
    CAMERA_INDEX: int = int(os.getenv("CAMERA_INDEX", "0"))
    FRAME_WIDTH: int = int(os.getenv("FRAME_WIDTH", "1280"))
    FRAME_HEIGHT: int = int(os.getenv("FRAME_HEIGHT", "720"))

    DETECTION_INTERVAL_MS: int = int(os.getenv("DETECTION_INTERVAL_MS", "200"))
    AGE_WINDOW: int = int(os.getenv("AGE_WINDOW", "5"))
    LATENCY_WINDOW: int = int(os.getenv("LATENCY_WINDOW", "10"))
    FPS_WINDOW_MS: int = int(os.getenv("FPS_WINDOW_MS", "1000"))
    AGE_RANGE_SPREAD: int = int(os.getenv("AGE_RANGE_SPREAD", "2"))

    DETECTOR_BACKEND: str = (os.getenv("DETECTOR_BACKEND", "ssd") or "ssd")
    MIN_CONFIDENCE: float = float(os.getenv("MIN_CONFIDENCE", "0.5"))
    MODEL_HOME: str | None = os.getenv("MODEL_HOME") or None

    MIRROR: bool = _env_flag("MIRROR", "1")
    SNAPSHOT_DIR: str = os.getenv("SNAPSHOT_DIR", "output/snapshots")
    AUTOLOAD_MODELS: bool = _env_flag("AUTOLOAD_MODELS", "1")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    def __init__(self, **data):
        super().__init__(**data)
        # Normalize DETECTOR_BACKEND: strip comments/extra words, lower-case, validate
        backend = (self.DETECTOR_BACKEND or "opencv").strip().split()[0].lower()
        if backend not in DETECTOR_BACKENDS:
            backend = "opencv"
        object.__setattr__(self, "DETECTOR_BACKEND", backend)
        # Windows must hold at least one sample
        for name in ("AGE_WINDOW", "LATENCY_WINDOW", "FPS_WINDOW_MS", "DETECTION_INTERVAL_MS"):
            object.__setattr__(self, name, max(1, int(getattr(self, name))))
        object.__setattr__(self, "AGE_RANGE_SPREAD", max(0, int(self.AGE_RANGE_SPREAD)))
        object.__setattr__(self, "LOG_LEVEL", (self.LOG_LEVEL or "INFO").strip().upper())

    @property
    def detection_interval(self) -> float:
        """Detection period in seconds."""
        return self.DETECTION_INTERVAL_MS / 1000.0
