import sys, types
import numpy as np
import pytest

from core.config import Settings
from core.errors import CameraError
from core.scheduler import CancelToken


class FakeDeepFace:
    """Stands in for deepface.DeepFace; `results` is returned by analyze()."""
    def __init__(self, results=None, fail_models=()):
        self.results = results if results is not None else []
        self.fail_models = set(fail_models)
        self.built = []
        self.analyze_calls = []

    def build_model(self, model_name, task="facial_recognition"):
        if model_name in self.fail_models:
            raise ValueError(f"no weights for {model_name}")
        self.built.append((model_name, task))
        return object()

    def analyze(self, img_path, actions=("emotion",), enforce_detection=True,
                detector_backend="opencv", align=True, silent=False, **kwargs):
        self.analyze_calls.append(list(actions))
        if isinstance(self.results, Exception):
            raise self.results
        if callable(self.results):
            return self.results(img_path)
        return self.results


class FakeCamera:
    def __init__(self, frame=None, fail=False):
        self.frame = frame if frame is not None else np.zeros((120, 160, 3), dtype=np.uint8)
        self.fail = fail
        self.opened = False
        self.released = 0

    def open(self):
        if self.fail:
            raise CameraError("Could not open camera index 0")
        self.opened = True

    def release(self):
        self.opened = False
        self.released += 1

    @property
    def ready(self):
        return self.opened and self.frame is not None

    @property
    def frame_size(self):
        if self.frame is None:
            return 160, 120
        h, w = self.frame.shape[:2]
        return w, h

    def latest(self):
        return self.frame.copy() if self.opened and self.frame is not None else None


class ManualScheduler:
    """Collects jobs; tests call fire() to run one tick synchronously."""
    def __init__(self):
        self.jobs = []

    def every(self, interval, callback, name="scheduler"):
        token = CancelToken()
        self.jobs.append((interval, callback, token))
        return token

    def fire(self, n=1):
        for _ in range(n):
            for _, cb, token in list(self.jobs):
                if not token.cancelled:
                    cb()


class FakeClock:
    def __init__(self, t=0.0):
        self.t = t
    def __call__(self):
        return self.t


def face_result(x=40, y=30, w=60, h=60, conf=0.98, age=31, emotion=None):
    return {
        "region": {"x": x, "y": y, "w": w, "h": h,
                   "left_eye": (x + 40, y + 20), "right_eye": (x + 20, y + 20)},
        "face_confidence": conf,
        "emotion": emotion or {"angry": 1.0, "disgust": 0.5, "fear": 0.5, "happy": 80.0,
                               "sad": 3.0, "surprise": 5.0, "neutral": 10.0},
        "dominant_emotion": "happy",
        "age": age,
        "gender": {"Woman": 10.0, "Man": 90.0},
        "dominant_gender": "Man",
    }


@pytest.fixture
def settings(tmp_path):
    return Settings(SNAPSHOT_DIR=str(tmp_path / "snaps"), MIRROR=True, DETECTOR_BACKEND="opencv")

@pytest.fixture
def fake_deepface(monkeypatch):
    df = FakeDeepFace(results=[face_result()])
    monkeypatch.setitem(sys.modules, "deepface", types.SimpleNamespace(DeepFace=df))
    return df

@pytest.fixture
def camera():
    return FakeCamera()

@pytest.fixture
def scheduler():
    return ManualScheduler()

@pytest.fixture
def frame():
    return np.zeros((120, 160, 3), dtype=np.uint8)
