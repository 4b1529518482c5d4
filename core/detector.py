"""
Single-face detection with DeepFace.

Wraps DeepFace.analyze and normalizes its output into a Detection:
- emotion percentages -> 7-label distribution in [0, 1]
- Man/Woman -> male/female with a probability in [0, 1]
- keypoints from the detector region, Haar eye fallback otherwise
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

import cv2
import numpy as np

from core.config import Settings
from core.models import EXPRESSION_LABELS, Detection, FaceBox, Landmark

logger = logging.getLogger(__name__)

EXPRESSION_ALIASES = {
    "neutral": "neutral",
    "happy": "happy",
    "sad": "sad",
    "angry": "angry",
    "fear": "fearful",
    "disgust": "disgusted",
    "surprise": "surprised",
}
GENDER_ALIASES = {"man": "male", "woman": "female", "male": "male", "female": "female"}
KEYPOINTS = ("left_eye", "right_eye", "nose", "mouth_left", "mouth_right")


def _as_list(result) -> List[Dict]:
    # DeepFace returns list[dict] or dict depending on version; normalize to list
    if isinstance(result, dict):
        return [result]
    return [r for r in (result or []) if isinstance(r, dict)]


def _score(r: Dict) -> float:
    conf = r.get("face_confidence")
    if conf is None:
        conf = r.get("detector_score", 1.0)
    try:
        return float(conf)
    except Exception:
        return 1.0


def _percent_scale(values) -> float:
    # DeepFace reports percentages; anything above 1 means the whole dict is 0..100
    return 100.0 if any(float(v) > 1.0 for v in values) else 1.0


def normalize_expressions(raw: Optional[Dict]) -> Dict[str, float]:
    """Map DeepFace emotion scores (percent) onto the fixed label set, in label order."""
    probs = {k: 0.0 for k in EXPRESSION_LABELS}
    if not isinstance(raw, dict) or not raw:
        return probs
    scale = _percent_scale(raw.values())
    for key, value in raw.items():
        label = EXPRESSION_ALIASES.get(str(key).lower())
        if label is None:
            continue
        probs[label] = max(0.0, min(1.0, float(value) / scale))
    return probs


def normalize_gender(r: Dict) -> tuple[Optional[str], Optional[float]]:
    dom = r.get("dominant_gender")
    scores = r.get("gender")
    if dom is None and isinstance(scores, dict) and scores:
        dom = max(scores, key=scores.get)
    if dom is None and isinstance(scores, str):
        dom = scores
    if dom is None:
        return None, None
    label = GENDER_ALIASES.get(str(dom).lower())
    prob = None
    if isinstance(scores, dict) and dom in scores:
        prob = float(scores[dom]) / _percent_scale(scores.values())
    return label, prob


class FaceDetector:
    """Runs one analysis pass per call and keeps the best face."""

    def __init__(self, settings: Settings, library, eye_cascade=None):
        self.s = settings
        self.library = library
        self.eye_cascade = eye_cascade

    def detect_once(self, frame: np.ndarray, with_age_gender: bool = False) -> Optional[Detection]:
        """
        Detect the most confident face in `frame`.

        Returns:
            Detection, or None when no face passes MIN_CONFIDENCE.
        """
        actions = ["emotion"] + (["age", "gender"] if with_age_gender else [])
        result = self.library.analyze(
            frame,
            actions=actions,
            enforce_detection=False,
            detector_backend=self.s.DETECTOR_BACKEND,
            align=True,
            silent=True,
        )
        faces = [r for r in _as_list(result) if self._valid(r, frame)]
        logger.debug(f"[detector] faces_detected={len(faces)}")
        if not faces:
            return None

        best = max(faces, key=lambda r: (_score(r), r["region"]["w"] * r["region"]["h"]))
        reg = best["region"]
        box = FaceBox(x=int(reg["x"]), y=int(reg["y"]), w=int(reg["w"]), h=int(reg["h"]))

        det = Detection(
            box=box,
            score=_score(best),
            landmarks=self._landmarks(frame, reg, box),
            expressions=normalize_expressions(best.get("emotion")),
        )
        if with_age_gender:
            age = best.get("age")
            det.age = float(age) if age is not None else None
            det.gender, det.gender_probability = normalize_gender(best)
        return det

    def _valid(self, r: Dict, frame: np.ndarray) -> bool:
        reg = r.get("region") or {}
        w, h = int(reg.get("w", 0) or 0), int(reg.get("h", 0) or 0)
        if w <= 0 or h <= 0:
            return False
        # enforce_detection=False reports the whole frame when nothing was found
        H, W = frame.shape[:2]
        if w >= W and h >= H and not r.get("face_confidence"):
            return False
        return _score(r) >= self.s.MIN_CONFIDENCE

    def _landmarks(self, frame: np.ndarray, reg: Dict, box: FaceBox) -> List[Landmark]:
        points = []
        for name in KEYPOINTS:
            pt = reg.get(name)
            if pt is not None and len(pt) >= 2:
                points.append(Landmark(name=name, x=int(pt[0]), y=int(pt[1])))
        if points or self.eye_cascade is None:
            return points

        # Fallback: Haar eyes inside the upper half of the face box
        roi = frame[box.y: box.y + box.h // 2, box.x: box.x + box.w]
        if roi.size == 0:
            return points
        gray = cv2.cvtColor(roi, cv2.COLOR_BGR2GRAY) if roi.ndim == 3 else roi
        eyes = self.eye_cascade.detectMultiScale(gray, 1.1, 5, minSize=(8, 8))
        eyes = sorted(eyes, key=lambda e: e[2] * e[3], reverse=True)[:2]
        for (ex, ey, ew, eh) in sorted(eyes, key=lambda e: e[0]):
            points.append(Landmark(name="eye", x=int(box.x + ex + ew / 2), y=int(box.y + ey + eh / 2)))
        return points
