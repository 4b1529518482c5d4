
"""Visualization helpers.

- draw_overlays: face box + score, landmark points, and the results panel
- draw_idle: placeholder screen shown while the camera is off
- encode_image: PNG/JPEG bytes for snapshots and the HTTP frame endpoint
"""
from __future__ import annotations
import cv2
import numpy as np
from typing import Optional, Tuple

from core.models import Detection, ViewState

FONT = cv2.FONT_HERSHEY_SIMPLEX
BOX_COLOR = (255, 200, 0)
LANDMARK_COLOR = (0, 255, 255)
TEXT_COLOR = (255, 255, 255)
LEVEL_COLORS = {
    "info": (255, 180, 90),
    "success": (90, 220, 90),
    "warning": (0, 210, 255),
    "error": (60, 60, 255),
}


def _clamp_box(det: Detection, w: int, h: int) -> Tuple[int, int, int, int]:
    b = det.box
    x = max(0, min(b.x, w - 1)); y = max(0, min(b.y, h - 1))
    bw = max(0, min(b.w, w - x)); bh = max(0, min(b.h, h - y))
    return x, y, bw, bh


def draw_detection(frame: np.ndarray, det: Detection, color: Tuple[int, int, int] = BOX_COLOR) -> np.ndarray:
    """Draw the face rectangle and landmark points in place."""
    h, w = frame.shape[:2]
    x, y, bw, bh = _clamp_box(det, w, h)
    cv2.rectangle(frame, (x, y), (x + bw, y + bh), color, 2)
    for p in det.landmarks:
        if 0 <= p.x < w and 0 <= p.y < h:
            cv2.circle(frame, (p.x, p.y), 2, LANDMARK_COLOR, -1, cv2.LINE_AA)
    return frame


def _label_box(frame: np.ndarray, det: Detection, mirror: bool, color=BOX_COLOR) -> None:
    # Score label goes on after mirroring so the text stays readable
    h, w = frame.shape[:2]
    x, y, bw, _ = _clamp_box(det, w, h)
    if mirror:
        x = w - x - bw
    cv2.putText(frame, f"{det.score:.2f}", (x, max(12, y - 8)), FONT, 0.5, color, 1, cv2.LINE_AA)


def panel_lines(view: ViewState) -> list[tuple[str, Tuple[int, int, int]]]:
    r = view.results
    st = r.stats
    dom = r.dominant_expression
    lines = [(view.status.message.encode("ascii", "ignore").decode().strip(),
              LEVEL_COLORS.get(view.status.level, TEXT_COLOR))]
    lines += [
        (f"Age: {r.age}  ({r.age_range})", TEXT_COLOR),
        (f"Estimated age: {r.age_estimate}", TEXT_COLOR),
        (f"Gender: {r.gender}", TEXT_COLOR),
        (f"Expression: {dom.name} {dom.confidence}%", TEXT_COLOR),
        (f"Rate: {st.detection_rate}  Latency: {st.processing_time}", TEXT_COLOR),
        (f"Faces: {st.face_count}  Analyses: {st.analysis_count}", TEXT_COLOR),
    ]
    return lines


def draw_panel(frame: np.ndarray, view: ViewState) -> np.ndarray:
    """Results panel in the top-left corner, in place."""
    y = 24
    for text, color in panel_lines(view):
        if text:
            cv2.putText(frame, text, (10, y), FONT, 0.55, (0, 0, 0), 3, cv2.LINE_AA)
            cv2.putText(frame, text, (10, y), FONT, 0.55, color, 1, cv2.LINE_AA)
        y += 22
    return frame


def draw_overlays(frame: np.ndarray,
                  detection: Optional[Detection] = None,
                  view: Optional[ViewState] = None,
                  mirror: bool = False) -> np.ndarray:
    """Compose frame + overlay.

    Args:
        frame: BGR image
        detection: face to outline, or None to draw no box
        view: state for the results panel, or None to skip the panel
        mirror: flip horizontally like a selfie preview (text stays readable)

    Returns:
        Annotated copy of the frame
    """
    out = frame.copy()
    if detection is not None:
        draw_detection(out, detection)
    if mirror:
        out = cv2.flip(out, 1)
    if detection is not None:
        _label_box(out, detection, mirror)
    if view is not None:
        draw_panel(out, view)
    return out


def draw_idle(size: Tuple[int, int], view: Optional[ViewState] = None, waiting: bool = False) -> np.ndarray:
    """Placeholder screen while no frame is available. `size` is (width, height)."""
    w, h = size
    out = np.zeros((h, w, 3), dtype=np.uint8)
    cv2.putText(out, "AI Face Detection", (max(10, w // 2 - 150), h // 2 - 10), FONT, 1.0, TEXT_COLOR, 2, cv2.LINE_AA)
    hint = "Waiting for camera..." if waiting else "Start the camera to begin analysis"
    cv2.putText(out, hint, (max(10, w // 2 - 170), h // 2 + 25),
                FONT, 0.6, (160, 160, 160), 1, cv2.LINE_AA)
    if view is not None:
        text = view.status.message.encode("ascii", "ignore").decode().strip()
        cv2.putText(out, text, (10, 24), FONT, 0.55, LEVEL_COLORS.get(view.status.level, TEXT_COLOR), 1, cv2.LINE_AA)
        cv2.putText(out, f"[{view.start_label}]  p: start/stop  s: snapshot  q: quit", (10, h - 16),
                    FONT, 0.5, (160, 160, 160), 1, cv2.LINE_AA)
    return out


def encode_image(image: np.ndarray, ext: str = ".png") -> bytes:
    ok, buf = cv2.imencode(ext, image)
    if not ok:
        raise RuntimeError(f"Could not encode image as {ext}")
    return buf.tobytes()
