"""
View-state holder for the presentation layer.

The controller and aggregator never touch UI state directly; they send typed
messages (core.models.Message) that `apply` folds into a ViewState. Readers
(OpenCV window, HTTP routes) get deep copies.
"""
from __future__ import annotations

import logging
import threading
from typing import Iterable

from core.models import (
    ControllerState,
    Message,
    ModelStatusUpdate,
    ResetResults,
    Results,
    ResultsUpdate,
    StateUpdate,
    StatsUpdate,
    StatusMessage,
    StatusUpdate,
    ViewState,
)

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def start_label(state: ControllerState) -> str:
    """Text for the start command in the current state."""
    if state in (ControllerState.IDLE, ControllerState.LOADING_LIBRARY):
        return "Loading Library..."
    if state == ControllerState.LOADING_MODELS:
        return "Loading Models..."
    if state == ControllerState.FAILED:
        return "Models Not Loaded"
    return "Start Detection"


class Presenter:
    def __init__(self):
        self._lock = threading.Lock()
        self._view = ViewState()

    def view(self) -> ViewState:
        with self._lock:
            return self._view.model_copy(deep=True)

    def apply(self, message: Message) -> None:
        with self._lock:
            self._apply(message)

    def apply_all(self, messages: Iterable[Message]) -> None:
        with self._lock:
            for m in messages:
                self._apply(m)

    def status(self, message: str, level: str = "info") -> None:
        self.apply(StatusUpdate(message=message, level=level))

    def _apply(self, m: Message) -> None:
        v = self._view
        if isinstance(m, StatusUpdate):
            v.status = StatusMessage(message=m.message, level=m.level)
            logger.log(_LOG_LEVELS.get(m.level, logging.INFO), f"[{m.level.upper()}] {m.message}")
        elif isinstance(m, ModelStatusUpdate):
            v.models = m.models.model_copy()
        elif isinstance(m, StateUpdate):
            v.state = m.state
            v.detecting = m.state == ControllerState.DETECTING
            v.start_label = start_label(m.state)
        elif isinstance(m, ResultsUpdate):
            r = v.results
            r.age = m.age
            r.gender = m.gender
            r.age_range = m.age_range
            r.age_estimate = m.age_estimate
            r.dominant_expression = m.dominant_expression
            r.expressions = dict(m.expressions)
            v.last_detection = m.detection
        elif isinstance(m, StatsUpdate):
            st = v.results.stats
            st.detection_rate = f"{m.detections_per_second} FPS"
            st.face_count = m.face_count
            st.processing_time = f"{m.mean_latency_ms}ms"
            st.analysis_count = m.analysis_count
        elif isinstance(m, ResetResults):
            v.results = Results()
            v.last_detection = None
        else:
            raise TypeError(f"unknown message: {type(m).__name__}")
