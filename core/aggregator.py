"""
Temporal smoothing and rolling statistics over detection ticks.

- Age: median of the last AGE_WINDOW raw estimates -> bracket + display range
- Expression: dominant label by max probability (first entry wins ties)
- Stats: detections per FPS window, mean latency over LATENCY_WINDOW ticks
"""
from __future__ import annotations

import math
import time
from collections import deque
from typing import Callable, Deque, List, Mapping, Optional

from core.config import Settings
from core.models import (
    EXPRESSION_EMOJIS,
    DominantExpression,
    Detection,
    Message,
    ResultsUpdate,
    StatsUpdate,
)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def median(values) -> Optional[float]:
    ordered = sorted(values)
    if not ordered:
        return None
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return float(ordered[mid])
    return (ordered[mid - 1] + ordered[mid]) / 2.0


def age_bracket(age: int) -> str:
    if age <= 12:
        return "Child"
    if age <= 19:
        return "Teen"
    if age <= 39:
        return "Young Adult"
    if age <= 59:
        return "Middle-Aged Adult"
    return "Senior"


def age_estimate(age: int, spread: int = 2) -> str:
    return f"{max(0, age - spread)} to {age + spread}"


def dominant_expression(distribution: Mapping[str, float]) -> DominantExpression:
    """Highest-probability label; on ties the earliest entry wins."""
    if not distribution:
        return DominantExpression()
    name, prob = max(distribution.items(), key=lambda kv: kv[1])
    return DominantExpression(
        name=name,
        confidence=round_half_up(float(prob) * 100),
        emoji=EXPRESSION_EMOJIS.get(name, EXPRESSION_EMOJIS["neutral"]),
    )


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class ResultAggregator:
    """Bounded histories of age readings and tick latencies."""

    def __init__(self, settings: Settings, clock: Callable[[], float] = _monotonic_ms):
        self.s = settings
        self._clock = clock
        self.age_history: Deque[float] = deque(maxlen=settings.AGE_WINDOW)
        self.processing_time_history: Deque[float] = deque(maxlen=settings.LATENCY_WINDOW)
        self.detection_count = 0
        self.analysis_count = 0
        self.last_reset_ms = clock()

    @property
    def smoothed_age(self) -> Optional[float]:
        return median(self.age_history)

    @property
    def mean_latency(self) -> Optional[float]:
        if not self.processing_time_history:
            return None
        return sum(self.processing_time_history) / len(self.processing_time_history)

    def record(
        self,
        age: Optional[float],
        expressions: Optional[Mapping[str, float]],
        elapsed_ms: float,
        face_found: bool,
        gender: Optional[str] = None,
        gender_probability: Optional[float] = None,
        detection: Optional[Detection] = None,
    ) -> List[Message]:
        """
        Fold one detection tick into the running state.

        `age`/`gender` are None when the age/gender model is unavailable; the
        age history then stays empty and those fields keep the placeholder.

        Returns:
            Messages for the presenter: a ResultsUpdate when a face was found,
            and a StatsUpdate whenever the FPS window closed on this tick.
        """
        out: List[Message] = []

        if face_found:
            self.detection_count += 1
            out.append(self._results(age, expressions or {}, gender, gender_probability, detection))

        self.processing_time_history.append(float(elapsed_ms))

        now = self._clock()
        if now - self.last_reset_ms >= self.s.FPS_WINDOW_MS:
            self.analysis_count += 1
            out.append(StatsUpdate(
                detections_per_second=self.detection_count,
                mean_latency_ms=round_half_up(self.mean_latency or 0.0),
                face_count=1 if face_found else 0,
                analysis_count=self.analysis_count,
            ))
            self.detection_count = 0
            self.last_reset_ms = now

        return out

    def _results(self, age, expressions, gender, gender_probability, detection) -> ResultsUpdate:
        update = ResultsUpdate(
            dominant_expression=dominant_expression(expressions),
            expressions=dict(expressions),
            detection=detection,
        )
        if age is not None:
            self.age_history.append(float(age))
        if self.age_history:
            rounded = round_half_up(self.smoothed_age)
            update.age = rounded
            update.age_range = age_bracket(rounded)
            update.age_estimate = age_estimate(rounded, self.s.AGE_RANGE_SPREAD)
        if gender:
            pct = round_half_up(float(gender_probability or 0.0) * 100)
            update.gender = f"{gender} ({pct}%)"
        return update

    def reset(self) -> None:
        self.age_history.clear()
        self.processing_time_history.clear()
        self.detection_count = 0
        self.analysis_count = 0
        self.last_reset_ms = self._clock()
