"""
Pydantic data models: detections, view state and the messages that update it.
"""
from __future__ import annotations
from enum import Enum
from pydantic import BaseModel, Field
from typing import Dict, List, Optional, Literal, Union

PLACEHOLDER = "--"

EXPRESSION_LABELS = ("neutral", "happy", "sad", "angry", "fearful", "disgusted", "surprised")
EXPRESSION_EMOJIS = {
    "neutral": "😐", "happy": "😊", "sad": "😢", "angry": "😠",
    "fearful": "😨", "disgusted": "🤢", "surprised": "😲",
}

StatusLevel = Literal["info", "success", "warning", "error"]


def empty_expressions() -> Dict[str, float]:
    return {k: 0.0 for k in EXPRESSION_LABELS}


class ControllerState(str, Enum):
    IDLE = "idle"
    LOADING_LIBRARY = "loading_library"
    LOADING_MODELS = "loading_models"
    READY = "ready"
    DETECTING = "detecting"
    FAILED = "failed"


# detection boundary

class FaceBox(BaseModel):
    x: int
    y: int
    w: int
    h: int

class Landmark(BaseModel):
    name: str
    x: int
    y: int

class Detection(BaseModel):
    box: FaceBox
    score: float = 1.0
    landmarks: List[Landmark] = Field(default_factory=list)
    expressions: Dict[str, float] = Field(default_factory=empty_expressions)
    age: Optional[float] = None
    gender: Optional[Literal["male", "female"]] = None
    gender_probability: Optional[float] = None


# view state

class ModelStatus(BaseModel):
    face_detection: bool = False
    expressions: bool = False
    age_gender: bool = False
    landmarks: bool = False

class StatusMessage(BaseModel):
    message: str = "🤖 Initializing..."
    level: StatusLevel = "info"

class DominantExpression(BaseModel):
    name: str = PLACEHOLDER
    confidence: int = 0
    emoji: str = EXPRESSION_EMOJIS["neutral"]

class Stats(BaseModel):
    detection_rate: str = "0 FPS"
    face_count: int = 0
    processing_time: str = PLACEHOLDER
    analysis_count: int = 0

class Results(BaseModel):
    age: Union[int, str] = PLACEHOLDER
    gender: str = PLACEHOLDER
    age_range: str = PLACEHOLDER
    age_estimate: str = PLACEHOLDER
    dominant_expression: DominantExpression = Field(default_factory=DominantExpression)
    expressions: Dict[str, float] = Field(default_factory=empty_expressions)
    stats: Stats = Field(default_factory=Stats)

class ViewState(BaseModel):
    state: ControllerState = ControllerState.IDLE
    detecting: bool = False
    start_label: str = "Loading Library..."
    status: StatusMessage = Field(default_factory=StatusMessage)
    models: ModelStatus = Field(default_factory=ModelStatus)
    results: Results = Field(default_factory=Results)
    last_detection: Optional[Detection] = None


# messages into the presenter

class StatusUpdate(BaseModel):
    kind: Literal["status"] = "status"
    message: str
    level: StatusLevel = "info"

class ModelStatusUpdate(BaseModel):
    kind: Literal["models"] = "models"
    models: ModelStatus

class StateUpdate(BaseModel):
    kind: Literal["state"] = "state"
    state: ControllerState

class ResultsUpdate(BaseModel):
    kind: Literal["results"] = "results"
    age: Union[int, str] = PLACEHOLDER
    gender: str = PLACEHOLDER
    age_range: str = PLACEHOLDER
    age_estimate: str = PLACEHOLDER
    dominant_expression: DominantExpression
    expressions: Dict[str, float]
    detection: Optional[Detection] = None

class StatsUpdate(BaseModel):
    kind: Literal["stats"] = "stats"
    detections_per_second: int
    mean_latency_ms: int
    face_count: int
    analysis_count: int

class ResetResults(BaseModel):
    kind: Literal["reset"] = "reset"

Message = Union[StatusUpdate, ModelStatusUpdate, StateUpdate, ResultsUpdate, StatsUpdate, ResetResults]
