"""
Pydantic data models for the metric pipeline and API IO.
"""
from __future__ import annotations
import math
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional, Literal

NUMERIC_METRICS = (
    "eye_contact",
    "posture",
    "body_language",
    "expression",
    "voice_clarity",
    "confidence",
    "engagement",
    "stress",
    "positivity",
)

Emotion = Literal["happy", "neutral", "anxious", "confident", "focused", "distracted"]


def clamp(x: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, x))


class MetricsSnapshot(BaseModel):
    """Displayed / recorded state; every numeric field lives in [0, 100]."""
    model_config = ConfigDict(validate_assignment=True)

    eye_contact: float = 0
    posture: float = 0
    body_language: float = 0
    expression: float = 0
    voice_clarity: float = 0
    confidence: float = 0
    engagement: float = 0
    stress: float = 0
    positivity: float = 0
    dominant_emotion: str = "neutral"

    @field_validator(*NUMERIC_METRICS, mode="after")
    @classmethod
    def _bounded(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("metric must be finite")
        return clamp(v)

    @field_validator("dominant_emotion", mode="before")
    @classmethod
    def _label(cls, v):
        return v or "neutral"


class LocalEstimate(BaseModel):
    model_config = ConfigDict(frozen=True)

    eye_contact: float = 0
    posture: float = 0
    expression: float = 0


class RemoteEstimate(BaseModel):
    """Scores returned by the remote vision model (camelCase on the wire)."""
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    eye_contact: float = Field(50, ge=0, le=100, strict=True)
    confidence: float = Field(50, ge=0, le=100, strict=True)
    engagement: float = Field(50, ge=0, le=100, strict=True)
    stress: float = Field(30, ge=0, le=100, strict=True)
    positivity: float = Field(50, ge=0, le=100, strict=True)
    professional_presence: float = Field(50, ge=0, le=100, strict=True)
    dominant_emotion: Emotion = "neutral"
    micro_expressions: Optional[str] = None

    @field_validator("dominant_emotion", mode="before")
    @classmethod
    def _lower(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class TimelineSummary(BaseModel):
    samples: int
    eye_contact: int
    confidence: int
    engagement: int
    stress: int
    positivity: int


class SessionStatus(BaseModel):
    active: bool
    listening: bool
    started_at: float | None = None
    timeline_length: int = 0
    metrics: MetricsSnapshot


class ListeningRequest(BaseModel):
    listening: bool


class TimelineResponse(BaseModel):
    entries: List[MetricsSnapshot] = Field(default_factory=list)
