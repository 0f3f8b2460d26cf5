"""API response models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"


class TargetResult(BaseModel):
    target: int
    n_labels: int
    repaired: int = 0
    labels: list[list[int]] | None = None


class SegmentResponse(BaseModel):
    width: int
    height: int
    n_leaves: int
    processing_time_ms: float = 0.0
    results: list[TargetResult] = Field(default_factory=list)
