from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class CandidateModel(BaseModel):
    x1: float
    y1: float
    x2: float
    y2: float
    score: float
    class_id: int
    label: str


class DetectionsResponse(BaseModel):
    """Latest DetectionSet, in descending score order, for overlay rendering."""
    source: Optional[str] = Field(None, description="remote|local, None before the first frame")
    timestamp_ms: Optional[float] = None
    candidates: List[CandidateModel] = Field(default_factory=list)


class AnnouncementResponse(BaseModel):
    label: Optional[str] = Field(None, description="Most recent label to speak")
    score: Optional[float] = None
    timestamp_ms: Optional[float] = None
    source: Optional[str] = None


class StatusResponse(BaseModel):
    status: str = Field(..., description="running|paused|stale|offline")
    paused: bool
    reachable: Optional[bool] = None
    last_frame_age: Optional[float] = None
    uptime_seconds: Optional[int] = None
    stable_labels: List[str] = Field(default_factory=list)
    counters: Dict[str, int] = Field(default_factory=dict)
    stats: Dict[str, int] = Field(default_factory=dict)
    timestamp: float


class ControlResponse(BaseModel):
    paused: bool
