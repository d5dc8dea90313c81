from __future__ import annotations

import time
from typing import List, Optional

from fastapi import APIRouter, HTTPException

from ..api_models import (
    AnnouncementResponse,
    CandidateModel,
    ControlResponse,
    DetectionsResponse,
    StatusResponse,
)
from ..state import state

router = APIRouter()


def _derive_status(last_frame_age: Optional[float], paused: bool) -> str:
    """
    Lightweight status classifier used by /api/status.
    Thresholds: >10s since last analyzed frame => offline; >2s => stale.
    """
    if paused:
        return "paused"
    if last_frame_age is None or last_frame_age > 10:
        return "offline"
    if last_frame_age > 2:
        return "stale"
    return "running"


def _require_pipeline():
    if state.pipeline is None:
        raise HTTPException(status_code=503, detail="Detection pipeline not running")
    return state.pipeline


@router.get("/detections", response_model=DetectionsResponse)
def detections():
    """Latest DetectionSet for the overlay renderer."""
    detection_set, _ = state.get_results()
    if detection_set is None:
        return DetectionsResponse()
    return DetectionsResponse(
        source=detection_set.source.value if detection_set.source else None,
        timestamp_ms=detection_set.timestamp_ms,
        candidates=[CandidateModel(**c.to_dict()) for c in detection_set],
    )


@router.get("/announcement", response_model=AnnouncementResponse)
def announcement():
    """Most recent announcement for the speech side."""
    _, latest = state.get_results()
    if latest is None:
        return AnnouncementResponse()
    return AnnouncementResponse(**latest.to_dict())


@router.get("/status", response_model=StatusResponse)
def status():
    now = time.time()
    sys_stats = state.get_system_stats_copy()
    start_time = sys_stats.get("start_time") or None
    last_frame_ts = sys_stats.get("last_frame_ts")
    last_frame_age = now - last_frame_ts if last_frame_ts else None

    pipeline = state.pipeline
    paused = bool(pipeline.paused) if pipeline is not None else False
    counters = {}
    stable: List[str] = []
    stats = {}
    if pipeline is not None:
        snap = pipeline.snapshot()
        counters = dict(snap.counters)
        threshold = pipeline.stabilizer.config.persistence_threshold
        stable = sorted(k for k, v in counters.items() if v >= threshold)
        stats = pipeline.stats.to_dict()

    return StatusResponse(
        status=_derive_status(last_frame_age, paused),
        paused=paused,
        reachable=sys_stats.get("reachable"),
        last_frame_age=last_frame_age,
        uptime_seconds=int(now - start_time) if start_time else None,
        stable_labels=stable,
        counters=counters,
        stats=stats,
        timestamp=now,
    )


@router.post("/detection/pause", response_model=ControlResponse)
def pause_detection():
    """User pause: stop analyzing and clear stabilization state."""
    pipeline = _require_pipeline()
    pipeline.pause()
    state.clear_results()
    return ControlResponse(paused=True)


@router.post("/detection/resume", response_model=ControlResponse)
def resume_detection():
    pipeline = _require_pipeline()
    pipeline.resume()
    return ControlResponse(paused=False)
