"""
Pipeline module for the object announcer.

The pipeline orchestrates the full processing flow:
- Source arbitration between the cloud and the on-device detector
- Stabilization of per-frame detections into announcements
- The worker loop that feeds frames and dispatches results
"""

from .arbiter import SourceArbiter
from .processor import DetectionPipeline, FrameResult, create_pipeline_from_config
from .stages.stabilize import Stabilizer, StabilizationState
from .engine import PipelineEngine, EngineConfig, create_engine_from_config

__all__ = [
    "SourceArbiter",
    "DetectionPipeline",
    "FrameResult",
    "create_pipeline_from_config",
    "Stabilizer",
    "StabilizationState",
    "PipelineEngine",
    "EngineConfig",
    "create_engine_from_config",
]
