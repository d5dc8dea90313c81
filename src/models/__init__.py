"""
Typed models for the object announcer.

Both detection paths (cloud and on-device) produce these types, so every
later stage works on one representation.
"""

from .frame import FrameData
from .decision import SourceDecision, Announcement
from .detection import Candidate, DetectionSet, FREE_TEXT_CLASS_ID, clamp01
from .config import (
    Config,
    CameraConfig,
    LocalDetectorConfig,
    RemoteDetectorConfig,
    ArbiterConfig,
    StabilizerConfig,
    NetworkConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Decisions
    "SourceDecision",
    "Announcement",
    # Detection
    "Candidate",
    "DetectionSet",
    "FREE_TEXT_CLASS_ID",
    "clamp01",
    # Config
    "Config",
    "CameraConfig",
    "LocalDetectorConfig",
    "RemoteDetectorConfig",
    "ArbiterConfig",
    "StabilizerConfig",
    "NetworkConfig",
    "WebConfig",
]
