"""
Observation layer for pluggable frame sources.

This layer abstracts where frames come from (camera, stream, video file)
from the detection pipeline. Each source implements ObservationSource, which
stamps every frame with its capture time; LatestFrameReader adds
keep-only-latest delivery.
"""

from typing import Any, Dict

from .base import ObservationSource
from .opencv_source import OpenCVSource, OpenCVSourceConfig
from .latest import LatestFrameReader


def create_source_from_config(camera_cfg: Dict[str, Any], source_id: str = "camera") -> ObservationSource:
    """Factory: build an OpenCVSource from the `camera` config section."""
    return OpenCVSource(OpenCVSourceConfig.from_camera_config(camera_cfg, source_id=source_id))


__all__ = [
    "ObservationSource",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "LatestFrameReader",
    "create_source_from_config",
]
