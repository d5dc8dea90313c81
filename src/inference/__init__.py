"""
Detection backends: dense tensor decoding, suppression, and the two
detection sources (cloud Vision and on-device model).
"""

from .backend import DetectionSource, LocalRuntime, PixelDetection
from .decoder import BoxDecoder, ShapeMismatchError
from .nms import iou, non_max_suppression
from .vision_response import parse_annotate_response, filter_by_score, build_annotate_request
from .local import LocalSource, create_local_source
from .remote import RemoteSource, VisionClient, VisionTransportError

__all__ = [
    "DetectionSource",
    "LocalRuntime",
    "PixelDetection",
    "BoxDecoder",
    "ShapeMismatchError",
    "iou",
    "non_max_suppression",
    "parse_annotate_response",
    "filter_by_score",
    "build_annotate_request",
    "LocalSource",
    "create_local_source",
    "RemoteSource",
    "VisionClient",
    "VisionTransportError",
]
