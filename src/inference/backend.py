"""
Detection source and local runtime interfaces.

A DetectionSource turns one frame into normalized Candidates. The pipeline
holds exactly two of them (remote and local) and runs one per frame.

A LocalRuntime wraps an on-device model. Depending on the export it returns
either the raw dense tensor (decoded by BoxDecoder) or a pre-boxed list of
pixel-space detections (normalized by a pass-through adapter).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, Union

import numpy as np

from models.decision import SourceDecision
from models.detection import Candidate


@dataclass(frozen=True)
class PixelDetection:
    """A pre-boxed runtime detection in pixel coordinates of the model input."""
    x1: float
    y1: float
    x2: float
    y2: float
    confidence: float = 1.0
    class_id: Optional[int] = None
    class_name: Optional[str] = None


RuntimeOutput = Union[np.ndarray, List[PixelDetection]]


class DetectionSource(Protocol):
    decision: SourceDecision

    def detect(self, frame: np.ndarray) -> List[Candidate]:
        ...


class LocalRuntime(Protocol):
    input_size: int

    @property
    def output_shape(self) -> Optional[Sequence]:
        """Declared dense output shape, or None for pre-boxed runtimes."""
        ...

    def infer(self, square: np.ndarray) -> RuntimeOutput:
        ...

    def close(self) -> None:
        ...
