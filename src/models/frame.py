"""
Captured frames and the clock they are stamped with.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

import numpy as np


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass(frozen=True)
class FrameData:
    """
    A decoded camera frame on its way to the detector.

    The capture stamp comes from the same monotonic clock the pipeline uses
    when no time is given, so the engine can hand it straight to the remote
    rate limit and the announcement cooldown. A frame that waited in the
    reader is judged by when the camera saw it.

    Attributes:
        frame: BGR pixel buffer, as produced by OpenCV.
        captured_ms: Monotonic capture time in milliseconds.
        sequence: 1-based count of frames read since the source was opened.
    """
    frame: np.ndarray
    captured_ms: float
    sequence: int = 0

    @classmethod
    def capture(cls, frame: np.ndarray, sequence: int = 0) -> "FrameData":
        """Stamp a freshly decoded frame with the current time."""
        return cls(frame=frame, captured_ms=monotonic_ms(), sequence=sequence)
