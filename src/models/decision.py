"""
Per-frame decisions made by the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SourceDecision(str, Enum):
    """Which detector handled a frame. Exactly one is chosen per frame."""
    REMOTE = "remote"
    LOCAL = "local"


@dataclass(frozen=True)
class Announcement:
    """
    A debounced "speak this label now" event.

    Attributes:
        label: Label to announce.
        score: Score of the current-frame candidate that carried the label.
        timestamp_ms: Pipeline clock time of the decision (milliseconds).
        source: Detector that produced the frame.
    """
    label: str
    score: float
    timestamp_ms: float
    source: SourceDecision

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "score": self.score,
            "timestamp_ms": self.timestamp_ms,
            "source": self.source.value,
        }
