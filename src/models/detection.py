"""
Detection models shared by the local and remote detection paths.

Both paths converge on Candidate: a normalized corner-form box with a score
and a label. A DetectionSet is the immutable, ordered result for one frame.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

from .decision import SourceDecision

# class_id used when the source only provides a free-text label
FREE_TEXT_CLASS_ID = -1


def clamp01(value: float) -> float:
    """Clamp a coordinate into [0, 1]."""
    if value < 0.0:
        return 0.0
    if value > 1.0:
        return 1.0
    return float(value)


@dataclass(frozen=True)
class Candidate:
    """
    One proposed detection.

    Attributes:
        x1: Left edge, normalized to [0, 1].
        y1: Top edge, normalized to [0, 1].
        x2: Right edge, normalized to [0, 1].
        y2: Bottom edge, normalized to [0, 1].
        score: Confidence in [0, 1].
        class_id: Index into the class table, or -1 for free-text labels.
        label: Human-readable label, always populated.
    """
    x1: float
    y1: float
    x2: float
    y2: float
    score: float
    class_id: int = FREE_TEXT_CLASS_ID
    label: str = "Object"

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x1, y1, x2, y2) tuple."""
        return (self.x1, self.y1, self.x2, self.y2)

    @classmethod
    def from_corners(
        cls,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        score: float,
        class_id: int = FREE_TEXT_CLASS_ID,
        label: str = "Object",
    ) -> "Candidate":
        """
        Create a Candidate with every coordinate clamped into [0, 1].

        Corners are reordered when they arrive inverted so that x1 <= x2 and
        y1 <= y2 always hold.
        """
        cx1, cx2 = clamp01(x1), clamp01(x2)
        cy1, cy2 = clamp01(y1), clamp01(y2)
        return cls(
            x1=min(cx1, cx2),
            y1=min(cy1, cy2),
            x2=max(cx1, cx2),
            y2=max(cy1, cy2),
            score=clamp01(score),
            class_id=int(class_id),
            label=label,
        )

    @classmethod
    def from_pixel_box(
        cls,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        image_width: float,
        image_height: float,
        score: float,
        class_id: int = FREE_TEXT_CLASS_ID,
        label: str = "Object",
    ) -> "Candidate":
        """Adapter: normalize a pixel-space box against the image size."""
        return cls.from_corners(
            x1 / image_width,
            y1 / image_height,
            x2 / image_width,
            y2 / image_height,
            score=score,
            class_id=class_id,
            label=label,
        )

    def to_dict(self) -> dict:
        return {
            "x1": self.x1,
            "y1": self.y1,
            "x2": self.x2,
            "y2": self.y2,
            "score": self.score,
            "class_id": self.class_id,
            "label": self.label,
        }


@dataclass(frozen=True)
class DetectionSet:
    """
    Ordered detections produced for one analyzed frame.

    Candidates are kept in descending score order (the suppressor's order).
    The set is immutable once built, so it can be handed to rendering as-is.
    """
    candidates: Tuple[Candidate, ...] = ()
    source: Optional[SourceDecision] = None
    timestamp_ms: Optional[float] = None

    def __iter__(self) -> Iterator[Candidate]:
        return iter(self.candidates)

    def __len__(self) -> int:
        return len(self.candidates)

    def __bool__(self) -> bool:
        return bool(self.candidates)

    def __getitem__(self, index: int) -> Candidate:
        return self.candidates[index]

    @property
    def labels(self) -> List[str]:
        """Labels in candidate order, one per candidate."""
        return [c.label for c in self.candidates]

    @classmethod
    def empty(cls, source: Optional[SourceDecision] = None, timestamp_ms: Optional[float] = None) -> "DetectionSet":
        return cls(candidates=(), source=source, timestamp_ms=timestamp_ms)

    @classmethod
    def from_candidates(
        cls,
        candidates: Sequence[Candidate],
        source: Optional[SourceDecision] = None,
        timestamp_ms: Optional[float] = None,
    ) -> "DetectionSet":
        return cls(candidates=tuple(candidates), source=source, timestamp_ms=timestamp_ms)
