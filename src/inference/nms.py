"""
Greedy, class-agnostic non-max suppression over normalized Candidates.
"""

from __future__ import annotations

from typing import List, Sequence

from models.detection import Candidate

IOU_EPSILON = 1e-6
DEFAULT_IOU_THRESHOLD = 0.45


def iou(a: Candidate, b: Candidate) -> float:
    """
    Intersection over Union between two corner-form boxes.

    Returns:
        IoU value between 0 and 1.
    """
    ax1, ay1, ax2, ay2 = a.as_tuple()
    bx1, by1, bx2, by2 = b.as_tuple()
    x1 = max(ax1, bx1)
    y1 = max(ay1, by1)
    x2 = min(ax2, bx2)
    y2 = min(ay2, by2)

    intersection = max(0.0, x2 - x1) * max(0.0, y2 - y1)
    union = a.area + b.area - intersection
    return intersection / (union + IOU_EPSILON)


def non_max_suppression(
    candidates: Sequence[Candidate],
    iou_threshold: float = DEFAULT_IOU_THRESHOLD,
) -> List[Candidate]:
    """
    Keep the highest-scoring box of every overlapping cluster.

    Suppression ignores class: a box can only be one object. Equal scores keep
    their input order (stable sort).

    Args:
        candidates: Unsorted candidates, e.g. straight from BoxDecoder.
        iou_threshold: A later box is dropped when IoU > this with a kept box.

    Returns:
        Surviving candidates in descending score order.
    """
    ordered = sorted(candidates, key=lambda c: c.score, reverse=True)
    suppressed = [False] * len(ordered)
    kept: List[Candidate] = []

    for i, current in enumerate(ordered):
        if suppressed[i]:
            continue
        kept.append(current)
        for j in range(i + 1, len(ordered)):
            if not suppressed[j] and iou(current, ordered[j]) > iou_threshold:
                suppressed[j] = True

    return kept
