"""
Stabilize stage: turns noisy per-frame detections into debounced announcements.

Each label carries a persistence counter:
- +1 on every frame the label is present (once per frame, uncapped)
- -1 on every frame it is absent; the entry is removed when it reaches 0

A label is stable once its counter reaches the persistence threshold. Among
stable labels present in the current frame, the highest-scoring candidate
is announced, unless the same label was announced within the cooldown.
Decay-to-removal absorbs single-frame misses without re-arming the label.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from models.config import StabilizerConfig
from models.decision import Announcement, SourceDecision
from models.detection import Candidate, DetectionSet


@dataclass
class StabilizationState:
    """
    Mutable debouncing state, owned by one Stabilizer.

    Attributes:
        counters: Label -> persistence counter. Only positive counts are kept.
        last_announced_label: Label of the most recent announcement.
        last_announced_at_ms: Pipeline clock time of that announcement.
    """
    counters: Dict[str, int] = field(default_factory=dict)
    last_announced_label: Optional[str] = None
    last_announced_at_ms: Optional[float] = None

    def clear(self) -> None:
        self.counters.clear()
        self.last_announced_label = None
        self.last_announced_at_ms = None

    def copy(self) -> "StabilizationState":
        return StabilizationState(
            counters=dict(self.counters),
            last_announced_label=self.last_announced_label,
            last_announced_at_ms=self.last_announced_at_ms,
        )


class Stabilizer:
    """
    Pipeline stage that debounces announcements.

    Not thread-safe: call from the single frame-processing path only.

    Example:
        stabilizer = Stabilizer(StabilizerConfig(persistence_threshold=3))

        # Each frame:
        announcement = stabilizer.update(detections, now_ms)
        if announcement:
            speak(announcement.label)
    """

    def __init__(
        self,
        config: Optional[StabilizerConfig] = None,
        state: Optional[StabilizationState] = None,
    ):
        self.config = config or StabilizerConfig()
        self._state = state if state is not None else StabilizationState()

    @property
    def state(self) -> StabilizationState:
        return self._state

    def count(self, label: str) -> int:
        return self._state.counters.get(label, 0)

    def is_stable(self, label: str) -> bool:
        return self.count(label) >= self.config.persistence_threshold

    def observe(self, present: Iterable[str]) -> None:
        """Apply one frame's label set to the persistence counters."""
        present_set = set(present)
        counters = self._state.counters

        for label in present_set:
            counters[label] = counters.get(label, 0) + 1

        for label in [k for k in counters if k not in present_set]:
            remaining = counters[label] - 1
            if remaining <= 0:
                del counters[label]
            else:
                counters[label] = remaining

    def stable_labels(self) -> List[str]:
        return sorted(k for k in self._state.counters if self.is_stable(k))

    def select(self, detections: DetectionSet) -> Optional[Candidate]:
        """
        Highest-scoring current-frame candidate whose label is stable.

        Ties go to the earlier candidate, i.e. the suppressor's order.
        """
        best: Optional[Candidate] = None
        for candidate in detections:
            if not self.is_stable(candidate.label):
                continue
            if best is None or candidate.score > best.score:
                best = candidate
        return best

    def update(self, detections: DetectionSet, now_ms: float) -> Optional[Announcement]:
        """
        Advance the state by one frame.

        Returns:
            An Announcement when a stable label should be spoken now, else None.
        """
        self.observe(detections.labels)

        selected = self.select(detections)
        if selected is None:
            return None

        state = self._state
        is_new_label = selected.label != state.last_announced_label
        cooled_down = (
            state.last_announced_at_ms is None
            or now_ms - state.last_announced_at_ms > self.config.cooldown_ms
        )
        if not (is_new_label or cooled_down):
            return None

        state.last_announced_label = selected.label
        state.last_announced_at_ms = now_ms
        logging.info(f"Announce: {selected.label} (score={selected.score:.2f})")

        return Announcement(
            label=selected.label,
            score=selected.score,
            timestamp_ms=now_ms,
            source=detections.source or SourceDecision.LOCAL,
        )

    def reset(self) -> None:
        """Drop every counter and the last-announced memory."""
        self._state.clear()
        logging.debug("Stabilizer state reset")
