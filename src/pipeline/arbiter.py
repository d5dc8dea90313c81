"""
Per-frame choice between the remote and the local detector.

The remote detector is rate-limited: it is used only when the network is
reachable and at least min_remote_interval_ms has passed since the last
remote query. Every other frame falls through to the local detector
immediately; frames are never queued waiting for the interval to expire.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from inference.backend import DetectionSource
from models.config import ArbiterConfig
from models.decision import SourceDecision
from models.detection import DetectionSet


class SourceArbiter:
    """
    Chooses and runs exactly one DetectionSource per frame.

    Example:
        arbiter = SourceArbiter(remote_source, local_source)
        detections = arbiter.run(frame, reachable=True, now_ms=now)
    """

    def __init__(
        self,
        remote: DetectionSource,
        local: DetectionSource,
        config: Optional[ArbiterConfig] = None,
    ):
        self.remote = remote
        self.local = local
        self.config = config or ArbiterConfig()
        self.last_remote_query_ms: Optional[float] = None

    def decide(self, reachable: bool, now_ms: float) -> SourceDecision:
        """
        Resolve the source for one frame.

        Choosing REMOTE records now_ms as the last remote query time, before
        the call is made, so a slow or failed call still counts against the
        interval.
        """
        if reachable and (
            self.last_remote_query_ms is None
            or now_ms - self.last_remote_query_ms >= self.config.min_remote_interval_ms
        ):
            self.last_remote_query_ms = now_ms
            return SourceDecision.REMOTE
        return SourceDecision.LOCAL

    def run(self, frame: np.ndarray, reachable: bool, now_ms: float) -> DetectionSet:
        """
        Run the chosen source on a frame.

        Returns:
            DetectionSet tagged with the decision. Empty when the chosen
            source fails; the other source is not tried for this frame.
        """
        decision = self.decide(reachable, now_ms)
        source = self.remote if decision is SourceDecision.REMOTE else self.local
        logging.debug(f"Source decision: {decision.value} (reachable={reachable})")

        try:
            candidates = source.detect(frame)
        except Exception as e:
            logging.error(f"{decision.value} detection failed: {e}")
            candidates = []

        return DetectionSet.from_candidates(candidates, source=decision, timestamp_ms=now_ms)

    def reset(self) -> None:
        """Forget the last remote query time."""
        self.last_remote_query_ms = None
