"""
Per-frame detection decision pipeline.

frame -> SourceArbiter (remote | local) -> DetectionSet -> Stabilizer
      -> FrameResult(detections, optional announcement)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import numpy as np

from inference.backend import DetectionSource
from models.config import Config
from models.decision import Announcement, SourceDecision
from models.detection import DetectionSet
from models.frame import monotonic_ms
from .arbiter import SourceArbiter
from .stages.stabilize import StabilizationState, Stabilizer


@dataclass(frozen=True)
class FrameResult:
    """
    Output of one analyzed frame.

    Attributes:
        detections: Ordered detections for the overlay.
        announcement: Label to speak now, if any.
        discarded: True when the frame was skipped or its result dropped
            because detection was paused while it was in flight.
    """
    detections: DetectionSet
    announcement: Optional[Announcement] = None
    discarded: bool = False


@dataclass
class ProcessorStats:
    """Counters since the pipeline was created."""
    frames: int = 0
    remote_frames: int = 0
    local_frames: int = 0
    announcements: int = 0
    discarded: int = 0
    errors: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "frames": self.frames,
            "remote_frames": self.remote_frames,
            "local_frames": self.local_frames,
            "announcements": self.announcements,
            "discarded": self.discarded,
            "errors": self.errors,
        }


class DetectionPipeline:
    """
    Owns the arbiter and the stabilizer and processes one frame at a time.

    process_frame() is meant to be called from a single worker thread.
    pause()/resume() may be called from any thread (e.g. the web API); the
    stabilizer reset and the stabilizer update share one lock, and a result
    computed while a pause happened is discarded.

    Example:
        pipeline = DetectionPipeline(arbiter, Stabilizer())
        result = pipeline.process_frame(frame, reachable=True)
        if result.announcement:
            speak(result.announcement.label)
    """

    def __init__(
        self,
        arbiter: SourceArbiter,
        stabilizer: Stabilizer,
        clock: Callable[[], float] = monotonic_ms,
    ):
        self.arbiter = arbiter
        self.stabilizer = stabilizer
        self._clock = clock
        self._lock = threading.Lock()
        self._paused = False
        self._epoch = 0
        self.stats = ProcessorStats()

    @property
    def paused(self) -> bool:
        return self._paused

    def pause(self) -> None:
        """Stop detecting and clear stabilization so resuming starts clean."""
        with self._lock:
            self._paused = True
            self._epoch += 1
            self.stabilizer.reset()
        logging.info("Detection paused")

    def resume(self) -> None:
        with self._lock:
            self._paused = False
        logging.info("Detection resumed")

    def snapshot(self) -> StabilizationState:
        """Consistent copy of the stabilization state, safe from any thread."""
        with self._lock:
            return self.stabilizer.state.copy()

    def process_frame(
        self,
        frame: np.ndarray,
        reachable: bool,
        now_ms: Optional[float] = None,
    ) -> FrameResult:
        """
        Analyze one frame. Never raises: failures degrade to no detections.
        """
        now = self._clock() if now_ms is None else now_ms

        with self._lock:
            if self._paused:
                return FrameResult(DetectionSet.empty(timestamp_ms=now), discarded=True)
            epoch = self._epoch

        try:
            detections = self.arbiter.run(frame, reachable, now)
        except Exception as e:
            self.stats.errors += 1
            logging.error(f"Frame analysis failed: {e}")
            return FrameResult(DetectionSet.empty(timestamp_ms=now))

        self.stats.frames += 1
        if detections.source is SourceDecision.REMOTE:
            self.stats.remote_frames += 1
        else:
            self.stats.local_frames += 1

        with self._lock:
            if self._paused or epoch != self._epoch:
                self.stats.discarded += 1
                logging.debug("Discarding result computed across a pause")
                return FrameResult(DetectionSet.empty(source=detections.source, timestamp_ms=now), discarded=True)
            announcement = self.stabilizer.update(detections, now)

        if announcement is not None:
            self.stats.announcements += 1
        return FrameResult(detections, announcement)

    def close(self) -> None:
        for source in (self.arbiter.remote, self.arbiter.local):
            close = getattr(source, "close", None)
            if close is not None:
                close()


def create_pipeline_from_config(
    config: Config,
    remote: Optional[DetectionSource] = None,
    local: Optional[DetectionSource] = None,
) -> DetectionPipeline:
    """
    Factory function to build a DetectionPipeline from typed config.

    Sources may be injected (tests, alternative runtimes); otherwise they are
    built from config. Loading the local model can take a while.
    """
    if remote is None:
        from inference.remote import RemoteSource

        remote = RemoteSource(config.remote, input_size=config.local.input_size)
    if local is None:
        from inference.local import create_local_source

        local = create_local_source(config.local)

    arbiter = SourceArbiter(remote, local, config.arbiter)
    return DetectionPipeline(arbiter, Stabilizer(config.stabilizer))
