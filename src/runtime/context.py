from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from models.config import Config
from models.decision import Announcement
from models.frame import FrameData
from pipeline.processor import DetectionPipeline, FrameResult
from runtime.reachability import ReachabilityProbe


@dataclass
class RuntimeContext:
    """Holds runtime state and service references; avoids global singletons."""

    config: Config
    pipeline: DetectionPipeline
    probe: ReachabilityProbe
    web_state: Any = None

    # Observability
    system_stats: dict = field(default_factory=dict)
    last_announcement: Optional[Announcement] = None

    def attach_web_state(self) -> None:
        """Expose the pipeline and config to the web layer."""
        if self.web_state is None:
            return
        self.web_state.set_pipeline(self.pipeline)
        self.web_state.set_config(self.config)
        self.web_state.update_system_stats({"start_time": time.time()})

    def announce(self, frame_data: FrameData, result: FrameResult) -> None:
        """
        Engine callback: hand a new announcement to the speech side.

        Speech synthesis is platform specific; here it is logged and kept for
        the web API, which a speaking client polls.
        """
        if result.announcement is None:
            return
        self.last_announcement = result.announcement
        self.system_stats["last_announcement_frame"] = frame_data.sequence
        logging.info(
            f"Speak: {result.announcement.label} "
            f"(score={result.announcement.score:.2f}, source={result.announcement.source.value})"
        )

    def get_system_stats_copy(self):
        return dict(self.system_stats)
