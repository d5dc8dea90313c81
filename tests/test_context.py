"""
Tests for the runtime context.
"""

from unittest.mock import MagicMock

import numpy as np

from models.config import Config
from models.decision import Announcement, SourceDecision
from models.detection import DetectionSet
from models.frame import FrameData
from pipeline.processor import FrameResult
from runtime.context import RuntimeContext
from runtime.reachability import StaticReachability


def _frame_data(index=1):
    return FrameData(np.zeros((8, 8, 3), dtype=np.uint8), captured_ms=0.0, sequence=index)


class TestRuntimeContext:
    def test_attach_web_state(self):
        web_state = MagicMock()
        pipeline = MagicMock()
        config = Config()
        ctx = RuntimeContext(config=config, pipeline=pipeline, probe=StaticReachability(True), web_state=web_state)

        ctx.attach_web_state()

        web_state.set_pipeline.assert_called_once_with(pipeline)
        web_state.set_config.assert_called_once_with(config)
        web_state.update_system_stats.assert_called_once()

    def test_announce_keeps_latest(self):
        ctx = RuntimeContext(config=Config(), pipeline=MagicMock(), probe=StaticReachability(False))
        spoken = Announcement("person", 0.9, 100.0, SourceDecision.LOCAL)

        ctx.announce(_frame_data(), FrameResult(DetectionSet.empty(), spoken))
        ctx.announce(_frame_data(2), FrameResult(DetectionSet.empty()))

        assert ctx.last_announcement is spoken
        assert ctx.get_system_stats_copy()["last_announcement_frame"] == 1
