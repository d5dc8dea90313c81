"""
Tests for per-frame source arbitration.
"""

import numpy as np
import pytest

from models.config import ArbiterConfig
from models.decision import SourceDecision
from models.detection import Candidate
from pipeline.arbiter import SourceArbiter


class FakeSource:
    """Records calls and returns canned candidates."""

    def __init__(self, decision, candidates=None, error=None):
        self.decision = decision
        self.candidates = candidates or []
        self.error = error
        self.calls = 0

    def detect(self, frame):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.candidates)


@pytest.fixture
def frame():
    return np.zeros((48, 64, 3), dtype=np.uint8)


@pytest.fixture
def remote():
    return FakeSource(SourceDecision.REMOTE, [Candidate(0.1, 0.1, 0.3, 0.3, 0.9, label="Person")])


@pytest.fixture
def local():
    return FakeSource(SourceDecision.LOCAL, [Candidate(0.1, 0.1, 0.3, 0.3, 0.6, 0, "person")])


@pytest.fixture
def arbiter(remote, local):
    return SourceArbiter(remote, local, ArbiterConfig(min_remote_interval_ms=1500))


class TestDecide:
    def test_first_reachable_frame_goes_remote(self, arbiter):
        assert arbiter.decide(reachable=True, now_ms=0) is SourceDecision.REMOTE
        assert arbiter.last_remote_query_ms == 0

    def test_unreachable_goes_local_without_touching_timer(self, arbiter):
        assert arbiter.decide(reachable=False, now_ms=0) is SourceDecision.LOCAL
        assert arbiter.last_remote_query_ms is None

    def test_rate_limit_sequence(self, arbiter):
        decisions = [arbiter.decide(True, t) for t in (0, 500, 1000, 1500, 2000, 3000)]

        assert decisions == [
            SourceDecision.REMOTE,
            SourceDecision.LOCAL,
            SourceDecision.LOCAL,
            SourceDecision.REMOTE,
            SourceDecision.LOCAL,
            SourceDecision.REMOTE,
        ]

    def test_interval_boundary_is_inclusive(self, arbiter):
        arbiter.decide(True, 100)
        assert arbiter.decide(True, 1599) is SourceDecision.LOCAL
        assert arbiter.decide(True, 1600) is SourceDecision.REMOTE

    def test_going_offline_then_online(self, arbiter):
        arbiter.decide(True, 0)
        assert arbiter.decide(False, 5000) is SourceDecision.LOCAL
        assert arbiter.decide(True, 5001) is SourceDecision.REMOTE

    def test_reset(self, arbiter):
        arbiter.decide(True, 0)
        arbiter.reset()
        assert arbiter.decide(True, 10) is SourceDecision.REMOTE


class TestRun:
    def test_runs_exactly_one_source(self, arbiter, remote, local, frame):
        result = arbiter.run(frame, reachable=True, now_ms=0)

        assert result.source is SourceDecision.REMOTE
        assert result.labels == ["Person"]
        assert result.timestamp_ms == 0
        assert (remote.calls, local.calls) == (1, 0)

        result = arbiter.run(frame, reachable=True, now_ms=100)

        assert result.source is SourceDecision.LOCAL
        assert result.labels == ["person"]
        assert (remote.calls, local.calls) == (1, 1)

    def test_remote_failure_yields_empty_without_fallback(self, local, frame):
        failing = FakeSource(SourceDecision.REMOTE, error=RuntimeError("boom"))
        arbiter = SourceArbiter(failing, local)

        result = arbiter.run(frame, reachable=True, now_ms=0)

        assert result.source is SourceDecision.REMOTE
        assert len(result) == 0
        assert local.calls == 0

    def test_failed_remote_call_still_counts_against_interval(self, local, frame):
        failing = FakeSource(SourceDecision.REMOTE, error=RuntimeError("boom"))
        arbiter = SourceArbiter(failing, local)

        arbiter.run(frame, reachable=True, now_ms=0)
        result = arbiter.run(frame, reachable=True, now_ms=200)

        assert result.source is SourceDecision.LOCAL
        assert failing.calls == 1
