"""
Tests for the shared detection models.
"""

import numpy as np
import pytest

from models.decision import Announcement, SourceDecision
from models.detection import Candidate, DetectionSet, clamp01
from models.frame import FrameData, monotonic_ms


class TestCandidate:
    def test_from_corners_clamps(self):
        c = Candidate.from_corners(-0.2, 0.5, 1.4, 0.9, score=1.2, class_id=3, label="motorcycle")

        assert c.as_tuple() == (0.0, 0.5, 1.0, 0.9)
        assert c.score == 1.0
        assert c.class_id == 3

    def test_from_corners_reorders_inverted_box(self):
        c = Candidate.from_corners(0.6, 0.7, 0.2, 0.1, score=0.5)
        assert c.as_tuple() == (0.2, 0.1, 0.6, 0.7)

    def test_from_pixel_box(self):
        c = Candidate.from_pixel_box(64, 128, 320, 640, image_width=640, image_height=640, score=0.7)
        assert c.as_tuple() == pytest.approx((0.1, 0.2, 0.5, 1.0))
        assert c.label == "Object"

    def test_geometry(self):
        c = Candidate(0.1, 0.2, 0.5, 0.6, 0.9)
        assert c.width == pytest.approx(0.4)
        assert c.height == pytest.approx(0.4)
        assert c.area == pytest.approx(0.16)

    def test_is_immutable(self):
        c = Candidate(0.1, 0.2, 0.5, 0.6, 0.9)
        with pytest.raises(Exception):
            c.score = 0.1

    def test_clamp01(self):
        assert clamp01(-1) == 0.0
        assert clamp01(2) == 1.0
        assert clamp01(0.25) == 0.25


class TestDetectionSet:
    def test_empty(self):
        ds = DetectionSet.empty(source=SourceDecision.LOCAL)
        assert len(ds) == 0
        assert not ds
        assert ds.labels == []

    def test_sequence_behavior(self):
        a = Candidate(0.1, 0.1, 0.2, 0.2, 0.9, 0, "person")
        b = Candidate(0.5, 0.5, 0.6, 0.6, 0.4, 41, "cup")
        ds = DetectionSet.from_candidates([a, b], source=SourceDecision.LOCAL, timestamp_ms=10.0)

        assert list(ds) == [a, b]
        assert ds[1] is b
        assert ds.labels == ["person", "cup"]

    def test_candidates_are_a_tuple(self):
        ds = DetectionSet.from_candidates([Candidate(0, 0, 1, 1, 0.5)])
        assert isinstance(ds.candidates, tuple)


class TestAnnouncement:
    def test_to_dict(self):
        a = Announcement(label="person", score=0.9, timestamp_ms=1000.0, source=SourceDecision.REMOTE)
        assert a.to_dict() == {"label": "person", "score": 0.9, "timestamp_ms": 1000.0, "source": "remote"}


class TestFrameData:
    def test_capture_stamps_monotonic_time(self):
        before = monotonic_ms()
        fd = FrameData.capture(np.zeros((480, 640, 3), dtype=np.uint8), sequence=7)

        assert before <= fd.captured_ms <= monotonic_ms()
        assert fd.sequence == 7
        assert fd.frame.shape == (480, 640, 3)
