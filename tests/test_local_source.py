"""
Tests for the on-device detection source (model runtimes mocked).
"""

from unittest.mock import patch

import numpy as np
import pytest

from inference.backend import PixelDetection
from inference.decoder import ShapeMismatchError
from inference.local import LocalSource, create_local_runtime, create_local_source
from models.config import LocalDetectorConfig
from models.decision import SourceDecision


class DenseRuntime:
    """Runtime returning a fixed dense tensor."""

    input_size = 640

    def __init__(self, output, declared_shape=(1, 84, 8400)):
        self._output = output
        self._declared_shape = declared_shape
        self.calls = 0
        self.closed = False

    @property
    def output_shape(self):
        return self._declared_shape

    def infer(self, square):
        assert square.shape[:2] == (640, 640)
        self.calls += 1
        return self._output

    def close(self):
        self.closed = True


class BoxedRuntime:
    """Runtime that already returns pixel-space boxes."""

    input_size = 640
    output_shape = None

    def __init__(self, detections):
        self._detections = detections

    def infer(self, square):
        return list(self._detections)

    def close(self):
        pass


class FailingRuntime(BoxedRuntime):
    def __init__(self):
        super().__init__([])

    def infer(self, square):
        raise RuntimeError("delegate crashed")


class TestLocalSourceDense:
    def test_overlapping_boxes_are_suppressed(self, frame, dense_output):
        """Two person boxes with IoU ~0.7 collapse to the stronger one."""
        out = dense_output([
            (0, (320, 320, 100, 100), 0, 0.9),
            (1, (338, 320, 100, 100), 0, 0.8),
        ])[np.newaxis, ...]
        source = LocalSource(DenseRuntime(out))

        candidates = source.detect(frame)

        assert len(candidates) == 1
        c = candidates[0]
        assert c.label == "person"
        assert c.score == pytest.approx(0.9, abs=1e-6)
        assert c.as_tuple() == pytest.approx((270 / 640, 270 / 640, 370 / 640, 370 / 640), abs=1e-5)

    def test_results_are_score_ordered(self, frame, dense_output):
        out = dense_output([
            (0, (0.2, 0.2, 0.1, 0.1), 41, 0.5),
            (1, (0.7, 0.7, 0.1, 0.1), 0, 0.9),
        ])
        candidates = LocalSource(DenseRuntime(out)).detect(frame)

        assert [c.label for c in candidates] == ["person", "cup"]

    def test_max_results(self, frame, dense_output):
        out = dense_output([
            (0, (0.1, 0.1, 0.1, 0.1), 0, 0.5),
            (1, (0.5, 0.5, 0.1, 0.1), 0, 0.9),
            (2, (0.9, 0.9, 0.1, 0.1), 0, 0.7),
        ])
        source = LocalSource(DenseRuntime(out), LocalDetectorConfig(max_results=2))

        assert [c.score for c in source.detect(frame)] == pytest.approx([0.9, 0.7])

    def test_decision_tag(self, dense_output):
        assert LocalSource(DenseRuntime(dense_output([]))).decision is SourceDecision.LOCAL

    def test_declared_shape_mismatch_raises_at_construction(self, dense_output):
        runtime = DenseRuntime(dense_output([]), declared_shape=(1, 85, 8400))
        with pytest.raises(ShapeMismatchError):
            LocalSource(runtime)

    def test_actual_shape_mismatch_disables_source(self, frame):
        runtime = DenseRuntime(np.zeros((1, 84, 100), dtype=np.float32))
        source = LocalSource(runtime)

        assert source.detect(frame) == []
        assert not source.available
        assert runtime.closed

        assert source.detect(frame) == []
        assert runtime.calls == 1

    def test_inference_error_yields_nothing(self, frame):
        source = LocalSource(FailingRuntime())

        assert source.detect(frame) == []
        assert source.available


class TestLocalSourcePreboxed:
    def test_pixel_boxes_are_normalized(self, frame):
        runtime = BoxedRuntime([
            PixelDetection(64, 64, 320, 320, confidence=0.8, class_id=2, class_name="car"),
            PixelDetection(400, 400, 500, 500, confidence=0.2, class_id=0, class_name="person"),
        ])

        candidates = LocalSource(runtime).detect(frame)

        assert len(candidates) == 1
        assert candidates[0].as_tuple() == pytest.approx((0.1, 0.1, 0.5, 0.5))
        assert candidates[0].label == "car"

    def test_boxes_outside_image_are_clamped(self, frame):
        runtime = BoxedRuntime([PixelDetection(-20, 600, 700, 800, confidence=0.9, class_id=0)])

        c = LocalSource(runtime).detect(frame)[0]

        assert c.as_tuple() == pytest.approx((0.0, 600 / 640, 1.0, 1.0))
        assert c.label == "person"

    def test_missing_class_gets_generic_label(self, frame):
        runtime = BoxedRuntime([PixelDetection(0, 0, 64, 64, confidence=0.9)])

        c = LocalSource(runtime).detect(frame)[0]

        assert c.label == "Object"
        assert c.class_id == -1


class TestFactories:
    def test_unknown_runtime(self):
        with pytest.raises(ValueError):
            create_local_runtime(LocalDetectorConfig(runtime="tflite"))

    def test_load_failure_disables_source(self, frame):
        with patch("inference.local.create_local_runtime", side_effect=RuntimeError("no model file")):
            source = create_local_source(LocalDetectorConfig())

        assert not source.available
        assert source.detect(frame) == []

    def test_shape_mismatch_is_raised(self, dense_output):
        runtime = DenseRuntime(dense_output([]), declared_shape=(1, 84, 8400))
        cfg = LocalDetectorConfig(num_classes=20)
        with patch("inference.local.create_local_runtime", return_value=runtime):
            with pytest.raises(ShapeMismatchError):
                create_local_source(cfg)
        assert runtime.closed
