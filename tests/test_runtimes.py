"""
Tests for the local model runtimes with the model libraries mocked out.
"""

import sys
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from inference.local import create_local_runtime
from models.config import LocalDetectorConfig


class TestUltralyticsRuntime:
    @pytest.fixture
    def fake_ultralytics(self):
        model = MagicMock()
        module = SimpleNamespace(YOLO=MagicMock(return_value=model))
        with patch.dict(sys.modules, {"ultralytics": module}):
            yield module, model

    def test_returns_pixel_detections(self, fake_ultralytics):
        module, model = fake_ultralytics
        boxes = SimpleNamespace(
            xyxy=np.array([[10.0, 20.0, 110.0, 220.0]]),
            conf=np.array([0.8]),
            cls=np.array([2.0]),
        )
        model.predict.return_value = [SimpleNamespace(names={2: "car"}, boxes=boxes)]

        runtime = create_local_runtime(LocalDetectorConfig(runtime="ultralytics", model="yolov8n.pt", max_results=6))
        detections = runtime.infer(np.zeros((640, 640, 3), dtype=np.uint8))

        module.YOLO.assert_called_once_with("yolov8n.pt")
        assert runtime.output_shape is None
        assert model.predict.call_args[1]["max_det"] == 6
        assert len(detections) == 1
        d = detections[0]
        assert (d.x1, d.y1, d.x2, d.y2) == (10.0, 20.0, 110.0, 220.0)
        assert d.confidence == pytest.approx(0.8)
        assert (d.class_id, d.class_name) == (2, "car")

    def test_class_names_override_model_names(self, fake_ultralytics):
        _, model = fake_ultralytics
        boxes = SimpleNamespace(xyxy=np.array([[0, 0, 1, 1]]), conf=np.array([0.9]), cls=np.array([1.0]))
        model.predict.return_value = [SimpleNamespace(names={1: "bicycle"}, boxes=boxes)]

        cfg = LocalDetectorConfig(runtime="ultralytics", model="m.pt", class_names=["chair", "table"])
        detections = create_local_runtime(cfg).infer(np.zeros((640, 640, 3), dtype=np.uint8))

        assert detections[0].class_name == "table"

    def test_no_results(self, fake_ultralytics):
        _, model = fake_ultralytics
        model.predict.return_value = []

        runtime = create_local_runtime(LocalDetectorConfig(runtime="ultralytics", model="m.pt"))
        assert runtime.infer(np.zeros((640, 640, 3), dtype=np.uint8)) == []


class TestOnnxRuntime:
    def test_session_wiring(self):
        session = MagicMock()
        session.get_inputs.return_value = [SimpleNamespace(name="images", shape=[1, 3, 640, 640])]
        session.get_outputs.return_value = [SimpleNamespace(name="output0", shape=[1, 84, 8400])]
        session.get_providers.return_value = ["CPUExecutionProvider"]
        session.run.return_value = [np.zeros((1, 84, 8400), dtype=np.float32)]
        module = SimpleNamespace(InferenceSession=MagicMock(return_value=session))

        with patch.dict(sys.modules, {"onnxruntime": module}):
            runtime = create_local_runtime(LocalDetectorConfig(runtime="onnx", model="yolov8n.onnx"))

        assert runtime.output_shape == (1, 84, 8400)
        out = runtime.infer(np.zeros((640, 640, 3), dtype=np.uint8))
        assert out.shape == (1, 84, 8400)

        feed = session.run.call_args[0][1]
        assert feed["images"].shape == (1, 3, 640, 640)
        assert feed["images"].dtype == np.float32
