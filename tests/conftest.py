"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  device_id: 0
  resolution: [640, 480]
  fps: 30

local:
  runtime: "onnx"
  model: "models/yolov8n.onnx"
  num_classes: 80
  conf_threshold: 0.3
  iou_threshold: 0.45

remote:
  api_key: ""
  min_score: 0.45

arbiter:
  min_remote_interval_ms: 1500

stabilizer:
  persistence_threshold: 3
  cooldown_ms: 2000

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "device_id": 0,
            "resolution": [1280, 720],
            "fps": 30,
        },
        "local": {
            "runtime": "onnx",
            "model": "models/yolov8n.onnx",
            "input_size": 640,
            "num_classes": 80,
            "conf_threshold": 0.3,
            "iou_threshold": 0.45,
        },
        "remote": {
            "api_key": "test-key",
            "min_score": 0.45,
            "jpeg_quality": 80,
        },
        "arbiter": {
            "min_remote_interval_ms": 1500,
        },
        "stabilizer": {
            "persistence_threshold": 3,
            "cooldown_ms": 2000,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }


@pytest.fixture
def frame():
    """A blank 480x640 BGR frame."""
    return np.zeros((480, 640, 3), dtype=np.uint8)


def make_dense_output(boxes, num_classes=80, num_anchors=8400):
    """
    Build a (4 + num_classes, num_anchors) tensor.

    Args:
        boxes: List of (anchor_index, (x, y, w, h), class_id, score).
    """
    out = np.zeros((4 + num_classes, num_anchors), dtype=np.float32)
    for anchor, (x, y, w, h), class_id, score in boxes:
        out[0:4, anchor] = (x, y, w, h)
        out[4 + class_id, anchor] = score
    return out


@pytest.fixture
def dense_output():
    """Factory fixture for dense detector tensors."""
    return make_dense_output
