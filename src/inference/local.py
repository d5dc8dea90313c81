"""
On-device detection source.

Runs the bundled model on a square copy of the frame, then either decodes
the dense tensor with BoxDecoder or normalizes pre-boxed runtime output, and
finally applies class-agnostic NMS.

If the model cannot be loaded, or its output stops matching the declared
shape, the source disables itself for the rest of the process lifetime and
every frame routed here yields no detections.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np

from models.config import LocalDetectorConfig
from models.decision import SourceDecision
from models.detection import Candidate
from .backend import LocalRuntime, PixelDetection
from .decoder import BoxDecoder, ShapeMismatchError
from .labels import COCO_CLASSES, label_for
from .nms import non_max_suppression
from .preprocess import resize_square


class LocalSource:
    """
    DetectionSource backed by a LocalRuntime.

    Example:
        source = create_local_source(LocalDetectorConfig(model="yolov8n.onnx"))
        candidates = source.detect(frame)  # descending score
    """

    decision = SourceDecision.LOCAL

    def __init__(
        self,
        runtime: Optional[LocalRuntime],
        cfg: Optional[LocalDetectorConfig] = None,
    ):
        self.cfg = cfg or LocalDetectorConfig()
        self._runtime = runtime
        self._class_names: Sequence[str] = self.cfg.class_names or COCO_CLASSES
        self._decoder: Optional[BoxDecoder] = None

        if runtime is not None and runtime.output_shape is not None:
            # Raises ShapeMismatchError on a model/config disagreement
            self._decoder = BoxDecoder.from_output_shape(
                runtime.output_shape,
                num_classes=self.cfg.num_classes,
                input_size=self.cfg.input_size,
                confidence_threshold=self.cfg.conf_threshold,
                class_names=self._class_names,
            )

        if runtime is None:
            logging.warning("Local detector unavailable; local frames will produce no detections")

    @property
    def available(self) -> bool:
        return self._runtime is not None

    def detect(self, frame: np.ndarray) -> List[Candidate]:
        if self._runtime is None:
            return []

        square = resize_square(frame, self.cfg.input_size)
        try:
            raw = self._runtime.infer(square)
        except Exception as e:
            logging.error(f"Local inference failed: {e}")
            return []

        try:
            if isinstance(raw, np.ndarray):
                if self._decoder is None:
                    raise ShapeMismatchError("Runtime returned a tensor but declared no output shape")
                candidates = self._decoder.decode(raw)
            else:
                candidates = self._normalize_preboxed(raw)
        except ShapeMismatchError as e:
            logging.error(f"Disabling local detector: {e}")
            self.close()
            return []

        kept = non_max_suppression(candidates, self.cfg.iou_threshold)
        if self.cfg.max_results is not None:
            kept = kept[: self.cfg.max_results]
        return kept

    def _normalize_preboxed(self, detections: List[PixelDetection]) -> List[Candidate]:
        """Pass-through adapter for runtimes that already return boxes."""
        size = float(self.cfg.input_size)
        out: List[Candidate] = []
        for det in detections:
            if det.confidence <= self.cfg.conf_threshold:
                continue
            class_id = det.class_id if det.class_id is not None else -1
            label = det.class_name or (label_for(class_id, self._class_names) if class_id >= 0 else "Object")
            out.append(
                Candidate.from_pixel_box(
                    det.x1, det.y1, det.x2, det.y2,
                    image_width=size,
                    image_height=size,
                    score=det.confidence,
                    class_id=class_id,
                    label=label,
                )
            )
        return out

    def close(self) -> None:
        if self._runtime is None:
            return
        try:
            self._runtime.close()
        except Exception as e:
            logging.warning(f"Error closing local runtime: {e}")
        self._runtime = None


def create_local_runtime(cfg: LocalDetectorConfig) -> LocalRuntime:
    """Factory: build the runtime named by cfg.runtime."""
    if cfg.runtime == "ultralytics":
        from .cpu_backend import CpuYoloConfig, UltralyticsCpuBackend

        return UltralyticsCpuBackend(
            CpuYoloConfig(
                model=cfg.model,
                input_size=cfg.input_size,
                conf_threshold=cfg.conf_threshold,
                iou_threshold=cfg.iou_threshold,
                max_results=cfg.max_results,
                class_name_overrides=dict(enumerate(cfg.class_names)) if cfg.class_names else None,
            )
        )
    if cfg.runtime == "onnx":
        from .onnx_backend import OnnxYoloBackend, OnnxYoloConfig

        return OnnxYoloBackend(OnnxYoloConfig(model=cfg.model, input_size=cfg.input_size))
    raise ValueError(f"Unknown local runtime: {cfg.runtime}")


def create_local_source(cfg: LocalDetectorConfig) -> LocalSource:
    """
    Factory: load the local model, degrading to a disabled source on failure.

    A shape mismatch between the model and the configured class count is a
    configuration error and is raised rather than degraded.
    """
    try:
        runtime = create_local_runtime(cfg)
    except Exception as e:
        logging.error(f"Local detector failed to load ({cfg.runtime}, {cfg.model}): {e}")
        runtime = None

    try:
        return LocalSource(runtime, cfg)
    except ShapeMismatchError:
        if runtime is not None:
            runtime.close()
        raise
