"""
CPU inference backend using Ultralytics.

Ultralytics returns already-boxed results, so this runtime is pre-boxed:
pixel-space detections on the square model input, no dense tensor.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from .backend import LocalRuntime, PixelDetection


@dataclass(frozen=True)
class CpuYoloConfig:
    model: str
    input_size: int = 640
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    max_results: Optional[int] = None
    class_name_overrides: Optional[Dict[int, str]] = None


class UltralyticsCpuBackend(LocalRuntime):
    def __init__(self, cfg: CpuYoloConfig):
        self.cfg = cfg
        self.input_size = cfg.input_size
        try:
            from ultralytics import YOLO  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "Ultralytics is not installed. Install with `pip install ultralytics` "
                "or switch local.runtime to 'onnx'."
            ) from e

        self._model = YOLO(cfg.model)

    @property
    def output_shape(self) -> Optional[Sequence]:
        return None

    def infer(self, square: np.ndarray) -> List[PixelDetection]:
        kwargs = {}
        if self.cfg.max_results is not None:
            kwargs["max_det"] = int(self.cfg.max_results)
        results = self._model.predict(
            source=square,
            imgsz=self.input_size,
            conf=self.cfg.conf_threshold,
            iou=self.cfg.iou_threshold,
            verbose=False,
            **kwargs,
        )
        if not results:
            return []

        r0 = results[0]
        names = getattr(r0, "names", None) or {}
        boxes = getattr(r0, "boxes", None)
        if boxes is None:
            return []

        xyxy = boxes.xyxy.cpu().numpy() if hasattr(boxes.xyxy, "cpu") else np.asarray(boxes.xyxy)
        conf = boxes.conf.cpu().numpy() if hasattr(boxes.conf, "cpu") else np.asarray(boxes.conf)
        cls = boxes.cls.cpu().numpy() if hasattr(boxes.cls, "cpu") else np.asarray(boxes.cls)

        out: List[PixelDetection] = []
        for (x1, y1, x2, y2), c, k in zip(xyxy, conf, cls):
            class_id = int(k)
            class_name = (
                (self.cfg.class_name_overrides or {}).get(class_id)
                or names.get(class_id)
            )
            out.append(
                PixelDetection(
                    x1=float(x1),
                    y1=float(y1),
                    x2=float(x2),
                    y2=float(y2),
                    confidence=float(c),
                    class_id=class_id,
                    class_name=class_name,
                )
            )

        return out

    def close(self) -> None:
        self._model = None
