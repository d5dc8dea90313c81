"""
ONNX Runtime backend for YOLOv8-style exports.

Returns the raw dense output tensor (e.g. 1 x 84 x 8400); decoding and
suppression happen in LocalSource.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .backend import LocalRuntime
from .preprocess import to_input_blob


@dataclass(frozen=True)
class OnnxYoloConfig:
    model: str
    input_size: int = 640
    providers: Sequence[str] = ("CPUExecutionProvider",)


class OnnxYoloBackend(LocalRuntime):
    def __init__(self, cfg: OnnxYoloConfig):
        self.cfg = cfg
        self.input_size = cfg.input_size
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is not installed. Install with `pip install onnxruntime` "
                "or switch local.runtime to 'ultralytics'."
            ) from e

        self._session = ort.InferenceSession(cfg.model, providers=list(cfg.providers))
        model_input = self._session.get_inputs()[0]
        self._input_name = model_input.name
        self._output_shape = tuple(self._session.get_outputs()[0].shape)
        logging.info(
            f"ONNX model loaded: {cfg.model} input={model_input.shape} output={self._output_shape} "
            f"provider={self._session.get_providers()[0]}"
        )

    @property
    def output_shape(self) -> Optional[Sequence]:
        return self._output_shape

    def infer(self, square: np.ndarray) -> np.ndarray:
        outputs = self._session.run(None, {self._input_name: to_input_blob(square)})
        return np.asarray(outputs[0])

    def close(self) -> None:
        self._session = None
