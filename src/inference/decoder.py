"""
Dense anchor-grid decoder for YOLOv8-style detector output.

The model emits one tensor shaped (num_attributes, num_anchors), where each
anchor column holds a center-form box (x, y, w, h) followed by one score per
class, e.g. 84 x 8400 for the 80 COCO classes.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from models.detection import Candidate
from .labels import COCO_CLASSES, label_for

BOX_ATTRIBUTES = 4

# Raw box values above this are taken to be in input-pixel units.
# NOTE: this only separates the two export conventions seen so far
# (normalized vs. pixel boxes); see DESIGN.md before extending it.
PIXEL_UNITS_THRESHOLD = 1.5


class ShapeMismatchError(ValueError):
    """Declared and actual detector tensor shapes disagree."""


class BoxDecoder:
    """
    Turns a dense detector tensor into normalized Candidates.

    The declared shape is checked once at construction; every decode() call
    checks the actual tensor against it and raises ShapeMismatchError instead
    of iterating a wrong anchor count.

    Example:
        decoder = BoxDecoder(num_anchors=8400, num_classes=80)
        candidates = decoder.decode(output)  # anchor order, not sorted
    """

    def __init__(
        self,
        num_anchors: int,
        num_classes: int = 80,
        input_size: int = 640,
        confidence_threshold: float = 0.3,
        class_names: Optional[Sequence[str]] = None,
        num_attributes: Optional[int] = None,
    ):
        """
        Args:
            num_anchors: Number of anchor columns the model emits.
            num_classes: Number of per-class score rows.
            input_size: Square model input size in pixels (for de-normalization).
            confidence_threshold: Anchors with max score <= this are dropped.
            class_names: Class table indexed by class id (defaults to COCO).
            num_attributes: Attribute rows reported by the model, if known.
                Must equal 4 + num_classes.
        """
        expected_attributes = BOX_ATTRIBUTES + num_classes
        if num_attributes is not None and num_attributes != expected_attributes:
            raise ShapeMismatchError(
                f"Model reports {num_attributes} attributes per anchor, expected "
                f"{expected_attributes} (4 box + {num_classes} classes)"
            )
        if num_anchors <= 0:
            raise ShapeMismatchError(f"num_anchors must be positive, got {num_anchors}")
        if input_size <= 0:
            raise ValueError(f"input_size must be positive, got {input_size}")

        self.num_anchors = int(num_anchors)
        self.num_classes = int(num_classes)
        self.num_attributes = expected_attributes
        self.input_size = int(input_size)
        self.confidence_threshold = float(confidence_threshold)
        self.class_names = tuple(class_names) if class_names is not None else COCO_CLASSES

        if len(self.class_names) < self.num_classes:
            logging.warning(
                f"Class table has {len(self.class_names)} names for {self.num_classes} classes; "
                "missing ids will be labeled by number"
            )

    @property
    def expected_shape(self) -> Tuple[int, int]:
        return (self.num_attributes, self.num_anchors)

    def _as_matrix(self, tensor: np.ndarray) -> np.ndarray:
        """Drop a leading batch axis of size 1 and verify the declared shape."""
        data = np.asarray(tensor, dtype=np.float32)
        if data.ndim == 3 and data.shape[0] == 1:
            data = data[0]
        if data.shape != self.expected_shape:
            raise ShapeMismatchError(
                f"Detector output shape {tuple(np.shape(tensor))} does not match "
                f"declared {self.expected_shape}"
            )
        return data

    def decode(self, tensor: np.ndarray) -> List[Candidate]:
        """
        Decode one frame's output.

        Args:
            tensor: Array of shape (num_attributes, num_anchors), optionally
                with a leading batch axis of 1.

        Returns:
            One Candidate per anchor whose best class score exceeds the
            confidence threshold, in anchor order.
        """
        data = self._as_matrix(tensor)

        boxes = data[:BOX_ATTRIBUTES, :]
        scores = data[BOX_ATTRIBUTES:, :]

        # argmax returns the first maximal index, so ties keep the lowest class
        class_ids = np.argmax(scores, axis=0)
        max_scores = scores[class_ids, np.arange(self.num_anchors)]

        keep = np.nonzero(max_scores > self.confidence_threshold)[0]
        if keep.size == 0:
            return []

        out: List[Candidate] = []
        for idx in keep:
            x, y, w, h = (float(v) for v in boxes[:, idx])
            if x > PIXEL_UNITS_THRESHOLD or y > PIXEL_UNITS_THRESHOLD or \
                    w > PIXEL_UNITS_THRESHOLD or h > PIXEL_UNITS_THRESHOLD:
                x /= self.input_size
                y /= self.input_size
                w /= self.input_size
                h /= self.input_size

            class_id = int(class_ids[idx])
            out.append(
                Candidate.from_corners(
                    x - w / 2,
                    y - h / 2,
                    x + w / 2,
                    y + h / 2,
                    score=float(max_scores[idx]),
                    class_id=class_id,
                    label=label_for(class_id, self.class_names),
                )
            )

        return out

    @classmethod
    def from_output_shape(
        cls,
        output_shape: Sequence,
        num_classes: int = 80,
        input_size: int = 640,
        confidence_threshold: float = 0.3,
        class_names: Optional[Sequence[str]] = None,
    ) -> "BoxDecoder":
        """
        Factory: build a decoder from the output shape a runtime reports.

        Accepts (A, N) or (1, A, N). Dynamic (non-integer) dimensions cannot
        be validated and are rejected.
        """
        dims = list(output_shape)
        if len(dims) == 3 and dims[0] in (1, None, "batch"):
            dims = dims[1:]
        if len(dims) != 2 or not all(isinstance(d, int) for d in dims):
            raise ShapeMismatchError(f"Cannot decode detector output of shape {tuple(output_shape)}")
        num_attributes, num_anchors = dims
        return cls(
            num_anchors=num_anchors,
            num_classes=num_classes,
            input_size=input_size,
            confidence_threshold=confidence_threshold,
            class_names=class_names,
            num_attributes=num_attributes,
        )
