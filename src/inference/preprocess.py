"""
Frame preparation shared by both detection paths.
"""

from __future__ import annotations

import base64

import cv2
import numpy as np


def resize_square(frame: np.ndarray, size: int = 640) -> np.ndarray:
    """
    Stretch a frame to size x size.

    No letterboxing: normalized box coordinates on the square map straight
    back onto the original frame.
    """
    h, w = frame.shape[:2]
    if (w, h) == (size, size):
        return frame
    return cv2.resize(frame, (size, size), interpolation=cv2.INTER_LINEAR)


def to_input_blob(square: np.ndarray) -> np.ndarray:
    """BGR uint8 HxWx3 -> RGB float32 1x3xHxW in [0, 1]."""
    blob = square[:, :, ::-1].astype(np.float32) / 255.0
    return np.ascontiguousarray(blob.transpose(2, 0, 1)[np.newaxis, ...])


def encode_jpeg_base64(frame: np.ndarray, quality: int = 80) -> str:
    """JPEG-encode a BGR frame and return unwrapped base64 text."""
    ok, buf = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
    if not ok:
        raise ValueError("JPEG encoding failed")
    return base64.b64encode(buf.tobytes()).decode("ascii")
