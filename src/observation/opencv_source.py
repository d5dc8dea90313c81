"""
OpenCV-based observation source.

Supports:
- USB webcams (device_id as int, e.g., 0)
- Network streams (device_id as URL)
- Video files (device_id as file path)
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

import cv2
import numpy as np

from .base import ObservationSource


@dataclass
class OpenCVSourceConfig:
    """
    Configuration for OpenCV-based sources.

    Attributes:
        source_id: Identifier used in logs (e.g., "main-camera").
        device_id: Camera index (int), stream URL (str), or file path (str).
        resolution: Requested (width, height) for USB cameras. None = driver default.
        fps: Requested frame rate for USB cameras. None = driver default.
        buffer_size: Capture buffer size; 1 keeps the driver from queueing stale frames.
        max_retries: Maximum attempts to open the device.
        rotate: Rotation in degrees (0, 90, 180, 270).
        flip_horizontal: Mirror the frame.
    """
    source_id: str = "camera"
    device_id: Union[int, str] = 0
    resolution: Optional[Tuple[int, int]] = None
    fps: Optional[int] = None
    buffer_size: int = 1
    max_retries: int = 3
    rotate: int = 0
    flip_horizontal: bool = False

    @classmethod
    def from_camera_config(cls, camera_cfg: Dict[str, Any], source_id: str = "camera") -> "OpenCVSourceConfig":
        """Adapter: Create from the `camera` section of config.yaml."""
        resolution = camera_cfg.get("resolution")
        if resolution:
            resolution = tuple(resolution)

        return cls(
            source_id=source_id,
            resolution=resolution,
            fps=camera_cfg.get("fps"),
            device_id=camera_cfg.get("device_id", 0),
            buffer_size=camera_cfg.get("buffer_size", 1),
            max_retries=camera_cfg.get("max_retries", 3),
            rotate=camera_cfg.get("rotate", 0) or 0,
            flip_horizontal=camera_cfg.get("flip_horizontal", False),
        )


class OpenCVSource(ObservationSource):
    """
    Wraps cv2.VideoCapture, applying the configured rotation and mirroring.

    Example:
        source = OpenCVSource(OpenCVSourceConfig(device_id=0, resolution=(640, 480)))
        reader = LatestFrameReader(source)
        reader.start()
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config.source_id)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def device_id(self) -> Union[int, str]:
        return self._opencv_config.device_id

    @property
    def is_file(self) -> bool:
        return isinstance(self.device_id, str) and os.path.exists(self.device_id)

    def open(self) -> None:
        if self._is_open:
            return

        self._initialize()
        self._is_open = True
        self._sequence = 0
        logging.info(
            f"OpenCVSource opened: source_id={self.source_id}, "
            f"device={self.device_id}, resolution={self._opencv_config.resolution}"
        )

    def _initialize(self) -> None:
        max_retries = max(1, self._opencv_config.max_retries)
        for attempt in range(max_retries):
            if attempt > 0:
                wait_time = min(2 ** attempt, 10)
                logging.info(f"Retrying open (attempt {attempt + 1}/{max_retries}) after {wait_time}s")
                time.sleep(wait_time)

            self._cap = cv2.VideoCapture(self.device_id)
            if self._cap.isOpened():
                break
            self._cap.release()
            self._cap = None
        else:
            raise RuntimeError(f"Failed to open device {self.device_id} after {max_retries} attempts")

        if isinstance(self.device_id, int) and self._opencv_config.resolution:
            w, h = self._opencv_config.resolution
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
            if self._opencv_config.fps:
                self._cap.set(cv2.CAP_PROP_FPS, self._opencv_config.fps)
            self._cap.set(cv2.CAP_PROP_BUFFERSIZE, self._opencv_config.buffer_size)

    def grab(self) -> Optional[np.ndarray]:
        if self._cap is None:
            return None

        ret, frame = self._cap.read()
        if not ret or frame is None:
            if self.is_file:
                logging.info("End of video file reached")
            else:
                logging.warning(f"Failed to read frame from {self.source_id}")
            return None

        return self._apply_transforms(frame)

    def _apply_transforms(self, frame: np.ndarray) -> np.ndarray:
        cfg = self._opencv_config

        if cfg.rotate == 90:
            frame = cv2.rotate(frame, cv2.ROTATE_90_CLOCKWISE)
        elif cfg.rotate == 180:
            frame = cv2.rotate(frame, cv2.ROTATE_180)
        elif cfg.rotate == 270:
            frame = cv2.rotate(frame, cv2.ROTATE_90_COUNTERCLOCKWISE)

        if cfg.flip_horizontal:
            frame = cv2.flip(frame, 1)

        return frame

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        self._is_open = False
        logging.info(f"OpenCVSource closed: source_id={self.source_id}")
