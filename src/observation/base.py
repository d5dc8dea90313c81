"""
Frame source interface.

LatestFrameReader owns a source on its capture thread: open() once, read()
until the source runs dry, close() on stop. read() stamps every frame as it
is decoded; that stamp is the clock the arbiter and the stabilizer run on.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from models.frame import FrameData


class ObservationSource(ABC):
    """
    Base class for camera, stream and video-file sources.

    Subclasses implement open(), grab() and close(); read() adds the capture
    stamp and the per-open sequence number.
    """

    def __init__(self, source_id: str = "camera"):
        self.source_id = source_id
        self._is_open = False
        self._sequence = 0

    @property
    def is_open(self) -> bool:
        return self._is_open

    @abstractmethod
    def open(self) -> None:
        """
        Acquire the device and restart the sequence.

        Raises:
            RuntimeError: If the device cannot be opened.
        """

    @abstractmethod
    def grab(self) -> Optional[np.ndarray]:
        """Decode the next raw frame, or None when none is available."""

    @abstractmethod
    def close(self) -> None:
        """Release the device. Safe to call multiple times."""

    def read(self) -> Optional[FrameData]:
        """
        Next stamped frame.

        Returns None while closed or when grab() produced nothing; the reader
        counts those as read failures.
        """
        if not self._is_open:
            return None
        frame = self.grab()
        if frame is None:
            return None
        self._sequence += 1
        return FrameData.capture(frame, sequence=self._sequence)
