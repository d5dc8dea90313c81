"""
Keep-only-latest frame delivery.

A capture thread reads the source continuously into a single slot. The
analyzer always takes the newest frame; a frame that is overwritten before
the analyzer picks it up is dropped, never queued. Detection freshness
matters more than completeness here.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from models.frame import FrameData
from .base import ObservationSource


class LatestFrameReader:
    """
    Reads an ObservationSource on a background thread, keeping one frame.

    Example:
        reader = LatestFrameReader(source)
        reader.start()
        frame_data = reader.get(timeout=1.0)
        reader.stop()
    """

    def __init__(
        self,
        source: ObservationSource,
        max_consecutive_failures: int = 10,
        retry_delay: float = 0.5,
    ):
        self.source = source
        self.max_consecutive_failures = max_consecutive_failures
        self.retry_delay = retry_delay
        self._cond = threading.Condition()
        self._latest: Optional[FrameData] = None
        self._thread: Optional[threading.Thread] = None
        self._running = False
        self._exhausted = False
        self.frames_read = 0
        self.frames_dropped = 0

    @property
    def exhausted(self) -> bool:
        """True once the source stopped producing frames for good."""
        return self._exhausted

    def start(self) -> None:
        if self._running:
            return
        if not self.source.is_open:
            self.source.open()
        self._running = True
        self._exhausted = False
        self._thread = threading.Thread(target=self._capture_loop, name="frame-capture", daemon=True)
        self._thread.start()

    def put(self, frame_data: FrameData) -> None:
        """Offer a frame; an unconsumed older frame is dropped."""
        with self._cond:
            if self._latest is not None:
                self.frames_dropped += 1
            self._latest = frame_data
            self.frames_read += 1
            self._cond.notify()

    def get(self, timeout: Optional[float] = None) -> Optional[FrameData]:
        """
        Take the newest unconsumed frame.

        Returns:
            FrameData, or None if nothing arrived within the timeout or the
            source is exhausted.
        """
        with self._cond:
            if self._latest is None and not self._exhausted:
                self._cond.wait(timeout)
            frame_data, self._latest = self._latest, None
            return frame_data

    def _capture_loop(self) -> None:
        failures = 0
        while self._running:
            frame_data = self.source.read()
            if frame_data is None:
                failures += 1
                if failures >= self.max_consecutive_failures:
                    logging.error(f"Too many consecutive read failures ({failures}), stopping capture")
                    break
                time.sleep(self.retry_delay)
                continue
            failures = 0
            self.put(frame_data)

        with self._cond:
            self._exhausted = True
            self._cond.notify_all()

    def stop(self) -> None:
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None
        self.source.close()
