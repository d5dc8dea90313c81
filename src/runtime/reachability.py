"""
Network reachability signal consumed by the source arbiter.

This is computed outside the detection pipeline; the pipeline only sees a
boolean per frame.
"""

from __future__ import annotations

import logging
import socket
import time
from typing import Callable, Optional, Protocol

from models.config import NetworkConfig


class ReachabilityProbe(Protocol):
    def is_reachable(self) -> bool:
        ...


class StaticReachability:
    """Fixed answer, for forced offline/online modes and tests."""

    def __init__(self, reachable: bool):
        self.reachable = reachable

    def is_reachable(self) -> bool:
        return self.reachable


class SocketReachabilityProbe:
    """
    Treats the network as reachable when a TCP connection to host:port succeeds.

    The answer is cached for `interval` seconds so the per-frame check costs
    nothing on most frames.
    """

    def __init__(
        self,
        host: str = "vision.googleapis.com",
        port: int = 443,
        timeout: float = 1.0,
        interval: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.interval = interval
        self._clock = clock
        self._last_checked: Optional[float] = None
        self._last_result = False

    def _probe(self) -> bool:
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout):
                return True
        except OSError:
            return False

    def is_reachable(self) -> bool:
        now = self._clock()
        if self._last_checked is not None and now - self._last_checked < self.interval:
            return self._last_result

        result = self._probe()
        if result != self._last_result:
            logging.info(f"Network {'reachable' if result else 'unreachable'} ({self.host}:{self.port})")
        self._last_checked = now
        self._last_result = result
        return result


def create_probe_from_config(cfg: NetworkConfig) -> ReachabilityProbe:
    if cfg.mode == "online":
        return StaticReachability(True)
    if cfg.mode == "offline":
        return StaticReachability(False)
    return SocketReachabilityProbe(
        host=cfg.probe_host,
        port=cfg.probe_port,
        timeout=cfg.probe_timeout,
        interval=cfg.probe_interval,
    )
