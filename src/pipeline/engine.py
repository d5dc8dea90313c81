"""
Pipeline engine: the frame-processing worker.

Pulls the newest frame from a LatestFrameReader, asks the reachability
probe whether the network is up, runs the DetectionPipeline, and hands each
FrameResult to registered callbacks (overlay rendering, speech).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from models.config import Config
from models.frame import FrameData
from observation import LatestFrameReader, ObservationSource, create_source_from_config
from runtime.reachability import ReachabilityProbe, create_probe_from_config
from .processor import DetectionPipeline, FrameResult


@dataclass
class EngineConfig:
    """
    Configuration for the pipeline engine.

    Attributes:
        max_consecutive_failures: Max frame read failures before capture stops.
        stats_log_interval: Seconds between status log messages.
        frame_wait_timeout: Seconds to wait for a new frame before re-checking state.
    """
    max_consecutive_failures: int = 10
    stats_log_interval: float = 60.0
    frame_wait_timeout: float = 1.0


@dataclass
class EngineStats:
    """Runtime statistics for the engine loop."""
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)
    frames_analyzed: int = 0
    frames_skipped_paused: int = 0


FrameCallback = Callable[[FrameData, FrameResult], None]


class PipelineEngine:
    """
    Main processing loop.

    Processes at most one frame at a time; frames arriving meanwhile replace
    each other in the reader and only the newest is analyzed.

    Example:
        engine = PipelineEngine(source, pipeline, probe, EngineConfig())
        engine.add_callback(lambda frame, result: overlay.show(result.detections))
        engine.run()
    """

    def __init__(
        self,
        source: ObservationSource,
        pipeline: DetectionPipeline,
        probe: ReachabilityProbe,
        config: Optional[EngineConfig] = None,
        web_state: Any = None,
    ):
        self.config = config or EngineConfig()
        self.web_state = web_state
        self.reader = LatestFrameReader(source, max_consecutive_failures=self.config.max_consecutive_failures)
        self.pipeline = pipeline
        self.probe = probe
        self.stats = EngineStats()
        self._running = False
        self._callbacks: List[FrameCallback] = []

    def add_callback(self, callback: FrameCallback) -> None:
        """
        Add a callback to be called after each analyzed frame.

        Args:
            callback: Function taking (frame_data, frame_result).
        """
        self._callbacks.append(callback)

    def run(self) -> None:
        """
        Run until stopped or the source is exhausted, then release resources.
        """
        self._running = True
        self.stats = EngineStats()

        try:
            self.reader.start()
            logging.info(f"Pipeline started: source={self.reader.source.source_id}")

            while self._running:
                frame_data = self.reader.get(timeout=self.config.frame_wait_timeout)
                if frame_data is None:
                    if self.reader.exhausted:
                        logging.info("Frame source exhausted, stopping")
                        break
                    continue

                self.process(frame_data)
                self._handle_periodic_tasks()

        except KeyboardInterrupt:
            logging.info("Pipeline interrupted by user")
        except Exception as e:
            logging.exception(f"Pipeline error: {e}")
        finally:
            self._cleanup()

    def process(self, frame_data: FrameData) -> Optional[FrameResult]:
        """
        Analyze one frame and dispatch its result. Returns None while paused.

        The frame's capture stamp is the pipeline clock, so the remote
        interval and the cooldown measure camera time, not analysis time.
        """
        if self.pipeline.paused:
            self.stats.frames_skipped_paused += 1
            return None

        reachable = self.probe.is_reachable()
        result = self.pipeline.process_frame(frame_data.frame, reachable, now_ms=frame_data.captured_ms)
        if result.discarded:
            return result

        self.stats.frames_analyzed += 1
        # A pause may have cleared the web state while this frame was analyzed
        if self.web_state is not None and not self.pipeline.paused:
            self.web_state.publish(result, reachable=reachable)
        for callback in self._callbacks:
            try:
                callback(frame_data, result)
            except Exception as e:
                logging.warning(f"Callback error: {e}")
        return result

    def stop(self) -> None:
        """Signal the loop to stop after the current frame."""
        self._running = False

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            logging.info(
                f"Pipeline stats: analyzed={self.stats.frames_analyzed}, "
                f"dropped={self.reader.frames_dropped}, "
                f"paused_skips={self.stats.frames_skipped_paused}, "
                f"{self.pipeline.stats.to_dict()}"
            )
            self.stats.last_stats_log_time = now

    def _cleanup(self) -> None:
        self._running = False
        self.reader.stop()
        self.pipeline.close()
        logging.info("Pipeline stopped")


def create_engine_from_config(
    config: Config,
    pipeline: DetectionPipeline,
    probe: Optional[ReachabilityProbe] = None,
    web_state: Any = None,
) -> PipelineEngine:
    """
    Factory function to create a PipelineEngine from typed config.

    Args:
        config: Application config.
        pipeline: The detection pipeline to drive.
        probe: Reachability probe; built from config.network when omitted.
    """
    source = create_source_from_config(config.camera.to_dict(), source_id="main-camera")
    engine_config = EngineConfig(stats_log_interval=config.stats_log_interval)
    return PipelineEngine(
        source,
        pipeline,
        probe or create_probe_from_config(config.network),
        engine_config,
        web_state=web_state,
    )
