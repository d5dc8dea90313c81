"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class CameraConfig:
    """Camera configuration."""
    device_id: Union[int, str] = 0
    resolution: List[int] = field(default_factory=lambda: [640, 480])
    fps: int = 30
    rotate: int = 0
    flip_horizontal: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        return cls(
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [640, 480]),
            fps=d.get("fps", 30),
            rotate=d.get("rotate", 0) or 0,
            flip_horizontal=d.get("flip_horizontal", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "resolution": self.resolution,
            "fps": self.fps,
            "rotate": self.rotate,
            "flip_horizontal": self.flip_horizontal,
        }


@dataclass
class LocalDetectorConfig:
    """On-device detector configuration."""
    runtime: str = "onnx"
    model: str = "models/yolov8n.onnx"
    input_size: int = 640
    num_classes: int = 80
    conf_threshold: float = 0.3
    iou_threshold: float = 0.45
    max_results: Optional[int] = None
    class_names: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LocalDetectorConfig":
        return cls(
            runtime=d.get("runtime", "onnx"),
            model=d.get("model", "models/yolov8n.onnx"),
            input_size=d.get("input_size", 640),
            num_classes=d.get("num_classes", 80),
            conf_threshold=d.get("conf_threshold", 0.3),
            iou_threshold=d.get("iou_threshold", 0.45),
            max_results=d.get("max_results"),
            class_names=d.get("class_names"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "runtime": self.runtime,
            "model": self.model,
            "input_size": self.input_size,
            "num_classes": self.num_classes,
            "conf_threshold": self.conf_threshold,
            "iou_threshold": self.iou_threshold,
        }
        if self.max_results is not None:
            d["max_results"] = self.max_results
        if self.class_names is not None:
            d["class_names"] = self.class_names
        return d


@dataclass
class RemoteDetectorConfig:
    """Cloud object-localization configuration."""
    endpoint: str = "https://vision.googleapis.com/v1/images:annotate"
    api_key: str = ""
    min_score: float = 0.45
    jpeg_quality: int = 80
    connect_timeout: float = 10.0
    read_timeout: float = 12.0
    write_timeout: float = 12.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RemoteDetectorConfig":
        return cls(
            endpoint=d.get("endpoint", "https://vision.googleapis.com/v1/images:annotate"),
            api_key=d.get("api_key") or os.environ.get("VISION_API_KEY", ""),
            min_score=d.get("min_score", 0.45),
            jpeg_quality=d.get("jpeg_quality", 80),
            connect_timeout=d.get("connect_timeout", 10.0),
            read_timeout=d.get("read_timeout", 12.0),
            write_timeout=d.get("write_timeout", 12.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        # api_key is deliberately left out so it never lands in saved config
        return {
            "endpoint": self.endpoint,
            "min_score": self.min_score,
            "jpeg_quality": self.jpeg_quality,
            "connect_timeout": self.connect_timeout,
            "read_timeout": self.read_timeout,
            "write_timeout": self.write_timeout,
        }


@dataclass
class ArbiterConfig:
    """Source arbitration configuration."""
    min_remote_interval_ms: float = 1500.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ArbiterConfig":
        return cls(min_remote_interval_ms=d.get("min_remote_interval_ms", 1500.0))

    def to_dict(self) -> Dict[str, Any]:
        return {"min_remote_interval_ms": self.min_remote_interval_ms}


@dataclass
class StabilizerConfig:
    """Announcement debouncing configuration."""
    persistence_threshold: int = 3
    cooldown_ms: float = 2000.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StabilizerConfig":
        return cls(
            persistence_threshold=d.get("persistence_threshold", 3),
            cooldown_ms=d.get("cooldown_ms", 2000.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "persistence_threshold": self.persistence_threshold,
            "cooldown_ms": self.cooldown_ms,
        }


@dataclass
class NetworkConfig:
    """Reachability probe configuration."""
    mode: str = "probe"
    probe_host: str = "vision.googleapis.com"
    probe_port: int = 443
    probe_timeout: float = 1.0
    probe_interval: float = 5.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "NetworkConfig":
        return cls(
            mode=d.get("mode", "probe"),
            probe_host=d.get("probe_host", "vision.googleapis.com"),
            probe_port=d.get("probe_port", 443),
            probe_timeout=d.get("probe_timeout", 1.0),
            probe_interval=d.get("probe_interval", 5.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "probe_host": self.probe_host,
            "probe_port": self.probe_port,
            "probe_timeout": self.probe_timeout,
            "probe_interval": self.probe_interval,
        }


@dataclass
class WebConfig:
    """Status/control API configuration."""
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            enabled=d.get("enabled", True),
            host=d.get("host", "0.0.0.0"),
            port=d.get("port", 5000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    local: LocalDetectorConfig = field(default_factory=LocalDetectorConfig)
    remote: RemoteDetectorConfig = field(default_factory=RemoteDetectorConfig)
    arbiter: ArbiterConfig = field(default_factory=ArbiterConfig)
    stabilizer: StabilizerConfig = field(default_factory=StabilizerConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    web: WebConfig = field(default_factory=WebConfig)
    stats_log_interval: float = 60.0
    log_path: str = "logs/announcer.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera", {}) or {}),
            local=LocalDetectorConfig.from_dict(d.get("local", {}) or {}),
            remote=RemoteDetectorConfig.from_dict(d.get("remote", {}) or {}),
            arbiter=ArbiterConfig.from_dict(d.get("arbiter", {}) or {}),
            stabilizer=StabilizerConfig.from_dict(d.get("stabilizer", {}) or {}),
            network=NetworkConfig.from_dict(d.get("network", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            stats_log_interval=d.get("stats_log_interval", 60.0),
            log_path=d.get("log_path", "logs/announcer.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "camera": self.camera.to_dict(),
            "local": self.local.to_dict(),
            "remote": self.remote.to_dict(),
            "arbiter": self.arbiter.to_dict(),
            "stabilizer": self.stabilizer.to_dict(),
            "network": self.network.to_dict(),
            "web": self.web.to_dict(),
            "stats_log_interval": self.stats_log_interval,
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
