"""
Object announcer: hybrid cloud/on-device object detection with spoken announcements.

Reads frames from a camera, asks the cloud Vision service for objects while the
network is reachable (rate limited), falls back to the on-device YOLO model
otherwise, and stabilizes the per-frame detections into announcements.

Usage:
    python src/main.py --config config/config.yaml

Arguments:
    --config: Path to configuration file
    --offline: Never call the cloud service
    --no-web: Do not start the web API
    --port: Web API port (overrides web.port)
"""

import os
import sys
import argparse
import logging
import threading
from typing import Dict, Any, Tuple, Optional

import yaml
import uvicorn

from inference.decoder import ShapeMismatchError
from models.config import Config
from ops.logging import setup_logging
from pipeline.engine import create_engine_from_config
from pipeline.processor import create_pipeline_from_config
from runtime.context import RuntimeContext
from runtime.reachability import StaticReachability, create_probe_from_config
from web.app import create_app
from web.state import state as web_state

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
VALID_LOCAL_RUNTIMES = ('onnx', 'ultralytics')
VALID_NETWORK_MODES = ('probe', 'online', 'offline')


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        # Finally apply explicit config_path if it's not the local override file itself
        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_unit_interval(section: Dict[str, Any], key: str, prefix: str) -> Optional[str]:
    if key not in section:
        return None
    value = section[key]
    if not _is_number(value) or not (0 <= value <= 1):
        return f"{prefix}.{key} must be a number between 0 and 1"
    return None


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    # Required top-level sections
    required_sections = ['camera', 'local', 'remote', 'arbiter', 'stabilizer', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Validate camera settings
    camera = config.get('camera') or {}
    if 'device_id' not in camera:
        return False, "Missing camera.device_id"
    if not isinstance(camera['device_id'], (int, str)):
        return False, "camera.device_id must be an integer (index) or string (URL/path)"
    if isinstance(camera['device_id'], int) and camera['device_id'] < 0:
        return False, "camera.device_id integer must be non-negative"
    if 'resolution' in camera:
        if not isinstance(camera['resolution'], list) or len(camera['resolution']) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in camera['resolution']):
            return False, "camera.resolution values must be positive integers"
    if 'fps' in camera and (not isinstance(camera['fps'], int) or camera['fps'] <= 0):
        return False, "camera.fps must be a positive integer"

    # Validate on-device detector settings
    local = config.get('local') or {}
    runtime = local.get('runtime', 'onnx')
    if runtime not in VALID_LOCAL_RUNTIMES:
        return False, f"local.runtime must be one of: {', '.join(VALID_LOCAL_RUNTIMES)}"
    if not isinstance(local.get('model'), str) or not local.get('model'):
        return False, "local.model is required"
    for key in ('input_size', 'num_classes'):
        if key in local and (not isinstance(local[key], int) or local[key] <= 0):
            return False, f"local.{key} must be a positive integer"
    for key in ('conf_threshold', 'iou_threshold'):
        err = _check_unit_interval(local, key, 'local')
        if err:
            return False, err
    max_results = local.get('max_results')
    if max_results is not None and (not isinstance(max_results, int) or max_results <= 0):
        return False, "local.max_results must be a positive integer"
    class_names = local.get('class_names')
    if class_names is not None and not isinstance(class_names, list):
        return False, "local.class_names must be a list of label strings"

    # Validate cloud detector settings
    remote = config.get('remote') or {}
    if 'endpoint' in remote and (not isinstance(remote['endpoint'], str) or not remote['endpoint']):
        return False, "remote.endpoint must be a non-empty string"
    err = _check_unit_interval(remote, 'min_score', 'remote')
    if err:
        return False, err
    if 'jpeg_quality' in remote:
        quality = remote['jpeg_quality']
        if not isinstance(quality, int) or not (1 <= quality <= 100):
            return False, "remote.jpeg_quality must be an integer between 1 and 100"
    for key in ('connect_timeout', 'read_timeout', 'write_timeout'):
        if key in remote and (not _is_number(remote[key]) or remote[key] <= 0):
            return False, f"remote.{key} must be a positive number"

    # Validate arbitration and stabilization
    arbiter = config.get('arbiter') or {}
    interval = arbiter.get('min_remote_interval_ms', 1500)
    if not _is_number(interval) or interval <= 0:
        return False, "arbiter.min_remote_interval_ms must be a positive number"

    stabilizer = config.get('stabilizer') or {}
    threshold = stabilizer.get('persistence_threshold', 3)
    if not isinstance(threshold, int) or threshold <= 0:
        return False, "stabilizer.persistence_threshold must be a positive integer"
    cooldown = stabilizer.get('cooldown_ms', 2000)
    if not _is_number(cooldown) or cooldown < 0:
        return False, "stabilizer.cooldown_ms must be a non-negative number"

    # Optional network settings
    network = config.get('network') or {}
    if network.get('mode', 'probe') not in VALID_NETWORK_MODES:
        return False, f"network.mode must be one of: {', '.join(VALID_NETWORK_MODES)}"

    # Validate log settings
    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def main():
    """Main application function."""
    # Parse command-line arguments
    parser = argparse.ArgumentParser(description='Object Announcer')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--offline', action='store_true',
                        help='Never call the cloud detector (on-device only)')
    parser.add_argument('--no-web', action='store_true',
                        help='Do not start the web API')
    parser.add_argument('--port', type=int, default=None,
                        help='Web API port (overrides web.port)')
    args = parser.parse_args()

    # Load configuration
    raw_config = load_config(args.config)

    # Validate configuration
    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    # Setup logging
    setup_logging(raw_config['log_path'], raw_config['log_level'])

    config = Config.from_dict(raw_config)
    if args.port is not None:
        config.web.port = args.port

    logging.info("Starting Object Announcer")
    if not config.remote.api_key:
        logging.warning("No Vision API key configured; cloud detection disabled")

    try:
        pipeline = create_pipeline_from_config(config)
    except ShapeMismatchError as e:
        logging.error(f"Local model does not match configuration: {e}")
        sys.exit(1)

    probe = StaticReachability(False) if args.offline else create_probe_from_config(config.network)
    ctx = RuntimeContext(config=config, pipeline=pipeline, probe=probe, web_state=web_state)

    web_enabled = config.web.enabled and not args.no_web
    if web_enabled:
        ctx.attach_web_state()

        def run_web_app():
            uvicorn.run(
                create_app(),
                host=config.web.host,
                port=config.web.port,
                log_level="info",
            )

        web_thread = threading.Thread(target=run_web_app, daemon=True)
        web_thread.start()
        logging.info(f"Web interface started on port {config.web.port}")

    engine = create_engine_from_config(
        config,
        pipeline,
        probe=probe,
        web_state=web_state if web_enabled else None,
    )
    engine.add_callback(ctx.announce)
    engine.run()

    logging.info("Object Announcer stopped")


if __name__ == "__main__":
    main()
