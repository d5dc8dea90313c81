"""
Cloud object-localization source.

Sends the square frame as a base64 JPEG to the Vision images:annotate
endpoint and parses the localized object annotations. Any transport failure
or non-success status is logged and yields no detections for that frame;
there is no retry and no local fallback within the same frame.
"""

from __future__ import annotations

import json
import logging
import socket
from typing import List, Optional
from urllib import error, parse, request

import numpy as np

from models.config import RemoteDetectorConfig
from models.decision import SourceDecision
from models.detection import Candidate
from .preprocess import encode_jpeg_base64, resize_square
from .vision_response import build_annotate_request, filter_by_score, parse_annotate_response


class VisionTransportError(RuntimeError):
    """The annotate call failed or returned a non-success status."""


class VisionClient:
    """HTTP client for the images:annotate endpoint."""

    def __init__(self, cfg: RemoteDetectorConfig):
        self.cfg = cfg
        self._api_key = (cfg.api_key or "").strip()
        # urllib applies one socket timeout to connect and to every read/write
        self._timeout_s = max(cfg.connect_timeout, cfg.read_timeout, cfg.write_timeout)

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    def _url(self) -> str:
        return f"{self.cfg.endpoint}?{parse.urlencode({'key': self._api_key})}"

    def annotate(self, image_b64: str) -> str:
        """
        POST one image and return the raw response body.

        Raises:
            VisionTransportError: On network errors, timeouts, non-2xx status,
                or an empty body.
        """
        data = json.dumps(build_annotate_request(image_b64)).encode("utf-8")
        req = request.Request(
            self._url(),
            data=data,
            headers={"Content-Type": "application/json; charset=utf-8"},
            method="POST",
        )
        try:
            with request.urlopen(req, timeout=self._timeout_s) as response:
                status = getattr(response, "status", 200)
                body = response.read().decode("utf-8")
        except error.HTTPError as e:
            raise VisionTransportError(f"Vision API failed: {e.code} {e.reason}") from e
        except (error.URLError, socket.timeout, OSError) as e:
            raise VisionTransportError(f"Vision call error: {e}") from e

        if status < 200 or status >= 300:
            raise VisionTransportError(f"Vision API failed: {status}")
        if not body:
            raise VisionTransportError("Vision API returned an empty body")
        return body


class RemoteSource:
    """
    DetectionSource backed by the cloud Vision API.

    Example:
        source = RemoteSource(RemoteDetectorConfig(api_key="..."))
        candidates = source.detect(frame)  # score >= min_score
    """

    decision = SourceDecision.REMOTE

    def __init__(
        self,
        cfg: Optional[RemoteDetectorConfig] = None,
        client: Optional[VisionClient] = None,
        input_size: int = 640,
    ):
        self.cfg = cfg or RemoteDetectorConfig()
        self.client = client or VisionClient(self.cfg)
        self.input_size = input_size

    def detect(self, frame: np.ndarray) -> List[Candidate]:
        if not self.client.enabled:
            logging.warning("Vision key missing; skipping cloud call.")
            return []

        try:
            image_b64 = encode_jpeg_base64(resize_square(frame, self.input_size), self.cfg.jpeg_quality)
            body = self.client.annotate(image_b64)
        except (VisionTransportError, ValueError) as e:
            logging.warning(f"Remote detection skipped: {e}")
            return []

        candidates = filter_by_score(parse_annotate_response(body), self.cfg.min_score)
        # Stable sort keeps annotation order among equal scores
        return sorted(candidates, key=lambda c: c.score, reverse=True)
