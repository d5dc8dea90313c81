"""
FastAPI application factory for the object announcer.

Routes:
- /api/detections -> latest DetectionSet (overlay rendering)
- /api/announcement -> latest announcement (speech)
- /api/status -> pipeline status and stabilization counters
- /api/detection/pause, /api/detection/resume -> user pause signal
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import api


def create_app() -> FastAPI:
    """Create the FastAPI app and wire routes."""
    app = FastAPI(
        title="Object Announcer",
        version="0.1.0",
        description="Hybrid cloud/on-device object detection with spoken announcements",
    )

    # The overlay/speech client may be served from another origin during development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(api.router, prefix="/api")
    return app
