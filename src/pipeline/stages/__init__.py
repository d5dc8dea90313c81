"""
Pipeline stages for the object announcer.

Each stage handles a specific part of the processing pipeline:
- stabilize: Debounce per-frame detections into announcements
"""

from .stabilize import Stabilizer, StabilizationState

__all__ = ["Stabilizer", "StabilizationState"]
