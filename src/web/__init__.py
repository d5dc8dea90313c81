"""Web API exposing detections, announcements and pause control."""
