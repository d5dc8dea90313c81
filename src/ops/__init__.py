"""Operational helpers (logging setup)."""
