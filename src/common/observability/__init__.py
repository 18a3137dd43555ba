"""Shared observability helpers."""

from common.observability.telemetry import setup_telemetry

__all__ = ["setup_telemetry"]
