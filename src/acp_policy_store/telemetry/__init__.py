"""Telemetry: structured operational logging."""
