"""Ambient logging and telemetry setup."""
