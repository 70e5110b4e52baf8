"""Prometheus exporter for illumos global zone telemetry."""

__version__ = "0.1.0"
