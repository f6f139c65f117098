"""Prometheus exporter for Mesos master status endpoints."""

__version__ = "0.1.0"

USER_AGENT = f"mesos-exporter/{__version__}"
