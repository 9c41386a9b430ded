"""Prometheus metrics for the statistical monitor."""

from ab_monitor.monitoring.metrics.collector import MetricsCollector

__all__ = ["MetricsCollector"]
