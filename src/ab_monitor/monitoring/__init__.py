"""Experiment Monitoring - live supervision of running A/B tests.

This module provides the runtime around the statistics package:
- Anomaly detection (traffic spikes, conversion drops, unusual patterns)
- Decision engine combining every analysis into one recommended action
- Historical baseline providers
- Alert dispatch to console and webhook handlers
- Prometheus metrics collection
- StatisticalMonitor, the scheduler tying it all together
"""

from ab_monitor.monitoring.alerts import (
    AlertDispatcher,
    AlertHandler,
    ConsoleHandler,
    HandlerResult,
    WebhookHandler,
)
from ab_monitor.monitoring.anomaly import (
    AnomalyDetector,
    aggregate_risk,
    estimate_recent_traffic,
)
from ab_monitor.monitoring.baselines import InMemoryBaselineProvider
from ab_monitor.monitoring.decision import AnalysisReport, DecisionEngine
from ab_monitor.monitoring.metrics import MetricsCollector
from ab_monitor.monitoring.monitor import MonitorEvent, StatisticalMonitor

__all__ = [
    "AlertDispatcher",
    "AlertHandler",
    "AnalysisReport",
    "AnomalyDetector",
    "ConsoleHandler",
    "DecisionEngine",
    "HandlerResult",
    "InMemoryBaselineProvider",
    "MetricsCollector",
    "MonitorEvent",
    "StatisticalMonitor",
    "WebhookHandler",
    "aggregate_risk",
    "estimate_recent_traffic",
]
