"""ab-monitor - statistical monitoring engine for live A/B experiments."""

from ab_monitor.core import (
    ABMonitorException,
    AnalysisError,
    ConfigurationError,
    InsufficientDataError,
    MonitorShutdownError,
    setup_logging,
)
from ab_monitor.models import (
    AlertSeverity,
    AlertType,
    AnalysisMethod,
    Anomaly,
    AnomalyDetection,
    AnomalySeverity,
    AnomalyType,
    MonitoringAlert,
    PowerAnalysis,
    RecommendedAction,
    RiskLevel,
    StatisticalResult,
    TestMetrics,
    VariationMetrics,
)
from ab_monitor.monitoring import (
    AlertDispatcher,
    AnalysisReport,
    InMemoryBaselineProvider,
    MonitorEvent,
    StatisticalMonitor,
)
from ab_monitor.statistics import StatisticalConfig

__version__ = "0.1.0"

__all__ = [
    "ABMonitorException",
    "AlertDispatcher",
    "AlertSeverity",
    "AlertType",
    "AnalysisError",
    "AnalysisMethod",
    "AnalysisReport",
    "Anomaly",
    "AnomalyDetection",
    "AnomalySeverity",
    "AnomalyType",
    "ConfigurationError",
    "InMemoryBaselineProvider",
    "InsufficientDataError",
    "MonitorEvent",
    "MonitorShutdownError",
    "MonitoringAlert",
    "PowerAnalysis",
    "RecommendedAction",
    "RiskLevel",
    "StatisticalConfig",
    "StatisticalMonitor",
    "StatisticalResult",
    "TestMetrics",
    "VariationMetrics",
    "__version__",
    "setup_logging",
]
