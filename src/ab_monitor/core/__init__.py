"""Core module for ab-monitor.

This module provides core functionality including:
- Configuration management (Settings, get_settings)
- Custom exceptions (ABMonitorException and subclasses)
- Protocol definitions for external collaborators
- Logging utilities
"""

from ab_monitor.core.config import Settings, get_settings
from ab_monitor.core.exceptions import (
    ABMonitorException,
    AnalysisError,
    ConfigurationError,
    InsufficientDataError,
    MonitorShutdownError,
)
from ab_monitor.core.logging import get_logger, log_context, setup_logging
from ab_monitor.core.protocols import BaselineProviderProtocol, MetricsCollectorProtocol

__all__ = [
    "ABMonitorException",
    "AnalysisError",
    "BaselineProviderProtocol",
    "ConfigurationError",
    "InsufficientDataError",
    "MetricsCollectorProtocol",
    "MonitorShutdownError",
    "Settings",
    "get_logger",
    "get_settings",
    "log_context",
    "setup_logging",
]
