"""Alert hand-off - deliver monitoring alerts to notification channels."""

from ab_monitor.monitoring.alerts.handlers import (
    AlertDispatcher,
    AlertHandler,
    ConsoleHandler,
    HandlerResult,
    WebhookHandler,
)

__all__ = [
    "AlertDispatcher",
    "AlertHandler",
    "ConsoleHandler",
    "HandlerResult",
    "WebhookHandler",
]
