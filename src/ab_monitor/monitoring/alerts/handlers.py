"""Alert Handlers - deliver monitoring alerts to notification channels.

Each handler decides for itself whether an alert is worth delivering
(``min_severity``), so a webhook can page on critical anomalies only while the
console still shows every early-winner notice.

- ConsoleHandler: structured log line per alert
- WebhookHandler: JSON POST to an HTTP endpoint
- AlertDispatcher: fan-out of one alert to every interested handler
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import aiohttp

from ab_monitor.core.logging import get_logger
from ab_monitor.models import AlertSeverity, MonitoringAlert

logger = get_logger(__name__)

_SEVERITY_RANK = {
    AlertSeverity.INFO: 0,
    AlertSeverity.WARNING: 1,
    AlertSeverity.CRITICAL: 2,
}


@dataclass
class HandlerResult:
    """Outcome of delivering one alert through one handler."""

    success: bool
    handler_name: str
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    details: dict[str, Any] = field(default_factory=dict)


class AlertHandler(ABC):
    """Base class for notification channels."""

    def __init__(
        self,
        name: str,
        enabled: bool = True,
        min_severity: AlertSeverity = AlertSeverity.INFO,
    ) -> None:
        """Initialize the handler.

        Args:
            name: Handler name, unique within a dispatcher.
            enabled: Disabled handlers never deliver.
            min_severity: Alerts below this severity are ignored.
        """
        self.name = name
        self.enabled = enabled
        self.min_severity = min_severity

    def accepts(self, alert: MonitoringAlert) -> bool:
        """Whether this handler wants to deliver ``alert``."""
        return _SEVERITY_RANK[alert.severity] >= _SEVERITY_RANK[self.min_severity]

    @abstractmethod
    async def send(self, alert: MonitoringAlert) -> HandlerResult:
        """Deliver an alert.

        Args:
            alert: Alert raised by an analysis tick.

        Returns:
            HandlerResult describing the delivery.
        """

    def _result(self, success: bool, message: str, **details: Any) -> HandlerResult:
        return HandlerResult(
            success=success, handler_name=self.name, message=message, details=details
        )


class ConsoleHandler(AlertHandler):
    """Write alerts to the structured log.

    Critical alerts log at ERROR, warnings at WARNING, the rest at INFO.
    """

    def __init__(
        self, enabled: bool = True, min_severity: AlertSeverity = AlertSeverity.INFO
    ) -> None:
        super().__init__("console", enabled, min_severity)

    async def send(self, alert: MonitoringAlert) -> HandlerResult:
        if not self.enabled:
            return self._result(False, "Handler is disabled")

        if alert.severity == AlertSeverity.CRITICAL:
            log = logger.error
        elif alert.severity == AlertSeverity.WARNING:
            log = logger.warning
        else:
            log = logger.info

        log(
            "monitoring_alert",
            test_id=alert.test_id,
            alert_type=alert.alert_type.value,
            severity=alert.severity.value,
            message=alert.message,
            action_required=alert.action_required,
            auto_action_taken=alert.auto_action_taken,
        )
        return self._result(True, "Alert logged to console")


class WebhookHandler(AlertHandler):
    """POST alerts as JSON to an HTTP endpoint.

    The body is ``{"source": "ab-monitor", "alert": MonitoringAlert.to_dict()}``.
    Any 2xx response counts as delivered.

    Example:
        >>> handler = WebhookHandler(
        ...     url="https://hooks.example.com/experiments",
        ...     headers={"Authorization": "Bearer token"},
        ...     min_severity=AlertSeverity.WARNING,
        ... )
        >>> await handler.send(alert)
    """

    source = "ab-monitor"

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 10,
        enabled: bool = True,
        min_severity: AlertSeverity = AlertSeverity.INFO,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the webhook handler.

        Args:
            url: Endpoint receiving the POST.
            headers: Extra HTTP headers (auth tokens and the like).
            timeout: Total request timeout in seconds.
            enabled: Disabled handlers never deliver.
            min_severity: Alerts below this severity are ignored.
            session: Shared client session; a short-lived one is opened per
                alert when omitted.
        """
        super().__init__("webhook", enabled, min_severity)
        self.url = url
        self.headers = headers or {}
        self.timeout = timeout
        self._session = session

    def build_payload(self, alert: MonitoringAlert) -> dict[str, Any]:
        """JSON body for ``alert``."""
        return {"source": self.source, "alert": alert.to_dict()}

    async def _post(self, session: aiohttp.ClientSession, alert: MonitoringAlert) -> HandlerResult:
        async with session.post(
            self.url,
            json=self.build_payload(alert),
            headers={"Content-Type": "application/json", **self.headers},
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as response:
            body = await response.text()
            delivered = 200 <= response.status < 300
            return self._result(
                delivered,
                "Webhook delivered" if delivered else "Webhook rejected",
                status_code=response.status,
                response=body[:200],
            )

    async def send(self, alert: MonitoringAlert) -> HandlerResult:
        if not self.enabled:
            return self._result(False, "Handler is disabled")

        try:
            if self._session is not None:
                return await self._post(self._session, alert)
            async with aiohttp.ClientSession() as session:
                return await self._post(session, alert)
        except TimeoutError:
            logger.warning("webhook_timeout", url=self.url, test_id=alert.test_id)
            return self._result(False, "Webhook timeout")
        except aiohttp.ClientError as e:
            logger.warning("webhook_send_failed", url=self.url, error=str(e))
            return self._result(False, f"Failed to send: {e!s}")


class AlertDispatcher:
    """Fan alerts out to every registered handler.

    Handlers run concurrently; a handler that raises is reported as a failed
    result and never affects the others.

    Example:
        >>> dispatcher = AlertDispatcher()
        >>> dispatcher.add_handler(ConsoleHandler())
        >>> dispatcher.add_handler(WebhookHandler(url="...", min_severity=AlertSeverity.CRITICAL))
        >>> results = await dispatcher.dispatch(alert)
    """

    def __init__(self) -> None:
        self._handlers: list[AlertHandler] = []

    def add_handler(self, handler: AlertHandler) -> None:
        """Register a handler."""
        self._handlers.append(handler)
        logger.info("alert_handler_added", handler=handler.name)

    def remove_handler(self, handler_name: str) -> bool:
        """Unregister the first handler called ``handler_name``.

        Returns:
            True if a handler was removed.
        """
        for handler in self._handlers:
            if handler.name == handler_name:
                self._handlers.remove(handler)
                logger.info("alert_handler_removed", handler=handler_name)
                return True
        return False

    async def dispatch(self, alert: MonitoringAlert) -> list[HandlerResult]:
        """Deliver one alert to every enabled handler that accepts it.

        Args:
            alert: Alert to deliver.

        Returns:
            One HandlerResult per handler that was asked to deliver.
        """
        if not self._handlers:
            logger.warning("no_alert_handlers", test_id=alert.test_id)
            return []

        targets = [h for h in self._handlers if h.enabled and h.accepts(alert)]
        outcomes = await asyncio.gather(
            *(handler.send(alert) for handler in targets), return_exceptions=True
        )

        results = []
        for handler, outcome in zip(targets, outcomes, strict=True):
            if isinstance(outcome, Exception):
                logger.error("alert_handler_failed", handler=handler.name, error=str(outcome))
                outcome = HandlerResult(
                    success=False,
                    handler_name=handler.name,
                    message=f"Handler error: {outcome!s}",
                )
            results.append(outcome)
        return results

    async def dispatch_batch(
        self, alerts: list[MonitoringAlert]
    ) -> dict[str, list[HandlerResult]]:
        """Deliver several alerts, grouping results by alert type value."""
        grouped: dict[str, list[HandlerResult]] = {}
        for alert in alerts:
            grouped.setdefault(alert.alert_type.value, []).extend(await self.dispatch(alert))
        return grouped

    def list_handlers(self) -> list[dict[str, Any]]:
        """Describe the registered handlers."""
        return [
            {
                "name": handler.name,
                "type": type(handler).__name__,
                "enabled": handler.enabled,
                "min_severity": handler.min_severity.value,
            }
            for handler in self._handlers
        ]
