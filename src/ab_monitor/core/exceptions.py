"""Custom exception hierarchy for ab-monitor.

Every error raised by the engine derives from ``ABMonitorException`` so the
hosting service can catch the whole family with a single except clause.
"""


class ABMonitorException(Exception):  # noqa: N818
    """Base exception for ab-monitor."""

    def __init__(self, message: str = "") -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message.
        """
        super().__init__(message)
        self.message = message


class InsufficientDataError(ABMonitorException):
    """Not enough data to run a statistical comparison.

    Raised when a test has fewer than two variations, or when one of the
    compared arms has no visitors yet. Surfaces as a failed analysis for a
    single tick only.
    """

    def __init__(
        self, message: str = "At least 2 variations required for statistical analysis"
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message.
        """
        super().__init__(message)


class ConfigurationError(ABMonitorException):
    """Configuration is invalid.

    Raised when a ``StatisticalConfig`` is constructed or updated with
    out-of-range values.
    """

    def __init__(self, message: str = "Invalid configuration") -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message.
        """
        super().__init__(message)


class AnalysisError(ABMonitorException):
    """Unexpected failure inside an analysis tick."""

    def __init__(self, message: str = "Analysis failed", test_id: str | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message.
            test_id: Test whose tick failed, if known.
        """
        super().__init__(message)
        self.test_id = test_id


class MonitorShutdownError(ABMonitorException):
    """The monitor has been shut down and must be reconstructed."""

    def __init__(self, message: str = "Monitor has been shut down") -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message.
        """
        super().__init__(message)
