"""
Exception hierarchy for the DOI monitoring system.

Each error carries a machine-readable code and an optional context mapping so
that the layer reporting a failure can tell the categories apart without
inspecting messages.
"""

from typing import Any, Dict, Optional


class DoiMonitorError(Exception):
    """Base class for application-specific errors."""

    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        if code is not None:
            self.code = code
        self.context: Dict[str, Any] = context or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "code": self.code, "context": self.context}


class ExternalServiceError(DoiMonitorError):
    """An external service (the alert endpoint) kept failing after all retries."""

    code = "EXTERNAL_SERVICE_ERROR"


class PersistenceError(DoiMonitorError):
    """The status store or the monitoring list could not be read or written."""

    code = "PERSISTENCE_ERROR"


class MalformedStatusError(DoiMonitorError):
    """A persisted status record could not be decoded."""

    code = "MALFORMED_STATUS"


class RetryExhaustedError(DoiMonitorError):
    """
    Raised by the retry primitive once every attempt has failed.

    Attributes:
        attempts: How many attempts were made in total.
        last_error: The exception raised by the final attempt.
    """

    code = "RETRY_EXHAUSTED"

    def __init__(self, description: str, attempts: int, last_error: BaseException) -> None:
        super().__init__(
            f"{description} failed after {attempts} attempt(s): {describe_error(last_error)}",
            context={"attempts": attempts},
        )
        self.attempts: int = attempts
        self.last_error: BaseException = last_error


def describe_error(error: BaseException) -> str:
    """
    Returns a human-readable message for an exception.

    Some exceptions (notably timeouts) carry no text, in which case the
    exception class name is used instead.
    """
    return str(error) or type(error).__name__
