"""Custom exception hierarchy for jvmpulse."""

from __future__ import annotations


class JvmPulseError(Exception):
    """Base exception for all jvmpulse errors.

    Every error raised deliberately by the ingestion core inherits from
    this class, so callers can catch anything jvmpulse-specific with a
    single except clause.
    """


class ConfigError(JvmPulseError):
    """Raised when configuration is invalid or missing.

    Examples:
        - An environment variable has a non-numeric value.
        - A poll interval or window capacity is out of range.
    """


class FetchError(JvmPulseError):
    """Raised when one metrics fetch cycle fails.

    Covers transport failures, timeouts, and non-success HTTP statuses
    alike. The message is human-readable and is what consumers see.

    Attributes:
        status_code: HTTP status of the failed response, or None when the
            request never produced one.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SchedulerError(JvmPulseError):
    """Raised when the poll scheduler is driven through an illegal transition.

    Examples:
        - ``select()`` is called after the scheduler was stopped.
        - ``select()`` is called without a running event loop.
    """
