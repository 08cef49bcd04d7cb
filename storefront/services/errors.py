"""
Backend API errors.

ApiError is raised by the HTTP client. Checkout narrows it into one of
three failure variants so callers can match on the type instead of
probing response fields.
"""

from dataclasses import dataclass
from typing import Any, Optional, Union

DEFAULT_COOLDOWN_MINUTES = 30


class ApiError(Exception):
    """
    Failed backend request.

    ``status`` is None when no response arrived. ``message`` is the
    server-supplied message and stays empty when the body had none.
    """

    def __init__(self, message: str = "", status: Optional[int] = None, data: Any = None):
        super().__init__(message or f"Request failed with status {status}")
        self.message = message
        self.status = status
        self.data = data

    @property
    def is_transport_error(self) -> bool:
        return self.status is None


@dataclass(frozen=True)
class RateLimited:
    cooldown_minutes: int


@dataclass(frozen=True)
class Rejected:
    message: str


@dataclass(frozen=True)
class TransportFailure:
    detail: Optional[str] = None


SubmissionFailure = Union[RateLimited, Rejected, TransportFailure]


def _cooldown_from(data: Any, default: int) -> int:
    if not isinstance(data, dict):
        return default
    value = data.get("cooldown_minutes")
    if isinstance(value, bool):
        return default
    try:
        minutes = int(value)
    except (TypeError, ValueError):
        return default
    return minutes if minutes > 0 else default


def classify_failure(
    error: Exception,
    default_cooldown: int = DEFAULT_COOLDOWN_MINUTES,
) -> SubmissionFailure:
    """Map an exception from an order request onto a failure variant"""
    if not isinstance(error, ApiError) or error.is_transport_error:
        return TransportFailure(detail=str(error) or None)

    if error.status == 429:
        return RateLimited(cooldown_minutes=_cooldown_from(error.data, default_cooldown))

    if error.message:
        return Rejected(message=error.message)

    return TransportFailure(detail=f"HTTP {error.status}")
