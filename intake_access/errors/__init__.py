"""Error types and error logging helpers for the access layer."""

from .handling import log_error
from .internal import (
    AccessError,
    AuthenticationFailure,
    IssuanceError,
    QueueFullError,
    RefreshTimeoutError,
    TransportError,
)

__all__ = [
    "AccessError",
    "AuthenticationFailure",
    "IssuanceError",
    "QueueFullError",
    "RefreshTimeoutError",
    "TransportError",
    "log_error",
]
