"""Centralized access-layer error hierarchy.

These exceptions give callers semantic categories for authentication and
issuance failures. Raw aiohttp / JSON errors never cross the access layer
boundary; they are wrapped in one of these first.

Classes:
  AccessError            – Base for all access-layer errors.
  IssuanceError          – The credential issuance call failed or was rejected.
  RefreshTimeoutError    – A refresh episode (or a wait on one) exceeded its bound.
  AuthenticationFailure  – A request still failed authentication after one retry.
  TransportError         – Non-auth network failure from the request executor.
  QueueFullError         – Too many requests parked on a single refresh episode.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class AccessError(Exception):
    """Base class for all access-layer errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class IssuanceError(AccessError):
    """Exception raised when minting a fresh credential fails.

    Covers network errors, non-success statuses and malformed bodies returned
    by the issuance endpoint. Fatal for the current refresh episode; every
    request waiting on that episode receives it.
    """

    @property
    def status(self) -> int | None:
        """HTTP status returned by the issuance endpoint, if one was received."""
        status = self.data.get("status")
        return status if isinstance(status, int) else None


class RefreshTimeoutError(IssuanceError):
    """Exception raised when a refresh episode does not finish in time."""


class AuthenticationFailure(AccessError):
    """Exception raised when a request fails authentication after a refresh.

    Terminal: the request was already replayed once with a freshly issued
    credential and is never retried again.

    Args:
        message: Descriptive error message.
        response: The final authentication-failure response.
        data: Optional mapping of additional context data.
    """

    def __init__(
        self,
        message: str,
        *,
        response: Any = None,
        data: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message, data=data)
        self.response = response


class TransportError(AccessError):
    """Exception raised for network or transport layer errors.

    Connection resets, DNS failures and timeouts from the request executor.
    The access interceptor passes these through untouched.
    """


class QueueFullError(AccessError):
    """Exception raised when the refresh wait queue is at capacity."""


__all__ = [
    "AccessError",
    "IssuanceError",
    "RefreshTimeoutError",
    "AuthenticationFailure",
    "TransportError",
    "QueueFullError",
]
