"""Shared types for the access package."""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Protocol

from ..credentials.types import Credential

AUTHORIZATION_HEADER = "Authorization"


class RefreshState(Enum):
    """Lifecycle of the refresh coordinator.

    Attributes:
        IDLE: No issuance call in flight.
        REFRESHING: One issuance call in flight; callers share its outcome.
    """

    IDLE = "idle"
    REFRESHING = "refreshing"


@dataclass(frozen=True)
class RefreshOutcome:
    """Result of one refresh episode, delivered to every waiter.

    Exactly one of ``credential`` / ``error`` is set.
    """

    credential: Credential | None = None
    error: BaseException | None = None

    def __post_init__(self) -> None:
        if (self.credential is None) == (self.error is None):
            raise ValueError("RefreshOutcome needs exactly one of credential or error")

    @property
    def succeeded(self) -> bool:
        return self.credential is not None

    def unwrap(self) -> Credential:
        """Return the credential or raise the episode's error."""
        if self.error is not None:
            raise self.error
        assert self.credential is not None
        return self.credential


@dataclass(frozen=True)
class OutboundRequest:
    """Transport-agnostic description of an outbound HTTP request.

    Attributes:
        method: HTTP method.
        url: Absolute URL.
        headers: Request headers.
        params: Query parameters.
        json: JSON body.
        data: Form / raw body.
        authenticated: False for calls that must never carry or refresh a
            credential (the issuance call itself).
    """

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, Any] | None = None
    json: Any = None
    data: Any = None
    authenticated: bool = True

    def with_credential(self, credential: Credential | None) -> OutboundRequest:
        """Clone with the Authorization header bound to ``credential``.

        Any existing Authorization header is replaced; ``None`` strips it.
        """
        headers = {
            k: v
            for k, v in self.headers.items()
            if k.lower() != AUTHORIZATION_HEADER.lower()
        }
        if credential is not None:
            headers[AUTHORIZATION_HEADER] = credential.authorization_header()
        return replace(self, headers=headers)

    @property
    def authorization(self) -> str | None:
        for k, v in self.headers.items():
            if k.lower() == AUTHORIZATION_HEADER.lower():
                return v
        return None


@dataclass
class AccessResponse:
    """Response returned by the default aiohttp executor."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding, errors="replace")

    def json(self) -> Any:
        return json.loads(self.body) if self.body else None


class StatusResponse(Protocol):
    """Anything carrying an HTTP status; all the interceptor inspects."""

    status: int


RequestExecutor = Callable[[OutboundRequest], Awaitable[Any]]
ResumeCallback = Callable[[RefreshOutcome], None]


@dataclass(eq=False)
class QueuedRequest:
    """A request parked until the current refresh episode ends.

    Compared by identity so a timed-out waiter can remove exactly its entry.
    """

    request: OutboundRequest
    resume: ResumeCallback
