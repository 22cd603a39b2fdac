"""Credential value type shared by the store, the issuer and the interceptor."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime


@dataclass(frozen=True)
class Credential:
    """Opaque bearer credential.

    Attributes:
        value: The bearer token attached to outbound requests.
        expires_at: Advisory UTC expiry. Only used to skip a doomed call;
            the authoritative expiry signal is a failed request.
    """

    value: str
    expires_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("credential value must be a non-empty string")
        if self.expires_at is not None and self.expires_at.tzinfo is None:
            raise ValueError("expires_at must be timezone-aware")

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now(UTC)) >= self.expires_at

    def authorization_header(self) -> str:
        return f"Bearer {self.value}"

    def __repr__(self) -> str:
        # Never render the raw token.
        return f"Credential(value='***', expires_at={self.expires_at!r})"
