"""Credential issuance HTTP client."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

import aiohttp

from ..constants import (
    AUTH_API_URL,
    AUTH_BOOTSTRAP_METHOD,
    AUTH_BOOTSTRAP_PATH,
    CREDENTIAL_EXPIRY_SAFETY_BUFFER_SECONDS,
    ISSUANCE_TIMEOUT_SECONDS,
)
from ..errors.internal import IssuanceError
from ..utils import format_duration
from .types import Credential


class CredentialIssuer:
    """Client for the bootstrap endpoint that mints bearer credentials.

    One call to :meth:`issue` is exactly one network round-trip. The issuer
    never retries and never writes to a credential store; both are the
    refresh coordinator's job.
    """

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        base_url: str = AUTH_API_URL,
        path: str = AUTH_BOOTSTRAP_PATH,
        method: str = AUTH_BOOTSTRAP_METHOD,
        timeout: float = ISSUANCE_TIMEOUT_SECONDS,
        safety_buffer: int = CREDENTIAL_EXPIRY_SAFETY_BUFFER_SECONDS,
    ):
        """Initialize the issuer.

        Args:
            http_session: HTTP session for making requests.
            base_url: Root URL of the remote API.
            path: Path of the issuance endpoint.
            method: HTTP method used for issuance (GET or POST).
            timeout: Total timeout for the issuance call in seconds.
            safety_buffer: Seconds subtracted from ``expires_in``.
        """
        if http_session is None:
            raise TypeError("http_session cannot be None")
        self.session = http_session
        self.url = f"{base_url.rstrip('/')}/{path.lstrip('/')}"
        self.method = method.upper()
        self.timeout = timeout
        self.safety_buffer = safety_buffer

    async def issue(self) -> Credential:
        """Mint a fresh credential.

        Returns:
            The newly issued Credential.

        Raises:
            IssuanceError: On network failure, timeout, non-2xx status or a
                malformed response body.
        """
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with self.session.request(
                self.method, self.url, timeout=timeout
            ) as resp:
                if not 200 <= resp.status < 300:
                    raise IssuanceError(
                        f"HTTP {resp.status} from credential issuance",
                        data={"status": resp.status, "url": self.url},
                    )
                try:
                    payload = await resp.json(content_type=None)
                except (aiohttp.ContentTypeError, ValueError) as e:
                    raise IssuanceError(
                        "Malformed credential issuance response",
                        data={"status": resp.status, "url": self.url},
                    ) from e
                credential = self._parse(payload, resp.status)
        except TimeoutError as e:
            raise IssuanceError(
                "Credential issuance timeout", data={"url": self.url}
            ) from e
        except aiohttp.ClientError as e:
            raise IssuanceError(
                f"Network error during credential issuance: {e}",
                data={"url": self.url},
            ) from e
        lifetime = (
            (credential.expires_at - datetime.now(UTC)).total_seconds()
            if credential.expires_at
            else None
        )
        logging.info(f"🔑 Credential issued (lifetime {format_duration(lifetime)})")
        return credential

    def _parse(self, payload: Any, status: int) -> Credential:
        """Build a Credential from the issuance body.

        Accepts ``access_token`` or ``token`` for the value and ``expires_in``
        or ``expiresInSeconds`` for the lifetime.
        """
        if not isinstance(payload, dict):
            raise IssuanceError(
                "Credential issuance response is not an object",
                data={"status": status, "url": self.url},
            )
        token = payload.get("access_token") or payload.get("token")
        if not isinstance(token, str) or not token:
            raise IssuanceError(
                "Missing token in credential issuance response",
                data={"status": status, "url": self.url},
            )
        expires_in = payload.get("expires_in", payload.get("expiresInSeconds"))
        if expires_in is None:
            return Credential(token)
        if isinstance(expires_in, bool) or not isinstance(expires_in, int | float):
            raise IssuanceError(
                "Invalid expiry in credential issuance response",
                data={"status": status, "url": self.url},
            )
        # Buffer never eats more than half the lifetime; a fresh token must not be born expired
        buffer = min(self.safety_buffer, expires_in / 2)
        safe_expires = max(expires_in - buffer, 0)
        return Credential(token, datetime.now(UTC) + timedelta(seconds=safe_expires))
