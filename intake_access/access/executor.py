"""Default aiohttp-backed request executor.

Any async callable ``(OutboundRequest) -> response-with-.status`` can stand in
for this; hosts with their own transport pass theirs to the interceptor.
"""

from __future__ import annotations

import logging

import aiohttp

from ..constants import HTTP_REQUEST_TIMEOUT_SECONDS
from ..errors.internal import TransportError
from .types import AccessResponse, OutboundRequest


class AiohttpExecutor:
    """Sends OutboundRequests through a shared aiohttp session."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        timeout: float = HTTP_REQUEST_TIMEOUT_SECONDS,
    ):
        if not session:
            raise ValueError("aiohttp session required")
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def __call__(self, request: OutboundRequest) -> AccessResponse:
        """Perform the request and buffer its body.

        Raises:
            TransportError: On connection failures and timeouts.
        """
        try:
            async with self._session.request(
                request.method,
                request.url,
                headers=dict(request.headers),
                params=request.params,
                json=request.json,
                data=request.data,
                timeout=self._timeout,
            ) as resp:
                body = await resp.read()
                logging.debug(
                    f"🌐 {request.method} {request.url} status={resp.status} bytes={len(body)}"
                )
                return AccessResponse(resp.status, dict(resp.headers), body)
        except TimeoutError as e:
            raise TransportError(
                f"Timeout during {request.method} {request.url}",
                data={"url": request.url},
            ) from e
        except (aiohttp.ClientError, OSError) as e:
            raise TransportError(
                f"Network error during {request.method} {request.url}: {e}",
                data={"url": request.url},
            ) from e
