"""Access interceptor: the public entry point of the access layer."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from ..constants import AUTH_FAILURE_STATUS, QUEUE_RESIDENCY_TIMEOUT_SECONDS
from ..credentials.store import CredentialStore
from ..credentials.types import Credential
from ..errors.handling import error_status, log_error
from ..errors.internal import AccessError, AuthenticationFailure, RefreshTimeoutError
from ..logging_config import error_aggregator
from .coordinator import RefreshCoordinator
from .request_queue import RequestQueue
from .types import OutboundRequest, RefreshOutcome, RequestExecutor

T = TypeVar("T")


class AccessInterceptor:
    """Wraps outbound requests with bearer credentials and 401 recovery.

    Each request may trigger at most one refresh and is re-dispatched at most
    once. A request that still fails authentication after carrying a freshly
    issued credential raises :class:`AuthenticationFailure`.
    """

    def __init__(
        self,
        executor: RequestExecutor,
        store: CredentialStore,
        coordinator: RefreshCoordinator,
        *,
        auth_failure_status: int = AUTH_FAILURE_STATUS,
        queue_timeout: float | None = QUEUE_RESIDENCY_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the interceptor.

        Args:
            executor: Async callable sending an OutboundRequest.
            store: Credential store shared with the coordinator.
            coordinator: Single-flight refresh coordinator.
            auth_failure_status: Response status that signals a dead credential.
            queue_timeout: Max seconds a parked request waits for a refresh
                outcome; None or <= 0 waits indefinitely.
        """
        self._executor = executor
        self._store = store
        self._coordinator = coordinator
        self._auth_failure_status = auth_failure_status
        self._queue_timeout = queue_timeout if queue_timeout and queue_timeout > 0 else None

    @property
    def queue(self) -> RequestQueue:
        return self._coordinator.queue

    async def execute(self, request: OutboundRequest) -> Any:
        """Send ``request`` with the current credential, recovering once from a 401.

        Args:
            request: The request to send.

        Returns:
            The executor's response (success or non-auth error) unchanged.

        Raises:
            IssuanceError: If the refresh this request waited on failed.
            AuthenticationFailure: If the request failed authentication again
                after being replayed with a fresh credential.
            QueueFullError: If too many requests are already waiting on a refresh.
        """
        if not request.authenticated:
            return await self._executor(request)

        refreshed = False
        if self._coordinator.is_refreshing:
            # Current token is known to be dead; wait for its replacement.
            credential: Credential | None = await self._wait_in_queue(request)
            refreshed = True
        else:
            credential = self._store.read()
            if credential is not None and credential.is_expired():
                logging.debug(f"⌛ Stored credential expired; refreshing before dispatch url={request.url}")
                credential = await self._coordinator.refresh_once()
                refreshed = True

        response = await self._dispatch(request, credential)
        if not self._is_auth_failure(response):
            return response
        if refreshed:
            raise self._terminal_failure(request, response)

        logging.info(
            f"🔐 Authentication failure, recovering method={request.method} url={request.url}"
        )
        credential = await self._recover(request, credential)
        response = await self._dispatch(request, credential)
        if self._is_auth_failure(response):
            raise self._terminal_failure(request, response)
        error_aggregator.record_recovery("auth")
        return response

    async def call_with_refresh(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation``; if it raises a 401-carrying error, refresh once and rerun.

        Access-layer errors (including AuthenticationFailure) are never retried.
        A second 401 from the rerun raises AuthenticationFailure.
        """
        try:
            return await operation()
        except AccessError:
            raise
        except Exception as e:
            if error_status(e) != self._auth_failure_status:
                raise
            logging.info(f"🔐 Operation rejected with {self._auth_failure_status}; refreshing once")
            await self._coordinator.refresh_once()
        try:
            return await operation()
        except AccessError:
            raise
        except Exception as e:
            if error_status(e) != self._auth_failure_status:
                raise
            failure = AuthenticationFailure(
                f"Operation rejected with {self._auth_failure_status} after refresh",
                response=getattr(e, "response", None),
                data={"status": self._auth_failure_status},
            )
            log_error("Authentication failed after credential refresh", failure, level=logging.WARNING)
            raise failure from e

    async def _recover(
        self, request: OutboundRequest, sent: Credential | None
    ) -> Credential:
        """Obtain the credential for the single replay of ``request``."""
        current = self._store.read()
        if (
            current is not None
            and not current.is_expired()
            and (sent is None or current.value != sent.value)
        ):
            # Another episode rotated the credential while this request was in flight.
            logging.debug(f"♻️ Replaying with already-rotated credential url={request.url}")
            return current
        if self._coordinator.is_refreshing:
            return await self._wait_in_queue(request)
        return await self._coordinator.refresh_once()

    async def _wait_in_queue(self, request: OutboundRequest) -> Credential:
        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[RefreshOutcome] = loop.create_future()

        def resume(outcome: RefreshOutcome) -> None:
            if not waiter.done():
                waiter.set_result(outcome)

        entry = self.queue.enqueue(request, resume)
        try:
            async with asyncio.timeout(self._queue_timeout):
                outcome = await waiter
        except TimeoutError as e:
            self.queue.discard(entry)
            raise RefreshTimeoutError(
                f"Gave up waiting {self._queue_timeout}s for credential refresh",
                data={"url": request.url, "timeout": self._queue_timeout},
            ) from e
        except asyncio.CancelledError:
            self.queue.discard(entry)
            raise
        return outcome.unwrap()

    async def _dispatch(self, request: OutboundRequest, credential: Credential | None) -> Any:
        return await self._executor(request.with_credential(credential))

    def _is_auth_failure(self, response: Any) -> bool:
        return getattr(response, "status", None) == self._auth_failure_status

    def _terminal_failure(self, request: OutboundRequest, response: Any) -> AuthenticationFailure:
        failure = AuthenticationFailure(
            f"{request.method} {request.url} rejected with {self._auth_failure_status} after refresh",
            response=response,
            data={"status": self._auth_failure_status, "url": request.url},
        )
        log_error("Authentication failed after credential refresh", failure, level=logging.WARNING)
        return failure
