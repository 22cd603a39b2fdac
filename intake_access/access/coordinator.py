"""Single-flight credential refresh."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..constants import (
    ISSUANCE_MAX_ATTEMPTS,
    ISSUANCE_RETRY_MAX_WAIT_SECONDS,
    ISSUANCE_TIMEOUT_SECONDS,
)
from ..credentials.issuer import CredentialIssuer
from ..credentials.store import CredentialStore
from ..credentials.types import Credential
from ..errors.handling import log_error
from ..errors.internal import IssuanceError, RefreshTimeoutError
from ..logging_config import error_aggregator
from ..utils import retry_async
from .request_queue import RequestQueue
from .types import RefreshOutcome, RefreshState


def _is_transport_failure(error: BaseException) -> bool:
    """Issuance failures worth another attempt: no HTTP answer was received."""
    return isinstance(error, IssuanceError) and error.status is None


def _mark_retrieved(fut: asyncio.Future[Any]) -> None:
    # Episodes nobody awaited must not log "exception was never retrieved".
    if not fut.cancelled():
        fut.exception()


class RefreshCoordinator:
    """Ensures at most one credential issuance call is in flight.

    State machine:
        IDLE --refresh requested--> REFRESHING (shared outcome created, issuance task started)
        REFRESHING --refresh requested--> REFRESHING (caller joins the shared outcome)
        REFRESHING --issued--> IDLE (store written, waiters resumed with the credential)
        REFRESHING --failed--> IDLE (store cleared, waiters resumed with IssuanceError)

    Every transition runs without an intervening suspension point, so the
    event loop provides the critical section.
    """

    def __init__(
        self,
        issuer: CredentialIssuer,
        store: CredentialStore,
        queue: RequestQueue | None = None,
        *,
        issuance_timeout: float = ISSUANCE_TIMEOUT_SECONDS,
        max_attempts: int = ISSUANCE_MAX_ATTEMPTS,
        retry_max_wait: float = ISSUANCE_RETRY_MAX_WAIT_SECONDS,
    ) -> None:
        self.issuer = issuer
        self.store = store
        self.queue = queue if queue is not None else RequestQueue()
        self.queue.bind(lambda: self.is_refreshing)
        self.issuance_timeout = issuance_timeout
        self.max_attempts = max_attempts
        self.retry_max_wait = retry_max_wait
        self._state = RefreshState.IDLE
        self._outcome: asyncio.Future[Credential] | None = None
        self._task: asyncio.Task[None] | None = None
        # Diagnostics
        self.issue_count = 0
        self.episode_count = 0

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def is_refreshing(self) -> bool:
        return self._state is RefreshState.REFRESHING

    def start_refresh(self) -> asyncio.Future[Credential]:
        """Return the shared outcome of the running episode, starting one if idle."""
        if self._outcome is None:
            loop = asyncio.get_running_loop()
            fut: asyncio.Future[Credential] = loop.create_future()
            fut.add_done_callback(_mark_retrieved)
            self._outcome = fut
            self._state = RefreshState.REFRESHING
            self.episode_count += 1
            logging.info(f"🔄 Credential refresh started episode={self.episode_count}")
            # Own task: a cancelled caller cannot strand the episode.
            self._task = loop.create_task(
                self._run_episode(fut), name=f"credential-refresh-{self.episode_count}"
            )
        else:
            logging.debug(f"🤝 Joined in-flight credential refresh episode={self.episode_count}")
        return self._outcome

    async def refresh_once(self) -> Credential:
        """Await the current or a newly started refresh episode.

        Returns:
            The freshly issued Credential.

        Raises:
            IssuanceError: If the episode failed.
        """
        return await asyncio.shield(self.start_refresh())

    async def ensure_credential(self) -> Credential:
        """Return a usable stored credential, refreshing when absent or expired."""
        credential = self.store.read()
        if credential is not None and not credential.is_expired():
            return credential
        return await self.refresh_once()

    async def aclose(self) -> None:
        """Cancel an in-flight episode; its waiters receive an IssuanceError."""
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run_episode(self, fut: asyncio.Future[Credential]) -> None:
        try:
            credential = await retry_async(
                self._attempt_issue,
                should_retry=_is_transport_failure,
                max_attempts=self.max_attempts,
                max_wait=self.retry_max_wait,
                context="credential issuance",
            )
        except asyncio.CancelledError:
            self._finish(fut, RefreshOutcome(error=IssuanceError("Credential refresh cancelled")))
            raise
        except IssuanceError as e:
            self._finish(fut, RefreshOutcome(error=e))
        except Exception as e:  # noqa: BLE001
            wrapped = IssuanceError(f"Unexpected issuance failure: {type(e).__name__}: {e}")
            wrapped.__cause__ = e
            self._finish(fut, RefreshOutcome(error=wrapped))
        else:
            self._finish(fut, RefreshOutcome(credential=credential))

    async def _attempt_issue(self) -> Credential:
        self.issue_count += 1
        try:
            async with asyncio.timeout(self.issuance_timeout):
                return await self.issuer.issue()
        except TimeoutError as e:
            raise RefreshTimeoutError(
                f"Credential issuance exceeded {self.issuance_timeout}s",
                data={"timeout": self.issuance_timeout},
            ) from e

    def _finish(self, fut: asyncio.Future[Credential], outcome: RefreshOutcome) -> None:
        """Complete the episode: persist, return to IDLE, resume all waiters."""
        if outcome.credential is not None:
            self.store.write(outcome.credential)
        else:
            self.store.clear()
        self._outcome = None
        self._task = None
        self._state = RefreshState.IDLE
        if not fut.done():
            if outcome.credential is not None:
                fut.set_result(outcome.credential)
            else:
                fut.set_exception(outcome.error)
        resumed = self.queue.drain(outcome)
        if outcome.succeeded:
            error_aggregator.record_recovery("issuance")
            logging.info(
                f"✅ Credential refresh succeeded episode={self.episode_count} resumed={resumed}"
            )
        else:
            log_error(
                "Credential refresh failed",
                outcome.error,
                context={"episode": self.episode_count, "resumed": resumed},
            )
