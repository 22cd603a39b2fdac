"""Bounded FIFO of requests waiting on a refresh episode."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable

from ..constants import REQUEST_QUEUE_MAX_SIZE
from ..errors.internal import QueueFullError
from .types import OutboundRequest, QueuedRequest, RefreshOutcome, ResumeCallback


class RequestQueue:
    """Holds requests that hit an authentication failure mid-refresh.

    Entries may only be added while a refresh episode is running and are
    resumed exactly once, in enqueue order, when the episode ends.
    """

    def __init__(
        self,
        *,
        max_size: int = REQUEST_QUEUE_MAX_SIZE,
        is_open: Callable[[], bool] | None = None,
    ) -> None:
        """Initialize the queue.

        Args:
            max_size: Maximum number of parked requests per episode.
            is_open: Predicate telling whether an episode is running; the
                refresh coordinator installs it when it takes ownership.
        """
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.max_size = max_size
        self._entries: deque[QueuedRequest] = deque()
        self._is_open = is_open or (lambda: True)

    def bind(self, is_open: Callable[[], bool]) -> None:
        self._is_open = is_open

    def __len__(self) -> int:
        return len(self._entries)

    def enqueue(self, request: OutboundRequest, resume: ResumeCallback) -> QueuedRequest:
        """Park a request until the current refresh episode ends.

        Args:
            request: The request that will be replayed.
            resume: Callback invoked once with the episode's outcome.

        Returns:
            The queue entry (usable with :meth:`discard`).

        Raises:
            RuntimeError: If no refresh episode is running.
            QueueFullError: If the queue is at capacity.
        """
        if not self._is_open():
            raise RuntimeError("requests can only be queued while a refresh is in flight")
        if len(self._entries) >= self.max_size:
            raise QueueFullError(
                f"Refresh wait queue full ({self.max_size})",
                data={"max_size": self.max_size},
            )
        entry = QueuedRequest(request, resume)
        self._entries.append(entry)
        logging.debug(
            f"⏸️ Request parked for refresh method={request.method} url={request.url} position={len(self._entries)}"
        )
        return entry

    def discard(self, entry: QueuedRequest) -> bool:
        """Remove an entry that gave up waiting. False if already drained."""
        try:
            self._entries.remove(entry)
        except ValueError:
            return False
        return True

    def drain(self, outcome: RefreshOutcome) -> int:
        """Resume every parked request with ``outcome`` in FIFO order.

        The queue is detached before any callback runs, so anything enqueued
        from inside a callback belongs to a later episode.

        Returns:
            Number of requests resumed.
        """
        entries = list(self._entries)
        self._entries.clear()
        for entry in entries:
            try:
                entry.resume(outcome)
            except Exception as e:  # noqa: BLE001
                # One broken waiter must not strand the rest.
                logging.error(
                    f"💥 Resume callback failed url={entry.request.url} error={type(e).__name__}: {e}"
                )
        if entries:
            verdict = "replay" if outcome.succeeded else "fail"
            logging.debug(f"▶️ Drained refresh queue count={len(entries)} action={verdict}")
        return len(entries)
