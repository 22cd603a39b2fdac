from __future__ import annotations

import logging

import aiohttp

from ..logging_config import log_structured_error
from .internal import (
    AccessError,
    AuthenticationFailure,
    IssuanceError,
    QueueFullError,
    TransportError,
)


def classify_error(error: BaseException) -> str:
    """Map an exception to the aggregation category used in structured logs."""
    if isinstance(error, IssuanceError):
        return "issuance"
    if isinstance(error, AuthenticationFailure):
        return "auth"
    if isinstance(error, QueueFullError):
        return "queue"
    if isinstance(error, TransportError | aiohttp.ClientError | OSError | TimeoutError):
        return "network"
    if isinstance(error, AccessError):
        return "access"
    return "unknown"


def log_error(
    message: str,
    error: BaseException,
    context: dict | None = None,
    level: int = logging.ERROR,
) -> None:
    """Logs an error message with the associated exception details.

    Formats and logs an error message along with the string representation
    of the exception using structured logging for aggregation. Any ``data``
    attached to an access-layer error is merged into the context.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging.
        level: Logging level used for the record.
    """
    merged: dict = {}
    if isinstance(error, AccessError) and error.data:
        merged.update(error.data)
    if context:
        merged.update(context)
    log_structured_error(
        error_type=classify_error(error),
        message=f"{message}: {str(error)}",
        exception=error if isinstance(error, Exception) else None,
        context=merged or None,
        level=level,
    )


def error_status(error: BaseException) -> int | None:
    """Return the HTTP status carried by an exception, if any.

    Understands ``aiohttp.ClientResponseError`` as well as access-layer
    errors that recorded a ``status`` in their data.
    """
    status = getattr(error, "status", None)
    if isinstance(status, int):
        return status
    if isinstance(error, AccessError):
        data_status = error.data.get("status")
        if isinstance(data_status, int):
            return data_status
    response = getattr(error, "response", None)
    response_status = getattr(response, "status", None)
    return response_status if isinstance(response_status, int) else None


__all__ = ["classify_error", "error_status", "log_error"]
