"""Authenticated HTTP access: refresh coordination, wait queue and interceptor."""

from .coordinator import RefreshCoordinator
from .executor import AiohttpExecutor
from .interceptor import AccessInterceptor
from .request_queue import RequestQueue
from .types import (
    AccessResponse,
    OutboundRequest,
    QueuedRequest,
    RefreshOutcome,
    RefreshState,
)

__all__ = [
    "AccessInterceptor",
    "AccessResponse",
    "AiohttpExecutor",
    "OutboundRequest",
    "QueuedRequest",
    "RefreshCoordinator",
    "RefreshOutcome",
    "RefreshState",
    "RequestQueue",
]
