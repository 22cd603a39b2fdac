"""Authenticated HTTP access layer for the trust intake API.

Attaches bearer credentials to outbound requests, coordinates a single
shared credential refresh when requests fail authentication, and replays
parked requests once the refresh completes.
"""

from .access import (
    AccessInterceptor,
    AccessResponse,
    AiohttpExecutor,
    OutboundRequest,
    RefreshCoordinator,
    RefreshOutcome,
    RefreshState,
    RequestQueue,
)
from .application_context import AccessContext
from .credentials import (
    Credential,
    CredentialIssuer,
    CredentialStore,
    FileCredentialStore,
    MemoryCredentialStore,
)
from .errors import (
    AccessError,
    AuthenticationFailure,
    IssuanceError,
    QueueFullError,
    RefreshTimeoutError,
    TransportError,
)

__all__ = [
    "AccessContext",
    "AccessError",
    "AccessInterceptor",
    "AccessResponse",
    "AiohttpExecutor",
    "AuthenticationFailure",
    "Credential",
    "CredentialIssuer",
    "CredentialStore",
    "FileCredentialStore",
    "IssuanceError",
    "MemoryCredentialStore",
    "OutboundRequest",
    "QueueFullError",
    "RefreshCoordinator",
    "RefreshOutcome",
    "RefreshState",
    "RefreshTimeoutError",
    "RequestQueue",
    "TransportError",
]
