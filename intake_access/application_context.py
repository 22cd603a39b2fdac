"""Central application context wiring the access layer's shared resources."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from .access.coordinator import RefreshCoordinator
from .access.executor import AiohttpExecutor
from .access.interceptor import AccessInterceptor
from .access.request_queue import RequestQueue
from .access.types import OutboundRequest
from .constants import AUTH_API_URL, CREDENTIAL_STORE_PATH
from .credentials.issuer import CredentialIssuer
from .credentials.store import CredentialStore, FileCredentialStore
from .credentials.types import Credential
from .errors.handling import log_error
from .errors.internal import IssuanceError


class AccessContext:
    """Holds the HTTP session, credential store and interceptor for one process."""

    session: aiohttp.ClientSession | None
    store: CredentialStore
    coordinator: RefreshCoordinator | None
    interceptor: AccessInterceptor | None
    _started: bool
    _lock: asyncio.Lock

    def __init__(self, store: CredentialStore, base_url: str = AUTH_API_URL) -> None:
        self.store = store
        self.base_url = base_url.rstrip("/")
        self.session = None
        self.coordinator = None
        self.interceptor = None
        self._owns_session = False
        self._started = False
        self._lock = asyncio.Lock()

    # ------------------------- Construction ------------------------- #
    @classmethod
    async def create(
        cls,
        *,
        store: CredentialStore | None = None,
        session: aiohttp.ClientSession | None = None,
        base_url: str = AUTH_API_URL,
    ) -> AccessContext:
        """Create and wire a new AccessContext.

        Args:
            store: Credential store; defaults to a FileCredentialStore at
                ``CREDENTIAL_STORE_PATH``.
            session: Existing aiohttp session to reuse; one is created (and
                later closed) when omitted.
            base_url: Root URL of the remote API.

        Returns:
            A wired, not yet started, AccessContext.
        """
        ctx = cls(store or FileCredentialStore(CREDENTIAL_STORE_PATH), base_url)
        logging.debug("🧪 Creating access context")
        if session is None:
            session = aiohttp.ClientSession()
            ctx._owns_session = True
            logging.debug("🔗 HTTP session created")
        ctx.session = session
        issuer = CredentialIssuer(session, base_url=ctx.base_url)
        ctx.coordinator = RefreshCoordinator(issuer, ctx.store, RequestQueue())
        ctx.interceptor = AccessInterceptor(AiohttpExecutor(session), ctx.store, ctx.coordinator)
        return ctx

    # --------------------------- Lifecycle -------------------------- #
    async def start(self) -> Credential:
        """Bootstrap: make sure a usable credential exists before serving requests.

        Idempotent. Reuses a persisted, unexpired credential when present.

        Raises:
            IssuanceError: If no credential could be issued.
        """
        async with self._lock:
            if self.coordinator is None:
                raise RuntimeError("AccessContext.create() must be used to build the context")
            try:
                credential = await self.coordinator.ensure_credential()
            except IssuanceError as e:
                log_error("Credential bootstrap failed", e)
                raise
            self._started = True
            logging.debug("🚀 Access context started")
            return credential

    async def shutdown(self) -> None:
        """Cancel any in-flight refresh and close the owned HTTP session."""
        async with self._lock:
            logging.info("🔻 Access context shutdown initiated")
            if self.coordinator is not None:
                await self.coordinator.aclose()
            await self._close_http_session()
            self._started = False
            logging.info("✅ Access context shutdown complete")

    async def _close_http_session(self) -> None:
        if not self.session:
            return
        if not self._owns_session:
            self.session = None
            return
        try:
            await self.session.close()
        except (aiohttp.ClientError, OSError, ValueError) as e:
            logging.error(f"💥 Error closing HTTP session: {str(e)}")
        finally:
            self.session = None

    @property
    def started(self) -> bool:
        return self._started

    async def __aenter__(self) -> AccessContext:
        try:
            await self.start()
        except BaseException:
            # __aexit__ never runs when entry fails; release the session here.
            await self.shutdown()
            raise
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.shutdown()

    # ---------------------------- Requests -------------------------- #
    def build_request(self, method: str, path: str, **kwargs: Any) -> OutboundRequest:
        """Build an OutboundRequest for ``path`` relative to the API root."""
        url = path if path.startswith(("http://", "https://")) else f"{self.base_url}/{path.lstrip('/')}"
        return OutboundRequest(method.upper(), url, **kwargs)

    async def execute(self, request: OutboundRequest) -> Any:
        if self.interceptor is None:
            raise RuntimeError("AccessContext.create() must be used to build the context")
        return await self.interceptor.execute(request)
