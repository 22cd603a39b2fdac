"""
Fakes for access-layer tests: issuer, request executor and aiohttp session.
"""

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from intake_access.access.types import AccessResponse, OutboundRequest
from intake_access.credentials.types import Credential

# Issuance response bodies
ISSUANCE_SUCCESS = {"access_token": "T2", "expires_in": 3600}
ISSUANCE_SUCCESS_ALT_KEYS = {"token": "T3", "expiresInSeconds": 600}
ISSUANCE_NO_EXPIRY = {"access_token": "T4"}
ISSUANCE_MISSING_TOKEN = {"expires_in": 3600}


class FakeIssuer:
    """Issuer whose calls block on a gate until the test releases them."""

    def __init__(self, tokens: list[str] | None = None, error: Exception | None = None):
        self.tokens = list(tokens or ["T2"])
        self.error = error
        self.calls = 0
        self.gate = asyncio.Event()
        self.gate.set()

    def hold(self) -> None:
        self.gate.clear()

    def release(self) -> None:
        self.gate.set()

    async def issue(self) -> Credential:
        self.calls += 1
        await self.gate.wait()
        if self.error is not None:
            raise self.error
        token = self.tokens[min(self.calls, len(self.tokens)) - 1]
        return Credential(token, datetime.now(UTC) + timedelta(hours=1))


class ScriptedExecutor:
    """Request executor answering from a per-token policy.

    ``accept`` decides whether an Authorization header value is accepted;
    rejected requests get a 401. Every dispatched request is recorded in
    order before the executor yields.
    """

    def __init__(self, accept: Callable[[str | None], bool] | None = None):
        self.accept = accept or (lambda auth: auth == "Bearer T2")
        self.sent: list[OutboundRequest] = []
        self.gate: asyncio.Event | None = None

    async def __call__(self, request: OutboundRequest) -> AccessResponse:
        self.sent.append(request)
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        status = 200 if self.accept(request.authorization) else 401
        return AccessResponse(status, {}, request.url.encode())

    def auths(self) -> list[str | None]:
        return [r.authorization for r in self.sent]

    def urls(self) -> list[str]:
        return [r.url for r in self.sent]


class FakeResp:
    def __init__(self, status: int, payload=None, json_exception: Exception | None = None, body: bytes = b""):
        self.status = status
        self._payload = payload
        self.json_exception = json_exception
        self.headers = {"Content-Type": "application/json"}
        self._body = body

    async def __aenter__(self):
        return self

    async def __aexit__(self, _exc_type, _exc, _tb):
        return False

    async def json(self, content_type=None):
        # Simulate asynchronous boundary
        await asyncio.sleep(0)
        if self.json_exception:
            raise self.json_exception
        return self._payload

    async def read(self):
        await asyncio.sleep(0)
        return self._body


class FakeSession:
    """Minimal stand-in for aiohttp.ClientSession.request()."""

    def __init__(self, resp: FakeResp | None = None, exception: Exception | None = None):
        self.resp = resp or FakeResp(200, dict(ISSUANCE_SUCCESS))
        self.exception = exception
        self.calls: list[dict] = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if self.exception:
            raise self.exception
        return self.resp

    async def close(self):
        self.closed = True


def make_request(path: str = "/trusts", **kwargs) -> OutboundRequest:
    return OutboundRequest("GET", f"https://api.test{path}", **kwargs)


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Spin the event loop until ``predicate`` holds."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0)
