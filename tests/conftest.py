import os

import pytest
import pytest_asyncio

# Keep waits short so a broken test fails fast instead of hanging.
os.environ.setdefault("ISSUANCE_TIMEOUT_SECONDS", "5")
os.environ.setdefault("QUEUE_RESIDENCY_TIMEOUT_SECONDS", "5")

from intake_access.access.coordinator import RefreshCoordinator  # noqa: E402
from intake_access.access.interceptor import AccessInterceptor  # noqa: E402
from intake_access.access.request_queue import RequestQueue  # noqa: E402
from intake_access.credentials.store import MemoryCredentialStore  # noqa: E402
from intake_access.credentials.types import Credential  # noqa: E402
from intake_access.errors.internal import IssuanceError  # noqa: E402
from intake_access.logging_config import error_aggregator  # noqa: E402
from tests.fixtures.access_fixtures import FakeIssuer, ScriptedExecutor  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_error_aggregator():
    """Keep aggregated error counts from leaking between tests."""
    yield
    error_aggregator.reset()


@pytest.fixture
def store():
    """Store primed with a stale-on-the-server token ``T1``."""
    return MemoryCredentialStore(Credential("T1"))


@pytest.fixture
def issuer():
    return FakeIssuer()


@pytest.fixture
def failing_issuer():
    return FakeIssuer(
        error=IssuanceError("HTTP 500 from credential issuance", data={"status": 500})
    )


@pytest.fixture
def executor():
    return ScriptedExecutor()


@pytest_asyncio.fixture
async def coordinator(issuer, store):
    coord = RefreshCoordinator(issuer, store, RequestQueue(max_size=16), issuance_timeout=5)
    yield coord
    await coord.aclose()


@pytest.fixture
def interceptor(executor, store, coordinator):
    return AccessInterceptor(executor, store, coordinator, queue_timeout=5)
