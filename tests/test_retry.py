"""Tests for intake_access/utils/retry.py."""

import asyncio
import typing
from unittest.mock import patch

import pytest

from intake_access.utils.retry import retry_async


def _always(_error):
    return True


@pytest.mark.asyncio
async def test_retry_async_success_first_attempt():
    """Test successful operation on first attempt."""
    async def operation():
        await asyncio.sleep(0)
        return "success"

    assert await retry_async(operation, should_retry=_always, max_attempts=3) == "success"


@pytest.mark.asyncio
async def test_retry_async_success_after_retry():
    """Test successful operation after transient failures."""
    call_count = 0

    async def operation():
        nonlocal call_count
        call_count += 1
        if call_count < 3:
            raise ConnectionError("flaky")
        return "ok"

    with patch("intake_access.utils.retry.logging") as mock_logging:
        result = await retry_async(operation, should_retry=_always, max_attempts=3, max_wait=0)

    assert result == "ok"
    assert call_count == 3
    assert mock_logging.warning.call_count == 2


@pytest.mark.asyncio
async def test_retry_async_reraises_last_error_when_exhausted():
    call_count = 0

    async def operation():
        nonlocal call_count
        call_count += 1
        raise ConnectionError(f"attempt {call_count}")

    with pytest.raises(ConnectionError, match="attempt 2"):
        await retry_async(operation, should_retry=_always, max_attempts=2, max_wait=0)


@pytest.mark.asyncio
async def test_retry_async_does_not_retry_rejected_errors():
    call_count = 0

    async def operation():
        nonlocal call_count
        call_count += 1
        raise ValueError("permanent")

    with pytest.raises(ValueError):
        await retry_async(
            operation,
            should_retry=lambda e: isinstance(e, ConnectionError),
            max_attempts=5,
            max_wait=0,
        )
    assert call_count == 1


@pytest.mark.asyncio
async def test_retry_async_single_attempt_by_default():
    call_count = 0

    async def operation():
        nonlocal call_count
        call_count += 1
        raise ConnectionError("down")

    with pytest.raises(ConnectionError):
        await retry_async(operation, should_retry=_always)
    assert call_count == 1


def test_retry_async_is_generic_over_module_typevar():
    from intake_access.utils import retry as retry_module

    hints = typing.get_type_hints(retry_async)

    assert hints["return"] is retry_module.T
    assert getattr(retry_async, "__type_params__", ()) == ()
