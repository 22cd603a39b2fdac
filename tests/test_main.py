from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from intake_access.access.types import AccessResponse
from intake_access.credentials.store import MemoryCredentialStore
from intake_access.credentials.types import Credential
from intake_access.errors.internal import AuthenticationFailure, IssuanceError, TransportError
from intake_access.main import build_parser, cli, main


def _mock_context(response=None):
    ctx = MagicMock()
    ctx.__aenter__ = AsyncMock(return_value=ctx)
    ctx.__aexit__ = AsyncMock(return_value=False)
    ctx.store = MemoryCredentialStore(Credential("T1"))
    ctx.execute = AsyncMock(return_value=response or AccessResponse(200, {}, b'{"ok": true}'))
    return ctx


def test_parser_accepts_request_arguments():
    args = build_parser().parse_args(["POST", "/trusts", "--json", '{"a": 1}'])
    assert (args.method, args.path, args.json_body) == ("POST", "/trusts", '{"a": 1}')
    assert not args.health_check


@pytest.mark.asyncio
async def test_main_health_check():
    ctx = _mock_context()
    with patch("intake_access.main.AccessContext.create", new_callable=AsyncMock, return_value=ctx):
        assert await main(["--health-check"]) == 0
    ctx.__aenter__.assert_awaited_once()
    ctx.__aexit__.assert_awaited_once()


@pytest.mark.asyncio
async def test_main_runs_request_and_prints_body(capsys):
    ctx = _mock_context()
    with patch("intake_access.main.AccessContext.create", new_callable=AsyncMock, return_value=ctx):
        code = await main(["get", "/trusts/1"])

    assert code == 0
    ctx.build_request.assert_called_once_with("get", "/trusts/1", json=None)
    assert capsys.readouterr().out == '{"ok": true}\n'


@pytest.mark.asyncio
async def test_main_non_2xx_response_exit_code():
    ctx = _mock_context(AccessResponse(404, {}, b"missing"))
    with patch("intake_access.main.AccessContext.create", new_callable=AsyncMock, return_value=ctx):
        assert await main(["GET", "/trusts/404"]) == 1


@pytest.mark.asyncio
async def test_main_passes_json_body():
    ctx = _mock_context()
    with patch("intake_access.main.AccessContext.create", new_callable=AsyncMock, return_value=ctx):
        await main(["POST", "/trusts", "--json", '{"name": "x"}'])
    ctx.build_request.assert_called_once_with("POST", "/trusts", json={"name": "x"})


@pytest.mark.asyncio
async def test_main_missing_arguments():
    with patch("intake_access.main.AccessContext.create", new_callable=AsyncMock) as mock_create:
        assert await main(["GET"]) == 2
    mock_create.assert_not_called()


@pytest.mark.parametrize(
    ("error", "code"),
    [
        (IssuanceError("HTTP 500 from credential issuance", data={"status": 500}), 3),
        (AuthenticationFailure("still 401"), 3),
        (TransportError("connection reset"), 1),
        (ValueError("bad json"), 2),
        (KeyboardInterrupt(), 130),
    ],
)
def test_cli_exit_codes(error, code):
    with patch("intake_access.main.LoggerConfigurator") as mock_configurator, \
         patch("intake_access.main.main", new_callable=AsyncMock, side_effect=error), \
         patch("intake_access.main.log_error"):
        assert cli(["GET", "/trusts"]) == code
    mock_configurator.return_value.configure.assert_called_once()


def test_cli_success():
    with patch("intake_access.main.LoggerConfigurator"), \
         patch("intake_access.main.main", new_callable=AsyncMock, return_value=0):
        assert cli(["--health-check"]) == 0
