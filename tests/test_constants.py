import importlib

from intake_access import constants
from intake_access.constants import _get_env_float, _get_env_int, _get_env_str


def test_get_env_int_valid_positive_integer(monkeypatch):
    """Test parsing a valid positive integer from environment variable."""
    monkeypatch.setenv("TEST_VAR", "123")
    assert _get_env_int("TEST_VAR", 999) == 123


def test_get_env_int_invalid_string(monkeypatch, capsys):
    """Test handling of invalid string value in environment variable."""
    monkeypatch.setenv("TEST_VAR", "abc")
    assert _get_env_int("TEST_VAR", 999) == 999
    assert "Invalid integer value for TEST_VAR" in capsys.readouterr().out


def test_get_env_int_float_string(monkeypatch):
    """Test handling of float string value in environment variable."""
    monkeypatch.setenv("TEST_VAR", "3.14")
    assert _get_env_int("TEST_VAR", 999) == 999


def test_get_env_int_unset(monkeypatch):
    monkeypatch.delenv("TEST_VAR", raising=False)
    assert _get_env_int("TEST_VAR", 7) == 7


def test_get_env_float_valid(monkeypatch):
    monkeypatch.setenv("TEST_VAR", "0.25")
    assert _get_env_float("TEST_VAR", 1.0) == 0.25


def test_get_env_float_invalid(monkeypatch, capsys):
    monkeypatch.setenv("TEST_VAR", "soon")
    assert _get_env_float("TEST_VAR", 1.5) == 1.5
    assert "Invalid float value" in capsys.readouterr().out


def test_get_env_str(monkeypatch):
    monkeypatch.setenv("TEST_VAR", "  https://api.test  ")
    assert _get_env_str("TEST_VAR", "x") == "https://api.test"
    monkeypatch.setenv("TEST_VAR", "   ")
    assert _get_env_str("TEST_VAR", "x") == "x"


def test_constants_follow_environment(monkeypatch):
    monkeypatch.setenv("AUTH_API_URL", "https://auth.example/")
    monkeypatch.setenv("AUTH_BOOTSTRAP_METHOD", "post")
    monkeypatch.setenv("REQUEST_QUEUE_MAX_SIZE", "8")
    try:
        reloaded = importlib.reload(constants)
        assert reloaded.AUTH_API_URL == "https://auth.example"
        assert reloaded.AUTH_BOOTSTRAP_METHOD == "POST"
        assert reloaded.REQUEST_QUEUE_MAX_SIZE == 8
    finally:
        monkeypatch.undo()
        importlib.reload(constants)


def test_default_auth_failure_status():
    assert constants.AUTH_FAILURE_STATUS == 401
