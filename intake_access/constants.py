"""
Configuration constants for the intake access layer

This module contains all configurable constants used by the authenticated HTTP
access layer. Each constant can be overridden by setting an environment
variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Attempts to parse the environment variable as a float. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_str(name: str, default: str) -> str:
    """Retrieve a non-empty string value from an environment variable."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


# Remote API
AUTH_API_URL = _get_env_str(
    "AUTH_API_URL", "https://hongkongbackend.onrender.com"
).rstrip("/")
AUTH_BOOTSTRAP_PATH = _get_env_str(
    "AUTH_BOOTSTRAP_PATH", "/auth/bootstrap"
)  # Issuance endpoint used for both bootstrap and refresh
AUTH_BOOTSTRAP_METHOD = _get_env_str("AUTH_BOOTSTRAP_METHOD", "GET").upper()
AUTH_FAILURE_STATUS = _get_env_int(
    "AUTH_FAILURE_STATUS", 401
)  # The only response status that triggers a refresh

# Credential persistence
CREDENTIAL_STORE_PATH = _get_env_str(
    "CREDENTIAL_STORE_PATH", "intake_credentials.json"
)
CREDENTIAL_EXPIRY_SAFETY_BUFFER_SECONDS = _get_env_int(
    "CREDENTIAL_EXPIRY_SAFETY_BUFFER_SECONDS", 30
)  # Subtracted from expires_in so a nearly-dead token is treated as expired

# Issuance bounds
ISSUANCE_TIMEOUT_SECONDS = _get_env_float(
    "ISSUANCE_TIMEOUT_SECONDS", 30.0
)  # Upper bound for one refresh episode's network call
ISSUANCE_MAX_ATTEMPTS = _get_env_int(
    "ISSUANCE_MAX_ATTEMPTS", 1
)  # Attempts per episode for transport-level failures (1 = no retry)
ISSUANCE_RETRY_MAX_WAIT_SECONDS = _get_env_float(
    "ISSUANCE_RETRY_MAX_WAIT_SECONDS", 10.0
)

# Request queue bounds
REQUEST_QUEUE_MAX_SIZE = _get_env_int(
    "REQUEST_QUEUE_MAX_SIZE", 256
)  # Requests allowed to wait on a single refresh episode
QUEUE_RESIDENCY_TIMEOUT_SECONDS = _get_env_float(
    "QUEUE_RESIDENCY_TIMEOUT_SECONDS", 60.0
)  # How long a parked request waits for the episode outcome

# Outbound request defaults
HTTP_REQUEST_TIMEOUT_SECONDS = _get_env_int(
    "HTTP_REQUEST_TIMEOUT_SECONDS", 30
)  # Total timeout for requests sent by the default executor

# Error alerting
ISSUANCE_FAILURE_ALERT_THRESHOLD = _get_env_int(
    "ISSUANCE_FAILURE_ALERT_THRESHOLD", 3
)  # Consecutive failed refresh episodes before a critical alert
AUTH_FAILURE_ALERT_THRESHOLD = _get_env_int(
    "AUTH_FAILURE_ALERT_THRESHOLD", 5
)  # Consecutive terminal authentication failures before a critical alert
