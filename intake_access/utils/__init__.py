"""Utility functions package for the intake access layer.

Exposed functions:
    format_duration: Formats time durations into human-readable strings.
    seconds_until: Remaining seconds until a UTC timestamp.
    retry_async: Tenacity-backed retry for transient async failures.
"""

from .helpers import format_duration, seconds_until
from .retry import retry_async

__all__ = ["format_duration", "seconds_until", "retry_async"]
