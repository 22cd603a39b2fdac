"""Console logging and error accounting for the access layer.

``LoggerConfigurator`` installs one colorlog handler on the root logger.
``log_structured_error`` is the sink behind ``errors.log_error``: it renders
an error line and feeds ``error_aggregator``, which counts failures per
category and raises a critical alert when refresh episodes or replays keep
failing back to back.
"""

import atexit
import logging
import os
import re
import sys
import threading
from collections import Counter
from typing import Any

import colorlog

from .constants import AUTH_FAILURE_ALERT_THRESHOLD, ISSUANCE_FAILURE_ALERT_THRESHOLD

_BEARER_PATTERN = re.compile(r"(Bearer\s+)[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE)

_LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "magenta",
}


class BearerRedactionFilter(logging.Filter):
    """Filter that masks bearer credentials that leak into log messages."""

    def filter(self, record):
        """Rewrite the record message in place; never suppresses a record."""
        message = record.getMessage()
        if "bearer" in message.lower():
            record.msg = _BEARER_PATTERN.sub(r"\1***", message)
            record.args = None
        return True


class ErrorAggregator:
    """Per-category failure counts with consecutive-failure alerting.

    Only categories listed in ``thresholds`` alert. A streak grows with each
    recorded error and drops to zero on ``record_recovery``.
    """

    def __init__(self, thresholds: dict[str, int] | None = None):
        self.thresholds = (
            thresholds
            if thresholds is not None
            else {
                "issuance": ISSUANCE_FAILURE_ALERT_THRESHOLD,
                "auth": AUTH_FAILURE_ALERT_THRESHOLD,
            }
        )
        self.lock = threading.Lock()
        self.totals: Counter[str] = Counter()
        self.streaks: Counter[str] = Counter()
        self.last_message: dict[str, str] = {}

    def record_error(self, category: str, message: str) -> int:
        """Count one failure; returns the category's current streak."""
        with self.lock:
            self.totals[category] += 1
            self.streaks[category] += 1
            self.last_message[category] = message
            return self.streaks[category]

    def record_recovery(self, category: str) -> None:
        with self.lock:
            self.streaks.pop(category, None)

    def should_alert(self, category: str) -> bool:
        """True each time the streak reaches a multiple of the threshold."""
        threshold = self.thresholds.get(category)
        if not threshold or threshold < 1:
            return False
        with self.lock:
            streak = self.streaks[category]
        return streak > 0 and streak % threshold == 0

    def get_error_summary(self) -> dict[str, dict[str, Any]]:
        with self.lock:
            return {
                category: {
                    "total_count": total,
                    "streak": self.streaks[category],
                    "last_message": self.last_message.get(category),
                }
                for category, total in self.totals.items()
            }

    def reset(self) -> None:
        with self.lock:
            self.totals.clear()
            self.streaks.clear()
            self.last_message.clear()

    def log_summary_report(self) -> None:
        summary = self.get_error_summary()
        if not summary:
            logging.info("No access errors recorded in current session")
            return
        logging.warning("🚨 ACCESS ERROR SUMMARY")
        for category, stats in sorted(summary.items()):
            logging.warning(
                f"  {category}: total={stats['total_count']} streak={stats['streak']} "
                f"last={stats['last_message']}"
            )


error_aggregator = ErrorAggregator()


def log_structured_error(
    error_type: str,
    message: str,
    exception: Exception = None,
    context: dict[str, Any] = None,
    level: int = logging.ERROR,
) -> None:
    """Emit one ``[CATEGORY] message | Exception | Context`` line and count it."""
    parts = [f"[{error_type.upper()}] {message}"]
    if exception:
        parts.append(f"Exception: {type(exception).__name__}: {exception}")
    if context:
        parts.append("Context: " + " | ".join(f"{k}={v}" for k, v in context.items()))
    logging.log(level, " | ".join(parts))

    streak = error_aggregator.record_error(error_type, message)
    if error_aggregator.should_alert(error_type):
        logging.critical(f"🚨 {error_type} failing repeatedly consecutive={streak}")


class LoggerConfigurator:
    """Installs the colored stderr handler; ``DEBUG=true|1|yes`` lowers the level."""

    @staticmethod
    def _level_from_env() -> int:
        debug_env = os.environ.get("DEBUG", "").lower()
        return logging.DEBUG if debug_env in ("true", "1", "yes") else logging.INFO

    @staticmethod
    def _build_formatter() -> colorlog.ColoredFormatter:
        return colorlog.ColoredFormatter(
            "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors=_LOG_COLORS,
            secondary_log_colors={"message": {"ERROR": "red", "CRITICAL": "magenta"}},
            reset=True,
        )

    def configure(self) -> int:
        """Configure the root logger and register the exit summary.

        Returns:
            The effective root log level.
        """
        log_level = self._level_from_env()
        formatter = self._build_formatter()

        root_logger = logging.getLogger()
        if not root_logger.handlers:
            root_logger.addHandler(logging.StreamHandler(sys.stderr))
        root_logger.setLevel(log_level)
        # Every handler gets the formatter and the token mask, including pre-existing ones.
        for handler in root_logger.handlers:
            handler.setFormatter(formatter)
            if not any(isinstance(f, BearerRedactionFilter) for f in handler.filters):
                handler.addFilter(BearerRedactionFilter())

        # aiohttp access chatter is noise at DEBUG
        logging.getLogger("aiohttp").setLevel(logging.INFO)

        atexit.register(self._log_final_error_summary)
        return log_level

    def _log_final_error_summary(self) -> None:
        logging.info("📊 Final access error summary before shutdown:")
        error_aggregator.log_summary_report()
