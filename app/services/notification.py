"""
Notification side channel.
Every orchestrator command reports its outcome here.
"""

import logging
from enum import Enum
from typing import Protocol


logger = logging.getLogger(__name__)


class Severity(str, Enum):
    """Notification severity."""
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Category(str, Enum):
    """What kind of operation a notification is about."""
    LOAD = "load"
    APPROVE = "approve"
    REJECT = "reject"
    CONVERT = "convert"
    PDF = "pdf"


class Notifier(Protocol):
    def notify(self, severity: Severity, category: Category, message: str) -> None: ...


_LOG_LEVELS = {
    Severity.SUCCESS: logging.INFO,
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class LoggingNotifier:
    """Notifier that writes every notification to the application log."""

    def notify(self, severity: Severity, category: Category, message: str) -> None:
        logger.log(
            _LOG_LEVELS[Severity(severity)],
            "[%s] %s: %s",
            Severity(severity).value,
            Category(category).value,
            message,
        )
