"""
Structured event sink for the sync pipeline.

Pipeline events are reported as ``(severity, message, labels)`` through an
observer handed to each component at construction time. ``LoggingObserver``
forwards them to the standard ``logging`` module, where ``core.logging``
decides the output format.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import logging

SEVERITY_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


class SyncObserver(ABC):
    """Receives one event per retry attempt, channel outcome and run outcome"""

    @abstractmethod
    def emit(self, severity: str, message: str, labels: Optional[Dict[str, Any]] = None) -> None:
        pass


class LoggingObserver(SyncObserver):
    """Forward events to a stdlib logger, labels attached as ``extra={"labels": ...}``"""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("ingestion.events")

    def emit(self, severity: str, message: str, labels: Optional[Dict[str, Any]] = None) -> None:
        level = SEVERITY_LEVELS.get(severity.lower(), logging.INFO)
        labels = labels or {}

        if labels:
            label_str = " ".join(f"{k}={v}" for k, v in labels.items())
            text = f"{message} [{label_str}]"
        else:
            text = message

        self.logger.log(level, text, extra={"labels": labels})
