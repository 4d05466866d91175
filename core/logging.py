"""
Logging configuration
"""

import json
import logging
import sys
from datetime import datetime, timezone
from core.config import settings


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, labels, error"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        labels = getattr(record, "labels", None)
        if labels:
            entry["labels"] = labels

        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(level: str = None, log_format: str = None):
    """Configure application logging"""

    level = level or settings.LOG_LEVEL
    log_format = (log_format or settings.LOG_FORMAT).lower()

    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    if log_format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))

    logging.basicConfig(level=log_level, handlers=[handler], force=True)

    # Reduce noise from client libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at {level.upper()} level ({log_format})")
