"""
Logging Utility.

Structured JSON event lines for messaging domain events, alongside the
plain module loggers used everywhere else.
"""

import json
import logging
import os
import sys
from typing import Any

from campustrades.utils.timefmt import utcnow

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stdout,
    )


class StructuredLogger:
    """Structured logger emitting one JSON object per event."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _log_structured(self, level: int, message: str, **kwargs: Any):
        """
        Log a structured message.

        Args:
            level: Logging level
            message: Event name or message
            **kwargs: Additional structured data
        """
        if self.logger.isEnabledFor(level):
            log_data = {
                "timestamp": utcnow().isoformat(),
                "level": logging.getLevelName(level),
                "message": message,
                "service": self.logger.name
            }
            log_data.update(kwargs)
            self.logger.log(level, json.dumps(log_data, default=str))

    def debug(self, message: str, **kwargs: Any):
        self._log_structured(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any):
        self._log_structured(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any):
        self._log_structured(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any):
        self._log_structured(logging.ERROR, message, **kwargs)


# Domain event log for the messaging core
event_logger = StructuredLogger("campustrades.events")


def get_logger(name: str) -> StructuredLogger:
    return StructuredLogger(name)
