"""
Structured logging for taskhub.

Every record is emitted as a single JSON object so the sweep worker's output
can be shipped to a log pipeline without parsing free text.
"""

import json
import logging
import sys
from datetime import datetime
from typing import Any, Dict, Optional

import pytz

from taskhub.config import LOG_LEVEL


class StructuredLogger:
    """Thin wrapper over a stdlib logger that renders records as JSON."""

    def __init__(self, name: str, level: Optional[int] = None, context: Optional[Dict[str, Any]] = None):
        """
        Initialize structured logger.

        Args:
            name: Logger name
            level: Logging level, defaults to LOG_LEVEL from the environment
            context: Fields added to every record emitted by this logger
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level if level is not None else logging.getLevelName(LOG_LEVEL))
        self.context = dict(context or {})

        # Prevent adding handlers multiple times
        if not self.logger.handlers:
            self._setup_handlers()

    def _setup_handlers(self):
        """Set up logging handlers."""
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        self.logger.addHandler(console_handler)

    def bind(self, **context: Any) -> "StructuredLogger":
        """Return a logger sharing this one's handlers with extra context fields."""
        merged = {**self.context, **context}
        return StructuredLogger(self.logger.name, self.logger.level, merged)

    def _render(self, level: int, message: str, fields: Dict[str, Any]) -> str:
        log_data = {
            "timestamp": datetime.now(pytz.utc).isoformat(),
            "level": logging.getLevelName(level),
            "message": message,
            "logger": self.logger.name,
        }
        log_data.update(self.context)
        log_data.update(fields)
        # Dates and enums are common payload values
        return json.dumps(log_data, default=str)

    def _log_structured(self, level: int, message: str, **kwargs):
        if self.logger.isEnabledFor(level):
            self.logger.log(level, self._render(level, message, kwargs))

    def debug(self, message: str, **kwargs):
        self._log_structured(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log_structured(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log_structured(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs):
        self._log_structured(logging.ERROR, message, **kwargs)

    def exception(self, message: str, **kwargs):
        """Log an error with the active exception's traceback."""
        if self.logger.isEnabledFor(logging.ERROR):
            self.logger.exception(self._render(logging.ERROR, message, {"exception": True, **kwargs}))


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger.

    Args:
        name: Logger name, usually the calling module's __name__

    Returns:
        StructuredLogger instance
    """
    return StructuredLogger(name)
