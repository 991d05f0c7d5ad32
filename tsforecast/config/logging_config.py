"""
Logging Configuration Module for TSForecast.

The engine itself only emits records through module-level loggers; this
module lets applications and the command-line script choose a console
format (simple, detailed or JSON).
"""

import json
import logging
import traceback
from enum import Enum
from logging import StreamHandler
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class LogFormat(str, Enum):
    """Log format enumeration."""
    SIMPLE = "simple"
    DETAILED = "detailed"
    JSON = "json"


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Default log level")
    format: LogFormat = Field(default=LogFormat.DETAILED, description="Log format")
    include_stack_trace: bool = Field(default=True, description="Include stack traces in JSON logs")


SIMPLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)-40s | "
    "%(funcName)s | %(message)s"
)


class JsonFormatter(logging.Formatter):
    """Formatter that outputs one JSON object per record."""

    def __init__(
        self,
        include_stack_trace: bool = True,
        extra_fields: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Initialize the JSON formatter.

        Args:
            include_stack_trace: Whether to include stack traces
            extra_fields: Extra fields to include in all log entries
        """
        super().__init__()
        self.include_stack_trace = include_stack_trace
        self.extra_fields = extra_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'time': self.formatTime(record, self.datefmt),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }
        if hasattr(record, 'error_code'):
            payload['error_code'] = record.error_code
        payload.update(self.extra_fields)
        if record.exc_info and self.include_stack_trace:
            payload['exception'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else None,
                'message': str(record.exc_info[1]) if record.exc_info[1] else None,
                'traceback': traceback.format_exception(*record.exc_info),
            }
        return json.dumps(payload, default=str)


def build_formatter(config: LoggingConfig) -> logging.Formatter:
    """
    Create the formatter matching a logging configuration.

    Args:
        config: Logging configuration

    Returns:
        Formatter instance
    """
    if config.format == LogFormat.JSON:
        return JsonFormatter(include_stack_trace=config.include_stack_trace)
    if config.format == LogFormat.SIMPLE:
        return logging.Formatter(SIMPLE_FORMAT)
    return logging.Formatter(DETAILED_FORMAT)


def configure_logging(
    level: str = 'INFO',
    fmt: LogFormat = LogFormat.DETAILED
) -> None:
    """
    Install a single console handler on the root logger.

    Args:
        level: Log level name
        fmt: Output format
    """
    config = LoggingConfig(level=level.upper(), format=fmt)
    logger = logging.getLogger()
    logger.setLevel(config.level)
    handler = StreamHandler()
    handler.setFormatter(build_formatter(config))
    logger.handlers = [handler]
