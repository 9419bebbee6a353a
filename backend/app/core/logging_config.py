"""
Logging configuration for the API.

JSON lines when running inside Lambda (picked up by CloudWatch Insights),
a compact human-readable format everywhere else.

Usage:
    from app.core.logging_config import setup_logging, get_logger

    setup_logging()  # Auto-detects Lambda vs local
    logger = get_logger(__name__)

    logger.info("Portfolio valued", extra={'portfolio_id': 'abc123'})
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional


QUIET_LOGGERS = ('botocore', 'urllib3', 'pynamodb', 'httpx', 'google_genai')

# LogRecord attributes that are not user-supplied extras
RESERVED_FIELDS = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
    'taskName', 'message',
}


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in RESERVED_FIELDS
    }


class JsonFormatter(logging.Formatter):
    """
    Format log records as a single JSON object per line.

    Output format:
    {
        "timestamp": "2024-01-15T10:30:00.000+00:00",
        "level": "WARNING",
        "logger": "app.services.valuation_service",
        "message": "Holding excluded from valuation",
        "holding_id": "...",
        ...
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(timespec='milliseconds'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        for key, value in _extra_fields(record).items():
            if key in log_obj:
                continue
            try:
                json.dumps(value)
                log_obj[key] = value
            except (TypeError, ValueError):
                log_obj[key] = str(value)

        if record.exc_info:
            log_obj['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str, ensure_ascii=False)


class HumanFormatter(logging.Formatter):
    """
    Human-readable formatter for local development.

    Output format:
    2024-01-15 10:30:00 INFO  [services.valuation_service] Portfolio valued (holdings=4)
    """

    LEVEL_COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')

        level = record.levelname.ljust(5)
        if self.use_colors:
            color = self.LEVEL_COLORS.get(record.levelname, '')
            level = f"{color}{level}{self.RESET}"

        logger_name = record.name
        if logger_name.startswith('app.'):
            logger_name = logger_name[4:]

        extras = [f"{key}={value}" for key, value in _extra_fields(record).items()]
        extra_str = f" ({', '.join(extras)})" if extras else ""

        output = f"{timestamp} {level} [{logger_name}] {record.getMessage()}{extra_str}"

        if record.exc_info:
            output += f"\n{self.formatException(record.exc_info)}"

        return output


def setup_logging(
    json_format: Optional[bool] = None,
    level: Optional[str] = None,
    logger_name: Optional[str] = None
) -> None:
    """
    Configure logging for the application.

    Args:
        json_format: Use JSON format (True) or human-readable (False).
                    If None, auto-detects based on AWS_LAMBDA_FUNCTION_NAME.
        level: Log level name. Defaults to LOG_LEVEL env var or INFO.
        logger_name: Specific logger to configure. If None, configures root logger.
    """
    if json_format is None:
        json_format = 'AWS_LAMBDA_FUNCTION_NAME' in os.environ
    level_no = getattr(logging, (level or os.getenv('LOG_LEVEL', 'INFO')).upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level_no)
    handler.setFormatter(JsonFormatter() if json_format else HumanFormatter())

    target = logging.getLogger(logger_name)
    target.setLevel(level_no)
    target.handlers[:] = [handler]
    if logger_name:
        target.propagate = False

    # SDK request tracing drowns out application logs below WARNING
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level_no, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance, typically for ``__name__``."""
    return logging.getLogger(name)
