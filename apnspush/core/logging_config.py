"""
Structured JSON Logging Configuration

Provides centralized logging configuration with:
- JSON formatted output for machine parsing
- Delivery ID tracking via contextvars, bound for each Push.send() call
- Optional file rotation when a log directory is configured
- Configurable log levels via environment
"""
import logging
import logging.handlers
import os
import contextvars
import re
from datetime import datetime, timezone
from typing import Optional
from pythonjsonlogger import jsonlogger

from apnspush.core.config import settings

# Context variable for delivery ID propagation
delivery_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    'delivery_id', default=None
)


class DeliveryIdFilter(logging.Filter):
    """
    Logging filter that adds delivery_id to all log records.

    All records emitted while a send() call is running share the same
    delivery_id, so the runs, retries and reconnects of one dispatch can be
    correlated.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.delivery_id = delivery_id_var.get() or "-"
        return True


class SanitizingFilter(logging.Filter):
    """
    Filter that sanitizes log messages to prevent log injection.

    APNS response bodies are logged verbatim, so line breaks are collapsed
    before they reach a handler.
    """

    DANGEROUS_PATTERNS = [
        (r'\r\n', ' '),
        (r'\n', ' '),
        (r'\r', ' '),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            for pattern, replacement in self.DANGEROUS_PATTERNS:
                record.msg = re.sub(pattern, replacement, record.msg)

        if record.args:
            sanitized_args = []
            for arg in record.args:
                if isinstance(arg, str):
                    sanitized = arg
                    for pattern, replacement in self.DANGEROUS_PATTERNS:
                        sanitized = re.sub(pattern, replacement, sanitized)
                    sanitized_args.append(sanitized)
                else:
                    sanitized_args.append(arg)
            record.args = tuple(sanitized_args)

        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    Custom JSON formatter that adds standard fields to all log entries.

    Output format:
    {
        "timestamp": "2025-11-23T10:30:00.000Z",
        "level": "INFO",
        "message": "Sending messages queue, run #1: 2 message(s) left in queue.",
        "module": "push_service",
        "delivery_id": "uuid-here",
        "logger": "apnspush.push.push_service",
        ...extra fields...
    }
    """

    def add_fields(
        self,
        log_record: dict,
        record: logging.LogRecord,
        message_dict: dict
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get('timestamp'):
            log_record['timestamp'] = datetime.now(timezone.utc).isoformat()

        log_record['level'] = record.levelname
        log_record['module'] = record.module
        log_record['logger'] = record.name
        log_record['delivery_id'] = getattr(record, 'delivery_id', '-')

        if record.funcName:
            log_record['function'] = record.funcName

        if 'message' not in log_record:
            log_record['message'] = record.getMessage()


def setup_logging(
    log_level: Optional[str] = None,
    log_dir: Optional[str] = None,
    json_output: Optional[bool] = None,
) -> logging.Logger:
    """
    Configure logging for applications embedding the library.

    Args:
        log_level: Override log level (default from settings.LOG_LEVEL)
        log_dir: Directory for rotating log files (default settings.LOG_DIR,
            no file logging when both are unset)
        json_output: Emit JSON on the console (default settings.LOG_JSON)

    Returns:
        Root logger configured for the application
    """
    level = getattr(logging, (log_level or settings.LOG_LEVEL).upper(), logging.INFO)
    directory = log_dir or settings.LOG_DIR
    use_json = settings.LOG_JSON if json_output is None else json_output

    json_formatter = CustomJsonFormatter(
        '%(timestamp)s %(level)s %(name)s %(message)s'
    )
    console_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(delivery_id)s] %(message)s',
        defaults={'delivery_id': '-'}
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(json_formatter if use_json else console_formatter)
    console_handler.addFilter(DeliveryIdFilter())
    console_handler.addFilter(SanitizingFilter())
    root_logger.addHandler(console_handler)

    if directory:
        os.makedirs(directory, exist_ok=True)

        # Max 50MB per file, 5 backups
        file_handler = logging.handlers.RotatingFileHandler(
            os.path.join(directory, 'apnspush.log'),
            maxBytes=50 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(json_formatter)
        file_handler.addFilter(DeliveryIdFilter())
        file_handler.addFilter(SanitizingFilter())
        root_logger.addHandler(file_handler)

    # Suppress noisy third-party loggers
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('hpack').setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance (typically called with __name__)."""
    return logging.getLogger(name)


def set_delivery_id(delivery_id: Optional[str]) -> contextvars.Token:
    """
    Set the delivery ID for the current context.

    Returns:
        Token that can be used to reset the context
    """
    return delivery_id_var.set(delivery_id)


def get_delivery_id() -> Optional[str]:
    """Get the current delivery ID from context, or None if not set."""
    return delivery_id_var.get()


def clear_delivery_id(token: contextvars.Token) -> None:
    """Clear the delivery ID context using the token from set_delivery_id."""
    delivery_id_var.reset(token)


def sanitize_log_value(value: str) -> str:
    """
    Sanitize a value for safe logging, preventing log injection.

    Args:
        value: String value to sanitize

    Returns:
        Sanitized string safe for logging
    """
    if not isinstance(value, str):
        return str(value)

    sanitized = value.replace('\r\n', ' ').replace('\n', ' ').replace('\r', ' ')

    max_length = 10000
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length] + '...[truncated]'

    return sanitized


def mask_token(device_token: str, visible: int = 20) -> str:
    """Shorten a device token for log output."""
    if len(device_token) <= visible:
        return device_token
    return device_token[:visible] + "..."
