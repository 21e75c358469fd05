"""
Logging configuration for the application.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict

import structlog
from pythonjsonlogger import jsonlogger

from journey_builder.utils.constants import (
    LOG_CONTEXT_COMPILE_TIME,
    LOG_CONTEXT_REQUEST_ID,
    LOG_CONTEXT_SEQUENCE_ID,
    LOG_CONTEXT_SEQUENCE_NAME,
    LOG_CONTEXT_STEP_COUNT,
    LOG_CONTEXT_USER_ID,
)


class JSONFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with additional fields."""

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        """Add custom fields to log record."""
        super().add_fields(log_record, record, message_dict)

        log_record.setdefault("level", record.levelname)
        log_record.setdefault("logger", record.name)
        log_record.setdefault("module", record.module)
        log_record.setdefault("function", record.funcName)
        log_record.setdefault("line", record.lineno)
        log_record.setdefault("timestamp", self.formatTime(record, self.datefmt))


class ColoredFormatter(logging.Formatter):
    """Colored formatter for console output."""

    COLORS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "CRITICAL": "\033[35m",   # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        color = self.COLORS.get(record.levelname, "")
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def setup_logging(
    level: str = "INFO",
    format_type: str = "json",
    log_file: str | None = None,
) -> None:
    """Setup application logging."""

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    if format_type == "json":
        formatter = JSONFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s"
        )
    else:
        formatter = ColoredFormatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)
        root_logger.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.info(
        "Logging configured",
        extra={
            "level": level,
            "format": format_type,
            "file": log_file,
        }
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: Any,
) -> None:
    """Log message with additional context."""
    extra = {}

    if LOG_CONTEXT_REQUEST_ID in context:
        extra["request_id"] = context[LOG_CONTEXT_REQUEST_ID]
    if LOG_CONTEXT_USER_ID in context:
        extra["user_id"] = context[LOG_CONTEXT_USER_ID]
    if LOG_CONTEXT_SEQUENCE_NAME in context:
        extra["sequence_name"] = context[LOG_CONTEXT_SEQUENCE_NAME]
    if LOG_CONTEXT_SEQUENCE_ID in context:
        extra["sequence_id"] = context[LOG_CONTEXT_SEQUENCE_ID]
    if LOG_CONTEXT_COMPILE_TIME in context:
        extra["compile_time_ms"] = context[LOG_CONTEXT_COMPILE_TIME]
    if LOG_CONTEXT_STEP_COUNT in context:
        extra["step_count"] = context[LOG_CONTEXT_STEP_COUNT]

    for key, value in context.items():
        if key not in extra:
            extra[key] = value

    getattr(logger, level.lower())(message, extra=extra)


class JourneyLogger:
    """Logger for journey compile and submission events."""

    def __init__(self, logger_name: str = "journey"):
        self.logger = get_logger(logger_name)

    def log_compile(
        self,
        sequence_name: str,
        step_count: int,
        compile_time_ms: float,
        trigger_type: str | None = None,
    ) -> None:
        """Log a completed compilation."""
        log_with_context(
            self.logger,
            "INFO",
            "Journey compiled",
            **{
                LOG_CONTEXT_SEQUENCE_NAME: sequence_name,
                LOG_CONTEXT_STEP_COUNT: step_count,
                LOG_CONTEXT_COMPILE_TIME: round(compile_time_ms, 2),
                "trigger_type": trigger_type,
            }
        )

    def log_submission_success(
        self,
        sequence_name: str,
        sequence_id: str | None = None,
        request_id: str | None = None,
    ) -> None:
        """Log a persisted sequence."""
        context = {LOG_CONTEXT_SEQUENCE_NAME: sequence_name}

        if sequence_id:
            context[LOG_CONTEXT_SEQUENCE_ID] = sequence_id
        if request_id:
            context[LOG_CONTEXT_REQUEST_ID] = request_id

        log_with_context(
            self.logger,
            "INFO",
            "Sequence created",
            **context
        )

    def log_submission_error(
        self,
        sequence_name: str,
        error: str,
        status_code: int | None = None,
        request_id: str | None = None,
    ) -> None:
        """Log a failed submission."""
        context = {LOG_CONTEXT_SEQUENCE_NAME: sequence_name, "error": error}

        if status_code is not None:
            context["status_code"] = status_code
        if request_id:
            context[LOG_CONTEXT_REQUEST_ID] = request_id

        log_with_context(
            self.logger,
            "ERROR",
            "Sequence submission failed",
            **context
        )
