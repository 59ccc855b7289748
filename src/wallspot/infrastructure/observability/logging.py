"""Structured logging with JSON output and correlation IDs."""

import contextvars
import logging
import sys
import traceback
import uuid
from pathlib import Path
from typing import Any

from pythonjsonlogger.json import JsonFormatter

# Hey future me - one correlation ID per request/ingestion. contextvars gives every asyncio
# task its own copy, so the thumbnail/medium/original uploads that run under gather() all log
# the same ID as the request that started them. Default "" covers startup logs.
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)


def get_correlation_id() -> str:
    """Get the current correlation ID ("" if none is set)."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set correlation ID in context, generating a UUID when None.

    Returns:
        The correlation ID that was set
    """
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
    correlation_id_var.set(correlation_id)
    return correlation_id


class CorrelationIdFilter(logging.Filter):
    """Attach correlation_id to every record. Never blocks a record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        return True


class CompactExceptionFormatter(logging.Formatter):
    """Text formatter that prints exception chains root-cause first, our frames only.

    A failed upload then reads like:

    ERROR │ wallspot.application.use_cases.upload_wallpaper:97 │ Persisting wallpaper failed
    ╰─► IntegrityError: UNIQUE constraint failed: wallpapers.slug
        File "repositories.py", line 219, in add_ingested
          await self.session.flush()
    ╰─► PersistenceError: Wallpaper could not be saved
    """

    package_marker = "wallspot"

    def formatException(self, ei: Any) -> str:
        _exc_type, exc_value, _exc_tb = ei
        if exc_value is None:
            return ""

        chain: list[BaseException] = []
        current: BaseException | None = exc_value
        while current is not None and current not in chain:
            chain.append(current)
            current = current.__cause__ or current.__context__
        chain.reverse()

        lines: list[str] = []
        for exc in chain:
            lines.append(f"╰─► {exc.__class__.__name__}: {exc}")
            if exc.__traceback__ is None:
                continue
            for frame in traceback.extract_tb(exc.__traceback__):
                if "/site-packages/" in frame.filename or self.package_marker not in frame.filename:
                    continue
                lines.append(
                    f'    File "{Path(frame.filename).name}", line {frame.lineno}, in {frame.name}'
                )
                if frame.line:
                    lines.append(f"      {frame.line.strip()}")
        return "\n".join(lines)


class CustomJsonFormatter(JsonFormatter):
    """JSON formatter with location fields and the correlation ID."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["module"] = record.module
        log_record["function"] = record.funcName
        log_record["line"] = record.lineno

        correlation_id = getattr(record, "correlation_id", "")
        if correlation_id:
            log_record["correlation_id"] = correlation_id

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_record["stack_info"] = self.formatStack(record.stack_info)


# Listen future me - call this ONCE at startup (create_app does). It replaces every handler
# on the root logger, so calling it again in tests is safe. boto3/botocore are chatty at
# INFO, same for httpx - they are pinned to WARNING.
def configure_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    app_name: str = "wallspot",
) -> None:
    """Configure root logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON format for logs (recommended for production)
        app_name: Application name to include in the startup record
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(CorrelationIdFilter())

    if json_format:
        formatter: logging.Formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = CompactExceptionFormatter(
            fmt="%(asctime)s │ %(levelname)-7s │ %(name)s:%(lineno)d │ %(message)s",
            datefmt="%H:%M:%S",
        )
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    for noisy in ("httpx", "httpcore", "botocore", "boto3", "s3transfer", "urllib3", "PIL", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={"app_name": app_name, "log_level": log_level, "json_format": json_format},
    )
