"""
Loguru setup for notebuyer.

Every record goes out either as one JSON object per line (the default) or as
colored text. Records emitted inside ``trace_context`` carry a ``trace_id``,
which the investment loop sets to ``investor-<id>`` so interleaved account
loops can be told apart.
"""

import json
import sys
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Optional

from loguru import logger

from notebuyer.config import settings

# Extras that must never reach a sink
REDACTED_KEYS = frozenset({"token", "authorization", "authorization_token"})

TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[logger_name]}</cyan>:<cyan>{line}</cyan>"
)


def _record_fields(record: Dict[str, Any]) -> Dict[str, Any]:
    fields = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "service": settings.service_name,
        "message": record["message"],
        "module": record["module"],
        "function": record["function"],
        "line": record["line"],
    }

    for key, value in record["extra"].items():
        if key in fields:
            continue
        fields[key] = "***" if key.lower() in REDACTED_KEYS else value

    exception = record["exception"]
    if exception is not None:
        fields["exception"] = {
            "type": exception.type.__name__ if exception.type else None,
            "value": str(exception.value),
        }
    return fields


def serialize(record: Dict[str, Any]) -> str:
    """Render a record as a single JSON line."""
    line = json.dumps(_record_fields(record), default=str)
    # loguru treats the returned string as a format template
    return line.replace("{", "{{").replace("}", "}}") + "\n"


def format_text(record: Dict[str, Any]) -> str:
    extra = record["extra"]
    fmt = TEXT_FORMAT if "logger_name" in extra else TEXT_FORMAT.replace("extra[logger_name]", "name")

    if "trace_id" in extra:
        fmt += " | <yellow>{extra[trace_id]}</yellow>"
    fmt += " - <level>{message}</level>\n"

    if record["exception"] is not None:
        fmt += "{exception}\n"
    return fmt


def configure_logging(level: Optional[str] = None) -> None:
    """(Re)install the sinks described by the monitoring settings."""
    monitoring = settings.monitoring
    level = (level or monitoring.log_level).upper()

    logger.remove()

    if monitoring.log_format == "json":
        logger.add(sys.stdout, format=serialize, level=level, backtrace=False, diagnose=False)
    else:
        logger.add(sys.stdout, format=format_text, level=level, colorize=True, diagnose=False)

    if monitoring.log_file:
        logger.add(
            monitoring.log_file,
            format=serialize,
            level=level,
            rotation="100 MB",
            retention="7 days",
            compression="gz",
            diagnose=False,
        )

    logger.debug(
        "Logging configured",
        environment=settings.environment.value,
        log_level=level,
        log_format=monitoring.log_format,
    )


@contextmanager
def trace_context(trace_id: Optional[str] = None):
    """Attach ``trace_id`` to every record logged inside the block."""
    trace_id = trace_id or str(uuid.uuid4())
    with logger.contextualize(trace_id=trace_id):
        yield trace_id


def get_logger(name: str):
    return logger.bind(logger_name=name)


configure_logging()


__all__ = ["logger", "get_logger", "trace_context", "configure_logging", "serialize"]
