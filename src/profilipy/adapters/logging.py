"""Logging setup for the exporter process.

Modules log through ``logging.getLogger(__name__)`` and pass structured
context with ``extra={...}``. ``ExtraFieldsFormatter`` appends that context
to each line as ``key=value`` pairs.
"""

import logging
import sys

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "color_message",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class ExtraFieldsFormatter(logging.Formatter):
    """Formatter that appends ``extra`` fields to the rendered message.

    Example:
        ```python
        logger.info("Processed entries", extra={"database": "shop"})
        # ... INFO [profilipy.core.scanner] Processed entries database=shop
        ```
    """

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        extras = [
            f"{key}={value}"
            for key, value in record.__dict__.items()
            if key not in _STANDARD_LOGRECORD_ATTRS
            and not key.startswith("_")
            and isinstance(value, (str, int, float, bool))
        ]
        if not extras:
            return message
        # keep tracebacks last
        head, sep, tail = message.partition("\n")
        return f"{head} {' '.join(extras)}{sep}{tail}"


def configure_logging(level: str = "INFO", stream=None) -> logging.Handler:
    """Send all log records, uvicorn's included, to one stream handler.

    Args:
        level: Root log level name.
        stream: Destination stream. Defaults to stderr.

    Returns:
        The installed handler.
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(ExtraFieldsFormatter(DEFAULT_FORMAT))
    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True
    return handler
