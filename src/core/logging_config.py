"""
Logging configuration for the Google Drive cleaner.

Three sinks are supported: a console stream, a text log that rolls over every
day, and a JSON log restricted to warnings and above. Records carry a
``component`` attribute so operations can be grouped per subsystem.
"""

import json
import logging
import os
import sys
from logging.handlers import TimedRotatingFileHandler
from typing import Any, Dict, Optional, Union

DEFAULT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s [%(component)s] - %(message)s"
STRUCTURED_LOG_FILE = "warnings.json"

# Marker attribute so configure_logging only replaces handlers it installed itself
_HANDLER_MARKER = "_drive_cleaner_handler"

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]


class ComponentFilter(logging.Filter):
    """Ensure every record has a component attribute for the formatters."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "component"):
            record.component = "general"
        return True


class JsonFormatter(logging.Formatter):
    """Formatter to dump log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "component": getattr(record, "component", "general"),
            "message": record.getMessage(),
        }
        context = getattr(record, "context", None)
        if context:
            log_obj["context"] = context
        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_obj, default=str)


def _tag(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_MARKER, True)
    handler.addFilter(ComponentFilter())
    return handler


def configure_logging(
    log_level: str = "INFO",
    enable_console: bool = True,
    enable_file: bool = True,
    enable_structured: bool = True,
    log_dir: str = "logs",
    log_file: str = "all_logs.txt",
) -> logging.Logger:
    """Configure the root logger.

    Args:
        log_level: Minimum level for the console and text file sinks.
        enable_console: Write records to stderr.
        enable_file: Write every record to ``log_dir/log_file``, rolled over at midnight.
        enable_structured: Write WARNING and above as JSON lines to ``log_dir/warnings.json``.
        log_dir: Directory for the file sinks, created when missing.
        log_file: File name of the daily text log.

    Returns:
        The configured root logger.
    """
    level = getattr(logging, str(log_level).upper(), logging.INFO)
    root = logging.getLogger()

    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            root.removeHandler(handler)
            handler.close()

    root.setLevel(logging.DEBUG)
    text_formatter = logging.Formatter(DEFAULT_FORMAT)

    if enable_console:
        console = _tag(logging.StreamHandler(sys.stderr))
        console.setLevel(level)
        console.setFormatter(text_formatter)
        root.addHandler(console)

    if enable_file or enable_structured:
        os.makedirs(log_dir, exist_ok=True)

    if enable_file:
        daily = _tag(
            TimedRotatingFileHandler(os.path.join(log_dir, log_file), when="midnight", encoding="utf-8")
        )
        daily.setLevel(level)
        daily.setFormatter(text_formatter)
        root.addHandler(daily)

    if enable_structured:
        structured = _tag(logging.FileHandler(os.path.join(log_dir, STRUCTURED_LOG_FILE), encoding="utf-8"))
        structured.setLevel(logging.WARNING)
        structured.setFormatter(JsonFormatter())
        root.addHandler(structured)

    # The discovery client is chatty at DEBUG
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)

    return root


class ComponentAdapter(logging.LoggerAdapter):
    """LoggerAdapter that keeps per-call extra values next to the component."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(name: str, component: str = "general") -> ComponentAdapter:
    """Return a logger that tags its records with ``component``."""
    return ComponentAdapter(logging.getLogger(name), {"component": component})


def log_error_context(
    logger: LoggerLike, error: Exception, operation: str, context: Optional[Dict[str, Any]] = None
) -> None:
    """Log an error together with the operation and context it happened in."""
    context = dict(context or {})
    context.setdefault("operation", operation)
    context["error_type"] = error.__class__.__name__
    logger.error(f"Error in {operation}: {error}", extra={"context": context})


def log_drive_metrics(logger: LoggerLike, operation: str, **metrics: Any) -> None:
    """Log metrics of a completed Drive operation on one line."""
    rendered = ", ".join(f"{key}={value}" for key, value in sorted(metrics.items()))
    logger.info(f"Metrics for {operation}: {rendered}", extra={"context": dict(metrics, operation=operation)})
