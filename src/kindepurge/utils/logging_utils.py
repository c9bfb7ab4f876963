"""Logging setup for kindepurge.

Everything logs under the ``kindepurge`` namespace. Operations attach
context (operation name, ids, status codes) through ``extra``; the JSON and
detailed formatters surface those fields, the console formatter does not.
"""

import json
import logging
import logging.config
import os
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import yaml

ROOT_LOGGER_NAME = "kindepurge"

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
DETAILED_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Extra fields copied from log records into structured output
CONTEXT_FIELDS = (
    "operation",
    "user_id",
    "identity_id",
    "org_code",
    "api_endpoint",
    "status_code",
    "attempt",
    "page",
    "duration",
)

# Record attribute -> short label used by DetailedFormatter, in output order
DETAIL_LABELS = (
    ("operation", "op"),
    ("org_code", "org"),
    ("user_id", "user"),
    ("identity_id", "identity"),
    ("api_endpoint", "endpoint"),
    ("status_code", "status"),
    ("attempt", "attempt"),
)

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
COLOR_RESET = "\033[0m"

# Environment variables that take precedence over the packaged YAML file
ENV_OVERRIDES = (
    "KINDEPURGE_LOG_LEVEL",
    "KINDEPURGE_LOG_FORMAT",
    "KINDEPURGE_LOG_FILE",
    "KINDEPURGE_LOG_STRUCTURED",
    "KINDEPURGE_LOG_OPERATION",
    "KINDEPURGE_LOG_DISABLE_COLORS",
)


def _stderr_is_tty() -> bool:
    isatty = getattr(sys.stderr, "isatty", None)
    return bool(isatty and isatty())


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name on terminals."""

    def __init__(self, *args: Any, disable_colors: bool = False, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.disable_colors = disable_colors

    def format(self, record: logging.LogRecord) -> str:
        if self.disable_colors or not _stderr_is_tty():
            return super().format(record)

        # Color a copy so other handlers see the plain level name
        colored = logging.makeLogRecord(record.__dict__)
        color = LEVEL_COLORS.get(record.levelname, "")
        colored.levelname = f"{color}{record.levelname}{COLOR_RESET}"
        return super().format(colored)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, including any context fields present."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        entry.update(
            (name, getattr(record, name))
            for name in CONTEXT_FIELDS
            if hasattr(record, name)
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class DetailedFormatter(logging.Formatter):
    """Plain formatter followed by a ``[op=..., user=...]`` context block."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = ", ".join(
            f"{label}={getattr(record, attr)}"
            for attr, label in DETAIL_LABELS
            if hasattr(record, attr)
        )
        return f"{message} [{context}]" if context else message


class OperationFilter(logging.Filter):
    """Stamps records that carry no ``operation`` with a fixed one."""

    def __init__(self, operation: str | None = None):
        super().__init__()
        self.operation = operation

    def filter(self, record: logging.LogRecord) -> bool:
        if self.operation and not hasattr(record, "operation"):
            record.operation = self.operation
        return True


def _console_formatter(
    log_format: str, structured: bool, disable_colors: bool
) -> logging.Formatter:
    if structured or log_format == "json":
        return StructuredFormatter()
    if log_format == "detailed":
        return DetailedFormatter(fmt=DETAILED_FORMAT, datefmt=DATE_FORMAT)
    return ColoredFormatter(
        fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT, disable_colors=disable_colors
    )


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    structured: bool = False,
    operation: str | None = None,
    log_format: str = "console",
    disable_colors: bool = False,
) -> logging.Logger:
    """Replace the handlers of the ``kindepurge`` logger.

    Args:
        level: Level name; unknown names fall back to INFO
        log_file: Also write JSON lines to this file, creating parent dirs
        structured: Force JSON on the console regardless of ``log_format``
        operation: Default ``operation`` context for every record
        log_format: ``console``, ``json`` or ``detailed``
        disable_colors: Never color the console output

    Returns:
        logging.Logger: The configured ``kindepurge`` logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(log_level)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    handlers[0].setFormatter(_console_formatter(log_format, structured, disable_colors))

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter())
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(log_level)
        if operation:
            handler.addFilter(OperationFilter(operation))
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name`` inside the ``kindepurge`` namespace."""
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").strip().lower() == "true"


def configure_from_env() -> logging.Logger:
    """Configure logging from ``KINDEPURGE_LOG_*`` environment variables.

    ``LEVEL`` (default INFO), ``FILE``, ``STRUCTURED``, ``OPERATION``,
    ``FORMAT`` (console, json or detailed) and ``DISABLE_COLORS``.
    """
    return setup_logging(
        level=os.getenv("KINDEPURGE_LOG_LEVEL", "INFO"),
        log_file=os.getenv("KINDEPURGE_LOG_FILE"),
        structured=_env_flag("KINDEPURGE_LOG_STRUCTURED"),
        operation=os.getenv("KINDEPURGE_LOG_OPERATION"),
        log_format=os.getenv("KINDEPURGE_LOG_FORMAT", "console"),
        disable_colors=_env_flag("KINDEPURGE_LOG_DISABLE_COLORS"),
    )


def configure_from_yaml(config_path: str | Path) -> logging.Logger:
    """Apply a ``logging.config.dictConfig`` document stored as YAML.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the document is not a valid logging configuration
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Logging config file not found: {path}")

    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
        logging.config.dictConfig(document)
    except (yaml.YAMLError, ValueError, TypeError, AttributeError) as e:
        raise ValueError(f"Invalid logging configuration: {e}") from e
    return logging.getLogger(ROOT_LOGGER_NAME)


def default_yaml_path() -> Path:
    return Path(__file__).parent.parent / "config" / "logging.yaml"


def configure_from_default_yaml() -> logging.Logger:
    """Use the packaged YAML unless a ``KINDEPURGE_LOG_*`` override is set."""
    path = default_yaml_path()
    if path.exists() and not any(os.getenv(name) for name in ENV_OVERRIDES):
        return configure_from_yaml(path)
    return configure_from_env()


def init_default_logging() -> None:
    """Configure logging once; later calls keep existing handlers."""
    if not logging.getLogger(ROOT_LOGGER_NAME).handlers:
        configure_from_default_yaml()
