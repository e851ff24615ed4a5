"""
Logging configuration for AgentBoard.

All loggers live under the ``agentboard`` hierarchy. The TUI owns the
terminal, so it logs to a file only; the CLI logs warnings to the console.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .config import get_log_level, get_state_dir

LOGGER_ROOT = "agentboard"
DEFAULT_LOG_DIR = get_state_dir() / "logs"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the agentboard namespace."""
    return logging.getLogger(f"{LOGGER_ROOT}.{name}")


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    console: bool = True,
    rich_console: bool = True,
) -> logging.Logger:
    """Configure the root agentboard logger.

    Existing handlers are removed first so repeated calls don't stack output.

    Args:
        level: Logging level for the agentboard hierarchy
        log_file: Optional file to append log records to
        console: Whether to log to the console
        rich_console: Use Rich's handler for console output when available
    """
    logger = logging.getLogger(LOGGER_ROOT)
    logger.handlers.clear()
    logger.setLevel(level)
    logger.propagate = False

    if console:
        handler: logging.Handler
        if rich_console:
            try:
                from rich.logging import RichHandler
                handler = RichHandler(show_path=False, rich_tracebacks=True)
                handler.setFormatter(logging.Formatter("%(message)s"))
            except ImportError:
                handler = logging.StreamHandler()
                handler.setFormatter(logging.Formatter(LOG_FORMAT))
        else:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    return logger


def setup_tui_logging(log_file: Optional[Path] = None, level: Optional[int] = None) -> logging.Logger:
    """Configure logging for the TUI (file only, never the console).

    Without an explicit level, the configured log_level is used.
    """
    if level is None:
        level = getattr(logging, get_log_level())
    if log_file is None:
        log_file = DEFAULT_LOG_DIR / "tui.log"
    setup_logging(level=level, log_file=log_file, console=False)
    return get_logger("tui")


def setup_cli_logging(verbose: bool = False) -> logging.Logger:
    """Configure logging for CLI commands.

    --verbose forces DEBUG; otherwise a configured log_level applies,
    falling back to WARNING.
    """
    if verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, get_log_level(default="WARNING"))
    setup_logging(level=level, console=True)
    return get_logger("cli")


class StructuredLogger:
    """Logger wrapper that appends key=value context to messages."""

    def __init__(self, logger: logging.Logger, context: Optional[Dict[str, Any]] = None):
        self._logger = logger
        self._context = dict(context or {})

    def with_context(self, **kwargs: Any) -> "StructuredLogger":
        """Return a new logger with additional context merged in."""
        merged = dict(self._context)
        merged.update(kwargs)
        return StructuredLogger(self._logger, merged)

    def _format(self, message: str, kwargs: Dict[str, Any]) -> str:
        fields = dict(self._context)
        fields.update(kwargs)
        if not fields:
            return message
        suffix = " ".join(f"{k}={v}" for k, v in fields.items())
        return f"{message} [{suffix}]"

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(self._format(message, kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(self._format(message, kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(self._format(message, kwargs))

    def error(self, message: str, **kwargs: Any) -> None:
        self._logger.error(self._format(message, kwargs))

    def exception(self, message: str, **kwargs: Any) -> None:
        self._logger.exception(self._format(message, kwargs))


def get_structured_logger(name: str) -> StructuredLogger:
    """Get a StructuredLogger under the agentboard namespace."""
    return StructuredLogger(get_logger(name))
