"""Logging utilities."""

import logging
import sys
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logger(
    name: str = "motion_eval",
    level: str = "INFO",
    log_file: Optional[str] = None,
    console: bool = True,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Set up and configure a logger.

    Args:
        name: Logger name.
        level: Logging level (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional file path for logging.
        console: Whether to log to console.
        format_string: Custom format string.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    # Clear existing handlers
    logger.handlers = []

    formatter = logging.Formatter(
        format_string or DEFAULT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"
    )

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = "motion_eval") -> logging.Logger:
    """
    Get a logger below the package root logger.

    Child loggers (``motion_eval.<component>``) propagate to the root
    ``motion_eval`` logger, which gets a console handler on first use.

    Args:
        name: Logger name.

    Returns:
        Logger instance.
    """
    root = logging.getLogger("motion_eval")
    if not root.handlers:
        setup_logger("motion_eval")

    return logging.getLogger(name)


class LoggerMixin:
    """Mixin class providing an injectable, lazily created logger."""

    _logger: Optional[logging.Logger] = None

    @property
    def logger(self) -> logging.Logger:
        """Get the injected logger or a class-specific default."""
        if self._logger is None:
            self._logger = get_logger(f"motion_eval.{self.__class__.__name__}")
        return self._logger

    @logger.setter
    def logger(self, logger: Optional[logging.Logger]) -> None:
        self._logger = logger
