"""Utility modules."""

from .config_loader import ConfigError, ConfigLoader, load_config
from .logger import get_logger, setup_logger
from .timing import TimingCollector, get_timing_collector

__all__ = [
    "ConfigError",
    "ConfigLoader",
    "load_config",
    "get_logger",
    "setup_logger",
    "TimingCollector",
    "get_timing_collector",
]
