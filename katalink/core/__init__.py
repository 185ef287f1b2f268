"""
katalink Core Module

Configuration, logging and shared helpers.
"""

from .config import EngineConfig, DEFAULT_PROXY_URL
from .logging import (
    logger,
    TRAFFIC_LOG,
    setup_logging,
    setup_console_only,
    get_log_dir,
    add_traffic_log,
    get_traffic_logger,
)
from .utils import format_value, path_exists, basename

__all__ = [
    # Config
    "EngineConfig",
    "DEFAULT_PROXY_URL",
    # Logging
    "logger",
    "TRAFFIC_LOG",
    "setup_logging",
    "setup_console_only",
    "get_log_dir",
    "add_traffic_log",
    "get_traffic_logger",
    # Utils
    "format_value",
    "path_exists",
    "basename",
]
