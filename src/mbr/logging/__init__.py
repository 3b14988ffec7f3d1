"""
MBR logging.

Daily-rotated log file in the platform log directory, structured API call
lines on the ``mbr.api`` logger, and masking of API keys, session tokens
and passwords before anything reaches a handler.
"""

from .config import LogConfig, LogLevel, get_log_directory
from .logger import (
    get_logger,
    log_api_call,
    log_application_event,
    log_authentication_event,
    setup_logging,
)
from .utils import sanitize_data

__all__ = [
    "get_logger",
    "setup_logging",
    "log_api_call",
    "log_application_event",
    "log_authentication_event",
    "LogLevel",
    "LogConfig",
    "sanitize_data",
    "get_log_directory",
]
