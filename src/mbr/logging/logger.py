"""
Main logging module for the MBR CLI.

Sets up the daily-rotated log file, the stderr handler used by --verbose,
and the structured API-call logger.
"""

import logging
import logging.handlers
import sys
from typing import Any, Dict, Optional

from mbr.constants import SENSITIVE_KEYS
from .config import LogConfig, get_log_file_path
from .formatters import APICallFormatter, MbrFormatter
from .utils import cleanup_old_logs, sanitize_data

_loggers: Dict[str, logging.Logger] = {}
_logging_configured = False


def _rotating_handler(log_file_path, config: LogConfig) -> logging.Handler:
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=log_file_path,
        when="midnight",
        interval=1,
        backupCount=config.log_retention_days,
        encoding="utf-8",
        utc=False,
    )
    handler.suffix = "%Y-%m-%d"
    return handler


def setup_logging(
    config: Optional[LogConfig] = None,
    force_reconfigure: bool = False,
    verbose: bool = False,
) -> None:
    """
    Set up the MBR logging system.

    Args:
        config: LogConfig instance, derived from ``verbose`` if None
        force_reconfigure: Reconfigure even if already set up
        verbose: Send DEBUG output to stderr as well
    """
    global _logging_configured

    if _logging_configured and not force_reconfigure:
        return

    if config is None:
        config = LogConfig.for_verbosity(verbose)

    log_file_path = get_log_file_path(config)

    root_logger = logging.getLogger("mbr")
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    file_handler = _rotating_handler(log_file_path, config)
    file_handler.setLevel(getattr(logging, config.default_level.value))
    file_handler.setFormatter(
        MbrFormatter(
            include_timestamps=config.include_timestamps,
            sanitize_sensitive=config.sanitize_sensitive_data,
            sensitive_keys=config.sensitive_keys,
        )
    )
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, config.console_level.value))
    console_handler.setFormatter(
        MbrFormatter(
            include_timestamps=False,
            sanitize_sensitive=config.sanitize_sensitive_data,
            sensitive_keys=config.sensitive_keys,
        )
    )
    root_logger.addHandler(console_handler)

    api_logger = logging.getLogger("mbr.api")
    api_logger.setLevel(logging.DEBUG)
    api_logger.handlers.clear()
    api_logger.propagate = False
    if config.log_api_calls:
        api_handler = _rotating_handler(log_file_path, config)
        api_handler.setLevel(logging.DEBUG)
        api_handler.setFormatter(APICallFormatter())
        api_logger.addHandler(api_handler)
        if config.console_level.value == "DEBUG":
            api_console = logging.StreamHandler(sys.stderr)
            api_console.setLevel(logging.DEBUG)
            api_console.setFormatter(APICallFormatter())
            api_logger.addHandler(api_console)

    try:
        cleanup_old_logs(log_file_path.parent, config.log_retention_days)
    except OSError:
        pass

    _logging_configured = True
    get_logger("mbr.setup").debug(
        f"Logging initialized - File: {log_file_path}, Level: {config.default_level.value}"
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance, setting up logging on first use.

    Args:
        name: Logger name (e.g. 'mbr.services.query')
    """
    if not _logging_configured:
        setup_logging()

    if name not in _loggers:
        _loggers[name] = logging.getLogger(name)
    return _loggers[name]


def log_api_call(
    method: str,
    url: str,
    status_code: Optional[int] = None,
    duration: Optional[float] = None,
    error: Optional[str] = None,
    logger_name: str = "mbr.api",
) -> None:
    """
    Log an API call with structured information.

    Server errors and transport failures log at ERROR, client errors at
    WARNING, everything else at DEBUG.
    """
    logger = get_logger(logger_name)
    extra: Dict[str, Any] = {
        "api_method": method,
        "api_url": url,
        "api_status": status_code,
        "api_duration": duration or 0,
    }
    if error:
        extra["api_error"] = error

    if (error and status_code is None) or (status_code and status_code >= 500):
        logger.error("API call failed", extra=extra)
    elif status_code and 400 <= status_code < 500:
        logger.warning("API call client error", extra=extra)
    else:
        logger.debug("API call completed", extra=extra)


def log_authentication_event(
    auth_type: str,
    success: bool,
    details: Optional[Dict[str, Any]] = None,
    logger_name: str = "mbr.auth",
) -> None:
    """
    Log authentication events. Details are always sanitized.

    Args:
        auth_type: 'api-key' or 'session'
        success: Whether authentication succeeded
        details: Extra context (profile, url, ...)
    """
    logger = get_logger(logger_name)
    extra: Dict[str, Any] = {"auth_type": auth_type, "auth_success": success}
    if details:
        extra["auth_details"] = sanitize_data(details, SENSITIVE_KEYS)

    if success:
        logger.info(f"Authentication successful: {auth_type}", extra=extra)
    else:
        logger.warning(f"Authentication failed: {auth_type}", extra=extra)


def log_application_event(
    event: str,
    level: str = "info",
    details: Optional[Dict[str, Any]] = None,
    logger_name: str = "mbr.app",
) -> None:
    """Log an application-level event (command start, profile saved, ...)"""
    logger = get_logger(logger_name)
    extra: Dict[str, Any] = {"app_event": event}
    if details:
        extra["app_details"] = sanitize_data(details, SENSITIVE_KEYS)

    log_method = getattr(logger, level.lower(), logger.info)
    log_method(f"Application: {event}", extra=extra)
