"""
Logging configuration for the MBR CLI.

Cross-platform log directory detection and the knobs setup_logging reads.
"""

import os
import platform
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from mbr.constants import APP_NAME, LOG_FILE_NAME, LOG_RETENTION_DAYS, SENSITIVE_KEYS


class LogLevel(Enum):
    """Log levels for MBR logging"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass
class LogConfig:
    """Configuration class for MBR logging"""

    log_filename: str = f"{LOG_FILE_NAME}.log"
    log_retention_days: int = LOG_RETENTION_DAYS

    # File gets everything from default_level up, the terminal only warnings
    default_level: LogLevel = LogLevel.INFO
    console_level: LogLevel = LogLevel.WARNING

    include_timestamps: bool = True
    log_api_calls: bool = True

    sanitize_sensitive_data: bool = True
    sensitive_keys: tuple = SENSITIVE_KEYS

    @classmethod
    def for_verbosity(cls, verbose: bool) -> "LogConfig":
        if verbose:
            return cls(default_level=LogLevel.DEBUG, console_level=LogLevel.DEBUG)
        return cls()


def get_log_directory() -> Path:
    """
    Get the log directory for the current operating system.

    Falls back to ./logs when the platform directory cannot be created.
    """
    system = platform.system().lower()

    if system == "windows":
        base_dir = Path(os.environ.get("APPDATA", ""))
        if not base_dir.exists():
            base_dir = Path.home()
        log_dir = base_dir / APP_NAME / "logs"
    elif system == "darwin":
        log_dir = Path.home() / "Library" / "Logs" / APP_NAME
    else:
        xdg_data_home = os.environ.get("XDG_DATA_HOME")
        base_dir = Path(xdg_data_home) if xdg_data_home else Path.home() / ".local" / "share"
        log_dir = base_dir / APP_NAME / "logs"

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        return log_dir
    except OSError:
        fallback_dir = Path.cwd() / "logs"
        fallback_dir.mkdir(exist_ok=True)
        return fallback_dir


def get_log_file_path(config: Optional[LogConfig] = None) -> Path:
    """Full path to the log file"""
    if config is None:
        config = LogConfig()
    return get_log_directory() / config.log_filename
