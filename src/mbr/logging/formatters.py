"""
Custom formatters for MBR logging.
"""

import logging
from datetime import datetime
from typing import Optional

from mbr.constants import SENSITIVE_KEYS
from .utils import sanitize_data, sanitize_string


class MbrFormatter(logging.Formatter):
    """
    Formatter for general MBR log entries.

    Masks credentials in the message and in dict/list arguments.
    """

    def __init__(
        self,
        include_timestamps: bool = True,
        sanitize_sensitive: bool = True,
        sensitive_keys: Optional[tuple] = None,
    ):
        self.sanitize_sensitive = sanitize_sensitive
        self.sensitive_keys = sensitive_keys or SENSITIVE_KEYS
        fmt_parts = ["%(levelname)s", "[%(name)s]", "%(message)s"]
        if include_timestamps:
            fmt_parts.insert(0, "%(asctime)s")
        super().__init__(fmt=" ".join(fmt_parts), datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        if self.sanitize_sensitive:
            if isinstance(record.msg, (dict, list)):
                record.msg = sanitize_data(record.msg, self.sensitive_keys)
            elif isinstance(record.msg, str):
                record.msg = sanitize_string(record.msg)
            if isinstance(record.args, tuple):
                record.args = tuple(
                    sanitize_data(arg, self.sensitive_keys)
                    if isinstance(arg, (dict, list))
                    else arg
                    for arg in record.args
                )
        return super().format(record)


class APICallFormatter(logging.Formatter):
    """
    One line per HTTP call, e.g.
    ``2026-01-02 10:00:00 DEBUG [mbr.api] GET /api/card -> 200 (12.5ms)``
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        method = getattr(record, "api_method", "UNKNOWN")
        url = sanitize_string(getattr(record, "api_url", ""))
        status = getattr(record, "api_status", None) or "---"
        duration = round(getattr(record, "api_duration", 0) * 1000, 2)

        lines = [
            f"{timestamp} {record.levelname} [{record.name}] "
            f"{method} {url} -> {status} ({duration}ms)"
        ]
        api_error = getattr(record, "api_error", None)
        if api_error:
            lines.append(f"    Error: {sanitize_string(str(api_error))}")
        return "\n".join(lines)
