"""
Helpers for MBR logging: sanitization of secrets and log retention.
"""

import re
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Tuple

from mbr.constants import LOG_FILE_NAME

_STRING_PATTERNS = [
    # Credential headers echoed into messages
    (r"(x-api-key|x-metabase-session)(['\"]?\s*[:=]\s*['\"]?)[^'\"\s,}]+", r"\1\2***"),
    # URL parameters with sensitive names
    (r"([?&](?:token|key|api_key|password|session)=)[^&\s]+", r"\1***"),
    (r"Bearer\s+[A-Za-z0-9\-._~+/]+=*", "Bearer ***"),
]


def sanitize_data(data: Any, sensitive_keys: Tuple[str, ...]) -> Any:
    """
    Recursively sanitize sensitive data in dicts, lists and strings.

    Args:
        data: Data to sanitize
        sensitive_keys: Key fragments whose values must be hidden

    Returns:
        A copy with sensitive values replaced
    """
    if isinstance(data, dict):
        return sanitize_dict(data, sensitive_keys)
    if isinstance(data, list):
        return sanitize_list(data, sensitive_keys)
    if isinstance(data, str):
        return sanitize_string(data)
    return data


def sanitize_dict(data: Dict[str, Any], sensitive_keys: Tuple[str, ...]) -> Dict[str, Any]:
    sanitized = {}
    for key, value in data.items():
        key_lower = str(key).lower()
        if any(sensitive.lower() in key_lower for sensitive in sensitive_keys):
            if isinstance(value, str) and len(value) > 8:
                # Keep first and last 4 chars so keys stay distinguishable in logs
                sanitized[key] = f"{value[:4]}...{value[-4:]}"
            else:
                sanitized[key] = "***"
        else:
            sanitized[key] = sanitize_data(value, sensitive_keys)
    return sanitized


def sanitize_list(data: List[Any], sensitive_keys: Tuple[str, ...]) -> List[Any]:
    return [sanitize_data(item, sensitive_keys) for item in data]


def sanitize_string(data: str) -> str:
    """Mask credential-looking fragments inside free text"""
    sanitized = data
    for pattern, replacement in _STRING_PATTERNS:
        sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)
    return sanitized


def cleanup_old_logs(log_directory: Path, retention_days: int = 7) -> int:
    """
    Delete rotated log files older than the retention window.

    Returns:
        Number of files removed
    """
    if not log_directory.exists():
        return 0

    cutoff = (datetime.now() - timedelta(days=retention_days)).timestamp()
    removed = 0
    for log_file in log_directory.glob(f"{LOG_FILE_NAME}.log.*"):
        try:
            if log_file.stat().st_mtime < cutoff:
                log_file.unlink()
                removed += 1
        except OSError:
            continue
    return removed
