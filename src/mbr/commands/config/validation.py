"""
Validation of values written by 'mbr config set'.
"""

from typing import Optional

from mbr.errors import ErrorKind, MbrError


def validate_url(url: str) -> str:
    url = (url or "").strip()
    if not url:
        raise MbrError(ErrorKind.INVALID_VALUE, "URL cannot be empty", field="url")
    if not url.startswith(("http://", "https://")):
        raise MbrError(
            ErrorKind.INVALID_VALUE,
            f"Invalid URL '{url}': URL must start with http:// or https://",
            field="url",
        )
    return url.rstrip("/")


def validate_email(email: str) -> str:
    email = (email or "").strip()
    if not email:
        raise MbrError(ErrorKind.INVALID_VALUE, "Email cannot be empty", field="email")
    parts = email.split("@")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise MbrError(
            ErrorKind.INVALID_VALUE,
            f"Invalid email '{email}': Email must have username and domain parts",
            field="email",
        )
    if "." not in parts[1]:
        raise MbrError(
            ErrorKind.INVALID_VALUE,
            f"Invalid email '{email}': Domain must contain a dot",
            field="email",
        )
    return email


def validate_timeout(timeout: Optional[float]) -> Optional[float]:
    if timeout is not None and timeout <= 0:
        raise MbrError(
            ErrorKind.INVALID_VALUE,
            f"Timeout must be positive, got {timeout}",
            field="timeout",
        )
    return timeout
