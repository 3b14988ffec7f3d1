"""
Configuration management module.

- config_manager: typer commands (show, set, validate)
- settings: display of profiles with secrets masked
- validation: checks for values written by 'config set'

Usage:
    from mbr.commands.config import app
"""

from .config_manager import app
from .settings import display_config, mask_secret
from .validation import validate_email, validate_url

__all__ = [
    "app",
    "display_config",
    "mask_secret",
    "validate_email",
    "validate_url",
]
