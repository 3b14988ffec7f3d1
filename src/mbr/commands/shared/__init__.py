"""
Shared helpers for command modules.
"""

from .cli_options import CommonOptions
from .context import AppContext, cli_errors, get_app_context

__all__ = ["AppContext", "CommonOptions", "cli_errors", "get_app_context"]
