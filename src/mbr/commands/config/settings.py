"""
Display of profile and effective settings.
"""

from typing import Dict, Mapping, Optional

from mbr.constants import ENV_API_KEY, ENV_URL
from mbr.models import CliFlags, EffectiveConfig, Profile
from mbr.utils.console import display_panel, warning


def mask_secret(value: Optional[str]) -> str:
    if not value:
        return "(not set)"
    if len(value) > 8:
        return value[:4] + "*" * (len(value) - 8) + value[-4:]
    return "*****"


def describe_sources(
    flags: CliFlags, environ: Mapping[str, str], profile: Profile
) -> Dict[str, str]:
    """Where the URL and API key came from, following resolver precedence"""
    sources = {}
    for field_name, flag_value, env_name, profile_value in (
        ("url", flags.url, ENV_URL, profile.url),
        ("api_key", flags.api_key, ENV_API_KEY, profile.api_key),
    ):
        if flag_value:
            sources[field_name] = "command line"
        elif environ.get(env_name):
            sources[field_name] = f"environment ({env_name})"
        elif profile_value:
            sources[field_name] = "profile"
        else:
            sources[field_name] = "default" if field_name == "url" else "none"
    return sources


def display_config(
    profile: Profile,
    config: EffectiveConfig,
    stored: bool,
    config_file: str,
    sources: Optional[Dict[str, str]] = None,
) -> None:
    """Display the active profile with sensitive data masked"""
    if not stored:
        warning(f"Profile '{profile.name}' is not saved yet; showing defaults")

    lines = [
        f"profile: {config.profile}",
        f"url: {config.url}",
        f"email: {profile.email or '(not set)'}",
        f"timeout: {config.timeout:g}s",
        f"api_key: {mask_secret(config.api_key)}",
        f"config_file: {config_file}",
    ]
    for key, value in (sources or {}).items():
        lines.append(f"{key} source: {value}")
    display_panel("\n".join(lines), f"Configuration for '{profile.name}'", "blue")
