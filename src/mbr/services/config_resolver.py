"""
Layered configuration resolution.

Each field takes the first defined value from: CLI flag, environment
variable, active profile record, built-in default. Empty strings count as
unset. Nothing here reads files or touches the keychain.
"""

from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

from mbr.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_URL,
    ENV_API_KEY,
    ENV_CONFIG_DIR,
    ENV_TIMEOUT,
    ENV_URL,
)
from mbr.errors import ErrorKind, MbrError
from mbr.models import CliFlags, EffectiveConfig, Profile
from mbr.utils.config_store import ConfigStore

_DEFAULTS: Dict[str, Any] = {
    "url": DEFAULT_URL,
    "api_key": None,
    "timeout": DEFAULT_TIMEOUT,
}


def _first_set(*candidates: Any) -> Any:
    for value in candidates:
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _parse_timeout(value: Any, source: str) -> Optional[float]:
    if value is None:
        return None
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise MbrError(
            ErrorKind.INVALID_VALUE,
            f"Timeout from {source} must be a number of seconds, got '{value}'",
            field="timeout",
        )
    if timeout <= 0:
        raise MbrError(
            ErrorKind.INVALID_VALUE,
            f"Timeout from {source} must be positive, got {value}",
            field="timeout",
        )
    return timeout


def resolve_profile(profiles: Mapping[str, Profile], name: str) -> Profile:
    """Stored profile, or an unsaved default one with the same name"""
    profile = profiles.get(name)
    if profile is not None:
        return profile
    return Profile(name=name, url=DEFAULT_URL)


def resolve_config_dir(cli_flags: CliFlags, environ: Mapping[str, str]) -> Path:
    """--config-dir, then MBR_CONFIG_DIR, then the platform directory"""
    chosen = _first_set(cli_flags.config_dir, environ.get(ENV_CONFIG_DIR))
    if chosen:
        return Path(chosen).expanduser()
    return ConfigStore.default_config_dir()


def resolve_config(
    cli_flags: CliFlags,
    environ: Mapping[str, str],
    profiles: Mapping[str, Profile],
    profile_name: str,
    required: Iterable[str] = ("url",),
) -> EffectiveConfig:
    """
    Merge every source into the settings for this invocation.

    Args:
        cli_flags: Parsed global options
        environ: Environment mapping (usually os.environ)
        profiles: Profiles loaded from the config file
        profile_name: Active profile name
        required: Fields that must resolve to a value

    Returns:
        EffectiveConfig

    Raises:
        MbrError: MissingField naming the first unresolved required field,
            or InvalidValue for an unparsable timeout
    """
    profile = profiles.get(profile_name)

    url = _first_set(
        cli_flags.url,
        environ.get(ENV_URL),
        profile.url if profile else None,
        _DEFAULTS["url"],
    )
    api_key = _first_set(
        cli_flags.api_key,
        environ.get(ENV_API_KEY),
        profile.api_key if profile else None,
        _DEFAULTS["api_key"],
    )

    timeout = _parse_timeout(cli_flags.timeout, "--timeout")
    if timeout is None:
        timeout = _parse_timeout(_first_set(environ.get(ENV_TIMEOUT)), ENV_TIMEOUT)
    if timeout is None and profile is not None:
        timeout = _parse_timeout(profile.timeout, f"profile '{profile_name}'")
    if timeout is None:
        timeout = _DEFAULTS["timeout"]

    resolved = {"url": url, "api_key": api_key, "timeout": timeout}
    for field_name in required:
        if resolved.get(field_name) in (None, ""):
            raise MbrError(
                ErrorKind.MISSING_FIELD,
                f"'{field_name}' is not set for profile '{profile_name}'",
                field=field_name,
            )

    return EffectiveConfig(
        profile=profile_name,
        url=str(url).strip().rstrip("/"),
        api_key=str(api_key).strip() if api_key else None,
        config_dir=resolve_config_dir(cli_flags, environ),
        verbose=cli_flags.verbose,
        timeout=timeout,
    )
