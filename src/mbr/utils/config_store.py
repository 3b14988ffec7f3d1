import os
import platform
from pathlib import Path
from typing import Dict, Optional

import toml

from mbr.constants import APP_NAME, CONFIG_FILE_NAME, DEFAULT_PROFILE
from mbr.errors import ErrorKind, MbrError
from mbr.models import Profile


class ConfigStore:
    """Profile records kept in ``<config_dir>/config.toml``.

    Layout::

        default_profile = "default"

        [profiles.default]
        url = "http://localhost:3000"
        email = "me@example.com"
    """

    def __init__(self, config_dir: Optional[Path] = None):
        self.base_dir = Path(config_dir) if config_dir else self.default_config_dir()
        self.config_file = self.base_dir / CONFIG_FILE_NAME

    @staticmethod
    def default_config_dir() -> Path:
        """Get platform-specific config directory"""
        system = platform.system()
        if system == "Windows":
            base_dir = os.environ.get("APPDATA", "")
            return Path(base_dir) / APP_NAME
        elif system == "Darwin":  # macOS
            return Path.home() / "Library" / "Application Support" / APP_NAME
        else:  # Linux and others
            xdg_config = os.environ.get("XDG_CONFIG_HOME", "")
            if xdg_config:
                return Path(xdg_config) / APP_NAME
            return Path.home() / ".config" / APP_NAME

    def _ensure_config_dir(self):
        os.makedirs(self.base_dir, exist_ok=True)

    def _read(self) -> Dict:
        if not self.config_file.exists():
            return {}
        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                return toml.load(f)
        except toml.TomlDecodeError as e:
            raise MbrError(
                ErrorKind.CONFIG_PARSE,
                f"Could not parse {self.config_file}: {e}",
            ) from e
        except OSError as e:
            raise MbrError(
                ErrorKind.CONFIG_PARSE,
                f"Could not read {self.config_file}: {e}",
            ) from e

    def _write(self, data: Dict) -> None:
        self._ensure_config_dir()
        with open(self.config_file, "w", encoding="utf-8") as f:
            toml.dump(data, f)

    def load_profiles(self) -> Dict[str, Profile]:
        """All stored profiles by name. A missing file is an empty store."""
        profiles = self._read().get("profiles", {})
        if not isinstance(profiles, dict):
            raise MbrError(
                ErrorKind.CONFIG_PARSE,
                f"'profiles' in {self.config_file} must be a table",
            )
        return {
            name: Profile.from_dict(name, record)
            for name, record in profiles.items()
            if isinstance(record, dict)
        }

    def get_profile(self, name: str) -> Optional[Profile]:
        return self.load_profiles().get(name)

    def save_profile(self, profile: Profile) -> None:
        """Create or replace one profile, leaving the others untouched"""
        data = self._read()
        data.setdefault("profiles", {})[profile.name] = profile.to_dict()
        data.setdefault("default_profile", profile.name)
        self._write(data)

    def default_profile(self) -> str:
        """Profile used when --profile is not given"""
        return self._read().get("default_profile") or DEFAULT_PROFILE

    def set_default_profile(self, name: str) -> None:
        data = self._read()
        data["default_profile"] = name
        self._write(data)
