"""
Per-invocation wiring shared by all commands.

The root callback stores an ``AppContext`` in ``ctx.obj``; commands ask it
for the store, the effective config and the services they need.
"""

import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Mapping, Optional

import typer

from mbr.auth.auth_state import AuthState
from mbr.auth.credentials import CredentialStore
from mbr.errors import MbrError
from mbr.logging import get_logger
from mbr.models import CliFlags, EffectiveConfig, Profile
from mbr.services.config_resolver import resolve_config, resolve_config_dir, resolve_profile
from mbr.services.query_service import QueryService
from mbr.utils.config_store import ConfigStore
from mbr.utils.console import error


@dataclass
class AppContext:
    flags: CliFlags = field(default_factory=CliFlags)
    environ: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))
    _store: Optional[ConfigStore] = field(default=None, repr=False)

    @property
    def config_dir(self) -> Path:
        return resolve_config_dir(self.flags, self.environ)

    @property
    def store(self) -> ConfigStore:
        if self._store is None:
            self._store = ConfigStore(self.config_dir)
        return self._store

    @property
    def profile_name(self) -> str:
        return self.flags.profile or self.store.default_profile()

    def profile(self) -> Profile:
        return resolve_profile(self.store.load_profiles(), self.profile_name)

    def effective_config(self, required: Iterable[str] = ("url",)) -> EffectiveConfig:
        return resolve_config(
            self.flags,
            self.environ,
            self.store.load_profiles(),
            self.profile_name,
            required=tuple(required),
        )

    def credential_store(self) -> CredentialStore:
        return CredentialStore()

    def auth_state(self, config: Optional[EffectiveConfig] = None) -> AuthState:
        return AuthState(config or self.effective_config(), self.credential_store())

    def query_service(self) -> QueryService:
        auth = self.auth_state()
        return QueryService(auth.client(), auth)


def get_app_context(ctx: typer.Context) -> AppContext:
    root = ctx.find_root()
    if not isinstance(root.obj, AppContext):
        root.obj = AppContext()
    return root.obj


@contextmanager
def cli_errors(logger_name: str = "mbr.commands") -> Iterator[None]:
    """Report an MbrError with its hint and exit with the kind's exit code"""
    try:
        yield
    except MbrError as e:
        get_logger(logger_name).error(f"{e.kind.tag}: {e.message}")
        error(str(e), e.hint)
        raise typer.Exit(e.exit_code)
