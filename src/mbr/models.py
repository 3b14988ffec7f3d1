"""
Domain models shared by the services, display and command layers.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from mbr.constants import API_KEY_HEADER, DEFAULT_URL, SESSION_HEADER
from mbr.errors import ErrorKind, MbrError


@dataclass
class Profile:
    """Named connection settings for one Metabase instance"""

    name: str
    url: str = DEFAULT_URL
    email: Optional[str] = None
    timeout: Optional[float] = None
    api_key: Optional[str] = None

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "Profile":
        timeout = data.get("timeout")
        if timeout not in (None, ""):
            try:
                timeout = float(timeout)
            except (TypeError, ValueError) as e:
                raise MbrError(
                    ErrorKind.CONFIG_PARSE,
                    f"Profile '{name}' has an invalid timeout: {timeout!r}",
                    field="timeout",
                ) from e
        else:
            timeout = None
        return cls(
            name=name,
            url=data.get("url") or DEFAULT_URL,
            email=data.get("email") or None,
            timeout=timeout,
            api_key=data.get("api_key") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serializable record; the api_key is only written back if it was read"""
        record: Dict[str, Any] = {"url": self.url}
        if self.email:
            record["email"] = self.email
        if self.timeout is not None:
            record["timeout"] = self.timeout
        if self.api_key:
            record["api_key"] = self.api_key
        return record


@dataclass
class CliFlags:
    """Global options as parsed from the command line"""

    profile: Optional[str] = None
    url: Optional[str] = None
    api_key: Optional[str] = None
    config_dir: Optional[str] = None
    timeout: Optional[float] = None
    verbose: bool = False


@dataclass(frozen=True)
class EffectiveConfig:
    """Settings actually used for one invocation. Never persisted."""

    profile: str
    url: str
    api_key: Optional[str]
    config_dir: Path
    verbose: bool
    timeout: float


class CredentialKind(Enum):
    API_KEY = "api-key"
    SESSION = "session"


@dataclass(frozen=True)
class Credential:
    """Secret used to authenticate requests"""

    kind: CredentialKind
    secret: str

    @classmethod
    def api_key(cls, secret: str) -> "Credential":
        return cls(CredentialKind.API_KEY, secret)

    @classmethod
    def session(cls, secret: str) -> "Credential":
        return cls(CredentialKind.SESSION, secret)

    @property
    def header(self) -> Dict[str, str]:
        name = API_KEY_HEADER if self.kind is CredentialKind.API_KEY else SESSION_HEADER
        return {name: self.secret}

    def masked(self) -> str:
        if len(self.secret) > 8:
            return f"{self.secret[:4]}...{self.secret[-4:]}"
        return "*****"

    def __repr__(self) -> str:
        return f"Credential(kind={self.kind.value}, secret={self.masked()!r})"


@dataclass(frozen=True)
class QuestionFilter:
    search: Optional[str] = None
    limit: Optional[int] = None
    collection: Optional[str] = None


@dataclass(frozen=True)
class ParameterSpec:
    """One input a question declares"""

    slug: str
    name: str
    type: str
    required: bool = False
    default: Any = None
    target: Optional[List[Any]] = None
    id: Optional[str] = None

    @property
    def must_be_supplied(self) -> bool:
        return self.required and self.default is None


@dataclass(frozen=True)
class Column:
    name: str
    display_name: str
    base_type: str = "type/Text"


@dataclass(frozen=True)
class TabularResult:
    """Format-agnostic rows and columns; immutable once built"""

    columns: Tuple[Column, ...]
    rows: Tuple[Tuple[Any, ...], ...] = field(default_factory=tuple)

    @property
    def headers(self) -> List[str]:
        return [col.display_name for col in self.columns]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def slice_rows(self, offset: int = 0, limit: Optional[int] = None) -> "TabularResult":
        end = None if limit is None else offset + limit
        return TabularResult(self.columns, self.rows[offset:end])

    def select_columns(self, names: List[str]) -> "TabularResult":
        """Keep only the named columns (matched on name or display name), in the given order"""
        indices = column_indices(self.columns, names)
        columns = tuple(self.columns[i] for i in indices)
        rows = tuple(tuple(row[i] for i in indices) for row in self.rows)
        return TabularResult(columns, rows)


def column_indices(columns: Tuple[Column, ...], names: List[str]) -> List[int]:
    """Positions of the named columns (name or display name), in the given order"""
    indices: List[int] = []
    for wanted in names:
        for index, col in enumerate(columns):
            if wanted in (col.name, col.display_name) and index not in indices:
                indices.append(index)
                break
    return indices
