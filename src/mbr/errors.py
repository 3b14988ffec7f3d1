"""
Error taxonomy for the MBR CLI.

Every failure the core can produce is one member of ``ErrorKind``. Kinds are
grouped by subsystem so that each boundary (CLI exit codes, the interactive
session, the auth state machine) can handle the whole closed set.
"""

from enum import Enum
from typing import Optional

from mbr.constants import (
    EXIT_API_ERROR,
    EXIT_AUTH_ERROR,
    EXIT_CONFIG_ERROR,
    EXIT_VALIDATION_ERROR,
)


class Subsystem(Enum):
    """Where an error kind originates"""
    CONFIG = "config"
    AUTH = "auth"
    API = "api"
    VALIDATION = "validation"
    RENDER = "render"


class ErrorKind(Enum):
    """Closed set of error kinds"""
    # Configuration resolution
    MISSING_FIELD = ("MissingField", Subsystem.CONFIG)
    CONFIG_PARSE = ("ConfigParse", Subsystem.CONFIG)
    INVALID_VALUE = ("InvalidValue", Subsystem.CONFIG)
    # Authentication outcomes
    MISSING_CREDENTIAL = ("MissingCredential", Subsystem.AUTH)
    UNAUTHORIZED = ("Unauthorized", Subsystem.AUTH)
    TIMEOUT = ("Timeout", Subsystem.AUTH)
    AUTH_REQUIRED = ("AuthRequired", Subsystem.AUTH)
    # Execution outcomes
    INVALID_REQUEST = ("InvalidRequest", Subsystem.API)
    API_UNAVAILABLE = ("ApiUnavailable", Subsystem.API)
    # Query validation
    UNKNOWN_PARAMETER = ("UnknownParameter", Subsystem.VALIDATION)
    MISSING_PARAMETER = ("MissingParameter", Subsystem.VALIDATION)
    INVALID_PARAMETER_FORMAT = ("InvalidParameterFormat", Subsystem.VALIDATION)
    # Navigation past known bounds, recovered locally
    RENDER_BOUNDS = ("RenderBoundsError", Subsystem.RENDER)

    @property
    def tag(self) -> str:
        return self.value[0]

    @property
    def subsystem(self) -> Subsystem:
        return self.value[1]


EXIT_CODES = {
    Subsystem.CONFIG: EXIT_CONFIG_ERROR,
    Subsystem.AUTH: EXIT_AUTH_ERROR,
    Subsystem.API: EXIT_API_ERROR,
    Subsystem.VALIDATION: EXIT_VALIDATION_ERROR,
    Subsystem.RENDER: EXIT_API_ERROR,
}

DEFAULT_HINTS = {
    ErrorKind.MISSING_FIELD: (
        "Set it with 'mbr config set' or the matching MBR_* environment variable"
    ),
    ErrorKind.CONFIG_PARSE: "Fix or remove the configuration file and try again",
    ErrorKind.INVALID_VALUE: "Check the value and try again",
    ErrorKind.MISSING_CREDENTIAL: (
        "Set MBR_API_KEY, pass --api-key, or run 'mbr auth login'"
    ),
    ErrorKind.UNAUTHORIZED: (
        "The server rejected your credential. Check the API key or run "
        "'mbr auth login' again"
    ),
    ErrorKind.TIMEOUT: (
        "The server did not answer in time. Check your connection or raise "
        "--timeout; your credential was left untouched"
    ),
    ErrorKind.AUTH_REQUIRED: (
        "Your credential is no longer valid. Run 'mbr auth login' or provide "
        "a fresh MBR_API_KEY"
    ),
    ErrorKind.INVALID_REQUEST: "Check the question ID and parameters",
    ErrorKind.API_UNAVAILABLE: (
        "The server is unreachable or failing. Try again in a moment"
    ),
    ErrorKind.UNKNOWN_PARAMETER: (
        "Run 'mbr query <id> --help' and check the question's parameters"
    ),
    ErrorKind.MISSING_PARAMETER: "Pass it with --param name=value",
    ErrorKind.INVALID_PARAMETER_FORMAT: "Parameters must look like name=value",
    ErrorKind.RENDER_BOUNDS: "",
}


class MbrError(Exception):
    """Error raised by every MBR subsystem.

    Attributes:
        kind: Tag from the closed ``ErrorKind`` set
        message: What went wrong
        hint: Remediation text for the user (distinct from the tag)
        field: Offending config field or parameter name, if any
        status: HTTP status behind the error, if any
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        hint: Optional[str] = None,
        field: Optional[str] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.hint = hint if hint is not None else DEFAULT_HINTS[kind]
        self.field = field
        self.status = status

    @property
    def exit_code(self) -> int:
        return EXIT_CODES[self.kind.subsystem]

    def __str__(self) -> str:
        return f"{self.kind.tag}: {self.message}"


class RemoteError(Exception):
    """Raised by the HTTP client when a call does not produce a JSON body.

    ``status`` is None for transport failures (connection refused, DNS,
    timeouts). ``timed_out`` distinguishes timeouts from other transport
    failures.
    """

    def __init__(
        self,
        message: str,
        endpoint: str,
        status: Optional[int] = None,
        timed_out: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.endpoint = endpoint
        self.status = status
        self.timed_out = timed_out

    @property
    def is_unauthorized(self) -> bool:
        return self.status == 401

    @property
    def is_timeout(self) -> bool:
        return self.timed_out or self.status in (408, 504)

    @property
    def is_client_error(self) -> bool:
        return self.status is not None and 400 <= self.status < 500

    @property
    def is_server_error(self) -> bool:
        return self.status is None or self.status >= 500
