"""
Authentication state for one profile.

UNAUTHENTICATED -> VALIDATING -> AUTHENTICATED, and AUTHENTICATED ->
INVALIDATED on a 401, which clears the stored session and falls back to
UNAUTHENTICATED. Timeouts never clear anything.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from mbr.api.client import MetabaseClient
from mbr.auth.credentials import CredentialStore
from mbr.errors import ErrorKind, MbrError, RemoteError
from mbr.logging import get_logger, log_authentication_event
from mbr.models import Credential, CredentialKind, EffectiveConfig


class AuthStatus(Enum):
    UNAUTHENTICATED = "unauthenticated"
    VALIDATING = "validating"
    AUTHENTICATED = "authenticated"
    INVALIDATED = "invalidated"


@dataclass(frozen=True)
class AuthSnapshot:
    profile: str
    mode: str
    state: AuthStatus
    has_session: bool


ClientFactory = Callable[..., MetabaseClient]


class AuthState:
    def __init__(
        self,
        config: EffectiveConfig,
        credential_store: CredentialStore,
        client_factory: ClientFactory = MetabaseClient,
    ):
        self.config = config
        self.credential_store = credential_store
        self.client_factory = client_factory
        self.state = AuthStatus.UNAUTHENTICATED
        self.credential: Optional[Credential] = None
        self.logger = get_logger("mbr.auth.auth_state")

    @property
    def profile(self) -> str:
        return self.config.profile

    def _client(self, credential: Optional[Credential]) -> MetabaseClient:
        return self.client_factory(self.config.url, credential, self.config.timeout)

    def resolve_credential(self, api_key: Optional[str] = None) -> Optional[Credential]:
        """API key if one resolved, else the stored session token, else None"""
        api_key = api_key if api_key is not None else self.config.api_key
        if api_key:
            self.credential = Credential.api_key(api_key)
        else:
            token = self.credential_store.get_session(self.profile)
            self.credential = Credential.session(token) if token else None
        return self.credential

    def require_credential(self) -> Credential:
        credential = self.credential or self.resolve_credential()
        if credential is None:
            raise MbrError(
                ErrorKind.MISSING_CREDENTIAL,
                f"No API key or session for profile '{self.profile}'",
            )
        return credential

    def client(self) -> MetabaseClient:
        """Client carrying the current credential"""
        return self._client(self.require_credential())

    def validate(
        self, credential: Optional[Credential] = None, url: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Check the credential against /api/user/current.

        Returns:
            The current user record

        Raises:
            MbrError: MissingCredential, Unauthorized, Timeout, InvalidRequest
                or ApiUnavailable
        """
        credential = credential or self.credential or self.resolve_credential()
        if credential is None:
            raise MbrError(
                ErrorKind.MISSING_CREDENTIAL,
                f"No API key or session for profile '{self.profile}'",
            )

        previous = self.state
        self.state = AuthStatus.VALIDATING
        client = self.client_factory(url or self.config.url, credential, self.config.timeout)
        try:
            user = client.get_current_user()
        except RemoteError as e:
            log_authentication_event(
                credential.kind.value, False, {"profile": self.profile, "error": e.message}
            )
            if e.is_timeout:
                self.state = previous
                raise MbrError(ErrorKind.TIMEOUT, e.message, status=e.status) from e
            if e.is_unauthorized:
                self.handle_unauthorized()
                raise MbrError(
                    ErrorKind.UNAUTHORIZED, "The server rejected the credential", status=401
                ) from e
            self.state = AuthStatus.UNAUTHENTICATED
            if e.status == 403:
                raise MbrError(
                    ErrorKind.UNAUTHORIZED, "The credential lacks permission", status=403
                ) from e
            if e.is_client_error:
                raise MbrError(ErrorKind.INVALID_REQUEST, e.message, status=e.status) from e
            raise MbrError(ErrorKind.API_UNAVAILABLE, e.message, status=e.status) from e

        self.credential = credential
        self.state = AuthStatus.AUTHENTICATED
        log_authentication_event(
            credential.kind.value, True, {"profile": self.profile, "url": self.config.url}
        )
        return user or {}

    def _store_unavailable(self, e: MbrError, action: str) -> None:
        if e.kind is not ErrorKind.MISSING_CREDENTIAL:
            raise e
        self.logger.warning(f"Skipped {action} for profile '{self.profile}': {e.message}")

    def _has_stored_session(self) -> bool:
        try:
            return self.credential_store.get_session(self.profile) is not None
        except MbrError as e:
            self._store_unavailable(e, "session lookup")
            return False

    def invalidate(self) -> None:
        """
        Forget the session token for this profile. Safe to call repeatedly.

        A keychain that cannot be reached holds nothing to clear.
        """
        try:
            self.credential_store.clear_session(self.profile)
        except MbrError as e:
            self._store_unavailable(e, "session clearing")
        if self.credential is not None and self.credential.kind is CredentialKind.SESSION:
            self.credential = None
        self.state = AuthStatus.UNAUTHENTICATED

    def handle_unauthorized(self) -> None:
        self.logger.warning(f"Credential for profile '{self.profile}' was rejected (401)")
        self.state = AuthStatus.INVALIDATED
        self.invalidate()

    def login(self, username: str, password: str) -> Credential:
        """Open a Metabase session and persist its token"""
        self.state = AuthStatus.VALIDATING
        try:
            token = self._client(None).login(username, password)
        except RemoteError as e:
            self.state = AuthStatus.UNAUTHENTICATED
            log_authentication_event("session", False, {"profile": self.profile, "user": username})
            if e.is_timeout:
                raise MbrError(ErrorKind.TIMEOUT, e.message, status=e.status) from e
            if e.is_client_error:
                raise MbrError(
                    ErrorKind.UNAUTHORIZED,
                    f"Login failed for '{username}': {e.message}",
                    status=e.status,
                ) from e
            raise MbrError(ErrorKind.API_UNAVAILABLE, e.message, status=e.status) from e

        self.credential_store.set_session(self.profile, token)
        self.credential = Credential.session(token)
        self.state = AuthStatus.AUTHENTICATED
        log_authentication_event("session", True, {"profile": self.profile, "user": username})
        return self.credential

    def logout(self) -> bool:
        """
        End the stored session on the server (best effort) and forget it.

        Returns:
            True if a session token was stored
        """
        token = self.credential_store.get_session(self.profile)
        if token:
            try:
                self._client(Credential.session(token)).logout()
            except RemoteError as e:
                self.logger.warning(f"Server-side logout failed, clearing locally: {e.message}")
        self.invalidate()
        return bool(token)

    def status(self) -> AuthSnapshot:
        has_session = self._has_stored_session()
        if self.config.api_key:
            mode = CredentialKind.API_KEY.value
        elif has_session:
            mode = CredentialKind.SESSION.value
        else:
            mode = "none"
        return AuthSnapshot(
            profile=self.profile, mode=mode, state=self.state, has_session=has_session
        )
