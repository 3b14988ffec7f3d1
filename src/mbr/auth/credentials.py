"""
Session token storage in the OS keychain.

Tokens live under service ``mbr-cli`` with username ``session-<profile>``.
API keys are never written here.
"""

from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from mbr.constants import KEYRING_SERVICE
from mbr.errors import ErrorKind, MbrError
from mbr.logging import get_logger


def session_key(profile: str) -> str:
    return f"session-{profile}"


class CredentialStore:
    def __init__(self, service: str = KEYRING_SERVICE):
        self.service = service
        self.logger = get_logger("mbr.auth.credentials")

    def _unavailable(self, action: str, exc: Exception) -> MbrError:
        self.logger.error(f"Keyring {action} failed: {exc}")
        return MbrError(
            ErrorKind.MISSING_CREDENTIAL,
            f"Secure credential store unavailable ({action}): {exc}",
            hint="Use MBR_API_KEY / --api-key, or install a keyring backend",
        )

    def get_session(self, profile: str) -> Optional[str]:
        """Stored session token for the profile, or None"""
        try:
            token = keyring.get_password(self.service, session_key(profile))
        except KeyringError as e:
            raise self._unavailable("read", e) from e
        self.logger.debug(
            f"Session token for profile '{profile}' {'found' if token else 'not found'}"
        )
        return token or None

    def set_session(self, profile: str, token: str) -> None:
        try:
            keyring.set_password(self.service, session_key(profile), token)
        except KeyringError as e:
            raise self._unavailable("write", e) from e
        self.logger.info(f"Stored session token for profile '{profile}'")

    def clear_session(self, profile: str) -> bool:
        """
        Remove the stored token. Clearing an absent token is a no-op.

        Returns:
            True if a token was deleted
        """
        try:
            keyring.delete_password(self.service, session_key(profile))
        except PasswordDeleteError:
            self.logger.debug(f"No session token to clear for profile '{profile}'")
            return False
        except KeyringError as e:
            raise self._unavailable("delete", e) from e
        self.logger.info(f"Cleared session token for profile '{profile}'")
        return True
