"""
HTTP transport for the Metabase REST API.

Every call returns the decoded JSON body or raises ``RemoteError``. Local
preconditions (no URL, no credential) fail with ``MbrError`` before any
request is sent.
"""

import time
from typing import Any, Dict, List, Optional

import httpx

from mbr.constants import DEFAULT_HEADERS, DEFAULT_TIMEOUT, QUERY_TIMEOUT
from mbr.errors import ErrorKind, MbrError, RemoteError
from mbr.logging import get_logger, log_api_call
from mbr.models import Credential
from mbr.utils.url import construct_api_url


def extract_error_message(response: httpx.Response) -> str:
    """Pull a readable message out of a Metabase error response"""
    error_msg = response.text or response.reason_phrase
    try:
        error_data = response.json()
    except ValueError:
        return error_msg

    if isinstance(error_data, dict):
        if error_data.get("message"):
            return str(error_data["message"])
        if isinstance(error_data.get("errors"), dict):
            return "; ".join(f"{k}: {v}" for k, v in error_data["errors"].items())
        if error_data.get("error"):
            return str(error_data["error"])
    elif isinstance(error_data, str):
        return error_data
    return error_msg


class MetabaseClient:
    def __init__(
        self,
        base_url: str,
        credential: Optional[Credential] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url
        self.credential = credential
        self.timeout = timeout
        self.transport = transport
        self.logger = get_logger("mbr.api.client")

    def _check_preconditions(self, authenticated: bool) -> None:
        if not self.base_url:
            raise MbrError(ErrorKind.MISSING_FIELD, "No server URL configured", field="url")
        if authenticated and (self.credential is None or not self.credential.secret):
            raise MbrError(
                ErrorKind.MISSING_CREDENTIAL, "No API key or session token available"
            )

    def _headers(self, authenticated: bool) -> Dict[str, str]:
        headers = dict(DEFAULT_HEADERS)
        if authenticated and self.credential is not None:
            headers.update(self.credential.header)
        return headers

    def request(
        self,
        method: str,
        endpoint: str,
        query: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
        authenticated: bool = True,
    ) -> Any:
        """Send one request and return the decoded JSON body (None when empty)"""
        self._check_preconditions(authenticated)

        method_upper = method.upper()
        url = construct_api_url(self.base_url, endpoint, query)
        timeout = timeout or self.timeout
        start_time = time.time()
        self.logger.debug(f"Starting {method_upper} request to {url}")

        try:
            with httpx.Client(timeout=timeout, transport=self.transport) as client:
                response = client.request(
                    method_upper, url, headers=self._headers(authenticated), json=json_body
                )
        except httpx.TimeoutException as e:
            duration = time.time() - start_time
            log_api_call(method_upper, url, duration=duration, error=f"timeout: {e}")
            raise RemoteError(
                f"Request timed out after {timeout:g}s", endpoint, timed_out=True
            ) from e
        except httpx.RequestError as e:
            duration = time.time() - start_time
            log_api_call(method_upper, url, duration=duration, error=str(e))
            raise RemoteError(f"Could not reach {self.base_url}: {e}", endpoint) from e

        duration = time.time() - start_time
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            error_msg = extract_error_message(e.response)
            log_api_call(
                method_upper,
                url,
                status_code=e.response.status_code,
                duration=duration,
                error=error_msg,
            )
            raise RemoteError(
                f"{e.response.status_code} - {error_msg}",
                endpoint,
                status=e.response.status_code,
            ) from e

        log_api_call(method_upper, url, status_code=response.status_code, duration=duration)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RemoteError(
                "Server returned a response that is not JSON",
                endpoint,
                status=response.status_code,
            ) from e

    # Endpoints

    def get_current_user(self) -> Dict[str, Any]:
        return self.request("GET", "/api/user/current")

    def list_cards(self, collection: Optional[str] = None) -> List[Dict[str, Any]]:
        return self.request("GET", "/api/card", query={"f": "all", "collection": collection}) or []

    def search_cards(
        self,
        query: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Any:
        """Raw /api/search payload restricted to cards"""
        return self.request(
            "GET",
            "/api/search",
            query={"q": query or None, "models": "card", "limit": limit, "offset": offset},
        )

    def get_card(self, card_id: int) -> Dict[str, Any]:
        return self.request("GET", f"/api/card/{card_id}")

    def execute_card(
        self, card_id: int, parameters: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        """Run a saved question. Uses the longer query timeout."""
        return self.request(
            "POST",
            f"/api/card/{card_id}/query",
            json_body={"parameters": parameters or []},
            timeout=max(self.timeout, QUERY_TIMEOUT),
        )

    def login(self, username: str, password: str) -> str:
        """Open a session and return its token"""
        data = self.request(
            "POST",
            "/api/session",
            json_body={"username": username, "password": password},
            authenticated=False,
        )
        token = data.get("id") if isinstance(data, dict) else None
        if not token:
            raise RemoteError("No session id returned by /api/session", "/api/session")
        return str(token)

    def logout(self) -> None:
        self.request("DELETE", "/api/session")
