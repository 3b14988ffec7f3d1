"""
URL construction utilities.
"""

from typing import Dict, Optional
from urllib.parse import urlencode


def normalize_base_url(base_url: str) -> str:
    """Strip whitespace and trailing slashes; ``/api`` suffixes are dropped too"""
    base_url = (base_url or "").strip().rstrip("/")
    if base_url.endswith("/api"):
        base_url = base_url[: -len("/api")]
    return base_url


def construct_api_url(
    base_url: str, endpoint: str, query: Optional[Dict[str, object]] = None
) -> str:
    """
    Join the server base URL and an API endpoint.

    Args:
        base_url: e.g. https://metabase.example.com or https://host/metabase/
        endpoint: e.g. /api/card/42 or api/card/42
        query: Optional query parameters; None values are skipped

    Returns:
        Full API URL
    """
    endpoint = endpoint or ""
    if not endpoint.startswith("/"):
        endpoint = "/" + endpoint

    url = f"{normalize_base_url(base_url)}{endpoint}"
    if query:
        params = {k: v for k, v in query.items() if v is not None}
        if params:
            url = f"{url}?{urlencode(params)}"
    return url
