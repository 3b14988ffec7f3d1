import json

import httpx
import pytest

from mbr.api.client import MetabaseClient, extract_error_message
from mbr.errors import ErrorKind, MbrError, RemoteError
from mbr.models import Credential


def _client(handler, credential=Credential.api_key("mb_key_123"), base_url="http://mb:3000"):
    return MetabaseClient(base_url, credential, timeout=5, transport=httpx.MockTransport(handler))


def test_api_key_header_sent_on_every_call():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"email": "me@example.com"})

    user = _client(handler).get_current_user()

    assert user == {"email": "me@example.com"}
    assert seen[0].url == "http://mb:3000/api/user/current"
    assert seen[0].headers["x-api-key"] == "mb_key_123"


def test_session_header():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[])

    _client(handler, credential=Credential.session("sess-1")).list_cards()

    assert seen[0].headers["X-Metabase-Session"] == "sess-1"
    assert "x-api-key" not in seen[0].headers
    assert seen[0].url.params["f"] == "all"


def test_missing_url_fails_before_any_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={})

    with pytest.raises(MbrError) as exc:
        _client(handler, base_url="").get_current_user()

    assert exc.value.kind is ErrorKind.MISSING_FIELD
    assert exc.value.field == "url"
    assert calls == []


def test_missing_credential_fails_before_any_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={})

    with pytest.raises(MbrError) as exc:
        _client(handler, credential=None).get_card(1)

    assert exc.value.kind is ErrorKind.MISSING_CREDENTIAL
    assert calls == []


def test_http_error_becomes_remote_error_with_message():
    def handler(request):
        return httpx.Response(404, json={"message": "Not found."})

    with pytest.raises(RemoteError) as exc:
        _client(handler).get_card(99)

    assert exc.value.status == 404
    assert exc.value.endpoint == "/api/card/99"
    assert "Not found." in exc.value.message
    assert exc.value.is_client_error


def test_401_is_unauthorized():
    def handler(request):
        return httpx.Response(401, text="Unauthenticated")

    with pytest.raises(RemoteError) as exc:
        _client(handler).get_current_user()

    assert exc.value.is_unauthorized


def test_timeout_is_flagged():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(RemoteError) as exc:
        _client(handler).get_current_user()

    assert exc.value.is_timeout
    assert exc.value.status is None


def test_connection_error_is_server_side():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(RemoteError) as exc:
        _client(handler).get_current_user()

    assert exc.value.is_server_error
    assert not exc.value.is_timeout


def test_non_json_body_is_remote_error():
    def handler(request):
        return httpx.Response(200, text="<html>proxy login</html>")

    with pytest.raises(RemoteError):
        _client(handler).get_current_user()


def test_search_cards_query():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"data": [], "total": 0})

    _client(handler).search_cards("revenue", limit=10, offset=20)

    params = seen[0].url.params
    assert params["q"] == "revenue"
    assert params["models"] == "card"
    assert params["limit"] == "10"
    assert params["offset"] == "20"


def test_execute_card_posts_parameters():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(202, json={"data": {"cols": [], "rows": []}})

    params = [{"type": "category", "value": "EU", "target": ["variable", ["template-tag", "region"]]}]
    body = _client(handler).execute_card(42, params)

    assert body == {"data": {"cols": [], "rows": []}}
    assert seen[0].method == "POST"
    assert seen[0].url.path == "/api/card/42/query"
    assert json.loads(seen[0].content) == {"parameters": params}


def test_login_returns_session_id_without_credential():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"id": "abc-session"})

    token = _client(handler, credential=None).login("me@example.com", "pw")

    assert token == "abc-session"
    assert "x-api-key" not in seen[0].headers
    assert json.loads(seen[0].content) == {"username": "me@example.com", "password": "pw"}


def test_login_without_id_is_remote_error():
    def handler(request):
        return httpx.Response(200, json={})

    with pytest.raises(RemoteError):
        _client(handler, credential=None).login("me@example.com", "pw")


def test_logout_sends_delete():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(204)

    assert _client(handler, credential=Credential.session("s")).logout() is None
    assert seen[0].method == "DELETE"


def test_extract_error_message_variants():
    assert extract_error_message(httpx.Response(400, json={"message": "bad"})) == "bad"
    assert extract_error_message(
        httpx.Response(400, json={"errors": {"password": "did not match"}})
    ) == "password: did not match"
    assert extract_error_message(httpx.Response(500, text="oops")) == "oops"
