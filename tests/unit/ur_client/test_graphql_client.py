"""Tests for the Unraid GraphQL client."""

from __future__ import annotations

import io
import json
import ssl
from typing import Any
from urllib import error, request

import pytest

from ur_client.graphql_client import (
    GraphQLHttpError,
    GraphQLRequestError,
    GraphQLResponseError,
    UnraidGraphQLClient,
)


pytestmark = pytest.mark.unit_client


class _FakeResponse:
    def __init__(self, body: str) -> None:
        self._body = body.encode("utf-8")

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> "_FakeResponse":
        return self

    def __exit__(self, *exc: Any) -> None:
        return None


class _FakeOpener:
    """Replays a script of responses and exceptions, recording requests."""

    def __init__(self, script: list[Any]) -> None:
        self.script = list(script)
        self.requests: list[request.Request] = []
        self.contexts: list[Any] = []

    def __call__(self, req: request.Request, timeout: float = 0, context: Any = None):
        self.requests.append(req)
        self.contexts.append(context)
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return _FakeResponse(item if isinstance(item, str) else json.dumps(item))


def _http_error(status: int, body: str = "") -> error.HTTPError:
    return error.HTTPError(
        "https://tower.local/graphql", status, "error", {}, io.BytesIO(body.encode())
    )


@pytest.fixture
def opener(monkeypatch: pytest.MonkeyPatch):
    def _install(*script: Any) -> _FakeOpener:
        fake = _FakeOpener(list(script))
        monkeypatch.setattr(request, "urlopen", fake)
        return fake

    return _install


def _client(**kwargs: Any) -> UnraidGraphQLClient:
    kwargs.setdefault("backoff_base", 0)
    return UnraidGraphQLClient(base_url="https://tower.local/", api_token="secret", **kwargs)


def test_query_posts_document_with_api_key(opener) -> None:
    fake = opener({"data": {"info": {"time": "now"}}})
    client = _client()

    data = client.query("query { info { time } }")

    assert data == {"info": {"time": "now"}}
    req = fake.requests[0]
    assert req.full_url == "https://tower.local/graphql"
    assert req.get_method() == "POST"
    assert req.get_header("X-api-key") == "secret"
    assert req.get_header("Content-type") == "application/json"
    assert json.loads(req.data) == {"query": "query { info { time } }"}


def test_graphql_errors_raise_response_error(opener) -> None:
    opener({"errors": [{"message": "Forbidden"}, {"message": "Bad field"}], "data": None})
    with pytest.raises(GraphQLResponseError) as excinfo:
        _client().query("query { x }")
    assert str(excinfo.value) == "Forbidden; Bad field"
    assert len(excinfo.value.errors) == 2


def test_missing_data_raises_request_error(opener) -> None:
    opener({"data": None})
    with pytest.raises(GraphQLRequestError):
        _client().query("query { x }")


def test_non_json_body_raises_request_error(opener) -> None:
    opener("<html>gateway</html>")
    with pytest.raises(GraphQLRequestError):
        _client().query("query { x }")


def test_query_retries_server_errors(opener) -> None:
    fake = opener(_http_error(502, "bad gateway"), {"data": {"ok": True}})
    assert _client(max_retries=2).query("query { ok }") == {"ok": True}
    assert len(fake.requests) == 2


def test_client_errors_are_not_retried(opener) -> None:
    fake = opener(_http_error(400, '{"message": "bad"}'))
    with pytest.raises(GraphQLHttpError) as excinfo:
        _client(max_retries=3).query("query { x }")
    assert excinfo.value.status == 400
    assert excinfo.value.json == {"message": "bad"}
    assert len(fake.requests) == 1


def test_connection_errors_exhaust_retries(opener) -> None:
    fake = opener(
        error.URLError("refused"), error.URLError("refused"), error.URLError("refused")
    )
    with pytest.raises(GraphQLRequestError):
        _client(max_retries=2).query("query { x }")
    assert len(fake.requests) == 3


def test_mutations_are_sent_once_with_variables(opener) -> None:
    fake = opener(_http_error(503))
    with pytest.raises(GraphQLHttpError):
        _client(max_retries=5).mutate("mutation M($id: PrefixedID!) { x }", {"id": "c1"})
    assert len(fake.requests) == 1
    assert json.loads(fake.requests[0].data)["variables"] == {"id": "c1"}


def test_self_signed_context_only_for_https() -> None:
    secure = _client(allow_self_signed=True)
    assert secure._ssl_context is not None
    assert secure._ssl_context.verify_mode == ssl.CERT_NONE
    assert not secure._ssl_context.check_hostname

    plain = UnraidGraphQLClient(
        base_url="http://tower.local", api_token="t", allow_self_signed=True
    )
    assert plain._ssl_context is None
    assert _client()._ssl_context is None


def test_self_signed_context_is_passed_to_urlopen(opener) -> None:
    fake = opener({"data": {}})
    client = _client(allow_self_signed=True)
    client.query("query { x }")
    assert fake.contexts[0] is client._ssl_context


@pytest.mark.parametrize("url", ["tower.local", "ftp://tower.local", "https://"])
def test_invalid_base_url_is_rejected(url: str) -> None:
    with pytest.raises(ValueError):
        UnraidGraphQLClient(base_url=url, api_token="t")
