import json
from typing import Any

import pytest
import requests

from areslookup import RequestsTransport, TransportUnavailable
from areslookup.config import API_BASE


class _DummyResponse:
    def __init__(self, status_code: int, content: bytes) -> None:
        self.status_code = status_code
        self.content = content

    def json(self) -> Any:
        return json.loads(self.content)


def _install(monkeypatch: pytest.MonkeyPatch, response: _DummyResponse) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    def fake_request(method: str, url: str, **kwargs: Any) -> _DummyResponse:
        calls.append({"method": method, "url": url, **kwargs})
        return response

    monkeypatch.setattr("areslookup.providers.transport.requests.request", fake_request)
    return calls


def test_get_builds_request(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _install(monkeypatch, _DummyResponse(200, b'{"ico": "27074358", "sidlo": {"psc": 14000}}'))

    response = RequestsTransport().send("GET", "/ekonomicke-subjekty/27074358")

    assert response.status_code == 200
    assert response.payload == {"ico": "27074358", "sidlo": {"psc": 14000}}
    assert calls[0]["method"] == "GET"
    assert calls[0]["url"] == f"{API_BASE}/ekonomicke-subjekty/27074358"
    assert calls[0]["json"] is None
    assert calls[0]["timeout"] == 10.0
    assert calls[0]["headers"]["Accept"] == "application/json"
    assert calls[0]["headers"]["Content-Type"] == "application/json"


def test_post_sends_json_body(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _install(monkeypatch, _DummyResponse(200, b'{"ekonomickeSubjekty": []}'))

    transport = RequestsTransport("http://example.test/rest/", timeout=0.5)
    transport.send("POST", "/ekonomicke-subjekty/vyhledat", {"obchodniJmeno": "Acme", "start": 0, "pocet": 5})

    assert calls[0]["url"] == "http://example.test/rest/ekonomicke-subjekty/vyhledat"
    assert calls[0]["json"] == {"obchodniJmeno": "Acme", "start": 0, "pocet": 5}
    assert calls[0]["timeout"] == 0.5


@pytest.mark.parametrize("status", [400, 404, 500, 503])
def test_error_statuses_are_returned(monkeypatch: pytest.MonkeyPatch, status: int) -> None:
    _install(monkeypatch, _DummyResponse(status, b'{"kod": "CHYBA", "popis": "Chyba"}'))

    response = RequestsTransport().send("GET", "/ekonomicke-subjekty/00000123")

    assert response.status_code == status
    assert response.payload == {"kod": "CHYBA", "popis": "Chyba"}


def test_non_json_body_yields_no_payload(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, _DummyResponse(502, b"<html>Bad Gateway</html>"))

    response = RequestsTransport().send("GET", "/ekonomicke-subjekty/00000123")

    assert response.status_code == 502
    assert response.payload is None


def test_empty_body_yields_no_payload(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, _DummyResponse(204, b""))

    assert RequestsTransport().send("GET", "/x").payload is None


@pytest.mark.parametrize(
    "error",
    [requests.ConnectionError("refused"), requests.Timeout("slow"), requests.exceptions.ChunkedEncodingError("cut")],
)
def test_request_failures_raise_transport_unavailable(
    monkeypatch: pytest.MonkeyPatch, error: Exception
) -> None:
    def fake_request(method: str, url: str, **kwargs: Any) -> None:
        raise error

    monkeypatch.setattr("areslookup.providers.transport.requests.request", fake_request)

    with pytest.raises(TransportUnavailable) as exc_info:
        RequestsTransport().send("GET", "/ekonomicke-subjekty/00000123")

    assert exc_info.value.url == f"{API_BASE}/ekonomicke-subjekty/00000123"
    assert exc_info.value.__cause__ is error


def test_timeout_must_be_positive() -> None:
    with pytest.raises(ValueError):
        RequestsTransport(timeout=0)
