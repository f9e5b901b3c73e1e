import logging
from typing import Any

import pytest
import requests

from gravatar_fdw.errors import MalformedResponseError, TransportError
from gravatar_fdw.fetchers import (
    ProfileFetcher,
    RequestsTransport,
    make_session,
    parse_reset_header,
    rate_limit_message,
)
from gravatar_fdw.hashing import normalize_and_hash
from gravatar_fdw.models import HttpResponse, OutcomeKind

BASE_URL = "https://api.example.test/v3/profiles"
HEADERS = (("user-agent", "agent"), ("accept", "application/json"))


class FakeTransport:
    def __init__(self, response: HttpResponse) -> None:
        self._response = response
        self.calls: list[tuple[str, list[tuple[str, str]]]] = []

    def get(self, url: str, headers: list[tuple[str, str]]) -> HttpResponse:
        self.calls.append((url, headers))
        return self._response


def _fetcher(response: HttpResponse, now: int = 1_000) -> tuple[ProfileFetcher, FakeTransport]:
    transport = FakeTransport(response)
    fetcher = ProfileFetcher(
        transport=transport,
        base_url=BASE_URL,
        headers=HEADERS,
        clock=lambda: now,
        logger=logging.getLogger("test"),
    )
    return fetcher, transport


def test_fetch_resolves_and_injects_lookup_key() -> None:
    fetcher, transport = _fetcher(HttpResponse(200, body='{"hash": "h", "display_name": "D"}'))
    outcome = fetcher.fetch(" A@B.com ")
    assert outcome.kind is OutcomeKind.RESOLVED
    assert outcome.record == {"hash": "h", "display_name": "D", "email": " A@B.com "}
    url, headers = transport.calls[0]
    assert url == f"{BASE_URL}/{normalize_and_hash('a@b.com')}"
    assert headers == list(HEADERS)


def test_fetch_malformed_body_raises() -> None:
    fetcher, _ = _fetcher(HttpResponse(200, body="<html>"))
    with pytest.raises(MalformedResponseError):
        fetcher.fetch("a@b.com")


def test_fetch_non_object_body_is_kept_without_lookup_key() -> None:
    fetcher, _ = _fetcher(HttpResponse(200, body="[1, 2]"))
    outcome = fetcher.fetch("a@b.com")
    assert outcome.kind is OutcomeKind.RESOLVED
    assert outcome.record == [1, 2]


@pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
def test_fetch_non_standard_json_constants_raise(constant: str) -> None:
    fetcher, _ = _fetcher(HttpResponse(200, body=f'{{"hash": "h", "score": {constant}}}'))
    with pytest.raises(MalformedResponseError):
        fetcher.fetch("a@b.com")


def test_fetch_not_found(caplog: pytest.LogCaptureFixture) -> None:
    fetcher, _ = _fetcher(HttpResponse(404))
    with caplog.at_level(logging.INFO, logger="test"):
        outcome = fetcher.fetch("a@b.com")
    assert outcome.kind is OutcomeKind.NOT_FOUND
    assert "Profile not found for email: a@b.com" in caplog.text


def test_fetch_other_status_is_transient() -> None:
    fetcher, _ = _fetcher(HttpResponse(500, body="boom"))
    outcome = fetcher.fetch("a@b.com")
    assert outcome.kind is OutcomeKind.TRANSIENT_ERROR
    assert outcome.status_code == 500
    assert "HTTP error 500 for email a@b.com: boom" == outcome.message


def test_fetch_rate_limited_computes_wait() -> None:
    fetcher, _ = _fetcher(HttpResponse(429, headers=(("X-RateLimit-Reset", "1060"),)), now=1_000)
    outcome = fetcher.fetch("a@b.com")
    assert outcome.kind is OutcomeKind.RATE_LIMITED
    assert outcome.retry_after == 60


def test_fetch_rate_limited_past_reset_clamps_to_zero() -> None:
    fetcher, _ = _fetcher(HttpResponse(429, headers=(("x-ratelimit-reset", "10"),)), now=1_000)
    assert fetcher.fetch("a@b.com").retry_after == 0


def test_fetch_rate_limited_without_header() -> None:
    fetcher, _ = _fetcher(HttpResponse(429))
    outcome = fetcher.fetch("a@b.com")
    assert outcome.kind is OutcomeKind.RATE_LIMITED
    assert outcome.retry_after is None


def test_parse_reset_header() -> None:
    assert parse_reset_header("123") == 123
    assert parse_reset_header(None) is None
    assert parse_reset_header("soon") is None
    assert parse_reset_header("-5") is None
    assert parse_reset_header("1²") is None
    assert parse_reset_header("١٢") is None


def test_rate_limit_message_guidance() -> None:
    anonymous = rate_limit_message(30, using_api_key=False)
    assert anonymous.startswith("Rate limit exceeded (429). Wait 30 seconds for reset.")
    assert "Consider getting an API key" in anonymous
    keyed = rate_limit_message(None, using_api_key=True)
    assert "Wait" not in keyed
    assert "contact Gravatar to increase your usage limit" in keyed


class FakeRequestsResponse:
    def __init__(self, status_code: int, text: str, headers: dict[str, str]) -> None:
        self.status_code = status_code
        self.text = text
        self.headers = headers


class FakeSession:
    def __init__(self, response: FakeRequestsResponse | None = None) -> None:
        self._response = response
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.closed = False

    def get(self, url: str, **kwargs: Any) -> FakeRequestsResponse:
        self.calls.append((url, kwargs))
        if self._response is None:
            raise requests.ConnectionError("network down")
        return self._response

    def close(self) -> None:
        self.closed = True


def test_requests_transport_converts_response() -> None:
    session = FakeSession(FakeRequestsResponse(429, "slow down", {"x-ratelimit-reset": "9"}))
    transport = RequestsTransport(
        session=session,  # type: ignore[arg-type]
        timeout=5.0,
        logger=logging.getLogger("test"),
    )
    response = transport.get("https://example.test/x", [("accept", "application/json")])
    assert response.status_code == 429
    assert response.header("X-RateLimit-Reset") == "9"
    assert response.body == "slow down"
    url, kwargs = session.calls[0]
    assert kwargs["headers"] == {"accept": "application/json"}
    assert kwargs["timeout"] == 5.0
    transport.close()
    assert session.closed is True


def test_requests_transport_wraps_network_errors() -> None:
    transport = RequestsTransport(
        session=FakeSession(),  # type: ignore[arg-type]
        timeout=5.0,
        logger=logging.getLogger("test"),
    )
    with pytest.raises(TransportError):
        transport.get("https://example.test/x", [])


def test_make_session_does_not_retry_rate_limits() -> None:
    session = make_session("my-agent")
    assert session.headers["User-Agent"] == "my-agent"
    retry = session.get_adapter("https://api.example.test").max_retries
    assert 429 not in retry.status_forcelist
    assert 503 in retry.status_forcelist
