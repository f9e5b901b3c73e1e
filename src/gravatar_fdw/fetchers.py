"""HTTP transport and profile fetcher."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable

from requests import Session
from requests.adapters import HTTPAdapter
from requests.exceptions import RequestException
from urllib3.util.retry import Retry

from .config import DEFAULT_REQUEST_TIMEOUT
from .errors import MalformedResponseError, TransportError
from .hashing import build_profile_url
from .models import FetchOutcome, HttpResponse, OutcomeKind, ProfileRecord, Transport

ClockFn = Callable[[], int]

RATE_LIMIT_RESET_HEADER = "x-ratelimit-reset"
LOOKUP_KEY_FIELD = "email"
API_KEY_SIGNUP_URL = "https://gravatar.com/developers/applications"


def epoch_secs() -> int:
    """Current wall-clock time in whole epoch seconds."""
    return int(time.time())


def make_session(user_agent: str) -> Session:
    """Create requests session that retries server errors but never 429."""
    session = Session()
    session.headers.update({"User-Agent": user_agent})
    retry = Retry(
        total=3,
        backoff_factor=0.6,
        status_forcelist=[500, 502, 503, 504],
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
        respect_retry_after_header=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class RequestsTransport:
    """Requests-based implementation of the Transport protocol."""

    def __init__(
        self,
        *,
        session: Session,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        logger: logging.Logger,
    ) -> None:
        self._session = session
        self._timeout = timeout
        self._logger = logger

    def get(self, url: str, headers: list[tuple[str, str]]) -> HttpResponse:
        self._logger.debug("GET %s", url)
        try:
            response = self._session.get(url, headers=dict(headers), timeout=self._timeout)
        except RequestException as exc:
            raise TransportError(f"Request to {url} failed: {exc}") from exc
        return HttpResponse(
            status_code=response.status_code,
            headers=tuple(response.headers.items()),
            body=response.text,
        )

    def close(self) -> None:
        self._session.close()


def parse_reset_header(value: str | None) -> int | None:
    """Parse an epoch-seconds reset header; None when absent or not a non-negative integer."""
    if value is None:
        return None
    value = value.strip()
    if not (value.isascii() and value.isdigit()):
        return None
    return int(value)


def _reject_constant(token: str) -> float:
    raise ValueError(f"non-standard JSON constant {token}")


def wait_seconds(reset_timestamp: int, now: int) -> int:
    return max(0, reset_timestamp - now)


def rate_limit_message(wait: int | None, using_api_key: bool) -> str:
    """Render the guidance text surfaced when the upstream API answers 429."""
    message = "Rate limit exceeded (429)."
    if wait is not None:
        message += f" Wait {wait} seconds for reset."
    if using_api_key:
        message += " Please contact Gravatar to increase your usage limit."
    else:
        message += (
            f" Consider getting an API key at {API_KEY_SIGNUP_URL} for higher rate limits."
        )
    return message


class ProfileFetcher:
    """Resolve one lookup key into a classified FetchOutcome."""

    def __init__(
        self,
        *,
        transport: Transport,
        base_url: str,
        headers: tuple[tuple[str, str], ...],
        clock: ClockFn = epoch_secs,
        logger: logging.Logger,
    ) -> None:
        self._transport = transport
        self._base_url = base_url
        self._headers = list(headers)
        self._clock = clock
        self._logger = logger

    def fetch(self, lookup_key: str) -> FetchOutcome:
        """Fetch the profile for ``lookup_key``.

        Raises MalformedResponseError when a 200 body is not a JSON object and
        TransportError when the request itself fails.
        """
        url = build_profile_url(self._base_url, lookup_key)
        response = self._transport.get(url, list(self._headers))

        if response.status_code == 200:
            return FetchOutcome(
                kind=OutcomeKind.RESOLVED,
                record=self._parse_profile(response.body, lookup_key),
                status_code=200,
            )
        if response.status_code == 404:
            self._logger.info("Profile not found for email: %s", lookup_key)
            return FetchOutcome(kind=OutcomeKind.NOT_FOUND, status_code=404)
        if response.status_code == 429:
            reset = parse_reset_header(response.header(RATE_LIMIT_RESET_HEADER))
            retry_after = wait_seconds(reset, self._clock()) if reset is not None else None
            return FetchOutcome(
                kind=OutcomeKind.RATE_LIMITED,
                retry_after=retry_after,
                status_code=429,
            )

        message = f"HTTP error {response.status_code} for email {lookup_key}: {response.body}"
        self._logger.warning(message)
        return FetchOutcome(
            kind=OutcomeKind.TRANSIENT_ERROR,
            message=message,
            status_code=response.status_code,
        )

    @staticmethod
    def _parse_profile(body: str, lookup_key: str) -> ProfileRecord:
        try:
            payload = json.loads(body, parse_constant=_reject_constant)
        except ValueError as exc:
            raise MalformedResponseError(f"Failed to parse JSON response: {exc}") from exc
        # Non-object documents are kept as-is; only the json column can read them.
        if isinstance(payload, dict):
            payload[LOOKUP_KEY_FIELD] = lookup_key
        return payload
