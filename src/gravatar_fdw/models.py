"""Protocols and lightweight model types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

# A decoded profile document; normally an object, but any JSON value is kept.
ProfileRecord = Any


class ColumnType(Enum):
    """Value types a host column can declare."""

    BOOL = "bool"
    STRING = "string"
    I32 = "i32"
    I64 = "i64"
    JSON = "json"
    F32 = "f32"
    F64 = "f64"
    NUMERIC = "numeric"
    DATE = "date"
    TIMESTAMP = "timestamp"
    TIMESTAMPTZ = "timestamptz"
    UUID = "uuid"
    OTHER = "other"


@dataclass(frozen=True)
class Cell:
    """One typed value in an output row. JSON cells hold serialized text."""

    type: ColumnType
    value: bool | int | str


@dataclass(frozen=True)
class ColumnRequest:
    """A column the host wants materialized."""

    name: str
    type: ColumnType = ColumnType.STRING


@dataclass(frozen=True)
class Qual:
    """A single host-side filter predicate: ``field operator value``."""

    field: str
    operator: str
    value: Any


@dataclass(frozen=True)
class HttpResponse:
    """Transport-neutral HTTP response."""

    status_code: int
    headers: tuple[tuple[str, str], ...] = ()
    body: str = ""

    def header(self, name: str) -> str | None:
        """Return the first header value matching ``name`` case-insensitively."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None


class OutcomeKind(Enum):
    RESOLVED = "resolved"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    TRANSIENT_ERROR = "transient_error"


@dataclass(frozen=True)
class FetchOutcome:
    """Classified result of one profile lookup."""

    kind: OutcomeKind
    record: ProfileRecord | None = None
    retry_after: int | None = None
    message: str = ""
    status_code: int | None = None

    @property
    def resolved(self) -> bool:
        return self.kind is OutcomeKind.RESOLVED


class Transport(Protocol):
    """Contract for the outbound HTTP primitive."""

    def get(self, url: str, headers: list[tuple[str, str]]) -> HttpResponse:
        """Issue a GET with an empty body and return the raw response."""


class SecretVault(Protocol):
    """Contract for secret lookups by identifier."""

    def resolve_secret(self, secret_id: str) -> str:
        """Return the secret value, or an empty string when unknown."""
