"""Projection of profile documents into typed host rows."""

from __future__ import annotations

import json
from collections.abc import Callable, Sequence
from typing import Any

from .models import Cell, ColumnRequest, ColumnType, ProfileRecord

I64_MIN = -(2**63)
I64_MAX = 2**63 - 1

WHOLE_DOCUMENT_COLUMN = "json"

Extractor = Callable[[ProfileRecord, str], Cell | None]


_MISSING = object()


def _dump(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def _lookup(record: ProfileRecord, name: str) -> Any:
    """Return the field value, or _MISSING when absent or the document is not an object."""
    if not isinstance(record, dict):
        return _MISSING
    return record.get(name, _MISSING)


def as_bool(record: ProfileRecord, name: str) -> Cell | None:
    value = _lookup(record, name)
    if isinstance(value, bool):
        return Cell(ColumnType.BOOL, value)
    return None


def as_string(record: ProfileRecord, name: str) -> Cell | None:
    value = _lookup(record, name)
    if isinstance(value, str):
        return Cell(ColumnType.STRING, value)
    return None


def _as_int64(value: Any) -> int | None:
    # bool is an int subclass; JSON true/false is never a number here.
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if value < I64_MIN or value > I64_MAX:
        return None
    return value


def as_i64(record: ProfileRecord, name: str) -> Cell | None:
    value = _as_int64(_lookup(record, name))
    if value is None:
        return None
    return Cell(ColumnType.I64, value)


def as_i32(record: ProfileRecord, name: str) -> Cell | None:
    value = _as_int64(_lookup(record, name))
    if value is None:
        return None
    wrapped = (value + 2**31) % 2**32 - 2**31
    return Cell(ColumnType.I32, wrapped)


def as_json(record: ProfileRecord, name: str) -> Cell | None:
    value = _lookup(record, name)
    if value is _MISSING:
        return None
    return Cell(ColumnType.JSON, _dump(value))


def whole_document(record: ProfileRecord, _name: str) -> Cell | None:
    return Cell(ColumnType.JSON, _dump(record))


EXTRACTORS: dict[ColumnType, Extractor] = {
    ColumnType.BOOL: as_bool,
    ColumnType.STRING: as_string,
    ColumnType.I32: as_i32,
    ColumnType.I64: as_i64,
    ColumnType.JSON: as_json,
}

# Shapes of the fields published by the profiles API.
NAMED_FIELDS: dict[str, ColumnType] = {
    "hash": ColumnType.STRING,
    "email": ColumnType.STRING,
    "display_name": ColumnType.STRING,
    "profile_url": ColumnType.STRING,
    "avatar_url": ColumnType.STRING,
    "avatar_alt_text": ColumnType.STRING,
    "location": ColumnType.STRING,
    "description": ColumnType.STRING,
    "job_title": ColumnType.STRING,
    "company": ColumnType.STRING,
    "verified_accounts": ColumnType.JSON,
    "pronunciation": ColumnType.STRING,
    "pronouns": ColumnType.STRING,
    "timezone": ColumnType.STRING,
    "languages": ColumnType.JSON,
    "first_name": ColumnType.STRING,
    "last_name": ColumnType.STRING,
    "is_organization": ColumnType.BOOL,
    "links": ColumnType.JSON,
    "interests": ColumnType.JSON,
    "payments": ColumnType.JSON,
    "contact_info": ColumnType.JSON,
    "number_verified_accounts": ColumnType.I64,
    # Timestamps stay strings; the host casts them.
    "last_profile_edit": ColumnType.STRING,
    "registration_date": ColumnType.STRING,
    WHOLE_DOCUMENT_COLUMN: ColumnType.JSON,
}


def _extractor_for(column: ColumnRequest) -> Extractor | None:
    if column.name == WHOLE_DOCUMENT_COLUMN:
        return whole_document
    named_type = NAMED_FIELDS.get(column.name)
    if named_type is not None:
        return EXTRACTORS[named_type]
    return EXTRACTORS.get(column.type)


def project_cell(record: ProfileRecord, column: ColumnRequest) -> Cell | None:
    """Resolve one column: named field first, then the host's declared type."""
    extractor = _extractor_for(column)
    if extractor is None:
        return None
    return extractor(record, column.name)


def project(record: ProfileRecord, columns: Sequence[ColumnRequest]) -> list[Cell | None]:
    """Materialize ``record`` into one cell per requested column, in order.

    Missing fields and shape mismatches become None rather than errors.
    """
    return [project_cell(record, column) for column in columns]
