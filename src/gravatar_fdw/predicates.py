"""Lookup key extraction from host predicates."""

from __future__ import annotations

from collections.abc import Iterable

from .models import Qual

LOOKUP_FIELD = "email"
EQUALITY_OPERATOR = "="


def is_lookup_predicate(qual: Qual, field: str = LOOKUP_FIELD) -> bool:
    """Return True for ``field = '<string literal>'`` predicates."""
    return qual.field == field and qual.operator == EQUALITY_OPERATOR and isinstance(qual.value, str)


def extract_lookup_keys(quals: Iterable[Qual], field: str = LOOKUP_FIELD) -> list[str]:
    """Collect equality operands on the lookup field in encounter order.

    Duplicates are kept. Predicates on other fields or with other operators
    are ignored, so an unfiltered query simply yields no keys.
    """
    return [qual.value for qual in quals if is_lookup_predicate(qual, field)]
