from gravatar_fdw.models import Qual
from gravatar_fdw.predicates import extract_lookup_keys


def test_extracts_email_equalities_in_order() -> None:
    quals = [
        Qual(field="email", operator="=", value="a"),
        Qual(field="name", operator="=", value="x"),
        Qual(field="email", operator="=", value="b"),
    ]
    assert extract_lookup_keys(quals) == ["a", "b"]


def test_ignores_other_operators_and_non_string_operands() -> None:
    quals = [
        Qual(field="email", operator="!=", value="a"),
        Qual(field="email", operator="~~", value="%@b.com"),
        Qual(field="email", operator="=", value=42),
    ]
    assert extract_lookup_keys(quals) == []


def test_duplicates_are_preserved() -> None:
    quals = [Qual(field="email", operator="=", value="a")] * 2
    assert extract_lookup_keys(quals) == ["a", "a"]


def test_no_predicates_yields_no_keys() -> None:
    assert extract_lookup_keys([]) == []
