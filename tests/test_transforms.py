from __future__ import annotations

import pytest

from bookingsearch.index.errors import InvalidQuerySyntax
from bookingsearch.index.query import FuzzyTerm, WildcardTerm, parse_query_text
from bookingsearch.index.transforms import transform_fuzzy, transform_wildcard


def test_fuzzy_appends_distance_to_every_token():
    assert transform_fuzzy("migors coop", 1) == "migors~1 coop~1"
    assert transform_fuzzy("  migors \t coop  ", 2) == "migors~2 coop~2"


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_blank_becomes_match_all(raw):
    assert transform_fuzzy(raw, 1) is None
    assert transform_wildcard(raw) is None


def test_wildcard_appends_trailing_marker():
    assert transform_wildcard("netflix sbb") == "netflix* sbb*"


def test_wildcard_leaves_existing_markers_alone():
    assert transform_wildcard("foo*") == "foo*"
    assert transform_wildcard("z?rich coop") == "z?rich coop*"


def test_transformed_queries_compile():
    fuzzy = parse_query_text(transform_fuzzy("migors coop", 1))
    assert all(isinstance(c, FuzzyTerm) and c.max_edits == 1 for c in fuzzy.clauses)
    wildcard = parse_query_text(transform_wildcard("netflix sbb"))
    assert [c.prefix for c in wildcard.clauses] == ["netflix", "sbb"]


def test_ill_formed_fuzzy_output_surfaces_as_syntax_error():
    with pytest.raises(InvalidQuerySyntax):
        parse_query_text(transform_fuzzy("netf*", 1))
    with pytest.raises(InvalidQuerySyntax):
        parse_query_text(transform_fuzzy("migros", 3))
