"""Unit tests for api.query — search/tag filter parsing and SQL compilation."""

from __future__ import annotations

import pytest
from sqlalchemy.dialects import postgresql

from api.query import FilterSpec, compile_query, parse_tags, predicates, sanitize_search
from api.tables import BOOKMARKS, NOTES

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _sql(stmt) -> str:
    """Render a statement as PostgreSQL SQL (bind parameters left as placeholders)."""
    return str(stmt.compile(dialect=postgresql.dialect()))


def _params(stmt) -> list:
    return list(stmt.compile(dialect=postgresql.dialect()).params.values())


# ---------------------------------------------------------------------------
# sanitize_search
# ---------------------------------------------------------------------------


class TestSanitizeSearch:
    def test_single_word(self):
        """A single word passes through unchanged."""
        assert sanitize_search("postgres") == "postgres"

    def test_words_are_anded(self):
        """Multiple words must all match."""
        assert sanitize_search("full text search") == "full & text & search"

    def test_operators_are_stripped(self):
        """tsquery operator characters never reach the database."""
        assert sanitize_search("foo & (bar | !baz):*") == "foo & bar & baz"

    @pytest.mark.parametrize("term", [None, "", "   ", "&|!()", "''"])
    def test_nothing_searchable(self, term):
        """Blank or punctuation-only input means no search filter."""
        assert sanitize_search(term) is None

    def test_unicode_words(self):
        """Non-ASCII letters count as word characters."""
        assert sanitize_search("café crème") == "café & crème"


# ---------------------------------------------------------------------------
# parse_tags
# ---------------------------------------------------------------------------


class TestParseTags:
    def test_splits_on_commas(self):
        assert parse_tags("a,b,c") == ("a", "b", "c")

    def test_trims_and_drops_blanks(self):
        """Whitespace is trimmed and empty entries ignored."""
        assert parse_tags(" a , ,b,, ") == ("a", "b")

    def test_sorted_and_deduplicated(self):
        """Request order and repeats don't matter."""
        assert parse_tags("work,ideas,work") == ("ideas", "work")

    @pytest.mark.parametrize("raw", [None, "", ",", " , "])
    def test_empty(self, raw):
        assert parse_tags(raw) == ()


# ---------------------------------------------------------------------------
# FilterSpec
# ---------------------------------------------------------------------------


class TestFilterSpec:
    def test_from_params(self):
        spec = FilterSpec.from_params("hello world", "work,ideas")
        assert spec.search == "hello & world"
        assert spec.tags == ("ideas", "work")
        assert spec.is_empty is False

    def test_no_params_is_empty(self):
        assert FilterSpec.from_params().is_empty is True

    def test_blank_params_are_empty(self):
        """Blank q and tags are the same as absent ones."""
        assert FilterSpec.from_params("  ", " , ").is_empty is True


# ---------------------------------------------------------------------------
# predicates / compile_query
# ---------------------------------------------------------------------------


class TestPredicates:
    def test_none_without_filters(self):
        assert predicates(NOTES, FilterSpec()) == {}

    def test_only_present_filters(self):
        """Each filter present contributes exactly one predicate."""
        assert set(predicates(NOTES, FilterSpec(search="a"))) == {"search"}
        assert set(predicates(NOTES, FilterSpec(tags=("x",)))) == {"tags"}
        assert set(predicates(NOTES, FilterSpec(search="a", tags=("x",)))) == {
            "search",
            "tags",
        }


class TestCompileQuery:
    def test_empty_spec_has_no_where(self):
        """No filters means every record: no WHERE clause at all."""
        sql = _sql(compile_query(NOTES, FilterSpec()))
        assert "WHERE" not in sql
        assert "FROM notes" in sql

    def test_search_uses_tsvector_match(self):
        stmt = compile_query(NOTES, FilterSpec(search="hello & world"))
        sql = _sql(stmt)
        assert "to_tsvector('english'::regconfig" in sql
        assert "@@ to_tsquery('english'::regconfig," in sql
        assert "numnode(to_tsquery(" in sql
        assert "hello & world" in _params(stmt)
        assert "notes.title" in sql and "notes.content" in sql

    def test_stop_word_only_term_matches_everything(self):
        """A tsquery with no lexemes left (e.g. "the") is treated like no search."""
        stmt = compile_query(NOTES, FilterSpec.from_params(q="the"))
        sql = _sql(stmt)
        assert "numnode(to_tsquery(" in sql and " OR " in sql
        assert "the" in _params(stmt)
        assert 0 in _params(stmt)

    def test_bookmark_search_covers_title_and_url(self):
        sql = _sql(compile_query(BOOKMARKS, FilterSpec(search="docs")))
        assert "bookmarks.title" in sql and "bookmarks.url" in sql

    def test_tags_use_containment(self):
        """Tag filtering requires every requested tag (array containment)."""
        stmt = compile_query(NOTES, FilterSpec(tags=("ideas", "work")))
        assert "notes.tags @>" in _sql(stmt)
        assert ["ideas", "work"] in _params(stmt)

    def test_tag_order_compiles_identically(self):
        """Tags given as b,a and a,b produce the same containment over both tags."""
        forward = compile_query(NOTES, FilterSpec.from_params(tags="a,b"))
        reverse = compile_query(NOTES, FilterSpec.from_params(tags="b,a"))
        assert "notes.tags @>" in _sql(forward)
        assert _sql(forward) == _sql(reverse)
        assert _params(forward) == _params(reverse) == [["a", "b"]]

    def test_both_filters_are_anded(self):
        sql = _sql(compile_query(NOTES, FilterSpec(search="a", tags=("x",))))
        assert "@@" in sql and "@>" in sql and " AND " in sql

    def test_limit_orders_newest_first(self):
        stmt = compile_query(NOTES, FilterSpec(), limit=3)
        sql = _sql(stmt)
        assert "ORDER BY notes.created_at DESC" in sql
        assert "LIMIT" in sql
        assert 3 in _params(stmt)

    def test_no_limit_no_order(self):
        sql = _sql(compile_query(NOTES, FilterSpec(tags=("x",))))
        assert "ORDER BY" not in sql
        assert "LIMIT" not in sql

    def test_language_override(self):
        sql = _sql(compile_query(NOTES, FilterSpec(search="a"), language="simple"))
        assert "'simple'::regconfig" in sql
