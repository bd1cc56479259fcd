"""Search/filter query builder for record collections.

A list request carries two optional parameters: a free-text search term
(``q``) and a comma separated tag list (``tags``).  They are parsed into a
:class:`FilterSpec`, which names the predicates that apply; the predicates
are ANDed by :func:`compile_query`.  With no predicates present the query
has no WHERE clause at all and returns every record.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import Select, and_, func, or_, select
from sqlalchemy.sql.elements import ColumnElement

from api.tables import Collection, search_config

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


def sanitize_search(term: Optional[str]) -> Optional[str]:
    """Reduce a free-text term to a tsquery of its word tokens.

    Operator characters (``&``, ``|``, ``!``, ``:``, parentheses, quotes) are
    dropped so ``to_tsquery`` never receives malformed input.  Returns None
    when nothing searchable remains.

    Stop words survive this step (the database decides what is a lexeme),
    so a term like "the" still yields a tsquery.  :func:`predicates` treats
    a tsquery with no lexemes left as an absent search.
    """
    if not term:
        return None
    tokens = _TOKEN_RE.findall(term)
    if not tokens:
        return None
    return " & ".join(tokens)


def parse_tags(raw: Optional[str]) -> tuple[str, ...]:
    """Split a comma separated tag parameter, trimming and dropping blanks.

    Tags come back sorted and de-duplicated; the filter is a set, so the
    order they were requested in must not change the compiled query.
    """
    if not raw:
        return ()
    return tuple(sorted({tag.strip() for tag in raw.split(",") if tag.strip()}))


@dataclass(frozen=True)
class FilterSpec:
    """The filters requested for a list read."""

    search: Optional[str] = None
    tags: tuple[str, ...] = ()

    @classmethod
    def from_params(cls, q: Optional[str] = None, tags: Optional[str] = None) -> FilterSpec:
        return cls(search=sanitize_search(q), tags=parse_tags(tags))

    @property
    def is_empty(self) -> bool:
        return self.search is None and not self.tags


def predicates(
    collection: Collection, spec: FilterSpec, language: Optional[str] = None
) -> dict[str, ColumnElement]:
    """Named predicates for the filters present in *spec*."""
    found: dict[str, ColumnElement] = {}
    if spec.search is not None:
        query = func.to_tsquery(search_config(language), spec.search)
        match = collection.tsvector(language).op("@@", is_comparison=True)(query)
        # stop-word-only terms compile to an empty tsquery that matches nothing
        found["search"] = or_(func.numnode(query) == 0, match)
    if spec.tags:
        found["tags"] = collection.table.c.tags.contains(list(spec.tags))
    return found


def compile_query(
    collection: Collection,
    spec: FilterSpec,
    limit: Optional[int] = None,
    language: Optional[str] = None,
) -> Select:
    """Compile *spec* into a single SELECT over *collection*.

    Ordering is left to the datastore unless *limit* is given, in which case
    the newest records come first.
    """
    table = collection.table
    stmt = select(table)
    found = predicates(collection, spec, language)
    if found:
        stmt = stmt.where(and_(*found.values()))
    if limit is not None:
        stmt = stmt.order_by(table.c.created_at.desc()).limit(limit)
    return stmt
