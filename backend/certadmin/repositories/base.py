"""Generic listing repository and query utilities for SQLAlchemy 2.x.

This module centralizes persistence-only concerns shared by the admin
listings:

- Safe sorting with a whitelist mapping (prevents SQL injection).
- Deterministic pagination (adds a primary-key tiebreaker).
- Tokenized multi-column search predicates.
- Exact total counting with ``ORDER BY`` stripped.

Design decisions
----------------
* Repositories stay thin: they translate typed specs into SQL and never
  validate, cache, retry or commit. The query engine owns those concerns.
* The session is always injected; in the application it is a handle
  checked out of the :class:`~certadmin.datastore.ConnectionPool`.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, Select, and_, func, or_, select
from sqlalchemy.orm import Session

from certadmin.query.types import FilterSpec, PaginationSpec, Resource, SortSpec, parse_instant

E = TypeVar("E")  # SQLAlchemy mapped entity type

DEFAULT_SORT_KEY = "created_at"


# ----------------------------- Predicate helpers -----------------------------


def search_tokens(search: str | None) -> list[str]:
    """Split a search string on whitespace, dropping empty tokens."""
    if not search:
        return []
    return search.split()


def search_clause(
    tokens: Sequence[str],
    columns: Sequence[ColumnElement[Any]],
) -> ColumnElement[bool] | None:
    """Build ``AND`` over tokens of ``OR`` over columns (case-insensitive).

    Every token must appear in at least one of ``columns``. ``LIKE``
    wildcards inside tokens are escaped, so they match literally.

    :param tokens: Non-empty search tokens.
    :type tokens: Sequence[str]
    :param columns: Searchable column expressions.
    :type columns: Sequence[ColumnElement]
    :returns: Combined predicate, or ``None`` when there is nothing to match.
    :rtype: ColumnElement[bool] | None
    """
    if not tokens or not columns:
        return None
    per_token = [
        or_(*[col.icontains(token, autoescape=True) for col in columns]) for token in tokens
    ]
    return and_(*per_token)


def instant_range(column: ColumnElement[Any], filters: FilterSpec) -> list[ColumnElement[bool]]:
    """Translate ``date_from``/``date_to`` into inclusive bounds on a timestamp column."""
    clauses: list[ColumnElement[bool]] = []
    start = parse_instant(filters.date_from) if filters.date_from else None
    end = parse_instant(filters.date_to) if filters.date_to else None
    if start is not None:
        clauses.append(column >= start)
    if end is not None:
        clauses.append(column <= end)
    return clauses


def day_range(column: ColumnElement[Any], filters: FilterSpec) -> list[ColumnElement[bool]]:
    """Translate ``date_from``/``date_to`` into inclusive bounds on a date column."""
    clauses: list[ColumnElement[bool]] = []
    start = parse_instant(filters.date_from) if filters.date_from else None
    end = parse_instant(filters.date_to) if filters.date_to else None
    if start is not None:
        clauses.append(column >= start.date())
    if end is not None:
        clauses.append(column <= end.date())
    return clauses


def _apply_sorting(
    stmt: Select[Any],
    sortable_fields: Mapping[str, ColumnElement[Any]],
    sort: SortSpec,
    *,
    pk_attr: ColumnElement[Any] | None,
) -> Select[Any]:
    """Apply a safe ``ORDER BY`` based on a whitelist mapping.

    An unknown sort field falls back to ``created_at``. The model's primary
    key is always appended as a final ascending tiebreaker to stabilize
    pagination.
    """
    col = sortable_fields.get(sort.field)
    if col is None:
        col = sortable_fields[DEFAULT_SORT_KEY]
    stmt = stmt.order_by(col.asc() if sort.ascending else col.desc())
    if pk_attr is not None:
        stmt = stmt.order_by(pk_attr.asc())
    return stmt


def paginate_select(
    session: Session,
    stmt: Select[Any],
    *,
    offset: int,
    limit: int,
) -> tuple[list[Any], int]:
    """Execute a select with ``OFFSET/LIMIT`` and an exact total count.

    The statement's existing ``ORDER BY`` is stripped for the ``COUNT`` to avoid
    unnecessary sorting overhead.

    :returns: Tuple of ``(items, total)``.
    :rtype: tuple[list[Any], int]
    """
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = int(session.execute(count_stmt).scalar_one())
    sliced = stmt.limit(limit).offset(offset)
    items = list(session.execute(sliced).unique().scalars().all())
    return items, total


# ------------------------------ Base repository ------------------------------


class ListingRepository(Generic[E]):
    """Persistence-only, read-side repository for one admin listing.

    Subclasses MUST define:

    * ``model``: the SQLAlchemy mapped class.
    * ``resource``: the :class:`Resource` it serves.

    Subclasses MAY override:

    * ``_sortable_fields`` to expose the public sort keys.
    * ``_search_columns`` to declare the free-text search columns.
    * ``_filter_clauses`` to translate structured filters.
    * ``_base_select`` to add joins and eager loading.
    * ``annotate`` to attach per-page derived values to dumped rows.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]
    resource: Resource

    def __init__(self, session: Session) -> None:
        self.session = session

    # ------------------------------ Extensibility ----------------------------

    def _sortable_fields(self) -> Mapping[str, ColumnElement[Any]]:
        return {DEFAULT_SORT_KEY: self.model.created_at}  # type: ignore[attr-defined]

    def _search_columns(self) -> Sequence[ColumnElement[Any]]:
        return ()

    def _filter_clauses(self, filters: FilterSpec, today: date) -> Iterable[ColumnElement[bool]]:
        return ()

    def _base_select(self) -> Select[Any]:
        return select(self.model)

    def _pk_attr(self) -> ColumnElement[Any] | None:
        return getattr(self.model, "id", None)

    # --------------------------------- Listing -------------------------------

    def build_select(self, filters: FilterSpec, sort: SortSpec, today: date) -> Select[Any]:
        """Return the filtered and ordered statement, before pagination."""
        stmt = self._base_select()
        clauses = list(self._filter_clauses(filters, today))
        matched = search_clause(search_tokens(filters.search), self._search_columns())
        if matched is not None:
            clauses.append(matched)
        if clauses:
            stmt = stmt.where(and_(*clauses))
        return _apply_sorting(stmt, self._sortable_fields(), sort, pk_attr=self._pk_attr())

    def fetch_page(
        self,
        filters: FilterSpec,
        sort: SortSpec,
        pagination: PaginationSpec,
        *,
        today: date,
    ) -> tuple[list[E], int]:
        """Fetch one page of entities and the total matching count.

        :param filters: Structured and free-text filters.
        :type filters: FilterSpec
        :param sort: Public sort key and direction.
        :type sort: SortSpec
        :param pagination: Page and page size.
        :type pagination: PaginationSpec
        :param today: Reference day for date-relative filters.
        :type today: datetime.date
        :returns: ``(items, total)``.
        :rtype: tuple[list[E], int]
        """
        stmt = self.build_select(filters, sort, today)
        return paginate_select(
            self.session, stmt, offset=pagination.offset, limit=pagination.limit
        )

    def annotate(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Attach derived per-row values to serialized rows (no-op by default)."""
        return rows


__all__ = [
    "ListingRepository",
    "day_range",
    "instant_range",
    "paginate_select",
    "search_clause",
    "search_tokens",
]
