"""
Turn list query options into parameterised SQL fragments.

The builders below accept the options of ``GET /abn-records`` and
``GET /abn-names`` and produce a ``ListQuery``: a parameterised
``WHERE`` clause (a conjunction of equality filters plus one
case-insensitive substring group for ``search``), an ``ORDER BY``
clause restricted to whitelisted columns, and the ``LIMIT``/``OFFSET``
pair.  Invalid enum values or sort fields raise ``ValidationFailed``;
page and limit are clamped, and a page whose offset would not fit in
an SQLite INTEGER is rejected, so a store query is never built with
an offset the store cannot bind.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from abn_registry_api.app.core.config import settings
from abn_registry_api.app.core.db import SQLITE_MAX_INTEGER
from abn_registry_api.app.core.exceptions import FieldError
from abn_registry_api.app.services.validation import (
    NAME_TYPES,
    RECORD_STATUSES,
    ensure_valid,
)

SORT_ORDERS = ("asc", "desc")

RECORD_SORT_FIELDS: Dict[str, str] = {
    "abn": "abn",
    "status": "status",
    "lastUpdated": "last_updated",
    "createdAt": "created_at",
    "legalName": "legal_name",
    "organisationName": "organisation_name",
}
RECORD_SEARCH_COLUMNS = ("abn", "legal_name", "organisation_name", "acn")

NAME_SORT_FIELDS: Dict[str, str] = {
    "name": "name",
    "type": "type",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}
NAME_SEARCH_COLUMNS = ("name", "abn")


@dataclass
class ListQuery:
    """Store-level filter, sort and pagination for one list request."""

    conditions: List[str] = field(default_factory=list)
    params: List[object] = field(default_factory=list)
    sort_column: str = "id"
    sort_order: str = "desc"
    page: int = 1
    limit: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def where_sql(self) -> str:
        if not self.conditions:
            return ""
        return " WHERE " + " AND ".join(self.conditions)

    @property
    def order_sql(self) -> str:
        # ``id`` follows insertion order and keeps pages deterministic on ties.
        direction = self.sort_order.upper()
        return f" ORDER BY {self.sort_column} {direction}, id {direction}"

    def pages(self, total: int) -> int:
        return math.ceil(total / self.limit) if total else 0


def normalise_pagination(page: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    """Clamp ``page`` to >= 1 and ``limit`` to [1, max_page_size]."""
    page = page if page and page > 0 else 1
    if not limit or limit < 1:
        limit = settings.default_page_size
    return page, min(limit, settings.max_page_size)


def pagination_errors(page: int, limit: int) -> List[FieldError]:
    """Reject a page whose offset SQLite cannot bind."""
    if (page - 1) * limit > SQLITE_MAX_INTEGER:
        return [FieldError("page", "Page is out of range")]
    return []


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _add_search(query: ListQuery, columns: Sequence[str], search: Optional[str]) -> None:
    if not search:
        return
    # Both sides lower-cased in Python so non-ASCII letters match too.
    pattern = f"%{escape_like(search.lower())}%"
    query.conditions.append(
        "(" + " OR ".join(f"py_lower({col}) LIKE ? ESCAPE '\\'" for col in columns) + ")"
    )
    query.params.extend([pattern] * len(columns))


def _resolve_sort(
    sort_by: str,
    sort_order: str,
    allowed: Dict[str, str],
    errors: List[FieldError],
) -> Tuple[str, str]:
    if sort_by not in allowed:
        errors.append(FieldError("sortBy", f"sortBy must be one of: {', '.join(allowed)}"))
    if sort_order not in SORT_ORDERS:
        errors.append(FieldError("sortOrder", "sortOrder must be either asc or desc"))
    return allowed.get(sort_by, "id"), sort_order


def build_record_query(
    page: Optional[int] = 1,
    limit: Optional[int] = None,
    status: Optional[str] = None,
    entity_type: Optional[str] = None,
    state: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "lastUpdated",
    sort_order: str = "desc",
) -> ListQuery:
    """Build the query for listing ABN records."""
    errors: List[FieldError] = []
    if status is not None and status not in RECORD_STATUSES:
        errors.append(FieldError("status", "Status must be either Active or Cancelled"))
    sort_column, sort_order = _resolve_sort(sort_by, sort_order, RECORD_SORT_FIELDS, errors)
    page, limit = normalise_pagination(page, limit)
    errors.extend(pagination_errors(page, limit))
    ensure_valid(errors)

    query = ListQuery(sort_column=sort_column, sort_order=sort_order, page=page, limit=limit)
    for column, value in (("status", status), ("entity_type_code", entity_type), ("state", state)):
        if value:
            query.conditions.append(f"{column} = ?")
            query.params.append(value)
    _add_search(query, RECORD_SEARCH_COLUMNS, search)
    return query


def build_name_query(
    page: Optional[int] = 1,
    limit: Optional[int] = None,
    abn: Optional[str] = None,
    name_type: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
) -> ListQuery:
    """Build the query for listing ABN names."""
    errors: List[FieldError] = []
    if name_type is not None and name_type not in NAME_TYPES:
        errors.append(FieldError("type", "Invalid name type"))
    sort_column, sort_order = _resolve_sort(sort_by, sort_order, NAME_SORT_FIELDS, errors)
    page, limit = normalise_pagination(page, limit)
    errors.extend(pagination_errors(page, limit))
    ensure_valid(errors)

    query = ListQuery(sort_column=sort_column, sort_order=sort_order, page=page, limit=limit)
    for column, value in (("abn", abn), ("type", name_type)):
        if value:
            query.conditions.append(f"{column} = ?")
            query.params.append(value)
    _add_search(query, NAME_SEARCH_COLUMNS, search)
    return query
