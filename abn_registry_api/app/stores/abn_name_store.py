"""
Name Store: the ``abn_names`` table.

The compound unique constraint on ``(abn, name, type)`` is the final
guard against duplicate names; there is no foreign key to
``abn_records``.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Callable, Dict, List, Optional, Sequence

from abn_registry_api.app.core.db import get_connection, utcnow_iso
from abn_registry_api.app.core.exceptions import DuplicateKeyError
from abn_registry_api.app.services.query_builder import ListQuery, escape_like

logger = logging.getLogger(__name__)

DUPLICATE_NAME_MESSAGE = "This name already exists for the given ABN and type"


class AbnNameStore:
    """SQLite-backed collection of ABN names."""

    def __init__(self, connect: Callable[[], sqlite3.Connection] = get_connection):
        self._connect = connect

    def find_by_id(self, name_id: int) -> Optional[Dict[str, Any]]:
        conn = self._connect()
        try:
            row = conn.execute("SELECT * FROM abn_names WHERE id = ?", (name_id,)).fetchone()
            return dict(row) if row else None
        finally:
            conn.close()

    def find_by_abn(self, abn: str) -> List[Dict[str, Any]]:
        conn = self._connect()
        try:
            rows = conn.execute("SELECT * FROM abn_names WHERE abn = ? ORDER BY id ASC", (abn,)).fetchall()
            return [dict(row) for row in rows]
        finally:
            conn.close()

    def count(self, query: ListQuery) -> int:
        conn = self._connect()
        try:
            sql = "SELECT COUNT(*) FROM abn_names" + query.where_sql
            return conn.execute(sql, tuple(query.params)).fetchone()[0]
        finally:
            conn.close()

    def find_page(self, query: ListQuery) -> List[Dict[str, Any]]:
        conn = self._connect()
        try:
            sql = "SELECT * FROM abn_names" + query.where_sql + query.order_sql + " LIMIT ? OFFSET ?"
            rows = conn.execute(sql, (*query.params, query.limit, query.offset)).fetchall()
            return [dict(row) for row in rows]
        finally:
            conn.close()

    def find_containing_any(self, tokens: Sequence[str]) -> List[Dict[str, Any]]:
        """Names whose text contains at least one of ``tokens``, in insertion order.

        This is only a coarse pre-filter; ranking happens in the service.
        """
        if not tokens:
            return []
        conditions = " OR ".join("py_lower(name) LIKE ? ESCAPE '\\'" for _ in tokens)
        params = tuple(f"%{escape_like(token.lower())}%" for token in tokens)
        conn = self._connect()
        try:
            rows = conn.execute(f"SELECT * FROM abn_names WHERE {conditions} ORDER BY id ASC", params).fetchall()
            return [dict(row) for row in rows]
        finally:
            conn.close()

    def insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        now = utcnow_iso()
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO abn_names (abn, name, type, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
                (doc["abn"], doc["name"], doc["type"], now, now),
            )
            conn.commit()
            row = cursor.execute("SELECT * FROM abn_names WHERE id = ?", (cursor.lastrowid,)).fetchone()
            return dict(row)
        except sqlite3.IntegrityError as e:
            logger.warning("Duplicate name %r (%s) for ABN %s rejected", doc["name"], doc["type"], doc["abn"])
            raise DuplicateKeyError(DUPLICATE_NAME_MESSAGE) from e
        finally:
            conn.close()

    def update(self, name_id: int, doc: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE abn_names SET abn = ?, name = ?, type = ?, updated_at = ? WHERE id = ?",
                (doc["abn"], doc["name"], doc["type"], utcnow_iso(), name_id),
            )
            conn.commit()
            if cursor.rowcount == 0:
                return None
            row = cursor.execute("SELECT * FROM abn_names WHERE id = ?", (name_id,)).fetchone()
            return dict(row)
        except sqlite3.IntegrityError as e:
            logger.warning("Update of name %s would duplicate an existing name", name_id)
            raise DuplicateKeyError(DUPLICATE_NAME_MESSAGE) from e
        finally:
            conn.close()

    def delete(self, name_id: int) -> bool:
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM abn_names WHERE id = ?", (name_id,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def delete_by_abn(self, abn: str) -> int:
        """Delete every name of ``abn`` and return how many were removed."""
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM abn_names WHERE abn = ?", (abn,))
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()

    def stats(self) -> Dict[str, Any]:
        conn = self._connect()
        try:
            overview = conn.execute(
                "SELECT COUNT(*) AS total_names, COUNT(DISTINCT abn) AS unique_abns FROM abn_names"
            ).fetchone()
            name_types = conn.execute(
                "SELECT type, COUNT(*) AS count FROM abn_names GROUP BY type ORDER BY count DESC, type ASC"
            ).fetchall()
            return {"overview": dict(overview), "name_types": [dict(r) for r in name_types]}
        finally:
            conn.close()
