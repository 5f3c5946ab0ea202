"""
Record Store: the ``abn_records`` table.

Records are keyed by their ABN; the integer ``id`` only exists to
give a stable insertion order for tie-breaking.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Callable, Dict, Iterable, List, Optional

from abn_registry_api.app.core.db import get_connection, utcnow_iso
from abn_registry_api.app.core.exceptions import DuplicateKeyError
from abn_registry_api.app.services.query_builder import ListQuery

logger = logging.getLogger(__name__)

RECORD_FIELDS = (
    "abn",
    "status",
    "abn_status_from_date",
    "entity_type_code",
    "entity_type_text",
    "legal_name",
    "organisation_name",
    "acn",
    "gst_status",
    "gst_from_date",
    "state",
    "postcode",
    "last_updated",
)

SUMMARY_FIELDS = ("abn", "status", "legal_name", "organisation_name", "entity_type_code")


class AbnRecordStore:
    """SQLite-backed collection of ABN records."""

    def __init__(self, connect: Callable[[], sqlite3.Connection] = get_connection):
        self._connect = connect

    def find_by_abn(self, abn: str) -> Optional[Dict[str, Any]]:
        conn = self._connect()
        try:
            row = conn.execute("SELECT * FROM abn_records WHERE abn = ?", (abn,)).fetchone()
            return dict(row) if row else None
        finally:
            conn.close()

    def find_summaries(self, abns: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """Return ``{abn: summary}`` for those of ``abns`` that exist."""
        wanted = sorted(set(abns))
        if not wanted:
            return {}
        placeholders = ", ".join("?" for _ in wanted)
        conn = self._connect()
        try:
            rows = conn.execute(
                f"SELECT {', '.join(SUMMARY_FIELDS)} FROM abn_records WHERE abn IN ({placeholders})",
                tuple(wanted),
            ).fetchall()
            return {row["abn"]: dict(row) for row in rows}
        finally:
            conn.close()

    def count(self, query: ListQuery) -> int:
        conn = self._connect()
        try:
            sql = "SELECT COUNT(*) FROM abn_records" + query.where_sql
            return conn.execute(sql, tuple(query.params)).fetchone()[0]
        finally:
            conn.close()

    def find_page(self, query: ListQuery) -> List[Dict[str, Any]]:
        conn = self._connect()
        try:
            sql = "SELECT * FROM abn_records" + query.where_sql + query.order_sql + " LIMIT ? OFFSET ?"
            rows = conn.execute(sql, (*query.params, query.limit, query.offset)).fetchall()
            return [dict(row) for row in rows]
        finally:
            conn.close()

    def insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a validated record and return it as stored."""
        now = utcnow_iso()
        values = {f: doc.get(f) for f in RECORD_FIELDS}
        values["last_updated"] = values["last_updated"] or now
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                INSERT INTO abn_records ({', '.join(RECORD_FIELDS)}, created_at, updated_at)
                VALUES ({', '.join('?' for _ in RECORD_FIELDS)}, ?, ?)
                """,
                (*values.values(), now, now),
            )
            conn.commit()
            row = cursor.execute("SELECT * FROM abn_records WHERE id = ?", (cursor.lastrowid,)).fetchone()
            return dict(row)
        except sqlite3.IntegrityError as e:
            logger.warning("Duplicate ABN %s rejected", doc.get("abn"))
            raise DuplicateKeyError("ABN already exists") from e
        finally:
            conn.close()

    def update(self, abn: str, doc: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Overwrite the record's fields with ``doc``.  ``None`` if absent."""
        fields = [f for f in RECORD_FIELDS if f != "abn"]
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"UPDATE abn_records SET {', '.join(f'{f} = ?' for f in fields)}, updated_at = ? WHERE abn = ?",
                (*(doc.get(f) for f in fields), utcnow_iso(), abn),
            )
            conn.commit()
            if cursor.rowcount == 0:
                return None
            row = cursor.execute("SELECT * FROM abn_records WHERE abn = ?", (abn,)).fetchone()
            return dict(row)
        finally:
            conn.close()

    def delete(self, abn: str) -> bool:
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM abn_records WHERE abn = ?", (abn,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def stats(self) -> Dict[str, Any]:
        """Aggregate counts for the stats overview.

        Grouped counts are ordered by count descending, then by value so
        equal counts come back in a stable order.
        """
        conn = self._connect()
        try:
            overview = conn.execute(
                """
                SELECT COUNT(*) AS total_records,
                       COALESCE(SUM(CASE WHEN status = 'Active' THEN 1 ELSE 0 END), 0) AS active_records,
                       COALESCE(SUM(CASE WHEN status = 'Cancelled' THEN 1 ELSE 0 END), 0) AS cancelled_records,
                       COALESCE(SUM(CASE WHEN gst_status = 'Registered' THEN 1 ELSE 0 END), 0) AS gst_registered
                FROM abn_records
                """
            ).fetchone()
            entity_types = conn.execute(
                """
                SELECT entity_type_code, COUNT(*) AS count FROM abn_records
                GROUP BY entity_type_code ORDER BY count DESC, entity_type_code ASC
                """
            ).fetchall()
            states = conn.execute(
                """
                SELECT state, COUNT(*) AS count FROM abn_records
                GROUP BY state ORDER BY count DESC, state ASC
                """
            ).fetchall()
            return {
                "overview": dict(overview),
                "entity_types": [dict(r) for r in entity_types],
                "states": [dict(r) for r in states],
            }
        finally:
            conn.close()
