"""
Service layer for ABN records.

``AbnRecordService`` enforces the record rules that sit above plain
storage: field validation before every write, an immutable ABN, the
``lastUpdated`` refresh on every update and the cascade that removes a
record's names before the record itself.  The cascade is two separate
store operations, not a transaction; a failure between them is logged
and reported as ``CascadeDeleteError``.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict, List, Tuple

from abn_registry_api.app.core.db import utcnow_iso
from abn_registry_api.app.core.exceptions import (
    CascadeDeleteError,
    FieldError,
    NotFoundError,
    ValidationFailed,
)
from abn_registry_api.app.schemas.abn_record import (
    AbnRecordCreate,
    AbnRecordDetail,
    AbnRecordRead,
    AbnRecordStats,
    AbnRecordUpdate,
)
from abn_registry_api.app.services.abn_name_service import join_record_summaries
from abn_registry_api.app.services.query_builder import ListQuery
from abn_registry_api.app.services.validation import (
    ensure_abn_param,
    ensure_valid,
    validate_abn_record,
)
from abn_registry_api.app.stores.abn_name_store import AbnNameStore
from abn_registry_api.app.stores.abn_record_store import AbnRecordStore

logger = logging.getLogger(__name__)


def _normalise(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Treat empty strings as absent and fill enum defaults."""
    doc = {k: (None if v == "" else v) for k, v in doc.items()}
    if doc.get("status") is None:
        doc["status"] = "Active"
    if doc.get("gst_status") is None:
        doc["gst_status"] = "Cancelled"
    return doc


class AbnRecordService:
    """CRUD and statistics over ABN records."""

    def __init__(self, records: AbnRecordStore, names: AbnNameStore):
        self.records = records
        self.names = names

    async def list_records(self, query: ListQuery) -> Tuple[List[AbnRecordRead], int]:
        """Return one page of records and the total matching the same filter.

        The page and the count are two reads; a concurrent write may
        make them disagree by a few rows.
        """
        docs = self.records.find_page(query)
        total = self.records.count(query)
        return [AbnRecordRead.from_store(d) for d in docs], total

    def _load(self, abn: str) -> Dict[str, Any]:
        ensure_abn_param(abn)
        doc = self.records.find_by_abn(abn)
        if doc is None:
            raise NotFoundError("ABN record not found")
        return doc

    async def get_record(self, abn: str) -> AbnRecordRead:
        return AbnRecordRead.from_store(self._load(abn))

    async def get_record_detail(self, abn: str) -> AbnRecordDetail:
        """The record plus every name that references it."""
        doc = self._load(abn)
        names = join_record_summaries(self.names.find_by_abn(abn), self.records)
        return AbnRecordDetail(record=AbnRecordRead.from_store(doc), names=names)

    async def create_record(self, data: AbnRecordCreate) -> AbnRecordRead:
        doc = _normalise(data.model_dump())
        if doc.get("abn_status_from_date") is None:
            doc["abn_status_from_date"] = utcnow_iso()
        ensure_valid(validate_abn_record(doc))
        created = self.records.insert(doc)
        logger.info("Created ABN record %s", created["abn"])
        return AbnRecordRead.from_store(created)

    async def update_record(self, abn: str, data: AbnRecordUpdate) -> AbnRecordRead:
        """Apply the fields present in ``data``, re-validate and save.

        ``lastUpdated`` is refreshed on every successful update.
        """
        existing = self._load(abn)
        changes = data.model_dump(exclude_unset=True)
        if "abn" in changes and changes["abn"] != abn:
            raise ValidationFailed([FieldError("abn", "ABN cannot be changed")])
        merged = _normalise({**existing, **changes})
        ensure_valid(validate_abn_record(merged))
        merged["last_updated"] = utcnow_iso()
        updated = self.records.update(abn, merged)
        if updated is None:
            raise NotFoundError("ABN record not found")
        logger.info("Updated ABN record %s", abn)
        return AbnRecordRead.from_store(updated)

    async def delete_record(self, abn: str) -> int:
        """Delete the record's names, then the record.

        Returns the number of names removed.  Nothing is deleted when
        the record does not exist.
        """
        self._load(abn)
        removed = self.names.delete_by_abn(abn)
        logger.info("Deleted %d name(s) of ABN %s", removed, abn)
        try:
            deleted = self.records.delete(abn)
        except sqlite3.Error as e:
            logger.error(
                "Cascade delete of ABN %s incomplete: %d name(s) removed but record delete failed: %s",
                abn,
                removed,
                e,
            )
            raise CascadeDeleteError(
                "ABN record deletion failed after its names were removed"
            ) from e
        if not deleted:
            logger.warning("ABN record %s was already removed by a concurrent request", abn)
        else:
            logger.info("Deleted ABN record %s", abn)
        return removed

    async def stats(self) -> AbnRecordStats:
        return AbnRecordStats(**self.records.stats())
