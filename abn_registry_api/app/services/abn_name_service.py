"""
Service layer for ABN names.

``AbnNameService`` wraps the Name Store and needs read access to the
Record Store for two things: the write-time check that a name's ABN
exists, and the ``abnRecord`` summary joined onto every name it
returns.  Both go through the ``RecordLookup`` handle passed at
construction; no record data is ever stored on a name.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple

from abn_registry_api.app.core.exceptions import NotFoundError, ReferentialIntegrityError
from abn_registry_api.app.schemas.abn_name import (
    AbnNameCreate,
    AbnNameRead,
    AbnNameSearchHit,
    AbnNameStats,
    AbnNameUpdate,
)
from abn_registry_api.app.services.query_builder import (
    ListQuery,
    normalise_pagination,
    pagination_errors,
)
from abn_registry_api.app.services.validation import (
    ensure_abn_param,
    ensure_valid,
    validate_abn_name,
    validate_search_term,
)
from abn_registry_api.app.stores.abn_name_store import AbnNameStore

logger = logging.getLogger(__name__)

DEFAULT_NAME_TYPE = "BusinessName"

# Apostrophes stay inside a word: "O'Brien" is one word.
_WORD = re.compile(r"\w+(?:['\u2019]\w+)*")


class RecordLookup(Protocol):
    """The part of the Record Store the name service depends on."""

    def find_by_abn(self, abn: str) -> Optional[Dict[str, Any]]: ...

    def find_summaries(self, abns: Iterable[str]) -> Dict[str, Dict[str, Any]]: ...


def join_record_summaries(names: List[Dict[str, Any]], records: RecordLookup) -> List[AbnNameRead]:
    """Attach the owning record's summary to each name.

    A name whose record no longer exists gets ``abn_record=None``.
    """
    summaries = records.find_summaries(n["abn"] for n in names)
    return [AbnNameRead(**n, abn_record=summaries.get(n["abn"])) for n in names]


def search_terms(term: str) -> List[str]:
    """Distinct lower-cased words of ``term``.

    Single-character words are dropped unless nothing else is left.
    """
    words = list(dict.fromkeys(_WORD.findall(term.lower())))
    return [w for w in words if len(w) > 1] or words


def relevance_score(name: str, terms: List[str]) -> float:
    """Score ``name`` against the lower-cased search ``terms``.

    Each matching term contributes ``0.5 + 0.5 * occurrences / words``,
    so names that match more terms score higher and, for the same
    terms, shorter names beat longer ones.  ``0.0`` means no match.
    """
    words = _WORD.findall(name.lower())
    if not words:
        return 0.0
    score = 0.0
    for term in terms:
        occurrences = words.count(term)
        if occurrences:
            score += 0.5 + 0.5 * occurrences / len(words)
    return round(score, 4)


class AbnNameService:
    """CRUD, lookup and search over ABN names."""

    def __init__(self, names: AbnNameStore, records: RecordLookup):
        self.names = names
        self.records = records

    async def list_names(self, query: ListQuery) -> Tuple[List[AbnNameRead], int]:
        """Return one page of names and the total matching the same filter."""
        docs = self.names.find_page(query)
        total = self.names.count(query)
        return join_record_summaries(docs, self.records), total

    async def get_name(self, name_id: int) -> AbnNameRead:
        doc = self.names.find_by_id(name_id)
        if doc is None:
            raise NotFoundError("ABN name not found")
        return join_record_summaries([doc], self.records)[0]

    async def list_names_for_abn(self, abn: str) -> List[AbnNameRead]:
        """All names of one record.

        Raises ``NotFoundError`` when no record has this ABN; a record
        without names yields an empty list.
        """
        ensure_abn_param(abn)
        if self.records.find_by_abn(abn) is None:
            raise NotFoundError("No ABN record found for this ABN")
        return join_record_summaries(self.names.find_by_abn(abn), self.records)

    def _ensure_record_exists(self, abn: str) -> None:
        if self.records.find_by_abn(abn) is None:
            logger.warning("Rejected name for unknown ABN %s", abn)
            raise ReferentialIntegrityError("ABN does not exist in records")

    async def create_name(self, data: AbnNameCreate) -> AbnNameRead:
        doc = {
            "abn": data.abn,
            "name": data.name.strip() if data.name is not None else None,
            "type": data.type if data.type is not None else DEFAULT_NAME_TYPE,
        }
        ensure_valid(validate_abn_name(doc))
        self._ensure_record_exists(doc["abn"])
        created = self.names.insert(doc)
        logger.info("Created name %s for ABN %s", created["id"], created["abn"])
        return join_record_summaries([created], self.records)[0]

    async def update_name(self, name_id: int, data: AbnNameUpdate) -> AbnNameRead:
        """Apply the fields present in ``data`` and re-validate the result.

        The referenced record is only looked up again when the update
        moves the name to a different ABN.
        """
        existing = self.names.find_by_id(name_id)
        if existing is None:
            raise NotFoundError("ABN name not found")
        changes = data.model_dump(exclude_unset=True)
        if isinstance(changes.get("name"), str):
            changes["name"] = changes["name"].strip()
        merged = {**existing, **changes}
        ensure_valid(validate_abn_name(merged))
        if "abn" in changes and changes["abn"] != existing["abn"]:
            self._ensure_record_exists(merged["abn"])
        updated = self.names.update(name_id, merged)
        if updated is None:
            raise NotFoundError("ABN name not found")
        logger.info("Updated name %s", name_id)
        return join_record_summaries([updated], self.records)[0]

    async def delete_name(self, name_id: int) -> None:
        if not self.names.delete(name_id):
            raise NotFoundError("ABN name not found")
        logger.info("Deleted name %s", name_id)

    async def search_names(
        self,
        term: str,
        page: Optional[int] = 1,
        limit: Optional[int] = None,
    ) -> Tuple[List[AbnNameSearchHit], int, int, int]:
        """Ranked word search over name text.

        Returns ``(hits, total, page, limit)``.  Hits are ordered by
        score descending, then by insertion order, so repeating a query
        yields the same pages.
        """
        term = (term or "").strip()
        ensure_valid(validate_search_term(term))
        page, limit = normalise_pagination(page, limit)
        ensure_valid(pagination_errors(page, limit))

        terms = search_terms(term)
        scored = []
        for doc in self.names.find_containing_any(terms):
            score = relevance_score(doc["name"], terms)
            if score > 0:
                scored.append((score, doc))
        scored.sort(key=lambda item: (-item[0], item[1]["id"]))

        offset = (page - 1) * limit
        window = scored[offset:offset + limit]
        joined = join_record_summaries([doc for _, doc in window], self.records)
        hits = [
            AbnNameSearchHit(**read.model_dump(), score=score)
            for read, (score, _) in zip(joined, window)
        ]
        return hits, len(scored), page, limit

    async def stats(self) -> AbnNameStats:
        return AbnNameStats(**self.names.stats())
