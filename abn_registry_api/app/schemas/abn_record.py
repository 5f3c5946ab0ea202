"""
Pydantic models for ABN records.

These schemas describe the record payloads exchanged via the API.
Request models only fix the shape of the body: every field is an
optional string so that missing or malformed values are reported
together by ``services.validation.validate_abn_record`` rather than
one at a time.  ``AbnRecordRead`` adds the stored audit columns and
the derived ``fullEntityName``.
"""

from typing import Any, Dict, List, Optional

from pydantic import Field

from .abn_name import AbnNameRead
from .common import CamelModel


class AbnRecordBase(CamelModel):
    status: Optional[str] = Field(None, examples=["Active"])
    abn_status_from_date: Optional[str] = Field(None, examples=["2010-01-01"])
    entity_type_code: Optional[str] = Field(None, examples=["COM"])
    entity_type_text: Optional[str] = Field(None, examples=["Australian Private Company"])
    legal_name: Optional[str] = None
    organisation_name: Optional[str] = Field(None, examples=["Example Pty Ltd"])
    acn: Optional[str] = Field(None, examples=["123456789"])
    gst_status: Optional[str] = Field(None, examples=["Registered"])
    gst_from_date: Optional[str] = None
    state: Optional[str] = Field(None, examples=["NSW"])
    postcode: Optional[str] = Field(None, examples=["2000"])


class AbnRecordCreate(AbnRecordBase):
    """Schema for creating a record."""

    abn: Optional[str] = Field(None, examples=["12345678901"])


class AbnRecordUpdate(AbnRecordBase):
    """Schema for updating a record.

    Only fields present in the body are changed.  ``abn`` may be sent
    but must equal the ABN in the URL; records cannot be re-keyed.
    """

    abn: Optional[str] = None


class AbnRecordRead(CamelModel):
    id: int
    abn: str
    status: str
    abn_status_from_date: Optional[str] = None
    entity_type_code: Optional[str] = None
    entity_type_text: Optional[str] = None
    legal_name: Optional[str] = None
    organisation_name: Optional[str] = None
    acn: Optional[str] = None
    gst_status: str
    gst_from_date: Optional[str] = None
    state: Optional[str] = None
    postcode: Optional[str] = None
    last_updated: str
    created_at: str
    updated_at: str
    full_entity_name: Optional[str] = None

    @classmethod
    def from_store(cls, doc: Dict[str, Any]) -> "AbnRecordRead":
        """Build from a store row, deriving ``full_entity_name``."""
        return cls(**doc, full_entity_name=doc.get("organisation_name") or doc.get("legal_name"))


class AbnRecordDetail(CamelModel):
    """A record together with every name that references it."""

    record: AbnRecordRead
    names: List[AbnNameRead]


class RecordOverview(CamelModel):
    total_records: int = 0
    active_records: int = 0
    cancelled_records: int = 0
    gst_registered: int = 0


class EntityTypeCount(CamelModel):
    entity_type_code: Optional[str]
    count: int


class StateCount(CamelModel):
    state: Optional[str]
    count: int


class AbnRecordStats(CamelModel):
    overview: RecordOverview
    entity_types: List[EntityTypeCount]
    states: List[StateCount]
