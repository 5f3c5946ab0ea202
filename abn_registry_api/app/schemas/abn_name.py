"""
Pydantic models for ABN names.

A name is one trading, business, legal or other alias attached to an
ABN record by its ABN value.  Read models carry ``abnRecord``, a small
projection of the owning record resolved at read time.
"""

from typing import List, Optional

from pydantic import Field

from .common import CamelModel


class AbnRecordSummary(CamelModel):
    """Projection of a record joined onto each name."""

    abn: str
    status: str
    legal_name: Optional[str] = None
    organisation_name: Optional[str] = None
    entity_type_code: Optional[str] = None


class AbnNameCreate(CamelModel):
    """Schema for creating a name.

    Constraints (ABN pattern, name length, type enum) are checked by
    ``services.validation.validate_abn_name``; ``type`` defaults to
    ``BusinessName`` when omitted.
    """

    abn: Optional[str] = Field(None, examples=["12345678901"])
    name: Optional[str] = Field(None, examples=["Example Trading Name"])
    type: Optional[str] = Field(None, examples=["TradingName"])


class AbnNameUpdate(CamelModel):
    """Schema for updating a name.  Omitted fields keep their value."""

    abn: Optional[str] = None
    name: Optional[str] = None
    type: Optional[str] = None


class AbnNameRead(CamelModel):
    id: int
    abn: str
    name: str
    type: str
    created_at: str
    updated_at: str
    abn_record: Optional[AbnRecordSummary] = None


class AbnNameSearchHit(AbnNameRead):
    """A ranked search result; higher ``score`` is more relevant."""

    score: float


class NameOverview(CamelModel):
    total_names: int = 0
    unique_abns: int = 0


class NameTypeCount(CamelModel):
    type: Optional[str]
    count: int


class AbnNameStats(CamelModel):
    overview: NameOverview
    name_types: List[NameTypeCount]
