"""
ABN record endpoints for API v1.

CRUD over ABN records plus an aggregate statistics view.  Handlers
only translate HTTP into service calls; validation, the immutable ABN
and the cascade delete live in ``AbnRecordService``.  Errors raised
by the service are rendered by the handlers in ``core.exceptions``.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from abn_registry_api.app.api.deps import get_record_service
from abn_registry_api.app.core.config import settings
from abn_registry_api.app.schemas.abn_record import (
    AbnRecordCreate,
    AbnRecordDetail,
    AbnRecordRead,
    AbnRecordStats,
    AbnRecordUpdate,
)
from abn_registry_api.app.schemas.common import Envelope, MessageEnvelope, PageEnvelope
from abn_registry_api.app.services.abn_record_service import AbnRecordService
from abn_registry_api.app.services.query_builder import build_record_query

router = APIRouter()


@router.get("", response_model=PageEnvelope[AbnRecordRead])
async def list_abn_records(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    status_filter: Optional[str] = Query(None, alias="status"),
    entity_type: Optional[str] = Query(None, alias="entityType"),
    state: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    sort_by: str = Query("lastUpdated", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    service: AbnRecordService = Depends(get_record_service),
) -> PageEnvelope[AbnRecordRead]:
    """List ABN records with filters, sorting and pagination.

    - **page**, **limit**: pagination (limit at most 100).
    - **status**: `Active` or `Cancelled`.
    - **entityType**: exact entity type code, e.g. `COM`.
    - **state**: exact state, e.g. `NSW`.
    - **search**: case-insensitive substring of ABN, legal name,
      organisation name or ACN.
    - **sortBy**: `abn`, `status`, `lastUpdated`, `createdAt`,
      `legalName` or `organisationName`; **sortOrder**: `asc`/`desc`.
    """
    query = build_record_query(
        page=page,
        limit=limit,
        status=status_filter,
        entity_type=entity_type,
        state=state,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    records, total = await service.list_records(query)
    return PageEnvelope[AbnRecordRead](
        results=len(records),
        total=total,
        page=query.page,
        pages=query.pages(total),
        data=records,
    )


@router.get("/stats/overview", response_model=Envelope[AbnRecordStats])
async def get_abn_record_stats(
    service: AbnRecordService = Depends(get_record_service),
) -> Envelope[AbnRecordStats]:
    """Totals by status and GST registration, grouped by entity type and state."""
    return Envelope[AbnRecordStats](data=await service.stats())


@router.get("/{abn}", response_model=Envelope[AbnRecordDetail])
async def get_abn_record(
    abn: str,
    service: AbnRecordService = Depends(get_record_service),
) -> Envelope[AbnRecordDetail]:
    """Retrieve a record by ABN together with its names."""
    return Envelope[AbnRecordDetail](data=await service.get_record_detail(abn))


@router.post("", response_model=Envelope[AbnRecordRead], status_code=status.HTTP_201_CREATED)
async def create_abn_record(
    record_in: AbnRecordCreate,
    service: AbnRecordService = Depends(get_record_service),
) -> Envelope[AbnRecordRead]:
    """Create a record.  A second record with the same ABN is rejected."""
    return Envelope[AbnRecordRead](data=await service.create_record(record_in))


@router.put("/{abn}", response_model=Envelope[AbnRecordRead])
async def update_abn_record(
    abn: str,
    record_in: AbnRecordUpdate,
    service: AbnRecordService = Depends(get_record_service),
) -> Envelope[AbnRecordRead]:
    """Update a record.  Omitted fields keep their current value."""
    return Envelope[AbnRecordRead](data=await service.update_record(abn, record_in))


@router.delete("/{abn}", response_model=MessageEnvelope)
async def delete_abn_record(
    abn: str,
    service: AbnRecordService = Depends(get_record_service),
) -> MessageEnvelope:
    """Delete a record and every name that references it."""
    await service.delete_record(abn)
    return MessageEnvelope(message="ABN record and associated names deleted successfully")
