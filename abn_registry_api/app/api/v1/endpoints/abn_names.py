"""
ABN name endpoints for API v1.

CRUD over names, lookup of all names of one ABN, ranked word search
and statistics.  Static paths (``/stats/overview``, ``/search/...``,
``/abn/...``) are declared before ``/{name_id}`` so they are matched
first.
"""

import math
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from abn_registry_api.app.api.deps import get_name_service
from abn_registry_api.app.core.config import settings
from abn_registry_api.app.core.db import SQLITE_MAX_INTEGER
from abn_registry_api.app.schemas.abn_name import (
    AbnNameCreate,
    AbnNameRead,
    AbnNameSearchHit,
    AbnNameStats,
    AbnNameUpdate,
)
from abn_registry_api.app.schemas.common import Envelope, ListEnvelope, MessageEnvelope, PageEnvelope
from abn_registry_api.app.services.abn_name_service import AbnNameService
from abn_registry_api.app.services.query_builder import build_name_query

router = APIRouter()

NameId = Annotated[int, Path(ge=1, le=SQLITE_MAX_INTEGER, description="Numeric id of the name")]


@router.get("", response_model=PageEnvelope[AbnNameRead])
async def list_abn_names(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    abn: Optional[str] = Query(None),
    name_type: Optional[str] = Query(None, alias="type"),
    search: Optional[str] = Query(None),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    service: AbnNameService = Depends(get_name_service),
) -> PageEnvelope[AbnNameRead]:
    """List names with filters, sorting and pagination.

    - **abn**: names of one ABN.
    - **type**: `TradingName`, `BusinessName`, `LegalName` or `Other`.
    - **search**: case-insensitive substring of the name or ABN.
    - **sortBy**: `name`, `type`, `createdAt` or `updatedAt`.
    """
    query = build_name_query(
        page=page,
        limit=limit,
        abn=abn,
        name_type=name_type,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    names, total = await service.list_names(query)
    return PageEnvelope[AbnNameRead](
        results=len(names),
        total=total,
        page=query.page,
        pages=query.pages(total),
        data=names,
    )


@router.get("/stats/overview", response_model=Envelope[AbnNameStats])
async def get_abn_name_stats(
    service: AbnNameService = Depends(get_name_service),
) -> Envelope[AbnNameStats]:
    return Envelope[AbnNameStats](data=await service.stats())


@router.get("/search/{term}", response_model=PageEnvelope[AbnNameSearchHit])
async def search_abn_names(
    term: str,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    service: AbnNameService = Depends(get_name_service),
) -> PageEnvelope[AbnNameSearchHit]:
    """Word search over name text, most relevant first."""
    hits, total, page, limit = await service.search_names(term, page=page, limit=limit)
    return PageEnvelope[AbnNameSearchHit](
        results=len(hits),
        total=total,
        page=page,
        pages=math.ceil(total / limit),
        data=hits,
    )


@router.get("/abn/{abn}", response_model=ListEnvelope[AbnNameRead])
async def list_names_for_abn(
    abn: str,
    service: AbnNameService = Depends(get_name_service),
) -> ListEnvelope[AbnNameRead]:
    """All names of one ABN.  404 if there is no record with this ABN."""
    names = await service.list_names_for_abn(abn)
    return ListEnvelope[AbnNameRead](results=len(names), data=names)


@router.get("/{name_id}", response_model=Envelope[AbnNameRead])
async def get_abn_name(
    name_id: NameId,
    service: AbnNameService = Depends(get_name_service),
) -> Envelope[AbnNameRead]:
    return Envelope[AbnNameRead](data=await service.get_name(name_id))


@router.post("", response_model=Envelope[AbnNameRead], status_code=status.HTTP_201_CREATED)
async def create_abn_name(
    name_in: AbnNameCreate,
    service: AbnNameService = Depends(get_name_service),
) -> Envelope[AbnNameRead]:
    """Create a name.  The ABN must already have a record."""
    return Envelope[AbnNameRead](data=await service.create_name(name_in))


@router.put("/{name_id}", response_model=Envelope[AbnNameRead])
async def update_abn_name(
    name_id: NameId,
    name_in: AbnNameUpdate,
    service: AbnNameService = Depends(get_name_service),
) -> Envelope[AbnNameRead]:
    return Envelope[AbnNameRead](data=await service.update_name(name_id, name_in))


@router.delete("/{name_id}", response_model=MessageEnvelope)
async def delete_abn_name(
    name_id: NameId,
    service: AbnNameService = Depends(get_name_service),
) -> MessageEnvelope:
    await service.delete_name(name_id)
    return MessageEnvelope(message="ABN name deleted successfully")
