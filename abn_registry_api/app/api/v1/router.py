"""
Top-level router for version 1 of the API.

This router aggregates the domain routers under a unified prefix.
When new endpoints are added, include their routers here.
"""

from fastapi import APIRouter

from .endpoints import abn_names, abn_records

router = APIRouter()

router.include_router(abn_records.router, prefix="/abn-records", tags=["abn-records"])
router.include_router(abn_names.router, prefix="/abn-names", tags=["abn-names"])
