"""Floating video admin API routes"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from featured_video_api.core.dependencies import get_floating_video_service, require_admin
from featured_video_api.services import FloatingVideoService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/floating-videos",
    tags=["floating-videos"],
    dependencies=[Depends(require_admin)],
)


# ============================================
# Request/Response Models
# ============================================


class TaxonomyTarget(BaseModel):
    taxonomy: str = ""
    terms: list[Any] = []


class FloatingVideoInput(BaseModel):
    title: str
    status: str | None = None
    video_source: str
    video_id: Any = 0
    embed_url: str | None = None
    display_type: str
    page_ids: list[Any] = []
    target_post_types: list[Any] = []
    target_taxonomies: list[TaxonomyTarget] = []


class FloatingVideoItem(BaseModel):
    id: int
    title: str
    status: str
    date: str | None
    video_source: str
    video_id: int
    video_url: str
    embed_url: str
    display_type: str
    page_ids: list[int]
    target_post_types: list[str]
    target_taxonomies: list[dict]


class DeleteResponse(BaseModel):
    success: bool
    id: int


class SearchOption(BaseModel):
    value: int
    label: str


class TermOption(SearchOption):
    taxonomy: str


# ============================================
# Endpoints
# ============================================


@router.get("", response_model=list[FloatingVideoItem])
async def list_floating_videos(
    service: FloatingVideoService = Depends(get_floating_video_service),
) -> list[dict]:
    return await service.list_items()


@router.post("", response_model=FloatingVideoItem, status_code=201)
async def create_floating_video(
    body: FloatingVideoInput,
    service: FloatingVideoService = Depends(get_floating_video_service),
) -> dict:
    return await service.create_item(body.model_dump())


@router.get("/search-pages", response_model=list[SearchOption])
async def search_pages(
    search: str = Query(default=""),
    service: FloatingVideoService = Depends(get_floating_video_service),
) -> list[dict]:
    return await service.search_pages(search)


@router.get("/search-terms", response_model=list[TermOption])
async def search_terms(
    search: str = Query(default=""),
    service: FloatingVideoService = Depends(get_floating_video_service),
) -> list[dict]:
    return await service.search_terms(search)


@router.get("/display-options")
async def display_options(
    service: FloatingVideoService = Depends(get_floating_video_service),
) -> dict:
    return await service.display_options()


@router.get("/{record_id}", response_model=FloatingVideoItem)
async def get_floating_video(
    record_id: int,
    service: FloatingVideoService = Depends(get_floating_video_service),
) -> dict:
    return await service.get_item(record_id)


@router.put("/{record_id}", response_model=FloatingVideoItem)
async def update_floating_video(
    record_id: int,
    body: FloatingVideoInput,
    service: FloatingVideoService = Depends(get_floating_video_service),
) -> dict:
    return await service.update_item(record_id, body.model_dump())


@router.delete("/{record_id}", response_model=DeleteResponse)
async def delete_floating_video(
    record_id: int,
    service: FloatingVideoService = Depends(get_floating_video_service),
) -> dict:
    return await service.delete_item(record_id)
