"""Post featured video and widget document routes"""

import logging

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from featured_video_api.core.dependencies import get_post_video_service, require_admin
from featured_video_api.services import PostVideoService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/posts/{post_id}",
    tags=["posts"],
    dependencies=[Depends(require_admin)],
)


class PostVideoBody(BaseModel):
    source: str = "self"
    video_id: int | None = None
    poster_id: int | None = None
    embed_url: str = ""


class WidgetDocumentBody(BaseModel):
    data: str


class SaveDocumentResponse(BaseModel):
    saved: bool
    meta_written: bool


@router.get("/featured-video", response_model=PostVideoBody)
async def get_featured_video(
    post_id: int, service: PostVideoService = Depends(get_post_video_service)
) -> PostVideoBody:
    meta = await service.get_meta(post_id)
    return PostVideoBody(
        source=meta.source,
        video_id=meta.video_id,
        poster_id=meta.poster_id,
        embed_url=meta.embed_url,
    )


@router.put("/featured-video", response_model=PostVideoBody)
async def set_featured_video(
    post_id: int,
    body: PostVideoBody,
    service: PostVideoService = Depends(get_post_video_service),
) -> PostVideoBody:
    meta = await service.set_meta(post_id, body.model_dump())
    return PostVideoBody(
        source=meta.source,
        video_id=meta.video_id,
        poster_id=meta.poster_id,
        embed_url=meta.embed_url,
    )


@router.get("/editor-meta")
async def get_editor_meta(
    post_id: int, service: PostVideoService = Depends(get_post_video_service)
) -> dict:
    """Localized canonical video for the editor; empty when the post has none."""
    meta = await service.get_editor_meta(post_id)
    return meta.to_dict() if meta else {}


@router.get("/widget-document")
async def get_widget_document(
    post_id: int, service: PostVideoService = Depends(get_post_video_service)
) -> Response:
    data = await service.get_document(post_id)
    if not data:
        return Response(status_code=204)
    return Response(content=data, media_type="application/json")


@router.put("/widget-document", response_model=SaveDocumentResponse)
async def save_widget_document(
    post_id: int,
    body: WidgetDocumentBody,
    service: PostVideoService = Depends(get_post_video_service),
) -> dict:
    return await service.save_document(post_id, body.data)
