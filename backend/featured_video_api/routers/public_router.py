"""Public floating video payload for page views"""

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse

from featured_video.conditions import KIND_OTHER
from featured_video_api.core.dependencies import get_floating_video_service
from featured_video_api.services import FloatingVideoService

router = APIRouter(prefix="/api/public", tags=["public"])


@router.get("/floating-video")
async def get_floating_video_payload(
    object_id: int = Query(default=0, ge=0),
    kind: str = Query(default=KIND_OTHER),
    post_type: str | None = Query(default=None),
    taxonomy: str | None = Query(default=None),
    term_id: int | None = Query(default=None, ge=0),
    service: FloatingVideoService = Depends(get_floating_video_service),
) -> Response:
    """Payload for the popup player; 204 when nothing should render on this page."""
    context = await service.build_context(
        object_id=object_id,
        kind=kind,
        post_type=post_type,
        taxonomy=taxonomy,
        term_id=term_id,
    )
    payload = await service.resolve_payload(context)
    if payload is None:
        return Response(status_code=204)
    return JSONResponse(payload)
