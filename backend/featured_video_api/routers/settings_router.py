"""Site settings routes (player controls, layout, enabled post types)"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from featured_video_api.core.dependencies import get_settings_service, require_admin
from featured_video_api.services import SettingsService

router = APIRouter(
    prefix="/api/settings",
    tags=["settings"],
    dependencies=[Depends(require_admin)],
)


class SettingsUpdate(BaseModel):
    self_controls: dict[str, Any] | None = None
    embed_controls: dict[str, Any] | None = None
    floating_video_layout: str | None = None
    post_types: list[str] | None = None


@router.get("")
async def get_site_settings(service: SettingsService = Depends(get_settings_service)) -> dict:
    return await service.get_settings()


@router.put("")
async def update_site_settings(
    body: SettingsUpdate, service: SettingsService = Depends(get_settings_service)
) -> dict:
    return await service.update_settings(body.model_dump(exclude_none=True))
