"""Site option reads and partial updates."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import asyncpg

from featured_video.models.site_options import CONTROL_FLAGS, VALID_LAYOUTS, SiteSettings
from featured_video.repositories import SiteOptionsRepository
from featured_video.repositories.site_options import (
    EMBED_CONTROLS_KEY,
    LAYOUT_KEY,
    POST_TYPES_KEY,
    SELF_CONTROLS_KEY,
)
from featured_video.sanitize import key_list, sanitize_key
from featured_video_api.core.errors import ValidationError

logger = logging.getLogger(__name__)


def settings_to_dict(settings: SiteSettings) -> dict:
    return {
        "self_controls": settings.self_controls.to_dict(),
        "embed_controls": settings.embed_controls.to_dict(),
        "floating_video_layout": settings.floating_video_layout,
        "post_types": settings.post_types,
    }


def _clean_controls(name: str, value: Any) -> dict[str, bool]:
    if not isinstance(value, Mapping):
        raise ValidationError("invalid_controls", f"{name} must be an object.")
    unknown = set(value) - set(CONTROL_FLAGS)
    if unknown:
        raise ValidationError(
            "invalid_controls", f"Unknown control flags: {', '.join(sorted(unknown))}."
        )
    return {flag: bool(value[flag]) for flag in CONTROL_FLAGS if flag in value}


class SettingsService:
    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool
        self.repo = SiteOptionsRepository(pool)

    async def get_settings(self) -> dict:
        return settings_to_dict(await self.repo.get_settings())

    async def update_settings(self, data: Mapping[str, Any]) -> dict:
        """Apply the keys present in *data*; control flags merge into stored ones."""
        current = await self.repo.get_settings()
        values: dict[str, Any] = {}

        if data.get("self_controls") is not None:
            merged = current.self_controls.to_dict()
            merged.update(_clean_controls("self_controls", data["self_controls"]))
            values[SELF_CONTROLS_KEY] = merged

        if data.get("embed_controls") is not None:
            merged = current.embed_controls.to_dict()
            merged.update(_clean_controls("embed_controls", data["embed_controls"]))
            values[EMBED_CONTROLS_KEY] = merged

        if data.get("floating_video_layout") is not None:
            layout = sanitize_key(data["floating_video_layout"])
            if layout not in VALID_LAYOUTS:
                raise ValidationError(
                    "invalid_layout", f"Layout must be one of: {', '.join(sorted(VALID_LAYOUTS))}."
                )
            values[LAYOUT_KEY] = layout

        if data.get("post_types") is not None:
            values[POST_TYPES_KEY] = key_list(data["post_types"])

        if not values:
            return settings_to_dict(current)

        return settings_to_dict(await self.repo.set_options(values))
