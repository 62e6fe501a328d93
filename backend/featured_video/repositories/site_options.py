"""Repository for site_options (video controls, floating video layout, post types)."""

from __future__ import annotations

import json
import logging
from typing import Any

import asyncpg

from featured_video.cache import AsyncTTLCache, cached
from featured_video.models.site_options import SiteSettings, VideoControls

logger = logging.getLogger(__name__)

SELF_CONTROLS_KEY = "self_video_controls"
EMBED_CONTROLS_KEY = "embed_video_controls"
LAYOUT_KEY = "floating_video_layout"
POST_TYPES_KEY = "post_types"

OPTION_KEYS = (SELF_CONTROLS_KEY, EMBED_CONTROLS_KEY, LAYOUT_KEY, POST_TYPES_KEY)

_settings_cache = AsyncTTLCache(maxsize=4, ttl=300)
_SETTINGS_KEY = "site_options:settings"


def _decode(value: Any) -> Any:
    return json.loads(value) if isinstance(value, str) else value


def settings_from_options(options: dict[str, Any]) -> SiteSettings:
    """Build SiteSettings from raw option values, defaulting anything missing."""
    defaults = SiteSettings()
    post_types = options.get(POST_TYPES_KEY)
    layout = options.get(LAYOUT_KEY)
    return SiteSettings(
        self_controls=VideoControls.from_dict(options.get(SELF_CONTROLS_KEY)),
        embed_controls=VideoControls.from_dict(options.get(EMBED_CONTROLS_KEY)),
        floating_video_layout=layout if isinstance(layout, str) and layout else defaults.floating_video_layout,
        post_types=[str(p) for p in post_types] if isinstance(post_types, list) else defaults.post_types,
    )


class SiteOptionsRepository:
    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    @cached(cache=_settings_cache, key_func=lambda self: _SETTINGS_KEY)
    async def get_settings(self) -> SiteSettings:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT key, value FROM site_options WHERE key = ANY($1::text[])",
                list(OPTION_KEYS),
            )
            return settings_from_options({r["key"]: _decode(r["value"]) for r in rows})

    async def set_options(self, values: dict[str, Any]) -> SiteSettings:
        """Upsert the given options in one transaction and return fresh settings."""
        unknown = set(values) - set(OPTION_KEYS)
        if unknown:
            raise ValueError(f"Unknown option keys: {', '.join(sorted(unknown))}")

        async with self.pool.acquire() as conn:
            async with conn.transaction():
                for key, value in values.items():
                    await conn.execute(
                        """
                        INSERT INTO site_options (key, value) VALUES ($1, $2::jsonb)
                        ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value, updated_at = NOW()
                        """,
                        key,
                        json.dumps(value),
                    )
        _settings_cache.invalidate(_SETTINGS_KEY)
        logger.info(f"Site options updated: {', '.join(sorted(values))}")
        return await self.get_settings()
