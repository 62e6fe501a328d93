"""Canonical post video and widget document operations.

Reads apply the read-time prefill, saves run the write-back. Both only act
on posts whose type is enabled in the site options.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import asyncpg

from featured_video.meta_sync import (
    EditorMeta,
    build_editor_meta,
    iter_video_widgets,
    plan_write_back,
    prefill_document,
)
from featured_video.models.floating_video import SOURCE_EMBED, SOURCE_SELF
from featured_video.models.post_video import PostVideoMeta
from featured_video.repositories import (
    ContentRepository,
    PostVideoRepository,
    SiteOptionsRepository,
    WidgetDocumentRepository,
)
from featured_video.sanitize import absint, sanitize_key, sanitize_url
from featured_video_api.core.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def meta_from_input(data: Mapping[str, Any]) -> PostVideoMeta:
    """Sanitized canonical meta from an editor request, exclusive by source."""
    source = sanitize_key(data.get("source")) or SOURCE_SELF
    if source not in (SOURCE_SELF, SOURCE_EMBED):
        raise ValidationError("invalid_video_source", "Source must be 'self' or 'embed'.")

    raw_url = str(data.get("embed_url") or "").strip()
    embed_url = sanitize_url(raw_url)
    if source == SOURCE_EMBED and raw_url and not embed_url:
        raise ValidationError("invalid_embed_url", "The embed URL must be an http(s) URL.")

    return PostVideoMeta(
        source=source,
        video_id=absint(data.get("video_id")) or None,
        poster_id=absint(data.get("poster_id")) or None,
        embed_url=embed_url,
    ).exclusive()


class PostVideoService:
    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool
        self.videos = PostVideoRepository(pool)
        self.documents = WidgetDocumentRepository(pool)
        self.content = ContentRepository(pool)
        self.options = SiteOptionsRepository(pool)

    async def _require_post_type(self, post_id: int) -> str:
        post_type = await self.content.get_post_type(post_id)
        if post_type is None:
            raise NotFoundError("Post not found.")
        return post_type

    async def sync_enabled(self, post_id: int) -> bool:
        post_type = await self._require_post_type(post_id)
        settings = await self.options.get_settings()
        return post_type in settings.post_types

    # ==================== Canonical Meta ====================

    async def get_meta(self, post_id: int) -> PostVideoMeta:
        await self._require_post_type(post_id)
        return await self.videos.get(post_id)

    async def set_meta(self, post_id: int, data: Mapping[str, Any]) -> PostVideoMeta:
        await self._require_post_type(post_id)
        meta = await self.videos.write(post_id, meta_from_input(data))
        logger.info(f"Featured video of post {post_id} set ({meta.source})")
        return meta

    async def get_editor_meta(self, post_id: int) -> EditorMeta | None:
        """Canonical video with media URLs, as localized for the editor."""
        if not await self.sync_enabled(post_id):
            return None
        meta = await self.videos.get(post_id)
        media_urls = await self.content.get_media_urls(
            i for i in (meta.video_id, meta.poster_id) if i
        )
        return build_editor_meta(meta, media_urls)

    # ==================== Widget Document ====================

    async def get_document(self, post_id: int) -> str | None:
        """Stored document with canonical meta injected into default widgets."""
        raw = await self.documents.get_raw(post_id)
        if not raw:
            await self._require_post_type(post_id)
            return raw
        return prefill_document(raw, await self.get_editor_meta(post_id))

    async def save_document(self, post_id: int, data: str) -> dict:
        """Store a document and write the edited widget video back to the post.

        Returns whether canonical meta was written.
        """
        enabled = await self.sync_enabled(post_id)
        await self.documents.save(post_id, data)

        if not enabled:
            return {"saved": True, "meta_written": False}

        try:
            elements = json.loads(data)
        except ValueError as e:
            logger.warning(f"Saved document of post {post_id} is not valid JSON, no write-back: {e}")
            return {"saved": True, "meta_written": False}
        if not isinstance(elements, list):
            return {"saved": True, "meta_written": False}

        current = await self.videos.get(post_id)
        settings = (w.get("settings") for w in iter_video_widgets(elements))
        target = plan_write_back((s if isinstance(s, Mapping) else {} for s in settings), current)
        if target is None:
            return {"saved": True, "meta_written": False}

        await self.videos.write(post_id, target)
        logger.info(f"Featured video of post {post_id} written back from widget ({target.source})")
        return {"saved": True, "meta_written": True}
