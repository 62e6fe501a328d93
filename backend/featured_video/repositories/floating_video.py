"""Repository for the floating_videos table."""

from __future__ import annotations

import json
import logging

import asyncpg

from featured_video.cache import AsyncTTLCache, cached
from featured_video.models.floating_video import FloatingVideo

logger = logging.getLogger(__name__)

LIST_LIMIT = 100

_COLUMNS = (
    "id, title, status, video_source, video_id, embed_url, display_type, "
    "page_ids, target_post_types, target_taxonomies, created_at, updated_at"
)

_ORDER = "ORDER BY created_at DESC, id DESC"

_published_cache = AsyncTTLCache(maxsize=4, ttl=300)
_PUBLISHED_KEY = "floating_videos:published"


def _row_to_record(row: asyncpg.Record) -> FloatingVideo:
    d = dict(row)
    taxonomies = d.get("target_taxonomies")
    if isinstance(taxonomies, str):
        taxonomies = json.loads(taxonomies)
    d["target_taxonomies"] = taxonomies or []
    d["page_ids"] = list(d.get("page_ids") or [])
    d["target_post_types"] = list(d.get("target_post_types") or [])
    return FloatingVideo(**d)


class FloatingVideoRepository:
    """Pure SQL operations for floating video records."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    async def list_all(self, limit: int = LIST_LIMIT) -> list[FloatingVideo]:
        """Published and draft records, newest first."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT {_COLUMNS} FROM floating_videos {_ORDER} LIMIT $1",
                limit,
            )
            return [_row_to_record(r) for r in rows]

    @cached(cache=_published_cache, key_func=lambda self: _PUBLISHED_KEY)
    async def list_published(self) -> list[FloatingVideo]:
        """Every published record, newest first. Served from cache on page views."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT {_COLUMNS} FROM floating_videos WHERE status = 'publish' {_ORDER}"
            )
            return [_row_to_record(r) for r in rows]

    async def get(self, record_id: int) -> FloatingVideo | None:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {_COLUMNS} FROM floating_videos WHERE id = $1",
                record_id,
            )
            return _row_to_record(row) if row else None

    async def create(
        self,
        *,
        title: str,
        status: str,
        video_source: str,
        video_id: int | None,
        embed_url: str | None,
        display_type: str,
        page_ids: list[int],
        target_post_types: list[str],
        target_taxonomies: list[dict],
    ) -> FloatingVideo:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO floating_videos
                    (title, status, video_source, video_id, embed_url, display_type,
                     page_ids, target_post_types, target_taxonomies)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9::jsonb)
                RETURNING {_COLUMNS}
                """,
                title,
                status,
                video_source,
                video_id,
                embed_url,
                display_type,
                page_ids,
                target_post_types,
                json.dumps(target_taxonomies),
            )
            self.invalidate_cache()
            return _row_to_record(row)

    async def update(
        self,
        record_id: int,
        *,
        title: str,
        status: str | None,
        video_source: str,
        video_id: int | None,
        embed_url: str | None,
        display_type: str,
        page_ids: list[int],
        target_post_types: list[str],
        target_taxonomies: list[dict],
    ) -> FloatingVideo | None:
        """Replace a record's fields. A None status keeps the stored one."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE floating_videos SET
                    title             = $2,
                    status            = COALESCE($3, status),
                    video_source      = $4,
                    video_id          = $5,
                    embed_url         = $6,
                    display_type      = $7,
                    page_ids          = $8,
                    target_post_types = $9,
                    target_taxonomies = $10::jsonb,
                    updated_at        = NOW()
                WHERE id = $1
                RETURNING {_COLUMNS}
                """,
                record_id,
                title,
                status,
                video_source,
                video_id,
                embed_url,
                display_type,
                page_ids,
                target_post_types,
                json.dumps(target_taxonomies),
            )
            self.invalidate_cache()
            return _row_to_record(row) if row else None

    async def delete(self, record_id: int) -> bool:
        """Permanently delete a record. Returns True if a row was removed."""
        async with self.pool.acquire() as conn:
            result = await conn.execute("DELETE FROM floating_videos WHERE id = $1", record_id)
            self.invalidate_cache()
            return result == "DELETE 1"

    def invalidate_cache(self) -> None:
        _published_cache.invalidate(_PUBLISHED_KEY)
