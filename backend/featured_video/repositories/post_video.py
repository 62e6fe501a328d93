"""Repository for post_videos (canonical featured video per post)."""

from __future__ import annotations

import asyncpg

from featured_video.models.post_video import PostVideoMeta


def _row_to_meta(row: asyncpg.Record | None) -> PostVideoMeta:
    if not row:
        return PostVideoMeta()
    return PostVideoMeta(
        source=row["source"] or "self",
        video_id=row["video_id"] or None,
        poster_id=row["poster_id"] or None,
        embed_url=row["embed_url"] or "",
    )


class PostVideoRepository:
    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    async def get(self, post_id: int) -> PostVideoMeta:
        """Canonical video of a post; defaults when none was ever stored."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT source, video_id, poster_id, embed_url FROM post_videos WHERE post_id = $1",
                post_id,
            )
            return _row_to_meta(row)

    async def write(self, post_id: int, meta: PostVideoMeta) -> PostVideoMeta:
        """Upsert all four fields at once, clearing the other source's fields."""
        meta = meta.exclusive()
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO post_videos (post_id, source, video_id, poster_id, embed_url)
                VALUES ($1, $2, $3, $4, $5)
                ON CONFLICT (post_id) DO UPDATE SET
                    source     = EXCLUDED.source,
                    video_id   = EXCLUDED.video_id,
                    poster_id  = EXCLUDED.poster_id,
                    embed_url  = EXCLUDED.embed_url,
                    updated_at = NOW()
                RETURNING source, video_id, poster_id, embed_url
                """,
                post_id,
                meta.source,
                meta.video_id,
                meta.poster_id,
                meta.embed_url,
            )
            return _row_to_meta(row)
