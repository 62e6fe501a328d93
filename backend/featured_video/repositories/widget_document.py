"""Repository for widget_documents (serialized widget tree per post)."""

from __future__ import annotations

import asyncpg


class WidgetDocumentRepository:
    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    async def get_raw(self, post_id: int) -> str | None:
        """Stored document text exactly as saved, without any prefill."""
        async with self.pool.acquire() as conn:
            return await conn.fetchval(
                "SELECT data FROM widget_documents WHERE post_id = $1",
                post_id,
            )

    async def save(self, post_id: int, data: str) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO widget_documents (post_id, data)
                VALUES ($1, $2)
                ON CONFLICT (post_id) DO UPDATE SET data = EXCLUDED.data, updated_at = NOW()
                """,
                post_id,
                data,
            )
