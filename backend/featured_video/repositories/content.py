"""Read-only queries over the content catalog: posts, terms, types and media."""

from __future__ import annotations

import logging
from collections.abc import Iterable

import asyncpg

from featured_video.models.content import (
    PostContext,
    PostSummary,
    TaxonomyOption,
    TermSummary,
    TypeOption,
)

logger = logging.getLogger(__name__)

PAGE_SEARCH_LIMIT = 20
TERM_SEARCH_LIMIT = 30
PAGE_OPTIONS_LIMIT = 200
TERMS_PER_TAXONOMY = 100

# Media items are never a display target
_EXCLUDED_TYPES = ("attachment",)


def _like_pattern(search: str) -> str:
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class ContentRepository:
    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    async def get_post_context(self, post_id: int) -> PostContext | None:
        """Post type and term ids (grouped by taxonomy) of a single post."""
        async with self.pool.acquire() as conn:
            post_type = await conn.fetchval("SELECT post_type FROM posts WHERE id = $1", post_id)
            if post_type is None:
                return None
            rows = await conn.fetch(
                """
                SELECT t.taxonomy, t.id
                FROM post_terms pt JOIN terms t ON t.id = pt.term_id
                WHERE pt.post_id = $1
                """,
                post_id,
            )
        term_ids: dict[str, set[int]] = {}
        for row in rows:
            term_ids.setdefault(row["taxonomy"], set()).add(row["id"])
        return PostContext(id=post_id, post_type=post_type, term_ids=term_ids)

    async def get_post_type(self, post_id: int) -> str | None:
        async with self.pool.acquire() as conn:
            return await conn.fetchval("SELECT post_type FROM posts WHERE id = $1", post_id)

    async def get_media_urls(self, media_ids: Iterable[int]) -> dict[int, str]:
        ids = sorted({i for i in media_ids if i})
        if not ids:
            return {}
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT id, url FROM media_attachments WHERE id = ANY($1::bigint[])",
                ids,
            )
            return {row["id"]: row["url"] for row in rows}

    async def search_posts(self, search: str = "", limit: int = PAGE_SEARCH_LIMIT) -> list[PostSummary]:
        """Published posts of every public content type, ordered by title."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT p.id, p.title, p.post_type, ct.singular_label AS type_label
                FROM posts p JOIN content_types ct ON ct.name = p.post_type
                WHERE ct.public AND ct.name <> ALL($1::text[])
                  AND p.status = 'publish'
                  AND ($2 = '' OR p.title ILIKE $3)
                ORDER BY p.title ASC, p.id ASC
                LIMIT $4
                """,
                list(_EXCLUDED_TYPES),
                search,
                _like_pattern(search),
                limit,
            )
            return [PostSummary(**dict(r)) for r in rows]

    async def search_terms(self, search: str = "", limit: int = TERM_SEARCH_LIMIT) -> list[TermSummary]:
        """Terms of every public taxonomy, ordered by name."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT t.id, t.name, t.taxonomy, tx.singular_label AS taxonomy_label
                FROM terms t JOIN taxonomies tx ON tx.name = t.taxonomy
                WHERE tx.public AND ($1 = '' OR t.name ILIKE $2)
                ORDER BY t.name ASC, t.id ASC
                LIMIT $3
                """,
                search,
                _like_pattern(search),
                limit,
            )
            return [TermSummary(**dict(r)) for r in rows]

    async def list_pages(self, limit: int = PAGE_OPTIONS_LIMIT) -> list[PostSummary]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT p.id, p.title, p.post_type, ct.singular_label AS type_label
                FROM posts p JOIN content_types ct ON ct.name = p.post_type
                WHERE p.post_type = 'page' AND p.status = 'publish'
                ORDER BY p.title ASC, p.id ASC
                LIMIT $1
                """,
                limit,
            )
            return [PostSummary(**dict(r)) for r in rows]

    async def list_post_types(self) -> list[TypeOption]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT name, label FROM content_types "
                "WHERE public AND name <> ALL($1::text[]) ORDER BY name",
                list(_EXCLUDED_TYPES),
            )
            return [TypeOption(name=r["name"], label=r["label"]) for r in rows]

    async def list_taxonomy_options(self, per_taxonomy: int = TERMS_PER_TAXONOMY) -> list[TaxonomyOption]:
        """Public taxonomies with their terms; taxonomies without terms are left out."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT tx.name AS taxonomy, tx.label, tx.singular_label, t.id, t.name
                FROM taxonomies tx
                JOIN LATERAL (
                    SELECT id, name FROM terms
                    WHERE taxonomy = tx.name
                    ORDER BY name ASC, id ASC
                    LIMIT $1
                ) t ON TRUE
                WHERE tx.public
                ORDER BY tx.name, t.name, t.id
                """,
                per_taxonomy,
            )
        options: dict[str, TaxonomyOption] = {}
        for r in rows:
            option = options.get(r["taxonomy"])
            if option is None:
                option = options[r["taxonomy"]] = TaxonomyOption(name=r["taxonomy"], label=r["label"])
            option.terms.append(
                TermSummary(
                    id=r["id"],
                    name=r["name"],
                    taxonomy=r["taxonomy"],
                    taxonomy_label=r["singular_label"],
                )
            )
        return list(options.values())
