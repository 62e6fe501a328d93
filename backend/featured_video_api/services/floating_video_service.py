"""Floating video service: admin CRUD, condition lookups and the public payload.

All SQL lives in the repositories. This layer validates and sanitizes admin
input, shapes records for the API and drives the resolver for page views.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import asyncpg

from featured_video.conditions import (
    CONTEXT_KINDS,
    DISPLAY_POST_TYPES,
    DISPLAY_SPECIFIC_PAGES,
    DISPLAY_TAXONOMIES,
    DISPLAY_TYPES,
    KIND_SINGULAR,
    KIND_TAXONOMY_ARCHIVE,
    RequestContext,
)
from featured_video.models.floating_video import (
    SOURCE_EMBED,
    SOURCE_SELF,
    STATUS_DRAFT,
    STATUS_PUBLISH,
    FloatingVideo,
)
from featured_video.repositories import (
    ContentRepository,
    FloatingVideoRepository,
    SiteOptionsRepository,
)
from featured_video.resolver import FloatingVideoResolver
from featured_video.sanitize import (
    absint,
    id_list,
    key_list,
    sanitize_key,
    sanitize_text,
    sanitize_url,
)
from featured_video_api.core.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

VALID_STATUSES = (STATUS_PUBLISH, STATUS_DRAFT)
VIDEO_SOURCES = (SOURCE_SELF, SOURCE_EMBED)


def _clean_taxonomies(values: Any) -> list[dict]:
    cleaned = []
    for item in values or ():
        if not isinstance(item, Mapping):
            continue
        cleaned.append(
            {"taxonomy": sanitize_key(item.get("taxonomy")), "terms": id_list(item.get("terms"))}
        )
    return cleaned


def clean_fields(data: Mapping[str, Any], *, default_status: str | None = STATUS_PUBLISH) -> dict:
    """Validate and sanitize admin input into repository keyword arguments.

    Only the field of the chosen video source and the list of the chosen
    display type are kept; everything else is cleared. Raises
    ``ValidationError`` on the first problem found.
    """
    title = sanitize_text(data.get("title"))
    if not title:
        raise ValidationError("missing_title", "A title is required.")

    status = sanitize_key(data.get("status")) or default_status
    if status is not None and status not in VALID_STATUSES:
        raise ValidationError("invalid_status", f"Status must be one of: {', '.join(VALID_STATUSES)}.")

    video_source = sanitize_key(data.get("video_source"))
    if video_source not in VIDEO_SOURCES:
        raise ValidationError(
            "invalid_video_source", f"Video source must be one of: {', '.join(VIDEO_SOURCES)}."
        )

    video_id = None
    embed_url = None
    if video_source == SOURCE_SELF:
        video_id = absint(data.get("video_id")) or None
        if video_id is None:
            raise ValidationError("missing_video", "A self-hosted video requires a video_id.")
    else:
        raw_url = str(data.get("embed_url") or "").strip()
        if not raw_url:
            raise ValidationError("missing_video", "An embed video requires an embed_url.")
        embed_url = sanitize_url(raw_url)
        if not embed_url:
            raise ValidationError("invalid_embed_url", "The embed URL must be an http(s) URL.")

    display_type = sanitize_key(data.get("display_type"))
    if display_type not in DISPLAY_TYPES:
        raise ValidationError(
            "invalid_display_type", f"Display type must be one of: {', '.join(DISPLAY_TYPES)}."
        )

    return {
        "title": title,
        "status": status,
        "video_source": video_source,
        "video_id": video_id,
        "embed_url": embed_url,
        "display_type": display_type,
        "page_ids": id_list(data.get("page_ids")) if display_type == DISPLAY_SPECIFIC_PAGES else [],
        "target_post_types": (
            key_list(data.get("target_post_types")) if display_type == DISPLAY_POST_TYPES else []
        ),
        "target_taxonomies": (
            _clean_taxonomies(data.get("target_taxonomies"))
            if display_type == DISPLAY_TAXONOMIES
            else []
        ),
    }


def prepare_item(record: FloatingVideo, media_urls: Mapping[int, str]) -> dict:
    """API representation of a record, with the self-hosted video URL resolved."""
    return {
        "id": record.id,
        "title": record.title,
        "status": record.status,
        "date": record.created_at.isoformat() if record.created_at else None,
        "video_source": record.video_source,
        "video_id": record.video_id or 0,
        "video_url": media_urls.get(record.video_id, "") if record.video_id else "",
        "embed_url": record.embed_url or "",
        "display_type": record.display_type,
        "page_ids": record.page_ids,
        "target_post_types": record.target_post_types,
        "target_taxonomies": record.target_taxonomies,
    }


class FloatingVideoService:
    """API-facing floating video operations."""

    def __init__(self, pool: asyncpg.Pool, resolver: FloatingVideoResolver | None = None) -> None:
        self.pool = pool
        self.repo = FloatingVideoRepository(pool)
        self.content = ContentRepository(pool)
        self.options = SiteOptionsRepository(pool)
        self.resolver = resolver or FloatingVideoResolver()

    async def _prepare(self, records: list[FloatingVideo]) -> list[dict]:
        media_urls = await self.content.get_media_urls(
            r.video_id for r in records if r.video_id
        )
        return [prepare_item(r, media_urls) for r in records]

    # ==================== CRUD ====================

    async def list_items(self) -> list[dict]:
        return await self._prepare(await self.repo.list_all())

    async def get_item(self, record_id: int) -> dict:
        record = await self.repo.get(record_id)
        if record is None:
            raise NotFoundError("Floating video not found.")
        return (await self._prepare([record]))[0]

    async def create_item(self, data: Mapping[str, Any]) -> dict:
        fields = clean_fields(data)
        record = await self.repo.create(**fields)
        logger.info(f"Floating video {record.id} created ({record.display_type}, {record.status})")
        return (await self._prepare([record]))[0]

    async def update_item(self, record_id: int, data: Mapping[str, Any]) -> dict:
        fields = clean_fields(data, default_status=None)
        record = await self.repo.update(record_id, **fields)
        if record is None:
            raise NotFoundError("Floating video not found.")
        logger.info(f"Floating video {record.id} updated")
        return (await self._prepare([record]))[0]

    async def delete_item(self, record_id: int) -> dict:
        if not await self.repo.delete(record_id):
            raise NotFoundError("Floating video not found.")
        logger.info(f"Floating video {record_id} deleted")
        return {"success": True, "id": record_id}

    # ==================== Condition Lookups ====================

    async def search_pages(self, search: str = "") -> list[dict]:
        posts = await self.content.search_posts(sanitize_text(search))
        return [{"value": p.id, "label": f"{p.title} ({p.type_label})"} for p in posts]

    async def search_terms(self, search: str = "") -> list[dict]:
        terms = await self.content.search_terms(sanitize_text(search))
        return [
            {"value": t.id, "label": f"{t.name} ({t.taxonomy_label})", "taxonomy": t.taxonomy}
            for t in terms
        ]

    async def display_options(self) -> dict:
        """Choices for the display-condition pickers of the admin form."""
        pages = await self.content.list_pages()
        taxonomies = await self.content.list_taxonomy_options()
        post_types = await self.content.list_post_types()
        return {
            "pages": [{"value": p.id, "label": p.title} for p in pages],
            "taxonomies": [
                {
                    "name": tx.name,
                    "label": tx.label,
                    "terms": [{"value": t.id, "label": t.name} for t in tx.terms],
                }
                for tx in taxonomies
            ],
            "post_types": [{"value": pt.name, "label": pt.label} for pt in post_types],
        }

    # ==================== Page View ====================

    async def build_context(
        self,
        *,
        object_id: int = 0,
        kind: str = "other",
        post_type: str | None = None,
        taxonomy: str | None = None,
        term_id: int | None = None,
    ) -> RequestContext:
        """Request context of a page view.

        Singular pages take their post type and terms from the content
        catalog; the caller only supplies the object id.
        """
        if kind not in CONTEXT_KINDS:
            raise ValidationError("invalid_kind", f"Kind must be one of: {', '.join(CONTEXT_KINDS)}.")

        object_id = absint(object_id)

        if kind == KIND_SINGULAR:
            post = await self.content.get_post_context(object_id) if object_id else None
            return RequestContext(
                queried_object_id=object_id,
                kind=kind,
                post_type=post.post_type if post else None,
                post_terms=post.term_ids if post else {},
            )

        if kind == KIND_TAXONOMY_ARCHIVE:
            return RequestContext(
                queried_object_id=object_id,
                kind=kind,
                taxonomy=sanitize_key(taxonomy) or None,
                term_id=absint(term_id) or object_id or None,
            )

        return RequestContext(
            queried_object_id=object_id,
            kind=kind,
            post_type=sanitize_key(post_type) or None,
        )

    async def resolve_payload(self, context: RequestContext) -> dict | None:
        """Client payload for a page view, or None when no popup should render."""
        records = await self.repo.list_published()
        matched = self.resolver.select(records, context)
        if not matched:
            return None

        settings = await self.options.get_settings()
        media_urls = await self.content.get_media_urls(
            r.video_id for r in matched if r.video_source == SOURCE_SELF and r.video_id
        )
        payload = self.resolver.resolve(matched, context, settings, media_urls)
        return payload.to_dict() if payload else None
