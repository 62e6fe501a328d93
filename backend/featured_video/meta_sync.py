"""Keep featured_video widgets and the canonical post video in step.

Two server-side paths live here:

* read-time prefill: widgets still at their defaults get the post's
  canonical video injected into the document returned to the editor;
* save-time write-back: a saved widget that differs from the canonical
  video becomes the new canonical video.

The third path (prefill of a freshly added widget in the editor) is in
``featured_video.editor_prefill``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from featured_video.models.floating_video import SOURCE_EMBED, SOURCE_SELF
from featured_video.models.post_video import PostVideoMeta
from featured_video.sanitize import absint, sanitize_url

logger = logging.getLogger(__name__)

WIDGET_TYPE = "featured_video"
VIDEO_SOURCE_CURRENT_POST = "current_post"
VIDEO_SOURCE_BY_POST_ID = "by_post_id"


@dataclass(frozen=True)
class EditorMeta:
    """Canonical video of a post with media URLs resolved, as shipped to the editor."""

    source: str
    video_id: int | None = None
    video_url: str = ""
    poster_id: int | None = None
    poster_url: str = ""
    embed_url: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "video_id": self.video_id or "",
            "video_url": self.video_url,
            "poster_id": self.poster_id or "",
            "poster_url": self.poster_url,
            "embed_url": self.embed_url,
        }


def build_editor_meta(meta: PostVideoMeta, media_urls: Mapping[int, str]) -> EditorMeta | None:
    """None when the post has neither a self-hosted video nor an embed URL."""
    if not meta.has_video:
        return None
    return EditorMeta(
        source=meta.source or SOURCE_SELF,
        video_id=meta.video_id,
        video_url=media_urls.get(meta.video_id, "") if meta.video_id else "",
        poster_id=meta.poster_id,
        poster_url=media_urls.get(meta.poster_id, "") if meta.poster_id else "",
        embed_url=meta.embed_url,
    )


# ---------------------------------------------------------------------------
# Widget tree helpers
# ---------------------------------------------------------------------------


def is_video_widget(element: Any) -> bool:
    return (
        isinstance(element, dict)
        and element.get("elType") == "widget"
        and element.get("widgetType") == WIDGET_TYPE
    )


def uses_current_post(settings: Mapping[str, Any]) -> bool:
    return (settings.get("video_source") or VIDEO_SOURCE_CURRENT_POST) == VIDEO_SOURCE_CURRENT_POST


def widget_has_values(settings: Mapping[str, Any]) -> bool:
    """True if the widget already carries an explicit self-hosted video or embed URL."""
    self_video = settings.get("self_video") or {}
    embed = settings.get("embed_url") or {}
    return bool(self_video.get("url") or self_video.get("id") or embed.get("url"))


def iter_video_widgets(elements: Iterable[Any]) -> Iterator[dict]:
    """Yield every featured_video widget in document order, depth first."""
    for element in elements:
        if not isinstance(element, dict):
            continue
        if is_video_widget(element):
            yield element
        children = element.get("elements")
        if isinstance(children, list):
            yield from iter_video_widgets(children)


# ---------------------------------------------------------------------------
# Read-time prefill
# ---------------------------------------------------------------------------


def inject_meta(element: dict, meta: EditorMeta) -> tuple[dict, bool]:
    """Return ``(element, changed)``; the input element is never mutated."""
    settings = dict(element.get("settings") or {})

    if not uses_current_post(settings) or widget_has_values(settings):
        return element, False

    if meta.source == SOURCE_SELF and meta.video_id:
        settings["video_type"] = SOURCE_SELF
        settings["self_video"] = {"id": meta.video_id, "url": meta.video_url}
        if meta.poster_id:
            settings["poster_image"] = {"id": meta.poster_id, "url": meta.poster_url}
    elif meta.source == SOURCE_EMBED and meta.embed_url:
        settings["video_type"] = SOURCE_EMBED
        settings["embed_url"] = {"url": meta.embed_url}
    else:
        return element, False

    return {**element, "settings": settings}, True


def walk_elements(elements: list, meta: EditorMeta) -> tuple[list, bool]:
    """Rebuild *elements* with meta injected into default widgets.

    Returns the new tree and whether any widget changed. Untouched branches
    are shared with the input.
    """
    changed = False
    rebuilt = []
    for element in elements:
        if isinstance(element, dict):
            if is_video_widget(element):
                element, hit = inject_meta(element, meta)
                changed = changed or hit

            children = element.get("elements")
            if isinstance(children, list) and children:
                new_children, hit = walk_elements(children, meta)
                if hit:
                    element = {**element, "elements": new_children}
                    changed = True
        rebuilt.append(element)
    return rebuilt, changed


def prefill_document(raw: str | None, meta: EditorMeta | None) -> str | None:
    """Apply read-time prefill to a serialized widget document.

    The input is returned as-is when nothing changed, when there is no
    canonical video, or when it cannot be decoded.
    """
    if not raw or meta is None:
        return raw

    try:
        elements = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning(f"Widget document is not valid JSON, skipping prefill: {e}")
        return raw

    if not isinstance(elements, list):
        return raw

    rebuilt, changed = walk_elements(elements, meta)
    if not changed:
        return raw
    return json.dumps(rebuilt)


# ---------------------------------------------------------------------------
# Save-time write-back
# ---------------------------------------------------------------------------


def _media_id(value: Any) -> int | None:
    if isinstance(value, Mapping):
        value = value.get("id")
    return absint(value) or None


def meta_from_widget(settings: Mapping[str, Any]) -> PostVideoMeta | None:
    """The canonical fields a widget implies, or None if it shows another post."""
    if not uses_current_post(settings):
        return None

    if (settings.get("video_type") or SOURCE_SELF) == SOURCE_SELF:
        return PostVideoMeta(
            source=SOURCE_SELF,
            video_id=_media_id(settings.get("self_video")),
            poster_id=_media_id(settings.get("poster_image")),
            embed_url="",
        )

    embed = settings.get("embed_url") or {}
    return PostVideoMeta(source=SOURCE_EMBED, embed_url=sanitize_url(embed.get("url")))


def plan_write_back(
    widget_settings: Iterable[Mapping[str, Any]], current: PostVideoMeta
) -> PostVideoMeta | None:
    """Decide what, if anything, a document save writes to canonical meta.

    Every widget is compared with the canonical video as it was before the
    save, so untouched instances (which still equal it) never overwrite an
    edit made in another instance. The last edited instance wins. Returns
    None when no write is needed.
    """
    target: PostVideoMeta | None = None
    for settings in widget_settings:
        candidate = meta_from_widget(settings)
        if candidate is None or candidate == current:
            continue
        target = candidate
    return target
