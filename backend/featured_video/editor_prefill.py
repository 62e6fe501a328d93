"""Prefill of freshly added featured_video widgets in the page editor.

A widget dropped into the editor exists only client-side, so read-time
prefill never sees it. When its settings panel opens for the first time the
controller copies the post's canonical video into it, then asks the editor
to rebuild the panel so controls that depend on ``video_type`` re-evaluate.

The set of already-filled widgets lives in a ``FilledRegistry`` owned by the
editor session and passed in, so reopening a panel (including the reopen
triggered by the rebuild itself) never fills the same widget twice.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from featured_video.meta_sync import uses_current_post, widget_has_values
from featured_video.models.floating_video import SOURCE_EMBED, SOURCE_SELF
from featured_video.sanitize import absint

logger = logging.getLogger(__name__)

REBUILD_DELAY = 0.05


class FilledRegistry:
    """Widget ids already prefilled during one editor session."""

    def __init__(self) -> None:
        self._ids: set[str] = set()

    def __contains__(self, widget_id: object) -> bool:
        return widget_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def mark(self, widget_id: str) -> None:
        self._ids.add(widget_id)


@dataclass
class WidgetSettings:
    """Settings model of one widget instance.

    ``set_external_change`` applies values and emits one
    ``change:external:<key>`` event per key, which is what control views
    listen to; ``set`` applies values silently.
    """

    values: dict[str, Any] = field(default_factory=dict)
    events: list[str] = field(default_factory=list)

    def get(self, key: str) -> Any:
        return self.values.get(key)

    def set(self, values: Mapping[str, Any]) -> None:
        self.values.update(values)

    def set_external_change(self, values: Mapping[str, Any]) -> None:
        self.values.update(values)
        self.events.extend(f"change:external:{key}" for key in values)


@dataclass
class EditorWidget:
    """Widget model as seen by the editor: saved id (if any) and client id."""

    cid: str
    settings: WidgetSettings = field(default_factory=WidgetSettings)
    id: str | None = None

    @property
    def key(self) -> str:
        return self.id or self.cid


class EditorHost(Protocol):
    def open_panel(self, widget: EditorWidget, view: Any) -> None: ...

    def refresh_panel(self, view: Any) -> None: ...


def build_widget_defaults(meta: Mapping[str, Any] | None) -> dict[str, Any] | None:
    """Widget settings derived from the localized canonical video."""
    if not meta or not meta.get("source"):
        return None

    source = meta["source"]
    defaults: dict[str, Any] = {"video_type": source}

    if source == SOURCE_SELF and meta.get("video_id"):
        defaults["self_video"] = {
            "id": absint(meta["video_id"]),
            "url": meta.get("video_url") or "",
        }
        if meta.get("poster_id"):
            defaults["poster_image"] = {
                "id": absint(meta["poster_id"]),
                "url": meta.get("poster_url") or "",
            }
    elif source == SOURCE_EMBED and meta.get("embed_url"):
        defaults["embed_url"] = {"url": meta["embed_url"]}

    return defaults


class EditorPrefillController:
    def __init__(
        self,
        meta: Mapping[str, Any] | None,
        registry: FilledRegistry,
        host: EditorHost,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        rebuild_delay: float = REBUILD_DELAY,
    ) -> None:
        self.defaults = build_widget_defaults(meta)
        self.registry = registry
        self.host = host
        self.rebuild_delay = rebuild_delay
        self._loop = loop

    def on_panel_open(self, widget: EditorWidget, view: Any = None) -> bool:
        """Handle the editor's panel-open event. Returns True if the widget was filled."""
        if self.defaults is None:
            return False

        key = widget.key
        if key in self.registry:
            return False

        settings = widget.settings
        if not uses_current_post({"video_source": settings.get("video_source")}):
            return False

        # Mark before touching the model: the rebuild below reopens the panel.
        self.registry.mark(key)

        if widget_has_values(
            {"self_video": settings.get("self_video"), "embed_url": settings.get("embed_url")}
        ):
            return False

        apply: Callable[[Mapping[str, Any]], None] = getattr(
            settings, "set_external_change", None
        ) or settings.set
        apply(self.defaults)
        logger.debug(f"Prefilled widget {key} with {self.defaults['video_type']} video")

        self._schedule(self._rebuild_panel, widget, view)
        return True

    def _schedule(self, callback: Callable[..., None], *args: Any) -> None:
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                callback(*args)
                return
        loop.call_later(self.rebuild_delay, callback, *args)

    def _rebuild_panel(self, widget: EditorWidget, view: Any) -> None:
        try:
            self.host.open_panel(widget, view)
            return
        except Exception as e:
            logger.debug(f"Panel reopen failed for {widget.key}: {e}")
        try:
            self.host.refresh_panel(view)
        except Exception as e:
            logger.debug(f"Panel refresh failed for {widget.key}, controls stay stale: {e}")
