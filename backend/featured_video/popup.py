"""Floating video popup player.

A host-agnostic model of the floating button + overlay UI. ``PopupView`` is
the rendered tree (button, overlay, a single media slot, navigation bar) and
``PopupPlayer`` is the state machine driving it:

    Closed --button--> Open(0)
    Open(i) --next/ArrowRight--> Open(i+1)      (no-op at the last index)
    Open(i) --previous/ArrowLeft--> Open(i-1)   (no-op at index 0)
    Open(i) --close/overlay/Escape--> Closed

Closing hides the overlay at once and removes the media element after a fixed
delay (the collapse transition). Re-opening before the delay elapses cancels
the pending teardown and rebuilds the media from scratch.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from featured_video.embed import normalize_embed_url
from featured_video.models.floating_video import SOURCE_EMBED, SOURCE_SELF
from featured_video.models.site_options import VideoControls
from featured_video.resolver import DEFAULT_ASPECT_RATIO, FloatingVideoPayload, ResolvedVideo

logger = logging.getLogger(__name__)

TEARDOWN_DELAY = 0.3
DEFAULT_BUTTON_LABEL = "Play Video"


@dataclass
class MediaElement:
    tag: str  # 'video' | 'iframe'
    src: str
    attributes: dict[str, str | bool] = field(default_factory=dict)
    paused: bool = False


@dataclass
class NavState:
    title: str
    counter: str
    prev_disabled: bool
    next_disabled: bool


@dataclass
class PopupView:
    """Rendered popup tree. The media slot holds at most one element."""

    button_label: str
    padding_bottom: str | None = None
    has_nav: bool = False
    overlay_visible: bool = False
    button_dimmed: bool = False
    media: MediaElement | None = None
    nav: NavState | None = None

    def mount_media(self, element: MediaElement) -> None:
        if self.media is not None:
            raise RuntimeError("Popup media slot is already occupied")
        self.media = element

    def clear_media(self) -> None:
        self.media = None


def aspect_padding(aspect_ratio: str) -> str | None:
    """'16/9' -> '56.2500%' (the height as a percentage of the width)."""
    parts = (aspect_ratio or "").split("/")
    if len(parts) != 2:
        return None
    try:
        w, h = float(parts[0]), float(parts[1])
    except ValueError:
        return None
    if w <= 0 or h <= 0:
        return None
    return f"{h / w * 100:.4f}%"


def build_media_element(
    video: ResolvedVideo, self_controls: VideoControls, embed_controls: VideoControls
) -> MediaElement | None:
    """Build the <video> or <iframe> for one resolved video."""
    if video.video_source == SOURCE_SELF and video.video_url:
        attrs: dict[str, str | bool] = {"playsinline": True}
        if self_controls.controls:
            attrs["controls"] = True
            if not self_controls.download:
                attrs["controlsList"] = "nodownload"
        if self_controls.autoplay:
            attrs["autoplay"] = True
        if self_controls.loop:
            attrs["loop"] = True
        if self_controls.mute:
            attrs["muted"] = True
        if self_controls.pip:
            attrs["autopictureinpicture"] = True
        else:
            attrs["disablepictureinpicture"] = True
        return MediaElement("video", video.video_url, attrs)

    source_url = video.embed_url or video.video_url
    if video.video_source == SOURCE_EMBED and source_url:
        allow = ["fullscreen"]
        if embed_controls.autoplay:
            allow.append("autoplay")
        if embed_controls.pip:
            allow.append("picture-in-picture")
        return MediaElement(
            "iframe",
            normalize_embed_url(source_url, embed_controls),
            {"allow": "; ".join(allow), "allowfullscreen": True},
        )

    return None


class PopupPlayer:
    """Index-based navigation over the resolved videos of one page."""

    def __init__(
        self,
        payload: FloatingVideoPayload,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        teardown_delay: float = TEARDOWN_DELAY,
    ) -> None:
        self.payload = payload
        self.videos = payload.videos
        self.teardown_delay = teardown_delay
        self.index: int | None = None
        self._loop = loop
        self._teardown: asyncio.TimerHandle | None = None

        first_title = self.videos[0].title if self.videos else ""
        self.view = PopupView(
            button_label=first_title or DEFAULT_BUTTON_LABEL,
            padding_bottom=aspect_padding(payload.aspect_ratio or DEFAULT_ASPECT_RATIO),
            has_nav=len(self.videos) > 1,
        )

    @classmethod
    def create(cls, payload: FloatingVideoPayload | None, **kwargs) -> PopupPlayer | None:
        """Mount a player only if at least one video has a URL."""
        if payload is None or not any(v.video_url or v.embed_url for v in payload.videos):
            return None
        return cls(payload, **kwargs)

    # --- state ---

    @property
    def is_open(self) -> bool:
        return self.index is not None

    @property
    def count(self) -> int:
        return len(self.videos)

    @property
    def title(self) -> str:
        if self.index is None:
            return ""
        return self.videos[self.index].title or "Video"

    @property
    def counter(self) -> str:
        if self.index is None:
            return ""
        return f"{self.index + 1} / {self.count}"

    @property
    def teardown_pending(self) -> bool:
        return self._teardown is not None

    # --- user actions ---

    def open(self) -> None:
        """Floating button click."""
        self._cancel_teardown()
        self.index = 0
        self._load(0)
        self.view.overlay_visible = True
        self.view.button_dimmed = True

    def close(self) -> None:
        if self.index is None:
            return
        self.index = None
        self.view.overlay_visible = False
        self.view.button_dimmed = False
        if self.view.media is not None:
            self.view.media.paused = True
        self._schedule_teardown()

    def next(self) -> None:
        if self.index is not None and self.index < self.count - 1:
            self.index += 1
            self._load(self.index)

    def previous(self) -> None:
        if self.index is not None and self.index > 0:
            self.index -= 1
            self._load(self.index)

    def click_overlay(self, target_is_overlay: bool = True) -> None:
        """Clicks inside the popup body bubble up with target_is_overlay=False."""
        if target_is_overlay:
            self.close()

    def key(self, key: str) -> None:
        if self.index is None:
            return
        if key == "Escape":
            self.close()
        elif key == "ArrowLeft":
            self.previous()
        elif key == "ArrowRight":
            self.next()

    # --- rendering ---

    def _load(self, index: int) -> None:
        self.view.clear_media()
        element = build_media_element(
            self.videos[index], self.payload.self_controls, self.payload.embed_controls
        )
        if element is not None:
            self.view.mount_media(element)
        self._update_nav()

    def _update_nav(self) -> None:
        if not self.view.has_nav or self.index is None:
            return
        self.view.nav = NavState(
            title=self.title,
            counter=self.counter,
            prev_disabled=self.index == 0,
            next_disabled=self.index == self.count - 1,
        )

    def _schedule_teardown(self) -> None:
        self._cancel_teardown()
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                self.view.clear_media()
                return
        self._teardown = loop.call_later(self.teardown_delay, self._run_teardown)

    def _cancel_teardown(self) -> None:
        if self._teardown is not None:
            self._teardown.cancel()
            self._teardown = None

    def _run_teardown(self) -> None:
        self._teardown = None
        if self.index is None:
            self.view.clear_media()
