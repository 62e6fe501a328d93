"""Tests for the floating video popup player."""

import asyncio

import pytest

from featured_video.models.site_options import VideoControls
from featured_video.popup import (
    PopupPlayer,
    PopupView,
    aspect_padding,
    build_media_element,
)
from featured_video.resolver import FloatingVideoPayload, ResolvedVideo


def make_payload(count: int = 3, **kwargs) -> FloatingVideoPayload:
    videos = [ResolvedVideo("self", f"v{i}.mp4", "", f"Clip {i}") for i in range(count)]
    return FloatingVideoPayload(
        videos=videos,
        self_controls=kwargs.get("self_controls", VideoControls()),
        embed_controls=kwargs.get("embed_controls", VideoControls()),
        aspect_ratio=kwargs.get("aspect_ratio", "16/9"),
    )


class TestCreate:
    def test_no_payload(self):
        assert PopupPlayer.create(None) is None

    def test_no_video_with_url(self):
        payload = make_payload(0)
        payload.videos.append(ResolvedVideo("self", "", "", "Broken"))
        assert PopupPlayer.create(payload) is None

    def test_button_label_and_layout(self):
        player = PopupPlayer.create(make_payload(2))
        assert player.view.button_label == "Clip 0"
        assert player.view.padding_bottom == "56.2500%"
        assert player.view.has_nav is True
        assert player.is_open is False

    def test_untitled_first_video_gets_default_label(self):
        payload = make_payload(1)
        payload.videos[0].title = ""
        player = PopupPlayer.create(payload)
        assert player.view.button_label == "Play Video"
        assert player.view.has_nav is False


class TestNavigation:
    def test_scenario_three_videos(self):
        """open, next, next, next, previous -> index 1, nav enabled both ways."""
        player = PopupPlayer(make_payload(3))
        player.open()
        player.next()
        player.next()
        player.next()
        assert player.index == 2
        assert player.view.nav.next_disabled is True
        player.previous()
        assert player.index == 1
        assert player.counter == "2 / 3"
        assert player.view.nav.prev_disabled is False
        assert player.view.nav.next_disabled is False
        assert player.view.media.src == "v1.mp4"

    def test_previous_at_start_is_noop(self):
        player = PopupPlayer(make_payload(3))
        player.open()
        media = player.view.media
        player.previous()
        assert player.index == 0
        assert player.view.media is media
        assert player.view.nav.prev_disabled is True

    def test_keys_while_closed_are_ignored(self):
        player = PopupPlayer(make_payload(3))
        player.key("ArrowRight")
        player.key("Escape")
        assert player.is_open is False
        assert player.view.media is None

    def test_navigation_while_closed_mounts_nothing(self):
        player = PopupPlayer(make_payload(3))
        player.next()
        player.previous()
        assert player.index is None
        assert player.view.media is None

    def test_arrow_keys_navigate(self):
        player = PopupPlayer(make_payload(3))
        player.open()
        player.key("ArrowRight")
        assert player.index == 1
        player.key("ArrowLeft")
        assert player.index == 0
        player.key("Enter")
        assert player.index == 0

    def test_index_change_replaces_media(self):
        player = PopupPlayer(make_payload(2))
        player.open()
        first = player.view.media
        player.next()
        assert player.view.media is not first
        assert player.view.media.src == "v1.mp4"

    def test_single_video_has_no_nav(self):
        player = PopupPlayer(make_payload(1))
        player.open()
        assert player.view.nav is None
        assert player.title == "Clip 0"


class TestClose:
    def test_overlay_click_inside_body_keeps_open(self):
        player = PopupPlayer(make_payload(2))
        player.open()
        player.click_overlay(target_is_overlay=False)
        assert player.is_open is True

    def test_close_without_loop_tears_down_immediately(self):
        player = PopupPlayer(make_payload(2))
        player.open()
        player.key("Escape")
        assert player.is_open is False
        assert player.view.overlay_visible is False
        assert player.view.media is None

    @pytest.mark.asyncio
    async def test_close_defers_teardown(self):
        player = PopupPlayer(make_payload(2), teardown_delay=0.01)
        player.open()
        media = player.view.media
        player.close()

        assert player.view.overlay_visible is False
        assert player.view.media is media
        assert media.paused is True
        assert player.teardown_pending is True

        await asyncio.sleep(0.05)
        assert player.view.media is None
        assert player.teardown_pending is False

    @pytest.mark.asyncio
    async def test_reopen_cancels_pending_teardown(self):
        player = PopupPlayer(make_payload(2), teardown_delay=0.01)
        player.open()
        player.next()
        player.click_overlay()
        player.open()

        assert player.teardown_pending is False
        assert player.index == 0
        assert player.view.media.src == "v0.mp4"
        assert player.view.media.paused is False

        await asyncio.sleep(0.05)
        assert player.view.media is not None


class TestMediaElements:
    def test_self_hosted_attributes(self):
        video = ResolvedVideo("self", "a.mp4", "", "A")
        element = build_media_element(
            video, VideoControls(autoplay=True, mute=True, loop=True), VideoControls()
        )
        assert element.tag == "video"
        assert element.attributes["controls"] is True
        assert element.attributes["controlsList"] == "nodownload"
        assert element.attributes["autoplay"] is True
        assert element.attributes["muted"] is True
        assert element.attributes["loop"] is True
        assert element.attributes["disablepictureinpicture"] is True

    def test_download_allowed(self):
        video = ResolvedVideo("self", "a.mp4", "", "A")
        element = build_media_element(video, VideoControls(download=True), VideoControls())
        assert "controlsList" not in element.attributes

    def test_embed_iframe(self):
        url = "https://youtu.be/abc12345678"
        video = ResolvedVideo("embed", url, url, "E")
        element = build_media_element(
            video, VideoControls(), VideoControls(autoplay=True, pip=True)
        )
        assert element.tag == "iframe"
        assert element.src.startswith("https://www.youtube.com/embed/abc12345678?autoplay=1")
        assert element.attributes["allow"] == "fullscreen; autoplay; picture-in-picture"

    def test_view_holds_one_element(self):
        controls = VideoControls()
        view = PopupView(button_label="x")
        view.mount_media(build_media_element(ResolvedVideo("self", "a.mp4", "", ""), controls, controls))
        with pytest.raises(RuntimeError):
            view.mount_media(
                build_media_element(ResolvedVideo("self", "b.mp4", "", ""), controls, controls)
            )

    @pytest.mark.parametrize(
        ("ratio", "expected"),
        [("16/9", "56.2500%"), ("9/16", "177.7778%"), ("4/3", "75.0000%"), ("bad", None)],
    )
    def test_aspect_padding(self, ratio, expected):
        assert aspect_padding(ratio) == expected
