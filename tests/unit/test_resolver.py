"""Tests for FloatingVideoResolver."""

from featured_video.conditions import RequestContext
from featured_video.models.site_options import SiteSettings, VideoControls
from featured_video.resolver import (
    DEFAULT_ASPECT_RATIO,
    FloatingVideoPayload,
    FloatingVideoResolver,
    is_valid_aspect_ratio,
)

PAGE = RequestContext(queried_object_id=12, kind="singular", post_type="page")


class TestSelection:
    def test_scenario_sitewide_plus_page_ordering(self, make_record):
        """Both records match page 12; the newer sitewide one comes first."""
        older = make_record(1, title="A", display_type="specific_pages", page_ids=[12])
        newer = make_record(2, title="B", display_type="sitewide")
        resolver = FloatingVideoResolver()

        payload = resolver.resolve(
            [older, newer], PAGE, SiteSettings(), media_urls={101: "a.mp4", 102: "b.mp4"}
        )

        assert payload is not None
        assert [v.title for v in payload.videos] == ["B", "A"]
        assert [v.video_url for v in payload.videos] == ["b.mp4", "a.mp4"]

    def test_ties_broken_by_id_descending(self, make_record):
        a = make_record(3)
        b = make_record(4, created_at=a.created_at)
        selected = FloatingVideoResolver().select([a, b], PAGE)
        assert [r.id for r in selected] == [4, 3]

    def test_drafts_are_skipped(self, make_record):
        draft = make_record(1, status="draft")
        assert FloatingVideoResolver().select([draft], PAGE) == []

    def test_unknown_display_type_never_matches(self, make_record):
        record = make_record(1, display_type="everywhere")
        assert FloatingVideoResolver().select([record], PAGE) == []


class TestResolve:
    def test_no_match_is_none(self, make_record):
        record = make_record(1, display_type="specific_pages", page_ids=[99])
        assert FloatingVideoResolver().resolve([record], PAGE, SiteSettings()) is None

    def test_empty_record_set_is_none(self):
        assert FloatingVideoResolver().resolve([], PAGE, SiteSettings()) is None

    def test_dangling_media_is_dropped(self, make_record):
        good = make_record(1)
        dangling = make_record(2)
        payload = FloatingVideoResolver().resolve(
            [good, dangling], PAGE, SiteSettings(), media_urls={101: "ok.mp4"}
        )
        assert payload is not None
        assert len(payload.videos) == 1
        assert payload.videos[0].video_url == "ok.mp4"

    def test_only_dangling_media_is_none(self, make_record):
        assert FloatingVideoResolver().resolve([make_record(1)], PAGE, SiteSettings()) is None

    def test_embed_video_uses_raw_url(self, make_record):
        record = make_record(
            1, video_source="embed", video_id=None, embed_url="https://youtu.be/abc12345678"
        )
        payload = FloatingVideoResolver().resolve([record], PAGE, SiteSettings())
        assert payload is not None
        video = payload.videos[0]
        assert video.video_source == "embed"
        assert video.embed_url == "https://youtu.be/abc12345678"

    def test_payload_carries_settings(self, make_record):
        settings = SiteSettings(
            self_controls=VideoControls(autoplay=True),
            embed_controls=VideoControls(controls=False),
            floating_video_layout="story",
        )
        payload = FloatingVideoResolver().resolve(
            [make_record(1)], PAGE, settings, media_urls={101: "a.mp4"}
        )
        data = payload.to_dict()
        assert data["selfControls"]["autoplay"] is True
        assert data["embedControls"]["controls"] is False
        assert data["layout"] == "story"
        assert data["aspectRatio"] == DEFAULT_ASPECT_RATIO
        assert data["videos"] == [
            {"videoSource": "self", "videoUrl": "a.mp4", "embedUrl": "", "title": "Video 1"}
        ]

    def test_payload_dict_round_trip(self, make_record):
        payload = FloatingVideoResolver().resolve(
            [make_record(1)], PAGE, SiteSettings(), media_urls={101: "a.mp4"}
        )
        assert FloatingVideoPayload.from_dict(payload.to_dict()) == payload


class TestExtensionPoints:
    def test_aspect_ratio_provider(self, make_record):
        resolver = FloatingVideoResolver(aspect_ratio=lambda: "9 / 16")
        payload = resolver.resolve([make_record(1)], PAGE, SiteSettings(), {101: "a.mp4"})
        assert payload.aspect_ratio == "9/16"

    def test_invalid_aspect_ratio_falls_back(self):
        assert FloatingVideoResolver(aspect_ratio=lambda: "wide").aspect_ratio == "16/9"
        assert FloatingVideoResolver(aspect_ratio=lambda: "0/9").aspect_ratio == "16/9"

    def test_controls_override(self, make_record):
        def force_mute(kind, controls):
            return VideoControls(**{**controls.to_dict(), "mute": kind == "self"})

        resolver = FloatingVideoResolver(controls_override=force_mute)
        payload = resolver.resolve([make_record(1)], PAGE, SiteSettings(), {101: "a.mp4"})
        assert payload.self_controls.mute is True
        assert payload.embed_controls.mute is False

    def test_is_valid_aspect_ratio(self):
        assert is_valid_aspect_ratio("16/9")
        assert is_valid_aspect_ratio("2.39/1")
        assert not is_valid_aspect_ratio("16:9")
        assert not is_valid_aspect_ratio("")
