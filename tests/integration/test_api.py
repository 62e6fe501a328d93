"""API tests through FastAPI's TestClient with the database layer mocked."""

import json

import asyncpg
import pytest
from fastapi.testclient import TestClient

from featured_video_api.app import create_app
from featured_video_api.core.dependencies import get_auth_service, get_db_pool


@pytest.fixture
def app(mock_pool):
    app = create_app()
    app.dependency_overrides[get_db_pool] = lambda: mock_pool
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def admin_client(client):
    token = get_auth_service().create_access_token("1", ["manage_options"])
    client.cookies.set("auth_token", token)
    return client


def video_row(record_id: int = 1, **overrides) -> dict:
    row = {
        "id": record_id,
        "title": "Promo",
        "status": "publish",
        "video_source": "self",
        "video_id": 10,
        "embed_url": None,
        "display_type": "sitewide",
        "page_ids": [],
        "target_post_types": [],
        "target_taxonomies": "[]",
        "created_at": None,
        "updated_at": None,
    }
    row.update(overrides)
    return row


class TestHealth:
    def test_ping(self, client):
        assert client.get("/ping").text == "pong"

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"


class TestPermissions:
    def test_anonymous_is_forbidden(self, client):
        response = client.get("/api/floating-videos")
        assert response.status_code == 403
        assert response.json()["code"] == "rest_forbidden"

    def test_missing_capability_is_forbidden(self, client):
        token = get_auth_service().create_access_token("2", ["edit_posts"])
        client.cookies.set("auth_token", token)
        assert client.get("/api/floating-videos").status_code == 403

    def test_garbage_token_is_forbidden(self, client):
        client.cookies.set("auth_token", "not-a-jwt")
        assert client.get("/api/settings").status_code == 403

    def test_public_payload_needs_no_auth(self, client):
        assert client.get("/api/public/floating-video").status_code == 204


class TestFloatingVideoEndpoints:
    def test_list(self, admin_client, mock_conn):
        mock_conn.fetch.side_effect = [[video_row()], [{"id": 10, "url": "a.mp4"}]]
        response = admin_client.get("/api/floating-videos")
        assert response.status_code == 200
        assert response.json()[0]["video_url"] == "a.mp4"

    def test_create(self, admin_client, mock_conn):
        mock_conn.fetchrow.return_value = video_row(
            7, video_source="embed", video_id=None, embed_url="https://vimeo.com/1"
        )
        response = admin_client.post(
            "/api/floating-videos",
            json={
                "title": "Promo",
                "video_source": "embed",
                "embed_url": "https://vimeo.com/1",
                "display_type": "sitewide",
            },
        )
        assert response.status_code == 201
        assert response.json()["id"] == 7
        assert response.json()["video_id"] == 0

    def test_create_validation_error(self, admin_client):
        response = admin_client.post(
            "/api/floating-videos",
            json={"title": "Promo", "video_source": "self", "display_type": "sitewide"},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "missing_video"

    def test_create_missing_required_fields(self, admin_client):
        response = admin_client.post("/api/floating-videos", json={"title": "Promo"})
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "rest_missing_callback_param"
        assert "video_source" in body["message"]
        assert "display_type" in body["message"]

    def test_create_mistyped_field(self, admin_client):
        response = admin_client.post(
            "/api/floating-videos",
            json={
                "title": "Promo",
                "video_source": "self",
                "video_id": 10,
                "display_type": "specific_pages",
                "page_ids": "12",
            },
        )
        assert response.status_code == 400
        assert response.json() == {
            "code": "invalid_request",
            "message": "Invalid parameter(s): page_ids",
        }

    def test_create_accepts_null_embed_url(self, admin_client, mock_conn):
        mock_conn.fetchrow.return_value = video_row(8)
        response = admin_client.post(
            "/api/floating-videos",
            json={
                "title": "Promo",
                "video_source": "self",
                "video_id": 10,
                "embed_url": None,
                "display_type": "sitewide",
            },
        )
        assert response.status_code == 201
        assert response.json()["embed_url"] == ""

    def test_get_missing(self, admin_client):
        response = admin_client.get("/api/floating-videos/99")
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    def test_delete(self, admin_client, mock_conn):
        mock_conn.execute.return_value = "DELETE 1"
        response = admin_client.delete("/api/floating-videos/3")
        assert response.json() == {"success": True, "id": 3}

    def test_search_pages_route_is_not_an_id(self, admin_client, mock_conn):
        mock_conn.fetch.return_value = [
            {"id": 12, "title": "About", "post_type": "page", "type_label": "Page"}
        ]
        response = admin_client.get("/api/floating-videos/search-pages", params={"search": "ab"})
        assert response.status_code == 200
        assert response.json() == [{"value": 12, "label": "About (Page)"}]

    def test_storage_failure(self, admin_client, mock_conn):
        mock_conn.fetch.side_effect = asyncpg.PostgresError("connection reset")
        response = admin_client.get("/api/floating-videos")
        assert response.status_code == 500
        assert response.json()["code"] == "storage_error"


class TestPublicPayload:
    def test_payload_for_matching_page(self, client, mock_conn):
        # post terms, published records, site options, media urls
        mock_conn.fetch.side_effect = [
            [],
            [video_row(1, display_type="specific_pages", page_ids=[42])],
            [],
            [{"id": 10, "url": "a.mp4"}],
        ]
        mock_conn.fetchval.return_value = "page"

        response = client.get(
            "/api/public/floating-video", params={"object_id": 42, "kind": "singular"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["videos"] == [
            {"videoSource": "self", "videoUrl": "a.mp4", "embedUrl": "", "title": "Promo"}
        ]
        assert body["aspectRatio"] == "16/9"

    def test_no_match_is_no_content(self, client, mock_conn):
        mock_conn.fetch.return_value = [video_row(1, display_type="specific_pages", page_ids=[7])]
        response = client.get("/api/public/floating-video", params={"object_id": 42})
        assert response.status_code == 204

    def test_mistyped_query_parameter(self, client):
        response = client.get("/api/public/floating-video", params={"object_id": "abc"})
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_request"
        assert "object_id" in response.json()["message"]

    def test_unknown_kind(self, client):
        response = client.get("/api/public/floating-video", params={"kind": "feed"})
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_kind"


class TestPostEndpoints:
    def test_widget_document_round_trip(self, admin_client, mock_conn):
        doc = [{"id": "w", "elType": "widget", "widgetType": "featured_video", "settings": {}}]
        mock_conn.fetchval.side_effect = [json.dumps(doc), "post"]
        mock_conn.fetch.side_effect = [[], [{"id": 5, "url": "x.mp4"}]]
        mock_conn.fetchrow.return_value = {
            "source": "self",
            "video_id": 5,
            "poster_id": None,
            "embed_url": "",
        }

        response = admin_client.get("/api/posts/3/widget-document")

        assert response.status_code == 200
        assert response.json()[0]["settings"]["self_video"] == {"id": 5, "url": "x.mp4"}

    def test_empty_widget_document_is_no_content(self, admin_client, mock_conn):
        mock_conn.fetchval.side_effect = ["", "post"]
        response = admin_client.get("/api/posts/3/widget-document")
        assert response.status_code == 204
        assert response.content == b""

    def test_save_widget_document_writes_back(self, admin_client, mock_conn):
        doc = [
            {
                "id": "w",
                "elType": "widget",
                "widgetType": "featured_video",
                "settings": {"video_type": "embed", "embed_url": {"url": "https://vimeo.com/2"}},
            }
        ]
        mock_conn.fetchval.return_value = "post"
        mock_conn.fetchrow.side_effect = [
            {"source": "self", "video_id": 5, "poster_id": None, "embed_url": ""},
            {"source": "embed", "video_id": None, "poster_id": None, "embed_url": "https://vimeo.com/2"},
        ]

        response = admin_client.put(
            "/api/posts/3/widget-document", json={"data": json.dumps(doc)}
        )

        assert response.json() == {"saved": True, "meta_written": True}
        write_args = mock_conn.fetchrow.await_args_list[-1].args
        assert write_args[1:] == (3, "embed", None, None, "https://vimeo.com/2")

    def test_editor_meta_empty_without_video(self, admin_client, mock_conn):
        mock_conn.fetchval.return_value = "post"
        assert admin_client.get("/api/posts/3/editor-meta").json() == {}

    def test_featured_video_missing_post(self, admin_client):
        response = admin_client.get("/api/posts/3/featured-video")
        assert response.status_code == 404


class TestSettingsEndpoints:
    def test_get_defaults(self, admin_client):
        body = admin_client.get("/api/settings").json()
        assert body["post_types"] == ["post"]
        assert body["self_controls"]["controls"] is True

    def test_invalid_layout(self, admin_client):
        response = admin_client.put("/api/settings", json={"floating_video_layout": "grid"})
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_layout"
