"""Tests for web routes."""

import json

import pytest
from starlette.testclient import TestClient

from toolscope.gateway import LocalToolGateway
from toolscope.saved import MemoryStorage
from toolscope.saved import SavedToolsStore
from toolscope.web import create_app
from toolscope.web import filter_state_from_query
from toolscope.web import local_redirect_path
from toolscope.web import truncate_text


class BrokenGateway(LocalToolGateway):
    def _read_document(self):
        raise OSError("connection refused")


class ReadOnlyStorage(MemoryStorage):
    def set(self, key, value):
        raise OSError("read-only file system")


@pytest.fixture
def saved_store():
    return SavedToolsStore(MemoryStorage())


@pytest.fixture
def client(gateway, saved_store):
    """Create a test client over a seeded local gateway."""
    return TestClient(create_app(gateway, saved_store))


class TestHelpers:
    """Tests for query parsing and text helpers."""

    def test_filter_state_from_query(self):
        from starlette.datastructures import QueryParams

        params = QueryParams("q=chat&category=Code&category=Image&tag=a&sort=pricing")
        state = filter_state_from_query(params)
        assert state.search_query == "chat"
        assert state.categories == {"Code", "Image"}
        assert state.tags == {"a"}
        assert state.sort_key.value == "pricing"

    def test_unknown_sort_falls_back_to_name(self):
        from starlette.datastructures import QueryParams

        assert filter_state_from_query(QueryParams("sort=rating")).sort_key.value == "name"

    def test_truncate_text(self):
        assert truncate_text("short") == "short"
        assert truncate_text("word " * 40, max_length=10) == "word word..."

    @pytest.mark.parametrize(
        "referer,expected",
        [
            ("http://testserver/?category=Code", "/?category=Code"),
            ("/tools/2", "/tools/2"),
            (None, "/saved"),
            ("https://evil.example/phish", "/saved"),
            ("//evil.example/phish", "/saved"),
            ("javascript:alert(1)", "/saved"),
        ],
    )
    def test_local_redirect_path(self, referer, expected):
        assert local_redirect_path(referer, "testserver") == expected


class TestRoutes:
    """Tests for page routes."""

    def test_health_endpoint(self, client):
        """Health endpoint should return ok."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_homepage_lists_all_tools(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "Discover AI Tools" in response.text
        assert "Showing 4 of 4 tools" in response.text
        assert "Clear filters" not in response.text

    def test_homepage_applies_filters(self, client):
        response = client.get("/", params={"category": "Code", "q": "chat"})
        assert response.status_code == 200
        assert "Showing 1 of 4 tools" in response.text
        assert "Clear filters" in response.text
        assert "DevChat" in response.text
        assert "WriteWell" not in response.text

    def test_categories_page(self, client):
        response = client.get("/categories")
        assert response.status_code == 200
        assert "2 tools" in response.text

    def test_tool_page_shows_related_tools(self, client):
        response = client.get("/tools/2")
        assert response.status_code == 200
        assert "CodePilot" in response.text
        assert "Related Tools" in response.text
        assert "DevChat" in response.text

    def test_missing_tool_returns_404(self, client):
        response = client.get("/tools/999")
        assert response.status_code == 404
        assert "Tool Not Found" in response.text

    def test_gateway_failure_returns_retryable_error(self, tmp_path, saved_store):
        client = TestClient(create_app(BrokenGateway(tmp_path / "tools.json"), saved_store))
        response = client.get("/")
        assert response.status_code == 503
        assert "Try again" in response.text


class TestSavedTools:
    """Tests for saving, clearing and exporting tools."""

    def test_toggle_redirects_back_to_same_origin_page(self, client):
        response = client.post(
            "/saved/toggle/1", headers={"referer": "http://testserver/?q=code"}, follow_redirects=False
        )
        assert response.status_code == 303
        assert response.headers["location"] == "/?q=code"

    def test_toggle_ignores_foreign_referer(self, client):
        response = client.post(
            "/saved/toggle/1", headers={"referer": "https://evil.example/"}, follow_redirects=False
        )
        assert response.headers["location"] == "/saved"

    def test_toggle_and_clear_survive_failed_writes(self, gateway):
        store = SavedToolsStore(ReadOnlyStorage())
        client = TestClient(create_app(gateway, store))

        response = client.post("/saved/toggle/1", follow_redirects=False)
        assert response.status_code == 303
        assert store.is_saved("1")

        response = client.post("/saved/clear", follow_redirects=False)
        assert response.status_code == 303
        assert store.count == 0

    def test_toggle_saves_then_removes(self, client, saved_store):
        response = client.post("/saved/toggle/3", follow_redirects=False)
        assert response.status_code == 303
        assert saved_store.is_saved("3")

        client.post("/saved/toggle/3", follow_redirects=False)
        assert not saved_store.is_saved("3")

    def test_saved_page_lists_saved_tools(self, client, saved_store):
        saved_store.toggle("1")
        saved_store.toggle("404")
        response = client.get("/saved")
        assert response.status_code == 200
        assert "1 tool saved" in response.text
        assert "WriteWell" in response.text

    def test_clear_all(self, client, saved_store):
        saved_store.toggle("1")
        response = client.post("/saved/clear", follow_redirects=False)
        assert response.status_code == 303
        assert saved_store.count == 0

    def test_export_downloads_json(self, client, saved_store):
        saved_store.toggle("2")
        response = client.get("/saved/export")
        assert response.status_code == 200
        assert "toolscope-saved-tools-" in response.headers["content-disposition"]
        exported = json.loads(response.text)
        assert exported[0]["name"] == "CodePilot"
        assert exported[0]["tags"] == ["coding", "programming"]


class TestSubmit:
    """Tests for the submission form."""

    def test_submit_form_renders(self, client):
        response = client.get("/submit")
        assert response.status_code == 200
        assert "Submit Tool" in response.text

    def test_invalid_submission_shows_errors(self, client, valid_form, tools_file):
        before = tools_file.read_text()
        response = client.post("/submit", data=dict(valid_form, description="Too short"))
        assert response.status_code == 400
        assert "Description must be at least 50 characters" in response.text
        assert tools_file.read_text() == before

    def test_valid_submission_redirects_to_tool(self, client, valid_form):
        response = client.post("/submit", data=valid_form, follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/tools/5"
        assert "SummarizeIt" in client.get("/tools/5").text
