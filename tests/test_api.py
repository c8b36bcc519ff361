"""Test the HTTP API"""

import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient

from tubeify.api.app import app
from tubeify.api.state import get_state
from tubeify.core.conversion import ConversionOrchestrator
from tubeify.core.recognition import AcrCloudFileScanProvider, AuddProvider, FallbackRecognizer

URL = "https://www.youtube.com/watch?v=abc123"


class FakeState:
    def __init__(self, orchestrator, recognizer):
        self.orchestrator = orchestrator
        self.recognizer = recognizer


@pytest.fixture
def client(orchestrator):
    recognizer = FallbackRecognizer([
        AuddProvider(api_token="key"),
        AcrCloudFileScanProvider(container_id="", access_token=""),
    ])
    app.dependency_overrides[get_state] = lambda: FakeState(orchestrator, recognizer)
    # No context manager: the lifespan hook is not needed here
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestConversionRoutes:
    """Test start / confirm / cancel over HTTP"""

    def test_initial_session_is_idle(self, client):
        resp = client.get("/api/conversion")
        assert resp.status_code == 200
        assert resp.json()["phase"] == "idle"

    def test_start_returns_recognizing(self, client):
        resp = client.post("/api/conversion/start", json={"youtube_url": URL})
        assert resp.status_code == 202
        assert resp.json()["phase"] == "recognizing"
        assert resp.json()["youtube_url"] == URL

    def test_start_without_url(self, client):
        resp = client.post("/api/conversion/start", json={})
        assert resp.status_code == 400
        assert client.get("/api/conversion").json()["phase"] == "idle"

    def test_start_twice_conflicts(self, client):
        client.post("/api/conversion/start", json={"youtube_url": URL})
        resp = client.post("/api/conversion/start", json={"youtube_url": URL})
        assert resp.status_code == 409

    def test_confirm_outside_preview_conflicts(self, client):
        assert client.post("/api/conversion/confirm").status_code == 409
        assert client.post("/api/conversion/cancel").status_code == 409

    def test_full_flow(self, client, runner, playlist_calls):
        _, add = playlist_calls
        client.post("/api/conversion/start", json={"youtube_url": URL})
        runner.run_all()

        preview = client.get("/api/conversion").json()
        assert preview["phase"] == "preview"
        assert preview["found_count"] == 1
        assert preview["not_found_count"] == 1

        assert client.post("/api/conversion/confirm").json()["phase"] == "creating"
        runner.run_all()

        done = client.get("/api/conversion").json()
        assert done["phase"] == "idle"
        assert done["outcome"] == "success"
        assert done["tracks_added"] == 1
        add.assert_called_once_with("test-token", "playlist_1", ["spotify:track:1"])

    def test_cancel_from_preview(self, client, runner, playlist_calls):
        create, _ = playlist_calls
        client.post("/api/conversion/start", json={"youtube_url": URL})
        runner.run_all()

        resp = client.post("/api/conversion/cancel")
        assert resp.status_code == 200
        assert resp.json()["outcome"] == "cancelled"
        assert resp.json()["matched_songs"] == []
        create.assert_not_called()

    def test_confirm_after_unlink_is_bad_request(self, recognizer, runner, search, playlist_calls):
        create, add = playlist_calls
        orchestrator = ConversionOrchestrator(
            recognizer=recognizer,
            token_provider=lambda: "tok",
            credentials_provider=lambda: None,
            search=search,
            create_playlist=create,
            add_tracks=add,
            run_in_background=runner,
        )
        app.dependency_overrides[get_state] = lambda: FakeState(orchestrator, None)
        try:
            client = TestClient(app)
            client.post("/api/conversion/start", json={"youtube_url": URL})
            runner.run_all()

            resp = client.post("/api/conversion/confirm")
            assert resp.status_code == 400
            assert "Spotify" in resp.json()["detail"]
            assert client.get("/api/conversion").json()["phase"] == "preview"
        finally:
            app.dependency_overrides.clear()


class TestRecognitionRoutes:
    """Test provider configuration check"""

    def test_providers_report_configuration_only(self, client):
        data = client.get("/api/recognition/providers").json()
        assert data["providers"] == [
            {"name": "audd", "configured": True},
            {"name": "acrcloud", "configured": False},
        ]
        assert data["ready"] is True
        assert "key" not in str(data)


class TestSpotifyRoutes:
    """Test Spotify linking routes"""

    def test_profile_when_not_linked(self, client):
        with patch("tubeify.api.routes.spotify.get_access_token", return_value=None):
            resp = client.get("/api/spotify/profile")
        assert resp.json() == {"connected": False, "profile": None}

    def test_profile_when_linked(self, client):
        with patch("tubeify.api.routes.spotify.get_access_token", return_value="tok"), \
                patch("tubeify.api.routes.spotify.get_profile",
                      return_value={"id": "u1", "display_name": "", "email": "a@b.c"}):
            resp = client.get("/api/spotify/profile")
        assert resp.json()["profile"] == {"id": "u1", "display_name": "User", "email": "a@b.c"}

    def test_complete_login_needs_code(self, client):
        assert client.post("/api/spotify/complete-login", json={}).status_code == 400

    def test_complete_login_parses_redirect_url(self, client):
        with patch("tubeify.api.routes.spotify.exchange_code_and_save_token", return_value=True) as exchange:
            resp = client.post(
                "/api/spotify/complete-login",
                json={"redirect_url": "http://localhost:8000/api/spotify/callback?code=abc&state=x"},
            )
        assert resp.status_code == 200
        exchange.assert_called_once_with("abc")

    def test_logout(self, client):
        with patch("tubeify.api.routes.spotify.clear_token") as clear:
            assert client.post("/api/spotify/logout").json() == {"ok": True}
        clear.assert_called_once()
