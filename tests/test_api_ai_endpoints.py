from pathlib import Path
from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient

from ai_playlist.api.ai import routes
from ai_playlist.core import PlaylistCreationError
from ai_playlist.pipeline import GenerationRequest, ProgressStore
from ai_playlist.spotify import auth
from api_main import app

client = TestClient(app)

AUTH = {"Authorization": "Bearer test-token"}


@pytest.fixture(autouse=True)
def no_stored_token(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(auth, "SPOTIFY_TOKEN_FILE", str(tmp_path / "missing_token.json"))


@pytest.fixture
def store(monkeypatch) -> ProgressStore:
    fresh = ProgressStore()
    monkeypatch.setattr(routes, "default_progress_store", fresh)
    return fresh


def test_health() -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_generate_passes_request_and_token(monkeypatch, store) -> None:
    captured: Dict[str, Any] = {}

    def fake_generate(request: GenerationRequest, access_token, *, store) -> Dict[str, Any]:
        captured["request"] = request
        captured["token"] = access_token
        captured["store"] = store
        return {"message": "AI playlist created successfully"}

    monkeypatch.setattr(routes, "generate_playlist", fake_generate)

    response = client.post(
        "/ai/generate-playlist",
        json={
            "prompt": "rainy day jazz",
            "processingMode": "comprehensive",
            "targetTrackCount": 15,
            "sources": {"useTopTracks": False, "playlists": ["p1", "p1", "p2"]},
        },
        headers=AUTH,
    )

    assert response.status_code == 201
    request = captured["request"]
    assert captured["token"] == "test-token"
    assert captured["store"] is store
    assert request.processing_mode.value == "comprehensive"
    assert request.target_track_count == 15
    assert request.sources.use_top_tracks is False
    assert request.sources.use_liked_songs is True
    assert request.sources.playlists == ("p1", "p2")


def test_generate_without_prompt_is_400() -> None:
    response = client.post("/ai/generate-playlist", json={}, headers=AUTH)

    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "Prompt is required"


def test_generate_without_token_is_401() -> None:
    response = client.post("/ai/generate-playlist", json={"prompt": "hello"})

    assert response.status_code == 401
    assert response.json()["detail"]["status"] == "unauthenticated"


def test_generate_maps_creation_failure_to_502(monkeypatch) -> None:
    def failing(request, access_token, *, store):
        raise PlaylistCreationError("Failed to create playlist", 403)

    monkeypatch.setattr(routes, "generate_playlist", failing)

    response = client.post("/ai/generate-playlist", json={"prompt": "x"}, headers=AUTH)

    assert response.status_code == 502
    assert response.json()["detail"]["message"] == "Failed to create playlist"


def test_generate_maps_unexpected_errors_to_500(monkeypatch) -> None:
    def failing(request, access_token, *, store):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(routes, "generate_playlist", failing)

    response = client.post("/ai/generate-playlist", json={"prompt": "x"}, headers=AUTH)

    assert response.status_code == 500
    assert response.json()["detail"] == {
        "message": "Failed to generate AI playlist",
        "error": "kaboom",
    }


def test_progress_requires_playlist_id(store) -> None:
    response = client.get("/ai/generate-playlist/progress", headers=AUTH)

    assert response.status_code == 400


def test_progress_unknown_id_returns_default(store) -> None:
    response = client.get(
        "/ai/generate-playlist/progress", params={"playlistId": "nope"}, headers=AUTH
    )

    assert response.status_code == 200
    assert response.json() == {
        "progress": {
            "stage": "initializing",
            "progress": 5,
            "message": "Initializing playlist generation...",
            "remainingTimeEstimate": 60.0,
            "failed": False,
        }
    }


def test_progress_resolves_generation_id_after_promotion(store) -> None:
    handle = store.begin("quick", "gen-42").promote("playlist-42")
    handle.update("collecting", 44, "Processed playlist 1 of 5")

    by_generation = client.get(
        "/ai/generate-playlist/progress", params={"playlistId": "gen-42"}, headers=AUTH
    ).json()
    by_playlist = client.get(
        "/ai/generate-playlist/progress", params={"playlistId": "playlist-42"}, headers=AUTH
    ).json()

    assert by_generation["progress"]["progress"] == 44
    assert by_generation["progress"]["stage"] == by_playlist["progress"]["stage"]


def test_estimate_processing_defaults() -> None:
    response = client.post("/ai/estimate-processing", json={}, headers=AUTH)

    assert response.status_code == 200
    data = response.json()
    assert data["playlists"] == []
    assert data["selectedMode"]["mode"] == "standard"
    assert data["selectedMode"]["estimatedSeconds"] == 28
    assert data["selectedMode"]["estimatedTime"] == "28 seconds"
    assert data["selectedMode"]["config"]["target_pool_size"] == 500
    assert [m["mode"] for m in data["availableModes"]] == [
        "quick",
        "standard",
        "comprehensive",
        "complete",
    ]


def test_estimate_processing_uses_playlist_sizes(monkeypatch) -> None:
    monkeypatch.setattr(
        routes,
        "list_user_playlists",
        lambda token: [
            {"id": "p1", "name": "Big", "tracks": {"total": 400}, "images": [{"url": "img"}]},
            {"id": "p2", "name": "Small", "tracks": {"total": 10}},
        ],
    )

    response = client.post(
        "/ai/estimate-processing",
        json={
            "processingMode": "quick",
            "sources": {
                "useLikedSongs": False,
                "useTopTracks": False,
                "useRecommendations": False,
                "playlists": ["p1"],
            },
        },
        headers=AUTH,
    )

    data = response.json()
    assert data["playlistSizes"] == {"p1": 400, "p2": 10}
    assert data["playlists"][0]["imageUrl"] == "img"
    assert data["playlists"][0]["trackCount"] == 400
    # 5 + min(400, 30) * 0.05 + 200 * 0.02 = 10.5
    assert data["selectedMode"]["estimatedSeconds"] == 11


def test_estimate_processing_requires_auth() -> None:
    response = client.post("/ai/estimate-processing", json={})

    assert response.status_code == 401


def test_progress_reports_failed_generation(store) -> None:
    handle = store.begin("quick", "gen-7")
    handle.update("creating", 15, "Creating playlist...")
    handle.fail("Playlist generation failed: boom")

    progress = client.get(
        "/ai/generate-playlist/progress", params={"playlistId": "gen-7"}, headers=AUTH
    ).json()["progress"]

    assert progress["failed"] is True
    assert progress["stage"] == "creating"
    assert progress["remainingTimeEstimate"] == 0.0
