from typing import Any, Dict, List

import pytest
import requests

from ai_playlist.core import CandidateTrack
from ai_playlist.pipeline import features as features_module
from ai_playlist.pipeline.features import attach_artist_genres, enrich_with_audio_features


def make_track(track_id: str, artist_id: str = "artist", genres=()) -> CandidateTrack:
    return CandidateTrack(
        id=track_id,
        name=f"Song {track_id}",
        artist="Artist",
        uri=f"spotify:track:{track_id}",
        artists=["Artist"],
        artist_ids=[artist_id],
        extracted_genres=list(genres),
    )


def feature_payload(track_id: str, energy: float = 0.5) -> Dict[str, Any]:
    return {
        "id": track_id,
        "energy": energy,
        "danceability": 0.5,
        "acousticness": 0.1,
        "instrumentalness": 0.0,
        "valence": 0.6,
        "tempo": 120.0,
    }


@pytest.fixture
def sleeps(monkeypatch) -> List[int]:
    recorded: List[int] = []
    monkeypatch.setattr(features_module, "sleep_ms", recorded.append)
    return recorded


def test_bulk_features_matched_by_id_in_batches_of_50(monkeypatch, sleeps) -> None:
    batches: List[List[str]] = []

    def fake_bulk(token: str, ids: List[str]) -> List[Any]:
        batches.append(ids)
        # reversed order and one unknown id
        return [None] + [feature_payload(i) for i in reversed(ids[1:])]

    monkeypatch.setattr(features_module, "get_audio_features", fake_bulk)
    pool = [make_track(str(i)) for i in range(60)]

    enriched, report = enrich_with_audio_features(pool, "token", batch_delay_ms=200)

    assert [len(b) for b in batches] == [50, 10]
    assert enriched[0].features is None
    assert enriched[1].features is not None
    assert [t.id for t in enriched] == [t.id for t in pool]
    assert report.requested == 60
    assert report.with_features == 58
    assert report.batches == 2
    assert report.failed_batches == 0
    assert sleeps == [200, 200]
    # inputs untouched
    assert all(t.features is None for t in pool)


def test_failed_bulk_call_falls_back_to_single_lookups(monkeypatch, sleeps) -> None:
    def failing_bulk(token: str, ids: List[str]) -> List[Any]:
        raise requests.HTTPError("403 Forbidden")

    def fake_single(token: str, track_id: str) -> Dict[str, Any]:
        if track_id == "b":
            raise requests.HTTPError("404")
        return feature_payload(track_id)

    monkeypatch.setattr(features_module, "get_audio_features", failing_bulk)
    monkeypatch.setattr(features_module, "get_audio_features_for_track", fake_single)
    pool = [make_track("a"), make_track("b"), make_track("c")]

    enriched, report = enrich_with_audio_features(
        pool, "token", batch_delay_ms=200, single_delay_ms=100
    )

    assert [t.features is not None for t in enriched] == [True, False, True]
    assert report.failed_batches == 1
    assert report.with_features == 2
    assert sleeps == [100, 100, 100, 200]


def test_malformed_bulk_response_falls_back_to_single_lookups(monkeypatch, sleeps) -> None:
    def malformed(token: str, ids: List[str]) -> List[Any]:
        raise ValueError("Invalid audio features response format.")

    monkeypatch.setattr(features_module, "get_audio_features", malformed)
    monkeypatch.setattr(
        features_module, "get_audio_features_for_track", lambda token, i: feature_payload(i)
    )

    enriched, report = enrich_with_audio_features([make_track("a")], "token")

    assert enriched[0].features is not None
    assert report.failed_batches == 1


def test_feature_subsystem_unavailable_returns_featureless_pool(monkeypatch, sleeps) -> None:
    def forbidden(*args, **kwargs):
        raise requests.HTTPError("403 Forbidden")

    monkeypatch.setattr(features_module, "get_audio_features", forbidden)
    monkeypatch.setattr(features_module, "get_audio_features_for_track", forbidden)
    pool = [make_track("a"), make_track("b")]

    enriched, report = enrich_with_audio_features(pool, "token")

    assert [t.id for t in enriched] == ["a", "b"]
    assert all(t.features is None for t in enriched)
    assert report.with_features == 0
    assert report.available is False


def test_unexpected_failure_never_raises(monkeypatch, sleeps) -> None:
    def broken(*args, **kwargs):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(features_module, "get_audio_features", broken)

    enriched, report = enrich_with_audio_features([make_track("a")], "token")

    assert enriched[0].features is None
    assert report.requested == 1
    assert report.with_features == 0


def test_incomplete_feature_payload_counts_as_missing(monkeypatch, sleeps) -> None:
    partial = feature_payload("a")
    del partial["tempo"]
    monkeypatch.setattr(features_module, "get_audio_features", lambda token, ids: [partial])

    enriched, _ = enrich_with_audio_features([make_track("a")], "token")

    assert enriched[0].features is None


def test_attach_artist_genres_fills_missing_genres_only(monkeypatch) -> None:
    requested: List[List[str]] = []

    def fake_artists(token: str, ids: List[str]) -> List[Dict[str, Any]]:
        requested.append(ids)
        return [{"id": "ar1", "genres": ["indie rock"]}, {"id": "ar2", "genres": []}]

    monkeypatch.setattr(features_module, "get_artists", fake_artists)
    pool = [
        make_track("a", "ar1"),
        make_track("b", "ar2"),
        make_track("c", "ar3", genres=["jazz"]),
        make_track("d", "ar1"),
    ]

    enriched = attach_artist_genres(pool, "token")

    assert requested == [["ar1", "ar2"]]
    assert enriched[0].extracted_genres == ["indie rock"]
    assert enriched[1].extracted_genres == []
    assert enriched[2].extracted_genres == ["jazz"]
    assert enriched[3].extracted_genres == ["indie rock"]
    assert pool[0].extracted_genres == []


def test_attach_artist_genres_tolerates_failures(monkeypatch) -> None:
    def failing(*args, **kwargs):
        raise requests.ConnectionError("down")

    monkeypatch.setattr(features_module, "get_artists", failing)
    pool = [make_track("a")]

    assert attach_artist_genres(pool, "token") == pool


def test_batch_progress_logged_and_features_kept(monkeypatch, sleeps) -> None:
    logged: List[Any] = []
    monkeypatch.setattr(
        features_module,
        "log_progress",
        lambda current, total, prefix="": logged.append((current, total, prefix)),
    )
    monkeypatch.setattr(
        features_module,
        "get_audio_features",
        lambda token, ids: [feature_payload(i) for i in ids],
    )
    pool = [make_track(str(i)) for i in range(51)]

    enriched, report = enrich_with_audio_features(pool, "token")

    assert logged == [(1, 2, "Audio features batch"), (2, 2, "Audio features batch")]
    assert report.available
    assert report.batches == 2
    assert all(t.has_features for t in enriched)
