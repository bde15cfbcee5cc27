from typing import Any, Dict, List, Optional

import requests

from ai_playlist.core import PromptAnalysis, SourceSelection
from ai_playlist.pipeline import sources_manager
from ai_playlist.pipeline.collector import collect_tracks
from ai_playlist.pipeline.progress import ProgressChannel, ProgressEvent


def raw_track(track_id: str, name: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": track_id,
        "name": name or f"Song {track_id}",
        "uri": f"spotify:track:{track_id}",
        "popularity": 50,
        "artists": [{"id": "artist", "name": "Artist"}],
    }


def _record(channel: ProgressChannel) -> List[ProgressEvent]:
    events: List[ProgressEvent] = []
    channel.subscribe(events.append)
    return events


def test_track_in_liked_and_playlist_appears_once_with_first_seen_data(monkeypatch) -> None:
    monkeypatch.setattr(
        sources_manager,
        "get_saved_tracks",
        lambda token, all_pages, delay_ms: [raw_track("shared", "Liked version"), raw_track("l1")],
    )
    monkeypatch.setattr(
        sources_manager,
        "get_playlist_track_objects",
        lambda token, playlist_id, all_pages, limit, delay_ms: [
            raw_track("shared", "Playlist version"),
            raw_track("p1"),
        ],
    )
    sources = SourceSelection(
        use_liked_songs=True,
        use_top_tracks=False,
        use_recommendations=False,
        playlists=["pl1"],
    )

    result = collect_tracks("token", sources, "quick")

    assert [t.id for t in result.tracks] == ["shared", "l1", "p1"]
    shared = result.tracks[0]
    assert shared.name == "Liked version"
    assert shared.source == "liked"
    assert result.source_counts == {"liked": 2, "playlist:pl1": 2}
    assert result.total_before_dedupe == 4


def test_pool_is_truncated_to_target_size(monkeypatch) -> None:
    monkeypatch.setattr(
        sources_manager,
        "get_saved_tracks",
        lambda token, all_pages, delay_ms: [raw_track(str(i)) for i in range(250)],
    )
    sources = SourceSelection(use_top_tracks=False, use_recommendations=False)
    channel = ProgressChannel()
    events = _record(channel)

    result = collect_tracks("token", sources, "quick", channel=channel)

    assert len(result.tracks) == 200
    assert result.truncated is True
    assert [t.id for t in result.tracks[:3]] == ["0", "1", "2"]
    assert [e.progress for e in events] == [10, 85, 90, 100]
    assert events[-1].stage == "complete"


def test_progress_is_monotonic_across_playlists(monkeypatch) -> None:
    monkeypatch.setattr(
        sources_manager,
        "get_top_tracks",
        lambda token, time_range, limit: [raw_track(f"{time_range}-1")],
    )
    monkeypatch.setattr(
        sources_manager,
        "get_playlist_track_objects",
        lambda token, playlist_id, all_pages, limit, delay_ms: [raw_track(playlist_id)],
    )
    sources = SourceSelection(
        use_liked_songs=False,
        use_top_tracks=True,
        use_recommendations=False,
        playlists=[f"pl{i}" for i in range(8)],
    )
    channel = ProgressChannel()
    events = _record(channel)

    result = collect_tracks("token", sources, "quick", channel=channel)

    # quick mode reads at most 5 playlists
    assert result.source_counts.get("playlist:pl5") is None
    assert len(result.tracks) == 3 + 5
    progress = [e.progress for e in events]
    assert progress == sorted(progress)
    assert progress[:2] == [30, 40]
    assert 80 in progress
    assert progress[-1] == 100


def test_recommendations_use_matched_genres(monkeypatch) -> None:
    captured: Dict[str, Any] = {}

    def fake_recommendations(token: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        captured.update(params)
        return [raw_track("rec1")]

    monkeypatch.setattr(sources_manager, "get_recommendations", fake_recommendations)
    sources = SourceSelection(use_liked_songs=False, use_top_tracks=False)

    result = collect_tracks(
        "token",
        sources,
        "standard",
        analysis=PromptAnalysis(),
        seed_genres=["rock", "indie"],
    )

    assert captured["seed_genres"] == "rock,indie"
    assert [t.id for t in result.tracks] == ["rec1"]
    assert result.tracks[0].source == "recommendations"


def test_failing_source_does_not_abort_collection(monkeypatch) -> None:
    def failing(*args, **kwargs):
        raise requests.ConnectionError("boom")

    monkeypatch.setattr(sources_manager, "get_saved_tracks", failing)
    monkeypatch.setattr(
        sources_manager,
        "get_top_tracks",
        lambda token, time_range, limit: [raw_track("t1")],
    )
    sources = SourceSelection(use_recommendations=False)

    result = collect_tracks("token", sources, "quick")

    assert [t.id for t in result.tracks] == ["t1"]
    assert result.source_counts == {"liked": 0, "top": 1}


def test_playlist_progress_is_floored(monkeypatch) -> None:
    monkeypatch.setattr(
        sources_manager,
        "get_playlist_track_objects",
        lambda token, playlist_id, all_pages, limit, delay_ms: [raw_track(playlist_id)],
    )
    sources = SourceSelection(
        use_liked_songs=False,
        use_top_tracks=False,
        use_recommendations=False,
        playlists=["a", "b", "c"],
    )
    channel = ProgressChannel()
    events = _record(channel)

    collect_tracks("token", sources, "standard", channel=channel)

    playlist_events = [e.progress for e in events if e.message.startswith("Processed playlist")]
    assert playlist_events == [53, 66, 80]
