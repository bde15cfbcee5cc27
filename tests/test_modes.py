from ai_playlist.core import SourceSelection
from ai_playlist.pipeline import (
    PROCESSING_CONFIGS,
    ProcessingMode,
    estimate_all_modes,
    estimate_processing_time,
    format_time,
    get_time_budget,
)

NO_SOURCES = SourceSelection(
    use_liked_songs=False, use_top_tracks=False, use_recommendations=False
)


def test_complete_mode_is_unlimited_and_not_prioritized() -> None:
    config = PROCESSING_CONFIGS[ProcessingMode.COMPLETE]

    assert config.max_tracks_per_playlist == 0
    assert config.fetch_all_pages is True
    assert config.prioritize_by_relevance is False
    assert all(c.use_audio_features for c in PROCESSING_CONFIGS.values())


def test_estimate_baseline_quick_without_sources() -> None:
    # 5 s base + min(200, 500) * 0.02 s of audio features
    estimate = estimate_processing_time(NO_SOURCES, ProcessingMode.QUICK)

    assert estimate.estimated_seconds == 9
    assert estimate.warning_level == "low"


def test_estimate_counts_each_selected_source() -> None:
    sources = SourceSelection(
        use_liked_songs=True, use_top_tracks=True, use_recommendations=True
    )

    estimate = estimate_processing_time(sources, "standard")

    # 5 + 5 + 3 + 5 + 500 * 0.02
    assert estimate.estimated_seconds == 28


def test_estimate_caps_playlist_size_and_defaults_unknown_sizes() -> None:
    sources = NO_SOURCES.model_copy(update={"playlists": ("big", "unknown", "empty")})

    estimate = estimate_processing_time(
        sources, ProcessingMode.QUICK, {"big": 1000, "empty": 0}
    )

    # unknown and empty count as 50; every playlist is capped at 30:
    # 5 + 90 * 0.05 + 200 * 0.02 = 13.5
    assert estimate.estimated_seconds == 14


def test_estimate_adds_pagination_cost_and_warning_levels() -> None:
    sources = NO_SOURCES.model_copy(update={"playlists": ("a",)})

    estimate = estimate_processing_time(sources, ProcessingMode.COMPLETE, {"a": 5000})

    # 5 + 5000 * 0.05 + 5000 / 100 * 2 + 500 * 0.02 = 365
    assert estimate.estimated_seconds == 365
    assert estimate.warning_level == "high"

    medium = estimate_processing_time(sources, ProcessingMode.COMPLETE, {"a": 1200})
    assert medium.warning_level == "medium"


def test_estimate_is_deterministic_and_grows_with_sources() -> None:
    baseline = estimate_processing_time(NO_SOURCES, ProcessingMode.STANDARD)
    more = NO_SOURCES.model_copy(
        update={"use_liked_songs": True, "playlists": ("p1", "p2")}
    )

    first = estimate_processing_time(more, ProcessingMode.STANDARD)
    second = estimate_processing_time(more, ProcessingMode.STANDARD)

    assert first == second
    assert first.estimated_seconds >= baseline.estimated_seconds


def test_estimate_all_modes_follows_catalog_order() -> None:
    estimates = estimate_all_modes(NO_SOURCES)

    assert [e["mode"] for e in estimates] == list(ProcessingMode)
    assert estimates[0]["config"] is PROCESSING_CONFIGS[ProcessingMode.QUICK]


def test_time_budget_falls_back_for_unknown_mode() -> None:
    assert get_time_budget("quick") == 30
    assert get_time_budget(ProcessingMode.COMPLETE) == 300
    assert get_time_budget("turbo") == 60


def test_format_time() -> None:
    assert format_time(1) == "1 second"
    assert format_time(45) == "45 seconds"
    assert format_time(125) == "2 minutes 5 seconds"
    assert format_time(3780) == "1 hour 3 minutes"
