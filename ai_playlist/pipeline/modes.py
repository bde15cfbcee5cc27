"""Processing modes and the processing-time estimator.

A processing mode trades collection depth for latency. The estimator is a
pure function of the selected sources, the mode and the known playlist
sizes so the UI can show a warning before a slow generation starts.
"""

from dataclasses import dataclass
from enum import Enum
import math
from typing import Dict, List, Mapping, Optional

from ai_playlist.core import SourceSelection


class ProcessingMode(str, Enum):
    QUICK = "quick"
    STANDARD = "standard"
    COMPREHENSIVE = "comprehensive"
    COMPLETE = "complete"


@dataclass(frozen=True)
class ProcessingConfig:
    max_tracks_per_playlist: int  # 0 = unlimited
    max_playlists: int
    use_audio_features: bool
    fetch_all_pages: bool
    request_delay_ms: int
    prioritize_by_relevance: bool
    target_pool_size: int


PROCESSING_CONFIGS: Dict[ProcessingMode, ProcessingConfig] = {
    ProcessingMode.QUICK: ProcessingConfig(
        max_tracks_per_playlist=30,
        max_playlists=5,
        use_audio_features=True,
        fetch_all_pages=False,
        request_delay_ms=50,
        prioritize_by_relevance=True,
        target_pool_size=200,
    ),
    ProcessingMode.STANDARD: ProcessingConfig(
        max_tracks_per_playlist=50,
        max_playlists=10,
        use_audio_features=True,
        fetch_all_pages=False,
        request_delay_ms=100,
        prioritize_by_relevance=True,
        target_pool_size=500,
    ),
    ProcessingMode.COMPREHENSIVE: ProcessingConfig(
        max_tracks_per_playlist=100,
        max_playlists=20,
        use_audio_features=True,
        fetch_all_pages=True,
        request_delay_ms=150,
        prioritize_by_relevance=True,
        target_pool_size=1000,
    ),
    ProcessingMode.COMPLETE: ProcessingConfig(
        max_tracks_per_playlist=0,
        max_playlists=50,
        use_audio_features=True,
        fetch_all_pages=True,
        request_delay_ms=200,
        prioritize_by_relevance=False,
        target_pool_size=5000,
    ),
}

# Nominal wall-clock budget of a whole generation, used for the remaining
# time shown while polling.
MODE_TIME_BUDGET_SECONDS: Dict[ProcessingMode, int] = {
    ProcessingMode.QUICK: 30,
    ProcessingMode.STANDARD: 60,
    ProcessingMode.COMPREHENSIVE: 120,
    ProcessingMode.COMPLETE: 300,
}
DEFAULT_TIME_BUDGET_SECONDS = 60

BASE_SECONDS = 5.0
LIKED_SONGS_SECONDS = 5.0
TOP_TRACKS_SECONDS = 3.0
RECOMMENDATIONS_SECONDS = 5.0
DEFAULT_PLAYLIST_SIZE = 50
SECONDS_PER_PLAYLIST_TRACK = 0.05
PAGINATION_SECONDS_PER_100_TRACKS = 2.0
SECONDS_PER_FEATURE_TRACK = 0.02
FEATURE_TRACKS_CAP = 500


@dataclass(frozen=True)
class TimeEstimate:
    estimated_seconds: int
    warning_level: str  # "low" | "medium" | "high"


def get_processing_config(mode: ProcessingMode | str) -> ProcessingConfig:
    return PROCESSING_CONFIGS[ProcessingMode(mode)]


def get_time_budget(mode: Optional[ProcessingMode | str]) -> int:
    try:
        return MODE_TIME_BUDGET_SECONDS[ProcessingMode(mode)]
    except ValueError:
        return DEFAULT_TIME_BUDGET_SECONDS


def warning_level_for(seconds: float) -> str:
    if seconds > 180:
        return "high"
    if seconds > 60:
        return "medium"
    return "low"


def estimate_processing_time(
    sources: SourceSelection,
    mode: ProcessingMode | str,
    playlist_sizes: Optional[Mapping[str, int]] = None,
) -> TimeEstimate:
    config = get_processing_config(mode)
    sizes = playlist_sizes or {}

    seconds = BASE_SECONDS
    if sources.use_liked_songs:
        seconds += LIKED_SONGS_SECONDS
    if sources.use_top_tracks:
        seconds += TOP_TRACKS_SECONDS
    if sources.use_recommendations:
        seconds += RECOMMENDATIONS_SECONDS

    if sources.playlists:
        total_tracks = 0
        for playlist_id in sources.playlists:
            size = sizes.get(playlist_id) or DEFAULT_PLAYLIST_SIZE
            if config.max_tracks_per_playlist:
                size = min(size, config.max_tracks_per_playlist)
            total_tracks += size

        if config.fetch_all_pages:
            seconds += total_tracks / 100 * PAGINATION_SECONDS_PER_100_TRACKS
        seconds += total_tracks * SECONDS_PER_PLAYLIST_TRACK

    if config.use_audio_features:
        seconds += (
            min(config.target_pool_size, FEATURE_TRACKS_CAP) * SECONDS_PER_FEATURE_TRACK
        )

    return TimeEstimate(
        estimated_seconds=math.ceil(seconds),
        warning_level=warning_level_for(seconds),
    )


def estimate_all_modes(
    sources: SourceSelection,
    playlist_sizes: Optional[Mapping[str, int]] = None,
) -> List[Dict[str, object]]:
    """One estimate per mode, in catalog order."""
    estimates: List[Dict[str, object]] = []
    for mode, config in PROCESSING_CONFIGS.items():
        estimate = estimate_processing_time(sources, mode, playlist_sizes)
        estimates.append(
            {
                "mode": mode,
                "config": config,
                "estimate": estimate,
            }
        )
    return estimates


def format_time(seconds: int) -> str:
    def _plural(value: int, unit: str) -> str:
        return f"{value} {unit}{'' if value == 1 else 's'}"

    if seconds < 60:
        return _plural(seconds, "second")
    if seconds < 3600:
        return f"{_plural(seconds // 60, 'minute')} {_plural(seconds % 60, 'second')}"
    return f"{_plural(seconds // 3600, 'hour')} {_plural((seconds % 3600) // 60, 'minute')}"
