"""Public façade for the ai_playlist.pipeline package.

This module exposes the generation pipeline: processing modes and time
estimates, prompt analysis, genre-seed matching, track collection,
enrichment, scoring, progress tracking and the end-to-end orchestration.
Other packages should import pipeline behaviour from this façade instead of
the internal pipeline submodules.
"""

from .collector import CollectionResult, collect_tracks
from .features import EnrichmentReport, attach_artist_genres, enrich_with_audio_features
from .genres import (
    GenreSeedCache,
    genre_seed_cache,
    get_available_genre_seeds,
    match_genres_to_available_seeds,
)
from .modes import (
    PROCESSING_CONFIGS,
    ProcessingConfig,
    ProcessingMode,
    TimeEstimate,
    estimate_all_modes,
    estimate_processing_time,
    format_time,
    get_processing_config,
    get_time_budget,
)
from .orchestration import GenerationRequest, generate_playlist
from .progress import (
    DEFAULT_PROGRESS,
    GenerationProgress,
    GenerationStage,
    PlaylistGenerationHandle,
    ProgressChannel,
    ProgressEvent,
    ProgressStore,
    ProvisionalGenerationHandle,
    default_progress_store,
)
from .prompt_analysis import (
    LLMUnavailableError,
    analyze_playlist_prompt,
    default_analysis,
    openai_analyze,
)
from .scoring import classify_emphasis, filter_tracks_by_ai_analysis, selection_reason
from .sources_manager import (
    build_recommendation_params,
    build_recommendation_seeds,
    fetch_liked_songs,
    fetch_playlist_tracks,
    fetch_recommended_tracks,
    fetch_top_tracks,
    sample_playlist_tracks,
)

__all__ = [
    "ProcessingMode",
    "ProcessingConfig",
    "PROCESSING_CONFIGS",
    "TimeEstimate",
    "get_processing_config",
    "get_time_budget",
    "estimate_processing_time",
    "estimate_all_modes",
    "format_time",
    "GenreSeedCache",
    "genre_seed_cache",
    "get_available_genre_seeds",
    "match_genres_to_available_seeds",
    "LLMUnavailableError",
    "analyze_playlist_prompt",
    "default_analysis",
    "openai_analyze",
    "fetch_liked_songs",
    "fetch_top_tracks",
    "fetch_playlist_tracks",
    "fetch_recommended_tracks",
    "sample_playlist_tracks",
    "build_recommendation_seeds",
    "build_recommendation_params",
    "CollectionResult",
    "collect_tracks",
    "EnrichmentReport",
    "enrich_with_audio_features",
    "attach_artist_genres",
    "classify_emphasis",
    "filter_tracks_by_ai_analysis",
    "selection_reason",
    "GenerationStage",
    "GenerationProgress",
    "DEFAULT_PROGRESS",
    "ProgressEvent",
    "ProgressChannel",
    "ProgressStore",
    "PlaylistGenerationHandle",
    "ProvisionalGenerationHandle",
    "default_progress_store",
    "GenerationRequest",
    "generate_playlist",
]
