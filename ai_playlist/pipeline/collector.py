"""Multi-source track collection.

collect_tracks() runs the selected fetchers one after another (liked songs,
top tracks, playlists, then recommendations), merges their output into a
single de-duplicated pool and caps it at the mode's target pool size.
Progress is published on a ProgressChannel as the stages complete.
"""

from dataclasses import dataclass, field
import random
from typing import Dict, List, Optional, Sequence

from ai_playlist.core import (
    CandidateTrack,
    PromptAnalysis,
    SourceSelection,
    log_info,
    log_section,
    log_step,
    log_success,
)

from .modes import ProcessingMode, get_processing_config
from .progress import GenerationStage, ProgressChannel
from .sources_manager import (
    dedupe_tracks,
    fetch_liked_songs,
    fetch_playlist_tracks,
    fetch_recommended_tracks,
    fetch_top_tracks,
)


@dataclass
class CollectionResult:
    tracks: List[CandidateTrack]
    # Tracks contributed by each source label, before de-duplication.
    source_counts: Dict[str, int] = field(default_factory=dict)
    total_before_dedupe: int = 0
    truncated: bool = False


def collect_tracks(
    access_token: str,
    sources: SourceSelection,
    mode: ProcessingMode | str,
    channel: Optional[ProgressChannel] = None,
    analysis: Optional[PromptAnalysis] = None,
    seed_genres: Sequence[str] = (),
    rng: Optional[random.Random] = None,
) -> CollectionResult:
    config = get_processing_config(mode)
    channel = channel or ProgressChannel()
    log_section(f"Collecting tracks ({ProcessingMode(mode).value} mode)")

    collected: List[CandidateTrack] = []
    source_counts: Dict[str, int] = {}

    def _add(label: str, tracks: List[CandidateTrack]) -> None:
        collected.extend(tracks)
        source_counts[label] = source_counts.get(label, 0) + len(tracks)

    if sources.use_liked_songs:
        _add("liked", fetch_liked_songs(access_token, config))
        channel.publish(
            GenerationStage.COLLECTING.value,
            10,
            f"Collected {len(collected)} tracks from liked songs",
        )

    if sources.use_top_tracks:
        _add("top", fetch_top_tracks(access_token, config))
        channel.publish(
            GenerationStage.COLLECTING.value,
            30,
            f"Collected {len(collected)} tracks so far",
        )

    playlist_ids = list(sources.playlists)
    if len(playlist_ids) > config.max_playlists:
        log_info(
            f"Limiting playlists from {len(playlist_ids)} to {config.max_playlists} "
            f"for {ProcessingMode(mode).value} mode."
        )
        playlist_ids = playlist_ids[: config.max_playlists]

    if playlist_ids:
        channel.publish(
            GenerationStage.COLLECTING.value,
            40,
            f"Collecting tracks from {len(playlist_ids)} playlists",
        )
        for index, playlist_id in enumerate(playlist_ids, start=1):
            _add(
                f"playlist:{playlist_id}",
                fetch_playlist_tracks(
                    access_token, playlist_id, config, analysis=analysis, rng=rng
                ),
            )
            channel.publish(
                GenerationStage.COLLECTING.value,
                40 + 40 * index // len(playlist_ids),
                f"Processed playlist {index} of {len(playlist_ids)}",
            )

    if sources.use_recommendations and analysis is not None:
        _add(
            "recommendations",
            fetch_recommended_tracks(access_token, analysis, seed_genres),
        )
        channel.publish(
            GenerationStage.COLLECTING.value,
            82,
            f"Collected {len(collected)} tracks including recommendations",
        )

    log_step("Removing duplicate tracks...")
    unique = dedupe_tracks(collected)
    channel.publish(
        GenerationStage.PROCESSING.value,
        85,
        f"Found {len(unique)} unique tracks",
    )

    truncated = False
    if len(unique) > config.target_pool_size:
        log_info(
            f"Limiting pool from {len(unique)} to {config.target_pool_size} tracks."
        )
        unique = unique[: config.target_pool_size]
        truncated = True
        channel.publish(
            GenerationStage.PROCESSING.value,
            90,
            f"Limited to {len(unique)} tracks",
        )

    channel.publish(
        GenerationStage.COMPLETE.value,
        100,
        f"Collected {len(unique)} tracks",
    )
    log_success(
        f"Collected {len(unique)} unique tracks out of {len(collected)} fetched."
    )
    return CollectionResult(
        tracks=unique,
        source_counts=source_counts,
        total_before_dedupe=len(collected),
        truncated=truncated,
    )
