"""End-to-end playlist generation.

generate_playlist() runs one generation request from prompt to filled
Spotify playlist:

  analyze prompt -> match genre seeds -> create the playlist shell ->
  collect tracks -> enrich (artist genres, audio features) -> score and
  select -> add tracks -> save a local record

Every stage reports to a ProgressStore so clients can poll. Only the
playlist creation is fatal; the other upstream failures degrade the result
(fewer tracks, popularity-based selection, no local record) and the
generation still succeeds.
"""

import random
import time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
import requests

from ai_playlist.config import ENRICH_ARTIST_GENRES
from ai_playlist.core import (
    AuthRequiredError,
    CandidateTrack,
    GenerationValidationError,
    PlaylistCreationError,
    PromptAnalysis,
    SourceSelection,
    log_error,
    log_info,
    log_section,
    log_success,
    log_warning,
)
from ai_playlist.data import GeneratedPlaylistRecord, GeneratedPlaylistRepository
from ai_playlist.spotify import (
    add_tracks_to_playlist,
    create_playlist,
    get_current_user_id,
    get_playlist_sizes,
    list_user_playlists,
)

from .collector import collect_tracks
from .features import EnrichmentReport, attach_artist_genres, enrich_with_audio_features
from .genres import get_available_genre_seeds, match_genres_to_available_seeds
from .modes import ProcessingMode, estimate_processing_time, get_processing_config
from .progress import (
    GenerationStage,
    PlaylistGenerationHandle,
    ProgressChannel,
    ProgressEvent,
    ProgressStore,
    default_progress_store,
)
from .prompt_analysis import LLMCallable, analyze_playlist_prompt
from .scoring import filter_tracks_by_ai_analysis, selection_reason

DEFAULT_PLAYLIST_NAME = "AI Playlist"
DEFAULT_PLAYLIST_DESCRIPTION = "AI-generated playlist based on your prompt."
PLAYLIST_DESCRIPTION_MAX_LENGTH = 250
COLLECTION_PROGRESS_START = 20
COLLECTION_PROGRESS_SPAN = 0.6


class GenerationRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    prompt: str = ""
    name: Optional[str] = None
    description: Optional[str] = None
    sources: SourceSelection = Field(default_factory=SourceSelection)
    processing_mode: ProcessingMode = ProcessingMode.STANDARD
    target_track_count: int = Field(default=20, ge=1)
    generation_id: Optional[str] = None


def playlist_description(
    user_description: Optional[str], analysis: Optional[PromptAnalysis]
) -> str:
    if user_description and user_description.strip():
        text = user_description.strip()
    elif analysis is not None and analysis.description:
        text = analysis.description
    else:
        text = DEFAULT_PLAYLIST_DESCRIPTION
    return text[:PLAYLIST_DESCRIPTION_MAX_LENGTH]


def _collector_forwarder(handle: PlaylistGenerationHandle):
    """Map collector events (0-100) onto the 20-80 band of the generation."""

    def _forward(event: ProgressEvent) -> None:
        stage = event.stage
        if stage == GenerationStage.COMPLETE.value:
            stage = GenerationStage.COLLECTING.value
        progress = COLLECTION_PROGRESS_START + round(
            event.progress * COLLECTION_PROGRESS_SPAN
        )
        handle.update(stage, progress, event.message)

    return _forward


def _lookup_playlist_sizes(access_token: str, sources: SourceSelection) -> Dict[str, int]:
    if not sources.playlists:
        return {}
    try:
        return get_playlist_sizes(list_user_playlists(access_token))
    except requests.RequestException as e:
        log_warning(f"Could not fetch playlist metadata: {e}")
        return {}


def _create_playlist_shell(
    access_token: str, user_id: str, name: str, description: str
) -> Dict[str, Any]:
    try:
        playlist = create_playlist(access_token, user_id, name, description, public=False)
    except requests.RequestException as e:
        upstream_status = None
        if isinstance(e, requests.HTTPError) and e.response is not None:
            upstream_status = e.response.status_code
        raise PlaylistCreationError("Failed to create playlist", upstream_status) from e

    if not playlist.get("id"):
        raise PlaylistCreationError("Failed to create playlist")
    return playlist


def _serialize_track(track: CandidateTrack) -> Dict[str, Any]:
    return {
        "id": track.id,
        "name": track.name,
        "artist": ", ".join(a for a in track.artists if a) or track.artist,
        "uri": track.uri,
        "score": track.score,
        "scoreDetails": track.score_details,
        "popularity": track.popularity,
        "selectionReason": selection_reason(track),
    }


def generate_playlist(
    request: GenerationRequest,
    access_token: Optional[str],
    *,
    store: Optional[ProgressStore] = None,
    generation_id: Optional[str] = None,
    llm: Optional[LLMCallable] = None,
    repository: Optional[GeneratedPlaylistRepository] = None,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """
    Generate and fill a playlist for `request`. Returns the response payload.

    Raises GenerationValidationError for a blank prompt, AuthRequiredError
    without a usable token and PlaylistCreationError when the playlist shell
    cannot be created.
    """
    prompt = (request.prompt or "").strip()
    if not prompt:
        raise GenerationValidationError("Prompt is required")
    if not access_token:
        raise AuthRequiredError("Authentication required")

    started = time.monotonic()
    store = store or default_progress_store
    repository = repository or GeneratedPlaylistRepository()
    mode = request.processing_mode
    sources = request.sources
    config = get_processing_config(mode)

    log_section(f'AI playlist generation ({mode.value} mode): "{prompt}"')
    user_id = get_current_user_id(access_token)

    playlist_sizes = _lookup_playlist_sizes(access_token, sources)
    estimate = estimate_processing_time(sources, mode, playlist_sizes)
    log_info(
        f"Estimated processing time: {estimate.estimated_seconds} seconds "
        f"({estimate.warning_level} impact)"
    )

    handle: PlaylistGenerationHandle = store.begin(
        mode.value, generation_id or request.generation_id
    )
    try:
        handle.update(GenerationStage.ANALYZING, 5, "Analyzing prompt with AI...")
        analysis = analyze_playlist_prompt(prompt, llm=llm)

        handle.update(GenerationStage.ANALYZING, 10, "Matching genres...")
        matched_genres = match_genres_to_available_seeds(
            analysis.genres, get_available_genre_seeds(access_token)
        )
        log_info(f"Matched genre seeds: {matched_genres}")

        handle.update(GenerationStage.CREATING, 15, "Creating playlist...")
        title = (request.name or "").strip() or DEFAULT_PLAYLIST_NAME
        description = playlist_description(request.description, analysis)
        playlist = _create_playlist_shell(access_token, user_id, title, description)
        handle = handle.promote(playlist["id"])

        handle.update(
            GenerationStage.COLLECTING,
            COLLECTION_PROGRESS_START,
            "Collecting tracks from selected sources...",
        )
        channel = ProgressChannel()
        channel.subscribe(_collector_forwarder(handle))
        collection = collect_tracks(
            access_token,
            sources,
            mode,
            channel=channel,
            analysis=analysis,
            seed_genres=matched_genres,
            rng=rng,
        )
        pool = collection.tracks
        if not pool:
            log_warning("No tracks collected; the playlist will stay empty.")

        handle.update(GenerationStage.PROCESSING, 75, "Analyzing audio features...")
        if ENRICH_ARTIST_GENRES and pool:
            pool = attach_artist_genres(pool, access_token)
        if config.use_audio_features and pool:
            pool, report = enrich_with_audio_features(pool, access_token)
        else:
            report = EnrichmentReport(
                requested=len(pool), with_features=0, batches=0, failed_batches=0
            )

        handle.update(GenerationStage.SELECTING, 85, "Selecting the best tracks...")
        selected = filter_tracks_by_ai_analysis(
            pool, analysis, max_tracks=request.target_track_count
        )
        log_info(f"Selected {len(selected)} tracks for the playlist.")

        handle.update(
            GenerationStage.FINALIZING, 90, "Adding tracks to your playlist..."
        )
        if selected:
            try:
                add_tracks_to_playlist(
                    access_token, playlist["id"], [t.uri for t in selected]
                )
            except requests.RequestException as e:
                log_error(f"Failed to add tracks to playlist {playlist['id']}: {e}")

        handle.update(GenerationStage.FINALIZING, 95, "Finalizing playlist...")
        record = GeneratedPlaylistRecord(
            playlist_id=playlist["id"],
            name=title,
            description=description,
            prompt=prompt,
            track_ids=[t.id for t in selected],
            total_duration_seconds=sum(t.duration_ms for t in selected) / 1000,
            ai_analysis=analysis.model_dump(mode="json"),
            genres_used=list(matched_genres),
            processing_mode=mode.value,
            source_stats={
                "liked_songs": sources.use_liked_songs,
                "top_tracks": sources.use_top_tracks,
                "use_recommendations": sources.use_recommendations,
                "playlist_count": len(sources.playlists),
                "tracks_by_source": collection.source_counts,
            },
        )
        try:
            repository.save(record)
        except Exception as e:  # noqa: BLE001
            log_warning(f"Failed to save playlist record, continuing anyway: {e}")

        handle.update(GenerationStage.COMPLETE, 100, "Playlist created successfully!")
    except Exception as e:
        handle.fail(f"Playlist generation failed: {e}")
        raise

    features_available = report.available
    log_success(
        f"Playlist {playlist['id']} ready with {len(selected)} tracks "
        f"({report.with_features}/{report.requested} with audio features)."
    )

    analysis_payload = analysis.model_dump(mode="json")
    tracks_payload: List[Dict[str, Any]] = [_serialize_track(t) for t in selected]
    return {
        "message": "AI playlist created successfully",
        "playlist": {
            "id": playlist["id"],
            "name": title,
            "description": description,
            "tracks": tracks_payload,
            "url": (playlist.get("external_urls") or {}).get("spotify")
            or f"https://open.spotify.com/playlist/{playlist['id']}",
            "aiAnalysis": analysis_payload,
            "genresUsed": list(matched_genres),
        },
        "processingStats": {
            "mode": mode.value,
            "totalTimeSeconds": round(time.monotonic() - started, 1),
            "tracksCollected": len(pool),
            "tracksAnalyzed": report.requested,
            "tracksSelected": len(selected),
            "estimatedSeconds": estimate.estimated_seconds,
            "warningLevel": estimate.warning_level,
            "tracksWithFeatures": report.with_features,
            "audioFeaturesStatus": "available" if features_available else "unavailable",
            "selectionMethod": "audio_features" if features_available else "popularity",
        },
        "refinementData": {
            "promptAnalysis": analysis_payload,
            "playlistId": playlist["id"],
        },
    }
