from dataclasses import asdict
from typing import Any, Dict, List, NoReturn, Optional

from fastapi import APIRouter, Header, HTTPException, Query
import requests

from ai_playlist.core import PlaylistGenerationError, log_error, log_warning
from ai_playlist.pipeline import (
    PROCESSING_CONFIGS,
    GenerationRequest,
    ProcessingConfig,
    ProcessingMode,
    TimeEstimate,
    default_progress_store,
    estimate_all_modes,
    estimate_processing_time,
    format_time,
    generate_playlist,
)
from ai_playlist.spotify import (
    SpotifyTokenMissing,
    get_playlist_sizes,
    list_user_playlists,
    resolve_access_token,
)

from .schemas import (
    EstimateRequest,
    EstimateResponse,
    ModeEstimate,
    PlaylistInfo,
    ProgressResponse,
)

router = APIRouter()


def _raise_for_error(e: PlaylistGenerationError) -> NoReturn:
    raise HTTPException(
        status_code=e.status_code,
        detail={"status": e.status, "message": str(e)},
    )


def _require_token(authorization: Optional[str]) -> str:
    try:
        return resolve_access_token(authorization)
    except SpotifyTokenMissing as e:
        _raise_for_error(e)


def _mode_estimate(
    mode: ProcessingMode, config: ProcessingConfig, estimate: TimeEstimate
) -> ModeEstimate:
    return ModeEstimate(
        mode=mode,
        config=asdict(config),
        estimated_seconds=estimate.estimated_seconds,
        warning_level=estimate.warning_level,
        estimated_time=format_time(estimate.estimated_seconds),
    )


def _playlist_info(playlist: Dict[str, Any]) -> PlaylistInfo:
    images = playlist.get("images") or []
    return PlaylistInfo(
        id=playlist["id"],
        name=playlist.get("name") or "",
        description=playlist.get("description"),
        track_count=(playlist.get("tracks") or {}).get("total") or 0,
        image_url=(images[0].get("url") if images else "") or "",
        is_collaborative=bool(playlist.get("collaborative")),
        is_public=playlist.get("public"),
    )


@router.post("/generate-playlist", status_code=201)
def generate(
    payload: GenerationRequest,
    authorization: Optional[str] = Header(default=None),
) -> Dict[str, Any]:
    """
    Generate a playlist from a natural-language prompt.

    Runs synchronously (in the threadpool), so the progress endpoint stays
    responsive while it works. Clients that want to poll before the
    playlist id is known pass their own `generationId`.
    """
    try:
        access_token: Optional[str] = resolve_access_token(authorization)
    except SpotifyTokenMissing:
        # Reported by generate_playlist, after prompt validation.
        access_token = None

    try:
        return generate_playlist(payload, access_token, store=default_progress_store)
    except PlaylistGenerationError as e:
        _raise_for_error(e)
    except Exception as e:
        log_error(f"Error generating AI playlist: {e}")
        raise HTTPException(
            status_code=500,
            detail={"message": "Failed to generate AI playlist", "error": str(e)},
        )


@router.get("/generate-playlist/progress", response_model=ProgressResponse)
def generation_progress(
    playlist_id: Optional[str] = Query(default=None, alias="playlistId"),
    authorization: Optional[str] = Header(default=None),
) -> Dict[str, Any]:
    """Progress of a generation, by playlist id or by generation id."""
    _require_token(authorization)
    if not playlist_id:
        raise HTTPException(
            status_code=400,
            detail={"status": "invalid_request", "message": "Missing playlistId parameter"},
        )
    return {"progress": default_progress_store.get(playlist_id).to_dict()}


@router.post("/estimate-processing", response_model=EstimateResponse)
def estimate_processing(
    payload: EstimateRequest,
    authorization: Optional[str] = Header(default=None),
) -> EstimateResponse:
    access_token = _require_token(authorization)
    sources = payload.sources

    playlists: List[PlaylistInfo] = []
    sizes: Dict[str, int] = {}
    if sources.playlists:
        try:
            raw_playlists = list_user_playlists(access_token)
        except requests.RequestException as e:
            log_warning(f"Error fetching playlist metadata: {e}")
            raw_playlists = []
        sizes = get_playlist_sizes(raw_playlists)
        playlists = [_playlist_info(p) for p in raw_playlists if p.get("id")]

    return EstimateResponse(
        playlists=playlists,
        playlist_sizes=sizes,
        selected_mode=_mode_estimate(
            payload.processing_mode,
            PROCESSING_CONFIGS[payload.processing_mode],
            estimate_processing_time(sources, payload.processing_mode, sizes),
        ),
        available_modes=[
            _mode_estimate(entry["mode"], entry["config"], entry["estimate"])
            for entry in estimate_all_modes(sources, sizes)
        ],
    )
