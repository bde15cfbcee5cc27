"""Per-source track fetchers.

Each fetcher turns one library source into CandidateTracks according to the
processing config. An upstream failure is local to its source: it is logged
and the fetcher returns an empty list.
"""

import random
from typing import Any, Dict, List, Optional, Sequence

import requests

from ai_playlist.core import CandidateTrack, PromptAnalysis, log_info, log_step, log_warning
from ai_playlist.spotify import (
    TOP_TRACK_TIME_RANGES,
    TrackSource,
    TrackSourceType,
    get_playlist_track_objects,
    get_recommendations,
    get_saved_tracks,
    get_top_tracks,
)

from .modes import ProcessingConfig

MAX_RECOMMENDATION_SEEDS = 5
RECOMMENDATION_LIMIT = 50
# A playlist is sampled (instead of truncated) above this multiple of the cap.
SAMPLING_THRESHOLD_FACTOR = 2
SAMPLING_TOP_SHARE = 0.7


def to_candidates(raw_tracks: Sequence[Any], source: TrackSource) -> List[CandidateTrack]:
    candidates: List[CandidateTrack] = []
    for raw in raw_tracks:
        track = CandidateTrack.from_spotify(raw, source=source.label)
        if track is not None:
            candidates.append(track)
    return candidates


def dedupe_tracks(tracks: Sequence[CandidateTrack]) -> List[CandidateTrack]:
    """Drop repeated ids, keeping the first occurrence and the input order."""
    seen = set()
    unique: List[CandidateTrack] = []
    for track in tracks:
        if track.id in seen:
            continue
        seen.add(track.id)
        unique.append(track)
    return unique


def fetch_liked_songs(access_token: str, config: ProcessingConfig) -> List[CandidateTrack]:
    log_step("Fetching liked songs...")
    try:
        raw = get_saved_tracks(
            access_token,
            all_pages=config.fetch_all_pages,
            delay_ms=config.request_delay_ms,
        )
    except requests.RequestException as e:
        log_warning(f"Could not fetch liked songs: {e}")
        return []

    tracks = to_candidates(raw, TrackSource(TrackSourceType.LIKED))
    log_info(f"Retrieved {len(tracks)} liked songs.")
    return tracks


def fetch_top_tracks(access_token: str, config: ProcessingConfig) -> List[CandidateTrack]:
    """
    Top tracks over the three time ranges, 50 each. Not gated by
    fetch_all_pages: the three ranges give variety even in quick mode.
    """
    log_step("Fetching top tracks...")
    source = TrackSource(TrackSourceType.TOP)
    collected: List[CandidateTrack] = []
    for time_range in TOP_TRACK_TIME_RANGES:
        try:
            raw = get_top_tracks(access_token, time_range, 50)
        except requests.RequestException as e:
            log_warning(f"Could not fetch top tracks ({time_range}): {e}")
            continue
        collected.extend(to_candidates(raw, source))

    tracks = dedupe_tracks(collected)
    log_info(f"Retrieved {len(tracks)} unique top tracks.")
    return tracks


def fetch_playlist_tracks(
    access_token: str,
    playlist_id: str,
    config: ProcessingConfig,
    analysis: Optional[PromptAnalysis] = None,
    rng: Optional[random.Random] = None,
) -> List[CandidateTrack]:
    log_step(f"Fetching tracks from playlist {playlist_id}...")
    cap = config.max_tracks_per_playlist
    try:
        raw = get_playlist_track_objects(
            access_token,
            playlist_id,
            all_pages=config.fetch_all_pages,
            limit=cap or 100,
            delay_ms=config.request_delay_ms,
        )
    except requests.RequestException as e:
        log_warning(f"Could not fetch playlist {playlist_id}: {e}")
        return []

    tracks = to_candidates(raw, TrackSource(TrackSourceType.PLAYLIST, playlist_id))

    if cap and len(tracks) > cap:
        if analysis is not None and len(tracks) > cap * SAMPLING_THRESHOLD_FACTOR:
            tracks = sample_playlist_tracks(tracks, analysis, cap, rng=rng)
        else:
            tracks = tracks[:cap]

    log_info(f"Retrieved {len(tracks)} tracks from playlist {playlist_id}.")
    return tracks


def playlist_relevance_score(track: CandidateTrack, prompt_genres: Sequence[str]) -> float:
    """
    Genre relevance of a playlist track: +2 per track genre equal to a prompt
    genre, otherwise +1 per prompt genre it shares a substring with; plus half
    the normalized popularity.
    """
    wanted = [g.lower() for g in prompt_genres if g]
    wanted_set = set(wanted)
    score = 0.0
    for genre in track.extracted_genres:
        genre_lower = genre.lower()
        if genre_lower in wanted_set:
            score += 2
            continue
        for prompt_genre in wanted:
            if genre_lower in prompt_genre or prompt_genre in genre_lower:
                score += 1
    return score + track.popularity / 100 * 0.5


def sample_playlist_tracks(
    tracks: Sequence[CandidateTrack],
    analysis: PromptAnalysis,
    max_tracks: int,
    rng: Optional[random.Random] = None,
) -> List[CandidateTrack]:
    """
    Reduce a large playlist to `max_tracks`: the best 70% by relevance, and
    the rest drawn uniformly (without replacement) from the remaining tracks
    so the sample is not only the most popular part of the playlist.
    """
    if len(tracks) <= max_tracks:
        return list(tracks)

    rng = rng or random.Random()
    ranked = sorted(
        tracks,
        key=lambda t: playlist_relevance_score(t, analysis.genres),
        reverse=True,
    )
    top_count = int(max_tracks * SAMPLING_TOP_SHARE)
    top, rest = ranked[:top_count], ranked[top_count:]
    random_count = min(max_tracks - len(top), len(rest))
    return top + rng.sample(rest, random_count)


def build_recommendation_seeds(
    genres: Sequence[str],
    track_ids: Sequence[str] = (),
    artist_ids: Sequence[str] = (),
    max_seeds: int = MAX_RECOMMENDATION_SEEDS,
) -> Dict[str, List[str]]:
    """
    Spread at most `max_seeds` seeds over tracks, artists and genres: up to 2
    tracks, 1 artist, genres for the remaining slots, then extra artists
    and tracks. Falls back to the "pop" genre when nothing is available.
    """
    seeds: Dict[str, List[str]] = {"tracks": [], "artists": [], "genres": []}

    def remaining() -> int:
        return max_seeds - sum(len(v) for v in seeds.values())

    seeds["tracks"] = list(track_ids[: min(2, remaining())])
    seeds["artists"] = list(artist_ids[: min(1, remaining())])
    seeds["genres"] = list(genres[: remaining()])

    if not seeds["genres"] and remaining() > 0:
        used = len(seeds["artists"])
        seeds["artists"] += list(artist_ids[used : used + remaining()])
    if remaining() > 0:
        used = len(seeds["tracks"])
        seeds["tracks"] += list(track_ids[used : used + remaining()])

    if not any(seeds.values()):
        seeds["genres"] = ["pop"]
    return seeds


def build_recommendation_params(
    seeds: Dict[str, List[str]],
    analysis: PromptAnalysis,
    limit: int = RECOMMENDATION_LIMIT,
) -> Dict[str, str]:
    params: Dict[str, str] = {"limit": str(limit)}
    for kind in ("genres", "tracks", "artists"):
        if seeds.get(kind):
            params[f"seed_{kind}"] = ",".join(seeds[kind])

    for dimension in ("energy", "danceability", "acousticness", "instrumentalness", "valence"):
        low, high = analysis.feature_range(dimension)
        params[f"target_{dimension}"] = str(analysis.target(dimension))
        params[f"min_{dimension}"] = str(max(0.0, low * 0.8))
        params[f"max_{dimension}"] = str(min(1.0, high * 1.2))

    tempo_low, tempo_high = analysis.tempo_range
    if tempo_low > 0:
        params["min_tempo"] = str(max(0.0, tempo_low * 0.8))
    if tempo_high < 300:
        params["max_tempo"] = str(min(300.0, tempo_high * 1.2))

    level = analysis.popularity_level.lower()
    if level == "high":
        params["min_popularity"] = "70"
    elif level == "medium":
        params["min_popularity"] = "40"
        params["max_popularity"] = "80"
    elif level == "low":
        params["max_popularity"] = "40"

    return params


def fetch_recommended_tracks(
    access_token: str,
    analysis: PromptAnalysis,
    seed_genres: Sequence[str],
    limit: int = RECOMMENDATION_LIMIT,
) -> List[CandidateTrack]:
    log_step("Fetching recommendations...")
    seeds = build_recommendation_seeds(seed_genres)
    params = build_recommendation_params(seeds, analysis, limit)
    try:
        raw = get_recommendations(access_token, params)
    except requests.RequestException as e:
        log_warning(f"Recommendations unavailable: {e}")
        return []

    tracks = to_candidates(raw, TrackSource(TrackSourceType.RECOMMENDATIONS))
    log_info(f"Retrieved {len(tracks)} recommended tracks.")
    return tracks
