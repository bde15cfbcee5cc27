"""Best-effort enrichment of the track pool.

Audio features come from Spotify's audio-features endpoint, which may be
unavailable altogether (deprecated or forbidden for the app). That is an
expected outcome: tracks keep `features=None` and the scorer falls back to
popularity. Inputs are never mutated; enriched copies are returned.
"""

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

import requests

from ai_playlist.config import FEATURE_BATCH_DELAY_MS, FEATURE_SINGLE_DELAY_MS
from ai_playlist.core import (
    AudioFeatures,
    CandidateTrack,
    log_error,
    log_info,
    log_progress,
    log_step,
    log_warning,
)
from ai_playlist.spotify import (
    get_artists,
    get_audio_features,
    get_audio_features_for_track,
    sleep_ms,
)

FEATURE_BATCH_SIZE = 50
ARTIST_BATCH_SIZE = 50


@dataclass(frozen=True)
class EnrichmentReport:
    requested: int
    with_features: int
    batches: int
    failed_batches: int

    @property
    def available(self) -> bool:
        return self.with_features > 0


def _chunks(items: Sequence[str], size: int) -> List[List[str]]:
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def _lookup_one_by_one(
    access_token: str, track_ids: List[str], delay_ms: int
) -> Dict[str, AudioFeatures]:
    found: Dict[str, AudioFeatures] = {}
    for track_id in track_ids:
        sleep_ms(delay_ms)
        try:
            payload = get_audio_features_for_track(access_token, track_id)
        except requests.RequestException as e:
            log_warning(f"No audio features for track {track_id}: {e}")
            continue
        features = AudioFeatures.from_spotify(payload)
        if features is not None:
            found[track_id] = features
    return found


def _fetch_features(
    access_token: str,
    track_ids: List[str],
    batch_delay_ms: int,
    single_delay_ms: int,
) -> Tuple[Dict[str, AudioFeatures], int, int]:
    by_id: Dict[str, AudioFeatures] = {}
    batches = _chunks(track_ids, FEATURE_BATCH_SIZE)
    failed = 0

    for index, batch in enumerate(batches, start=1):
        log_progress(index, len(batches), prefix="Audio features batch")
        try:
            for payload in get_audio_features(access_token, batch):
                features = AudioFeatures.from_spotify(payload)
                if features is not None and payload.get("id") in batch:
                    by_id[payload["id"]] = features
        except (requests.RequestException, ValueError) as e:
            failed += 1
            log_warning(
                f"Bulk audio features failed for batch {index} ({e}); "
                "falling back to single lookups."
            )
            by_id.update(_lookup_one_by_one(access_token, batch, single_delay_ms))
        sleep_ms(batch_delay_ms)

    return by_id, len(batches), failed


def enrich_with_audio_features(
    pool: Sequence[CandidateTrack],
    access_token: str,
    batch_delay_ms: int = FEATURE_BATCH_DELAY_MS,
    single_delay_ms: int = FEATURE_SINGLE_DELAY_MS,
) -> Tuple[List[CandidateTrack], EnrichmentReport]:
    """
    Attach audio features to every track of the pool that has them.

    Returns new track objects in the pool order and an EnrichmentReport.
    Never raises: on an unexpected failure every track comes back without
    features.
    """
    log_step(f"Fetching audio features for {len(pool)} tracks...")
    track_ids = [t.id for t in pool]

    try:
        by_id, batches, failed = _fetch_features(
            access_token, track_ids, batch_delay_ms, single_delay_ms
        )
    except Exception as e:  # noqa: BLE001
        log_error(f"Audio features unavailable ({type(e).__name__}): {e}")
        stripped = [replace(t, features=None) for t in pool]
        return stripped, EnrichmentReport(
            requested=len(pool),
            with_features=0,
            batches=0,
            failed_batches=0,
        )

    enriched = [replace(t, features=by_id.get(t.id)) for t in pool]
    with_features = sum(1 for t in enriched if t.has_features)
    log_info(f"{with_features} of {len(pool)} tracks have audio features.")
    return enriched, EnrichmentReport(
        requested=len(pool),
        with_features=with_features,
        batches=batches,
        failed_batches=failed,
    )


def attach_artist_genres(
    pool: Sequence[CandidateTrack], access_token: str
) -> List[CandidateTrack]:
    """
    Fill `extracted_genres` from the primary artist's genres for tracks
    that have none. Lookup failures leave the tracks as they are.
    """
    missing_ids: List[str] = []
    for track in pool:
        if not track.extracted_genres and track.artist_ids:
            artist_id = track.artist_ids[0]
            if artist_id not in missing_ids:
                missing_ids.append(artist_id)

    if not missing_ids:
        return list(pool)

    log_step(f"Looking up genres for {len(missing_ids)} artists...")
    genres_by_artist: Dict[str, List[str]] = {}
    for batch in _chunks(missing_ids, ARTIST_BATCH_SIZE):
        try:
            artists = get_artists(access_token, batch)
        except requests.RequestException as e:
            log_warning(f"Artist genre lookup failed: {e}")
            continue
        for artist in artists:
            genres = [g for g in artist.get("genres") or [] if isinstance(g, str)]
            if artist.get("id") and genres:
                genres_by_artist[artist["id"]] = genres

    enriched: List[CandidateTrack] = []
    for track in pool:
        genres: Optional[List[str]] = None
        if not track.extracted_genres and track.artist_ids:
            genres = genres_by_artist.get(track.artist_ids[0])
        enriched.append(replace(track, extracted_genres=list(genres)) if genres else track)
    return enriched
