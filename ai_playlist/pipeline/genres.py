"""Genre-seed vocabulary cache and fuzzy matching of LLM genres onto it."""

import threading
import time
from typing import Callable, List, Optional, Sequence

import requests

from ai_playlist.config import GENRE_SEED_CACHE_TTL_SECONDS
from ai_playlist.core import log_info, log_step, log_warning
from ai_playlist.spotify import fetch_available_genre_seeds

MAX_PARTIAL_MATCHES = 5


class GenreSeedCache:
    """
    Spotify's allowed genre seeds, refreshed at most once per `ttl_seconds`
    of wall-clock time. A failed fetch returns [] and is not cached.
    """

    def __init__(
        self,
        ttl_seconds: int = GENRE_SEED_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._genres: List[str] = []
        self._fetched_at: Optional[float] = None
        self._lock = threading.Lock()

    def is_fresh(self) -> bool:
        return (
            bool(self._genres)
            and self._fetched_at is not None
            and self._clock() - self._fetched_at < self.ttl_seconds
        )

    def get(self, access_token: str) -> List[str]:
        with self._lock:
            if self.is_fresh():
                log_info("Using cached genre seeds.")
                return list(self._genres)

        log_step("Fetching available genre seeds from Spotify...")
        try:
            genres = fetch_available_genre_seeds(access_token)
        except requests.RequestException as e:
            log_warning(f"Could not fetch genre seeds: {e}")
            return []

        with self._lock:
            self._genres = list(genres)
            self._fetched_at = self._clock()
        log_info(f"Retrieved {len(genres)} genre seeds.")
        return list(genres)

    def clear(self) -> None:
        with self._lock:
            self._genres = []
            self._fetched_at = None


genre_seed_cache = GenreSeedCache()


def get_available_genre_seeds(access_token: str) -> List[str]:
    return genre_seed_cache.get(access_token)


def match_genres_to_available_seeds(
    ai_genres: Sequence[str],
    available_genres: Sequence[str],
) -> List[str]:
    """
    Map genres proposed by the LLM onto the seed vocabulary.

    Case-insensitive exact matches win; they are returned in the
    vocabulary's casing. Only when there is no exact match, genres related by
    substring (either direction) are collected, de-duplicated and capped at 5.
    """
    if not ai_genres:
        return []

    lowered = [g.lower() for g in available_genres]

    exact = [g.lower() for g in ai_genres if g.lower() in lowered]
    if exact:
        return [available_genres[lowered.index(g)] for g in exact]

    partial: List[str] = []
    for ai_genre in ai_genres:
        needle = ai_genre.lower().strip()
        if not needle:
            continue
        for genre, genre_lower in zip(available_genres, lowered):
            if not genre_lower:
                continue
            if (needle in genre_lower or genre_lower in needle) and genre not in partial:
                partial.append(genre)

    return partial[:MAX_PARTIAL_MATCHES]
