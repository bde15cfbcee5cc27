from typing import List

import requests

from ai_playlist.pipeline import genres as genres_module
from ai_playlist.pipeline import GenreSeedCache, match_genres_to_available_seeds


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_match_genres_exact_path() -> None:
    assert match_genres_to_available_seeds(["rock"], ["rock", "pop"]) == ["rock"]


def test_match_genres_exact_is_case_insensitive_and_keeps_vocabulary_casing() -> None:
    result = match_genres_to_available_seeds(["Hip-Hop", "jazz"], ["hip-hop", "Jazz", "pop"])

    assert result == ["hip-hop", "Jazz"]


def test_match_genres_substring_path() -> None:
    assert match_genres_to_available_seeds(["synth"], ["synthpop"]) == ["synthpop"]


def test_match_genres_substring_deduped_and_capped() -> None:
    available = [
        "deep-house",
        "progressive-house",
        "tech-house",
        "chicago-house",
        "acid-house",
        "electro-house",
        "pop",
    ]

    result = match_genres_to_available_seeds(["deep", "house"], available)

    assert result == [
        "deep-house",
        "progressive-house",
        "tech-house",
        "chicago-house",
        "acid-house",
    ]


def test_match_genres_substring_matches_vocabulary_inside_ai_genre() -> None:
    assert match_genres_to_available_seeds(["indie rock revival"], ["rock", "jazz"]) == ["rock"]


def test_match_genres_empty_input() -> None:
    assert match_genres_to_available_seeds([], ["rock", "pop"]) == []


def test_genre_seed_cache_refreshes_only_after_ttl(monkeypatch) -> None:
    calls: List[str] = []

    def fake_fetch(access_token: str) -> List[str]:
        calls.append(access_token)
        return ["rock", "pop"]

    monkeypatch.setattr(genres_module, "fetch_available_genre_seeds", fake_fetch)
    clock = FakeClock()
    cache = GenreSeedCache(ttl_seconds=24 * 60 * 60, clock=clock)

    assert cache.get("token") == ["rock", "pop"]
    clock.now += 23 * 60 * 60
    assert cache.get("token") == ["rock", "pop"]
    assert len(calls) == 1

    clock.now += 2 * 60 * 60
    cache.get("token")
    assert len(calls) == 2

    cache.clear()
    cache.get("token")
    assert len(calls) == 3


def test_genre_seed_cache_does_not_cache_failures(monkeypatch) -> None:
    responses = [requests.ConnectionError("down"), ["rock"]]

    def fake_fetch(access_token: str) -> List[str]:
        result = responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(genres_module, "fetch_available_genre_seeds", fake_fetch)
    cache = GenreSeedCache(clock=FakeClock())

    assert cache.get("token") == []
    assert cache.get("token") == ["rock"]
