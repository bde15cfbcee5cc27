from typing import Any, Dict, List

from .api import spotify_get


def fetch_available_genre_seeds(access_token: str) -> List[str]:
    data = spotify_get(access_token, "recommendations/available-genre-seeds")
    return [g for g in data.get("genres") or [] if isinstance(g, str)]


def get_recommendations(
    access_token: str,
    params: Dict[str, Any],
) -> List[Dict[str, Any]]:
    """
    Raw track objects from the recommendations endpoint. Spotify has
    deprecated it for new applications, so callers must expect errors.
    """
    data = spotify_get(access_token, "recommendations", params)
    return [t for t in data.get("tracks") or [] if isinstance(t, dict)]
