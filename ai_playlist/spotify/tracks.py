from typing import Any, Dict, List

from .api import fetch_all_pages, fetch_limited_items

TOP_TRACK_TIME_RANGES = ("short_term", "medium_term", "long_term")


def get_saved_tracks(
    access_token: str,
    all_pages: bool,
    delay_ms: int = 100,
) -> List[Dict[str, Any]]:
    """
    Raw track objects from the user's liked songs: the whole library when
    `all_pages` is set, otherwise the most recent page of 50.
    """
    if all_pages:
        items = fetch_all_pages(access_token, "me/tracks", {"limit": 50}, delay_ms)
    else:
        items = fetch_limited_items(access_token, "me/tracks", 50)
    return [item.get("track") for item in items if isinstance(item, dict)]


def get_top_tracks(
    access_token: str,
    time_range: str,
    limit: int = 50,
) -> List[Dict[str, Any]]:
    return fetch_limited_items(
        access_token, "me/top/tracks", limit, {"time_range": time_range}
    )


def get_playlist_track_objects(
    access_token: str,
    playlist_id: str,
    all_pages: bool,
    limit: int = 100,
    delay_ms: int = 100,
) -> List[Dict[str, Any]]:
    """
    Raw track objects of a playlist, `None` entries (removed or unavailable
    tracks) included; callers filter them.
    """
    path = f"playlists/{playlist_id}/tracks"
    if all_pages:
        items = fetch_all_pages(access_token, path, {"limit": 100}, delay_ms)
    else:
        items = fetch_limited_items(access_token, path, limit)
    return [item.get("track") for item in items if isinstance(item, dict)]
