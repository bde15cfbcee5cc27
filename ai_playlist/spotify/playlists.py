from typing import Any, Dict, List

from ai_playlist.core import log_info

from .api import fetch_all_pages, fetch_limited_items, spotify_post

ADD_TRACKS_BATCH_SIZE = 100


def list_user_playlists(
    access_token: str,
    all_pages: bool = False,
) -> List[Dict[str, Any]]:
    if all_pages:
        return fetch_all_pages(access_token, "me/playlists", {"limit": 50})
    return fetch_limited_items(access_token, "me/playlists", 50)


def get_playlist_sizes(playlists: List[Dict[str, Any]]) -> Dict[str, int]:
    """Map playlist id -> total track count from playlist summaries."""
    sizes: Dict[str, int] = {}
    for p in playlists:
        total = (p.get("tracks") or {}).get("total")
        if p.get("id") and total:
            sizes[p["id"]] = int(total)
    return sizes


def create_playlist(
    access_token: str,
    user_id: str,
    name: str,
    description: str,
    public: bool = False,
) -> Dict[str, Any]:
    playlist = spotify_post(
        access_token,
        f"users/{user_id}/playlists",
        {"name": name, "description": description, "public": public},
    )
    log_info(f"Playlist created: {name} ({playlist.get('id')})")
    return playlist


def add_tracks_to_playlist(
    access_token: str,
    playlist_id: str,
    uris: List[str],
) -> int:
    """
    Append track URIs in batches of 100. Returns the number of URIs sent;
    raises on the first failing batch.
    """
    sent = 0
    for i in range(0, len(uris), ADD_TRACKS_BATCH_SIZE):
        batch = uris[i : i + ADD_TRACKS_BATCH_SIZE]
        spotify_post(access_token, f"playlists/{playlist_id}/tracks", {"uris": batch})
        sent += len(batch)
    return sent
