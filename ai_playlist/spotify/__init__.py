"""Public façade for the ai_playlist.spotify package.

Spotify Web API access used by the generation pipeline: token resolution,
pagination helpers and the per-resource calls (tracks, playlists, audio
features, artists, genre seeds, recommendations). Callers import from this
façade rather than from the submodules.
"""

from .api import (
    fetch_all_pages,
    fetch_limited_items,
    sleep_ms,
    spotify_get,
    spotify_headers,
    spotify_post,
)
from .auth import (
    SpotifyTokenMissing,
    get_current_user_id,
    load_stored_access_token,
    resolve_access_token,
)
from .features import get_artists, get_audio_features, get_audio_features_for_track
from .playlists import (
    add_tracks_to_playlist,
    create_playlist,
    get_playlist_sizes,
    list_user_playlists,
)
from .recommendations import fetch_available_genre_seeds, get_recommendations
from .sources import TrackSource, TrackSourceType
from .tracks import (
    TOP_TRACK_TIME_RANGES,
    get_playlist_track_objects,
    get_saved_tracks,
    get_top_tracks,
)

__all__ = [
    "spotify_headers",
    "spotify_get",
    "spotify_post",
    "fetch_all_pages",
    "fetch_limited_items",
    "sleep_ms",
    "SpotifyTokenMissing",
    "resolve_access_token",
    "load_stored_access_token",
    "get_current_user_id",
    "get_saved_tracks",
    "get_top_tracks",
    "get_playlist_track_objects",
    "TOP_TRACK_TIME_RANGES",
    "list_user_playlists",
    "get_playlist_sizes",
    "create_playlist",
    "add_tracks_to_playlist",
    "get_audio_features",
    "get_audio_features_for_track",
    "get_artists",
    "fetch_available_genre_seeds",
    "get_recommendations",
    "TrackSource",
    "TrackSourceType",
]
