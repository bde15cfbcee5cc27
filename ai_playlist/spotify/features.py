from typing import Any, Dict, List, Optional

from .api import spotify_get


def get_audio_features(
    access_token: str,
    track_ids: List[str],
) -> List[Optional[Dict[str, Any]]]:
    """
    Bulk audio-features lookup (max 50 ids). Unknown ids come back as None.

    Raises ValueError when the payload does not carry an audio_features list.
    """
    data = spotify_get(access_token, "audio-features", {"ids": ",".join(track_ids)})
    features = data.get("audio_features")
    if not isinstance(features, list):
        raise ValueError("Invalid audio features response format.")
    return features


def get_audio_features_for_track(access_token: str, track_id: str) -> Dict[str, Any]:
    return spotify_get(access_token, f"audio-features/{track_id}")


def get_artists(access_token: str, artist_ids: List[str]) -> List[Dict[str, Any]]:
    """Full artist objects (with genres) for up to 50 ids."""
    data = spotify_get(access_token, "artists", {"ids": ",".join(artist_ids)})
    return [a for a in data.get("artists") or [] if isinstance(a, dict)]
