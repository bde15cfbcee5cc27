"""Access-token resolution for the Spotify Web API.

The authorization flow and token refresh live outside this service: a
caller either forwards a bearer token or a token file written by another
tool is read as-is.
"""

from typing import Optional

import requests

from ai_playlist.config import SPOTIFY_TOKEN_FILE
from ai_playlist.core import AuthRequiredError, read_json

from .api import spotify_get


class SpotifyTokenMissing(AuthRequiredError):
    """No valid Spotify access token is available."""


def load_stored_access_token() -> Optional[str]:
    token_info = read_json(SPOTIFY_TOKEN_FILE, default=None)
    if not isinstance(token_info, dict):
        return None
    token = token_info.get("access_token")
    return token or None


def resolve_access_token(authorization: Optional[str] = None) -> str:
    """
    Return the bearer token from an Authorization header, falling back to
    the stored token file. Raises SpotifyTokenMissing when neither exists.
    """
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()

    token = load_stored_access_token()
    if token:
        return token
    raise SpotifyTokenMissing("Spotify authorization required.")


def get_current_user_id(access_token: str) -> str:
    """
    Look up the profile behind the token. A 401 means the token is not
    usable and is reported as SpotifyTokenMissing.
    """
    try:
        return spotify_get(access_token, "me")["id"]
    except requests.HTTPError as e:
        if e.response is not None and e.response.status_code == 401:
            raise SpotifyTokenMissing("Invalid Spotify token.") from e
        raise
