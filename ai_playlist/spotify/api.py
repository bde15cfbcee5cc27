"""Low-level Spotify Web API access.

Every request carries the bearer token, uses REQUEST_TIMEOUT_SECONDS and
raises requests.HTTPError on a non-2xx answer. Callers decide whether an
upstream failure is fatal; for most pipeline sources it is not.
"""

import time
from typing import Any, Dict, List, Optional

import requests

from ai_playlist.config import REQUEST_TIMEOUT_SECONDS, SPOTIFY_API_BASE
from ai_playlist.core import log_warning


def spotify_headers(access_token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {access_token}"}


def api_url(path: str) -> str:
    if path.startswith("http"):
        return path
    return f"{SPOTIFY_API_BASE}/{path.lstrip('/')}"


def sleep_ms(delay_ms: int) -> None:
    if delay_ms > 0:
        time.sleep(delay_ms / 1000)


def spotify_get(
    access_token: str,
    path: str,
    params: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    r = requests.get(
        api_url(path),
        headers=spotify_headers(access_token),
        params=params,
        timeout=REQUEST_TIMEOUT_SECONDS,
    )
    r.raise_for_status()
    return r.json()


def spotify_post(
    access_token: str,
    path: str,
    payload: Dict[str, Any],
) -> Dict[str, Any]:
    r = requests.post(
        api_url(path),
        headers=spotify_headers(access_token),
        json=payload,
        timeout=REQUEST_TIMEOUT_SECONDS,
    )
    r.raise_for_status()
    return r.json() if r.content else {}


def fetch_all_pages(
    access_token: str,
    path: str,
    params: Optional[Dict[str, Any]] = None,
    delay_ms: int = 100,
) -> List[Dict[str, Any]]:
    """
    Follow `next` links and return every item of a paginated listing.

    `delay_ms` is awaited between two consecutive page requests. A failing
    page stops the walk; the items gathered so far are returned.
    """
    items: List[Dict[str, Any]] = []
    url: Optional[str] = path
    first = True

    while url:
        if not first:
            sleep_ms(delay_ms)
        try:
            data = spotify_get(access_token, url, params if first else None)
        except requests.RequestException as e:
            log_warning(f"Paging stopped after {len(items)} items: {e}")
            break
        first = False
        items.extend(data.get("items") or [])
        url = data.get("next")

    return items


def fetch_limited_items(
    access_token: str,
    path: str,
    limit: int = 50,
    params: Optional[Dict[str, Any]] = None,
) -> List[Dict[str, Any]]:
    """
    Fetch a single page of at most `limit` items (raises on upstream errors).
    """
    query = dict(params or {})
    query["limit"] = limit
    data = spotify_get(access_token, path, query)
    return data.get("items") or []
