"""Client-side polling of generation progress.

The server never pushes progress: a client re-reads the progress endpoint
every `interval` seconds until the generation reports completion. Stopping
early does not cancel the generation on the server.
"""

import time
from typing import Any, Callable, Dict, List, Optional

import requests

from ai_playlist.core import log_info, log_warning

PROGRESS_PATH = "/ai/generate-playlist/progress"
DEFAULT_POLL_INTERVAL_SECONDS = 2.0


class ProgressPollTimeout(TimeoutError):
    """Polling stopped before the generation reported completion."""


def is_finished(progress: Dict[str, Any]) -> bool:
    """A generation is finished once it completed or failed."""
    return (
        progress.get("stage") == "complete"
        or progress.get("progress") == 100
        or bool(progress.get("failed"))
    )


class ProgressPoller:
    def __init__(
        self,
        base_url: str,
        access_token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        timeout: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self.session = session or requests.Session()
        self.interval = interval
        self.timeout = timeout
        self._sleep = sleep
        self._clock = clock

    def fetch(self, playlist_id: str) -> Dict[str, Any]:
        headers = {}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        resp = self.session.get(
            f"{self.base_url}{PROGRESS_PATH}",
            params={"playlistId": playlist_id},
            headers=headers,
            timeout=30,
        )
        resp.raise_for_status()
        return resp.json()["progress"]

    def poll(
        self,
        playlist_id: str,
        on_update: Optional[Callable[[Dict[str, Any]], None]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Poll until the generation is complete or failed. Returns every
        progress snapshot read, the last one being the finished one.

        Raises ProgressPollTimeout when `timeout` elapses first. A failed
        read is logged and retried at the next tick.
        """
        deadline = None if self.timeout is None else self._clock() + self.timeout
        snapshots: List[Dict[str, Any]] = []

        while True:
            try:
                progress = self.fetch(playlist_id)
            except requests.RequestException as e:
                log_warning(f"Progress read failed for {playlist_id}: {e}")
            else:
                snapshots.append(progress)
                if on_update is not None:
                    on_update(progress)
                if is_finished(progress):
                    if progress.get("failed"):
                        log_warning(
                            f"Generation {playlist_id} failed: {progress.get('message')}"
                        )
                    else:
                        log_info(f"Generation {playlist_id} complete.")
                    return snapshots

            if deadline is not None and self._clock() >= deadline:
                raise ProgressPollTimeout(
                    f"Generation {playlist_id} still running after {self.timeout}s"
                )
            self._sleep(self.interval)
