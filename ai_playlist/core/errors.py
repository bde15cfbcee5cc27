"""Errors raised by a playlist generation request.

None of these are fatal to the process: each one ends (or degrades) a
single generation and is translated to an HTTP response by the API layer,
using `status_code` and the short `status` label.
"""


class PlaylistGenerationError(Exception):
    """Base class for failures scoped to one generation request."""

    status_code: int = 500
    status: str = "error"


class AuthRequiredError(PlaylistGenerationError):
    """No usable Spotify access token; generation never starts."""

    status_code = 401
    status = "unauthenticated"


class GenerationValidationError(PlaylistGenerationError):
    """The request is unusable (e.g. blank prompt); rejected before side effects."""

    status_code = 400
    status = "invalid_request"


class PlaylistCreationError(PlaylistGenerationError):
    """Creating the playlist shell on Spotify failed; there is no fallback."""

    status_code = 502
    status = "upstream_error"

    def __init__(self, message: str, upstream_status: int | None = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
