"""Public façade for the ai_playlist.data package.

Local persistence of generated playlists. Callers should use this façade
instead of importing from the internal modules directly.
"""

from .generated_playlists import GeneratedPlaylistRecord, GeneratedPlaylistRepository

__all__ = [
    "GeneratedPlaylistRecord",
    "GeneratedPlaylistRepository",
]
