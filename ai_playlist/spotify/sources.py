"""Track sources for a generation request.

Each collected track remembers which source produced it so that the
collection summary can report per-source counts.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TrackSourceType(str, Enum):
    """Kind of library source a track was collected from."""

    LIKED = "liked"
    TOP = "top"
    PLAYLIST = "playlist"
    RECOMMENDATIONS = "recommendations"


@dataclass(frozen=True)
class TrackSource:
    """A concrete source. Only playlists carry a source_id."""

    source_type: TrackSourceType
    source_id: Optional[str] = None

    @property
    def label(self) -> str:
        if self.source_id:
            return f"{self.source_type.value}:{self.source_id}"
        return self.source_type.value
