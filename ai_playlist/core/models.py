from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

FEATURE_DIMENSIONS: Tuple[str, ...] = (
    "energy",
    "tempo",
    "danceability",
    "acousticness",
    "valence",
    "instrumentalness",
)


@dataclass(frozen=True)
class AudioFeatures:
    energy: float
    danceability: float
    acousticness: float
    instrumentalness: float
    valence: float
    tempo: float

    @classmethod
    def from_spotify(cls, payload: Optional[Dict[str, Any]]) -> Optional["AudioFeatures"]:
        """
        Build features from a Spotify audio-features object.

        Returns None unless all six values are present: a track either has
        the full set or no features at all.
        """
        if not isinstance(payload, dict):
            return None
        values: Dict[str, float] = {}
        for name in FEATURE_DIMENSIONS:
            raw = payload.get(name)
            if not isinstance(raw, (int, float)) or isinstance(raw, bool):
                return None
            values[name] = float(raw)
        return cls(**values)

    def value(self, dimension: str) -> float:
        return float(getattr(self, dimension))


@dataclass
class CandidateTrack:
    """
    A track considered for a generated playlist.

    Created by a source fetcher, optionally given `features` by the feature
    enricher and annotated with `score` / `score_details` by the scorer.
    """

    id: str
    name: str
    artist: str
    uri: str
    duration_ms: int = 0
    popularity: int = 0
    artists: List[str] = field(default_factory=list)
    artist_ids: List[str] = field(default_factory=list)
    features: Optional[AudioFeatures] = None
    extracted_genres: List[str] = field(default_factory=list)
    source: Optional[str] = None
    score: Optional[float] = None
    score_details: Optional[Dict[str, float]] = None

    @classmethod
    def from_spotify(
        cls, raw: Optional[Dict[str, Any]], source: Optional[str] = None
    ) -> Optional["CandidateTrack"]:
        """
        Convert a Spotify track object. Removed/local tracks (None or no id)
        give None so callers can filter them out.
        """
        if not isinstance(raw, dict) or not raw.get("id"):
            return None

        artists = [a for a in raw.get("artists") or [] if isinstance(a, dict)]
        artist_names = [a.get("name") or "" for a in artists]
        genres: List[str] = []
        for a in artists:
            for genre in a.get("genres") or []:
                if isinstance(genre, str) and genre not in genres:
                    genres.append(genre)

        track_id = str(raw["id"])
        return cls(
            id=track_id,
            name=raw.get("name") or "",
            artist=artist_names[0] if artist_names else "Unknown",
            uri=raw.get("uri") or f"spotify:track:{track_id}",
            duration_ms=int(raw.get("duration_ms") or 0),
            popularity=int(raw.get("popularity") or 0),
            artists=artist_names,
            artist_ids=[a["id"] for a in artists if a.get("id")],
            extracted_genres=genres,
            source=source,
        )

    @property
    def has_features(self) -> bool:
        return self.features is not None


class SourceSelection(BaseModel):
    """Which parts of the user's library feed one generation request."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    use_liked_songs: bool = True
    use_top_tracks: bool = True
    use_recommendations: bool = True
    playlists: Tuple[str, ...] = ()

    @field_validator("playlists", mode="before")
    @classmethod
    def _unique_playlists(cls, value: Any) -> Tuple[str, ...]:
        if value is None:
            return ()
        seen: List[str] = []
        for playlist_id in value:
            if playlist_id and playlist_id not in seen:
                seen.append(str(playlist_id))
        return tuple(seen)


class PromptAnalysis(BaseModel):
    """
    Musical characteristics extracted from a free-text prompt.

    Ranges are [min, max] pairs clamped to 0.0-1.0, except tempo (0-300 BPM).
    """

    genres: List[str] = Field(default_factory=list)
    moods: List[str] = Field(default_factory=lambda: ["general"])
    energy_range: Tuple[float, float] = (0.0, 1.0)
    tempo_range: Tuple[float, float] = (0.0, 300.0)
    danceability_range: Tuple[float, float] = (0.0, 1.0)
    acousticness_range: Tuple[float, float] = (0.0, 1.0)
    instrumentalness_range: Tuple[float, float] = (0.0, 1.0)
    valence_range: Tuple[float, float] = (0.0, 1.0)
    description: str = "General playlist based on popular tracks"
    filter_logic: str = "Sort by popularity as fallback"
    popularity_level: str = "medium"

    def feature_range(self, dimension: str) -> Tuple[float, float]:
        return getattr(self, f"{dimension}_range")

    def target(self, dimension: str) -> float:
        low, high = self.feature_range(dimension)
        return (low + high) / 2
