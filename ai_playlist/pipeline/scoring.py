"""Track scoring against a prompt analysis.

Each candidate with audio features gets six dimension scores (0-10, closer to
the midpoint of the analysed range is better), weighted by the dimension the
analysis emphasises. Genre matches and popularity are added on top; popular
tracks without features get a flat bonus so some of them can surface.

When no track of the pool has features the whole pool is ranked by
popularity instead. That path produces no scores.
"""

from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ai_playlist.core import (
    FEATURE_DIMENSIONS,
    AudioFeatures,
    CandidateTrack,
    PromptAnalysis,
    log_info,
    log_step,
)

EmphasisClassifier = Callable[[str], Optional[str]]

# Checked in order; the first keyword found in filter_logic wins.
EMPHASIS_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("energy", ("energy",)),
    ("tempo", ("tempo", "bpm")),
    ("danceability", ("dance",)),
    ("acousticness", ("acoustic",)),
    ("instrumentalness", ("instrument",)),
    ("valence", ("valence", "happ")),
)

SECONDARY_DIMENSION: Dict[str, str] = {
    "energy": "tempo",
    "tempo": "energy",
    "danceability": "energy",
    "acousticness": "valence",
    "instrumentalness": "acousticness",
    "valence": "energy",
}

EMPHASIS_WEIGHT = 3.0
SECONDARY_WEIGHT = 1.5
TEMPO_DISTANCE_SCALE = 200.0
GENRE_EXACT_POINTS = 3.0
GENRE_PARTIAL_POINTS = 1.5
GENRE_SCORE_CAP = 15.0
POPULAR_WITHOUT_FEATURES_THRESHOLD = 70
POPULAR_WITHOUT_FEATURES_BONUS = 20.0


def classify_emphasis(filter_logic: str) -> Optional[str]:
    """Dimension emphasised by `filter_logic`, or None for a balanced mix."""
    text = (filter_logic or "").lower()
    for dimension, keywords in EMPHASIS_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return dimension
    return None


def dimension_weights(emphasis: Optional[str]) -> Dict[str, float]:
    weights = {dimension: 1.0 for dimension in FEATURE_DIMENSIONS}
    if emphasis in weights:
        weights[emphasis] = EMPHASIS_WEIGHT
        weights[SECONDARY_DIMENSION[emphasis]] = SECONDARY_WEIGHT
    return weights


def dimension_scores(features: AudioFeatures, analysis: PromptAnalysis) -> Dict[str, float]:
    scores: Dict[str, float] = {}
    for dimension in FEATURE_DIMENSIONS:
        distance = abs(features.value(dimension) - analysis.target(dimension))
        if dimension == "tempo":
            distance /= TEMPO_DISTANCE_SCALE
        scores[dimension] = 10 * (1 - min(1.0, distance))
    return scores


def genre_score(track_genres: Sequence[str], prompt_genres: Sequence[str]) -> float:
    """
    3 points per prompt genre found among the track's genres. Only when
    nothing matches exactly, 1.5 points per (track genre, prompt genre) pair
    related by substring. Capped at 15.
    """
    if not track_genres or not prompt_genres:
        return 0.0

    track_lower = [g.lower() for g in track_genres]
    prompt_lower = [g.lower() for g in prompt_genres]
    track_set = set(track_lower)

    score = sum(GENRE_EXACT_POINTS for g in prompt_lower if g in track_set)
    if score == 0:
        for track_genre in track_lower:
            for prompt_genre in prompt_lower:
                if track_genre in prompt_genre or prompt_genre in track_genre:
                    score += GENRE_PARTIAL_POINTS
    return min(GENRE_SCORE_CAP, score)


def score_track(
    track: CandidateTrack,
    analysis: PromptAnalysis,
    weights: Dict[str, float],
) -> CandidateTrack:
    """Scored copy of `track`."""
    score = 0.0
    details: Optional[Dict[str, float]] = None

    if track.features is not None:
        details = dimension_scores(track.features, analysis)
        score += sum(details[d] * weights[d] for d in FEATURE_DIMENSIONS)

    genres = genre_score(track.extracted_genres, analysis.genres)
    if details is not None:
        details["genre"] = genres

    score += track.popularity / 10
    score += genres
    if not track.has_features and track.popularity > POPULAR_WITHOUT_FEATURES_THRESHOLD:
        score += POPULAR_WITHOUT_FEATURES_BONUS

    return replace(track, score=score, score_details=details)


def select_by_popularity(
    tracks: Sequence[CandidateTrack], max_tracks: int
) -> List[CandidateTrack]:
    ranked = sorted(tracks, key=lambda t: t.popularity, reverse=True)
    return [replace(t) for t in ranked[:max_tracks]]


def filter_tracks_by_ai_analysis(
    tracks: Sequence[CandidateTrack],
    analysis: PromptAnalysis,
    max_tracks: int = 20,
    emphasis_classifier: EmphasisClassifier = classify_emphasis,
) -> List[CandidateTrack]:
    """
    Best `max_tracks` tracks for the analysis, highest score first.

    Ties keep the input order. The input tracks are not modified.
    """
    with_features = [t for t in tracks if t.has_features]
    if not with_features:
        log_info("No tracks have audio features, selecting by popularity.")
        return select_by_popularity(tracks, max_tracks)

    log_step(
        f"Scoring tracks: {len(with_features)} of {len(tracks)} have audio features."
    )
    candidates = list(with_features)
    if len(candidates) < max_tracks * 2:
        without_features = sorted(
            (t for t in tracks if not t.has_features),
            key=lambda t: t.popularity,
            reverse=True,
        )[: max_tracks * 3]
        candidates.extend(without_features)
        log_info(
            f"Selection pool extended with {len(without_features)} tracks "
            "without audio features."
        )

    weights = dimension_weights(emphasis_classifier(analysis.filter_logic))
    scored = [score_track(t, analysis, weights) for t in candidates]
    scored.sort(key=lambda t: t.score or 0.0, reverse=True)
    return scored[:max_tracks]


def selection_reason(track: CandidateTrack) -> str:
    if track.features is not None and track.score is not None:
        return (
            "Selected based on audio features matching your request "
            f"(score: {track.score:.2f})"
        )
    return f"Selected based on popularity ({track.popularity}/100)"
