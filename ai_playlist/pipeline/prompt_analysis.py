"""Prompt analysis: free text -> PromptAnalysis through an LLM.

The LLM is a black box `Callable[[str], dict]`. The default one calls the
OpenAI chat-completions API in JSON mode. Whatever goes wrong (no key,
network, unparsable or partial output), a usable analysis is returned: the
default one, or the LLM output merged field by field over it.
"""

import json
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from openai import OpenAI, OpenAIError

from ai_playlist import config
from ai_playlist.core import PromptAnalysis, log_info, log_step, log_warning

LLMCallable = Callable[[str], Dict[str, Any]]

DESCRIPTION_MAX_LENGTH = 100
POPULARITY_LEVELS = ("high", "medium", "low", "any")

# (field, domain max)
RANGE_FIELDS: Tuple[Tuple[str, float], ...] = (
    ("energy_range", 1.0),
    ("tempo_range", 300.0),
    ("danceability_range", 1.0),
    ("acousticness_range", 1.0),
    ("instrumentalness_range", 1.0),
    ("valence_range", 1.0),
)

SYSTEM_INSTRUCTIONS = """You are a music curation expert who analyzes playlist requests and translates them into specific characteristics that can be used to filter songs.

Output a JSON object with the following parameters:
- genres: Array of relevant music genres (string[]). Be specific and accurate with genre names. Include both broad genres and specific sub-genres when appropriate.
- moods: Array of moods (string[])
- energy_range: Range of energy values [min, max] (0.0-1.0)
- tempo_range: Range of BPM [min, max] (e.g., [60, 180])
- danceability_range: Range of danceability values [min, max] (0.0-1.0)
- acousticness_range: Range of acousticness values [min, max] (0.0-1.0)
- instrumentalness_range: Range of instrumentalness values [min, max] (0.0-1.0)
- valence_range: Range of valence (happiness) values [min, max] (0.0-1.0)
- description: Brief description of the playlist style (KEEP UNDER 100 CHARACTERS)
- filter_logic: Concise explanation of the most important parameters to prioritize
- popularity_level: String indicating desired popularity level ("high", "medium", "low", or "any")

For audio features:
- Energy represents intensity and activity (0.0 to 1.0)
- Danceability describes how suitable a track is for dancing (0.0 to 1.0)
- Acousticness represents acoustic elements vs electronic/electric (0.0 to 1.0)
- Instrumentalness predicts vocals (0.0) vs instrumental tracks (1.0)
- Valence describes musical positiveness/happiness (0.0 to 1.0)

Be specific but concise in your analysis. Your output will be used directly to filter songs. KEEP THE DESCRIPTION UNDER 100 CHARACTERS."""

_JSON_CODE_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.IGNORECASE | re.DOTALL)
_CLIENT_STATE: Dict[str, Optional[OpenAI]] = {"client": None}


class LLMUnavailableError(RuntimeError):
    """The LLM could not produce an analysis."""


def default_analysis() -> PromptAnalysis:
    return PromptAnalysis()


def _get_openai_client() -> OpenAI:
    if _CLIENT_STATE["client"] is not None:
        return _CLIENT_STATE["client"]

    if not config.OPENAI_API_KEY:
        raise LLMUnavailableError("OPENAI_API_KEY is not configured.")

    client_kwargs: Dict[str, str] = {"api_key": config.OPENAI_API_KEY}
    if config.OPENAI_API_BASE:
        client_kwargs["base_url"] = config.OPENAI_API_BASE
    _CLIENT_STATE["client"] = OpenAI(**client_kwargs)
    return _CLIENT_STATE["client"]


def parse_json_object(raw: str) -> Dict[str, Any]:
    """
    Parse the JSON object in an LLM reply, tolerating markdown code fences.
    """
    candidates: List[str] = [m.strip() for m in _JSON_CODE_FENCE_RE.findall(raw or "")]
    candidates.append((raw or "").strip())

    for candidate in candidates:
        if not candidate:
            continue
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    raise LLMUnavailableError("LLM reply does not contain a JSON object.")


def openai_analyze(prompt: str) -> Dict[str, Any]:
    """Default LLM collaborator: one JSON-mode chat completion."""
    client = _get_openai_client()
    try:
        completion = client.chat.completions.create(
            model=config.OPENAI_MODEL,
            messages=[
                {"role": "system", "content": SYSTEM_INSTRUCTIONS},
                {
                    "role": "user",
                    "content": (
                        "Analyze this playlist request for a complex, accurate "
                        f'representation of genres and audio features: "{prompt}"'
                    ),
                },
            ],
            response_format={"type": "json_object"},
        )
    except OpenAIError as e:
        raise LLMUnavailableError(str(e)) from e

    content = completion.choices[0].message.content or "{}"
    return parse_json_object(content)


def _normalize_range(value: Any, domain_max: float) -> Optional[Tuple[float, float]]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return None
    try:
        low, high = float(value[0]), float(value[1])
    except (TypeError, ValueError):
        return None
    if low > high:
        low, high = high, low
    low = min(max(low, 0.0), domain_max)
    high = min(max(high, 0.0), domain_max)
    return low, high


def _string_list(value: Any) -> Optional[List[str]]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return None
    return [str(v).strip() for v in value if str(v).strip()]


def truncate_description(description: str) -> str:
    if len(description) > DESCRIPTION_MAX_LENGTH:
        return description[: DESCRIPTION_MAX_LENGTH - 3] + "..."
    return description


def merge_with_defaults(raw: Dict[str, Any]) -> PromptAnalysis:
    """
    Overlay the LLM output on the default analysis, field by field.
    Malformed fields keep their default value.
    """
    merged = default_analysis().model_dump()

    for field_name in ("genres", "moods"):
        values = _string_list(raw.get(field_name))
        if values is not None:
            merged[field_name] = values

    for field_name, domain_max in RANGE_FIELDS:
        normalized = _normalize_range(raw.get(field_name), domain_max)
        if normalized is not None:
            merged[field_name] = normalized

    for field_name in ("description", "filter_logic"):
        value = raw.get(field_name)
        if isinstance(value, str) and value.strip():
            merged[field_name] = value.strip()
    merged["description"] = truncate_description(merged["description"])

    level = raw.get("popularity_level")
    if isinstance(level, str) and level.strip().lower() in POPULARITY_LEVELS:
        merged["popularity_level"] = level.strip().lower()

    return PromptAnalysis(**merged)


def analyze_playlist_prompt(prompt: str, llm: Optional[LLMCallable] = None) -> PromptAnalysis:
    log_step(f'Analyzing prompt with the LLM: "{prompt}"')
    analyze = llm or openai_analyze
    try:
        raw = analyze(prompt)
        if not isinstance(raw, dict):
            raise LLMUnavailableError("LLM reply is not a JSON object.")
        analysis = merge_with_defaults(raw)
    except Exception as e:  # noqa: BLE001
        log_warning(f"Prompt analysis failed, using default analysis: {e}")
        return default_analysis()

    log_info(
        f"Prompt analysis: genres={analysis.genres}, moods={analysis.moods}, "
        f"filter_logic={analysis.filter_logic!r}"
    )
    return analysis
