from dotenv import load_dotenv
import os

load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Base & cache directories
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
CACHE_DIR = os.getenv("AI_PLAYLIST_CACHE_DIR", os.path.join(BASE_DIR, "cache"))

# Cache files
GENERATED_PLAYLISTS_FILE = os.path.join(CACHE_DIR, "generated_playlists.json")
SPOTIFY_TOKEN_FILE = os.getenv(
    "SPOTIFY_TOKEN_FILE", os.path.join(CACHE_DIR, "spotify_token.json")
)

# Spotify API constants
SPOTIFY_API_BASE = os.getenv("SPOTIFY_API_BASE", "https://api.spotify.com/v1")
REQUEST_TIMEOUT_SECONDS = _env_int("REQUEST_TIMEOUT_SECONDS", 15)

# OpenAI (prompt analysis)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_API_BASE = os.getenv("OPENAI_API_BASE")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4-turbo")

# Pipeline tuning
GENRE_SEED_CACHE_TTL_SECONDS = _env_int("GENRE_SEED_CACHE_TTL_SECONDS", 24 * 60 * 60)
PROGRESS_TTL_SECONDS = _env_int("PROGRESS_TTL_SECONDS", 60 * 60)
FEATURE_BATCH_DELAY_MS = _env_int("FEATURE_BATCH_DELAY_MS", 200)
FEATURE_SINGLE_DELAY_MS = _env_int("FEATURE_SINGLE_DELAY_MS", 100)
ENRICH_ARTIST_GENRES = _env_bool("ENRICH_ARTIST_GENRES", True)
