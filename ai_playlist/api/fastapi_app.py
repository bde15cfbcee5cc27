from fastapi import FastAPI

from ai_playlist import __version__
from ai_playlist.api.ai.routes import router as ai_router
from ai_playlist.api.health import router as health_router
from ai_playlist.core import configure_logging

configure_logging()

app = FastAPI(
    title="AI Playlists API",
    version=__version__,
    description="Generate Spotify playlists from natural-language prompts.",
)

app.include_router(health_router, tags=["health"])

# AI generation routes
app.include_router(ai_router, prefix="/ai", tags=["ai"])
