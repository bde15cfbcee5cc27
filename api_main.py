"""ASGI entry point: `uvicorn api_main:app --port 8888`."""

import os

import uvicorn

from ai_playlist.api.fastapi_app import app

__all__ = ["app"]


if __name__ == "__main__":
    uvicorn.run(
        "api_main:app",
        host=os.getenv("AI_PLAYLIST_HOST", "127.0.0.1"),
        port=int(os.getenv("AI_PLAYLIST_PORT", "8888")),
    )
