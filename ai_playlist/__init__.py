"""Prompt-driven Spotify playlist generation."""

__version__ = "0.1.0"
