"""aiohttp application exposing the profile cache."""

from .app import create_app

__all__ = ["create_app"]
