"""HTTP boundary: request validation and aiohttp routes."""

from betterbets.api.server import create_app, run_server

__all__ = ["create_app", "run_server"]
