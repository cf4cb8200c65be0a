"""
FastAPI dependency providers.

The storage handle and transport config are built once by the application
lifespan (``api.main``) and stored on ``app.state``; these providers hand
them to routes.  Tests replace them through ``app.dependency_overrides``.
"""

from fastapi import Request

from core.config import TransportConfig
from db.songs import SongStore


def get_song_store(request: Request) -> SongStore:
    """Return the ``SongStore`` owned by the running application."""
    return request.app.state.song_store


def get_transport_config(request: Request) -> TransportConfig:
    """Return the ``TransportConfig`` the application was started with."""
    return request.app.state.transport_config
