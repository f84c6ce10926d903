"""
API Routers
"""
from .auth import router as auth_router
from .admin import router as admin_router
from .player import router as player_router
from .moderation import router as moderation_router
from .websocket import router as websocket_router

__all__ = ["auth_router", "admin_router", "player_router", "moderation_router", "websocket_router"]
