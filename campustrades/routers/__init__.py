"""Routers package for the CampusTrades messaging API."""

from .conversations import router as conversations_router
from .ratings import router as ratings_router
from .favorites import router as favorites_router

__all__ = ["conversations_router", "ratings_router", "favorites_router"]
