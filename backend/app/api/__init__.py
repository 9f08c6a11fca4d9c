"""API routes for video concept publishing."""

from app.api import concept_routes, routes, websocket

__all__ = ["concept_routes", "routes", "websocket"]
