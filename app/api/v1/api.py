"""
Main API Router
Aggregates all API endpoints for v1
"""

from fastapi import APIRouter
from app.api.v1.endpoints import (
    moves,
    feed,
    saved,
    places,
    health
)

api_router = APIRouter()

# Include all routers
api_router.include_router(moves.router, prefix="/moves", tags=["moves"])
api_router.include_router(feed.router, prefix="/feed", tags=["feed"])
api_router.include_router(saved.router, prefix="/saved", tags=["saved"])
api_router.include_router(places.router, prefix="/places", tags=["places"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
