"""
API endpoints module
"""

from . import moves, feed, saved, places, health, websocket

__all__ = [
    "moves",
    "feed",
    "saved",
    "places",
    "health",
    "websocket"
]
