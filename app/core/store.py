"""
Move store wiring and request dependencies
"""

from datetime import datetime
from typing import Callable, Optional
import logging

from fastapi import Depends

from app.config import settings
from app.core.redis import init_redis, close_redis
from app.services.feed_hub import FeedHub
from app.services.move_service import MoveService
from app.services.places import PlaceLookupClient
from app.services.repository import InMemoryMoveRepository, MoveRepository, RedisMoveRepository
from app.services.saved_moves import InMemorySavedMoveStore, RedisSavedMoveStore, SavedMoveStore
from app.services.status import utc_now

logger = logging.getLogger(__name__)


def build_repository() -> MoveRepository:
    if settings.MOVE_STORE_BACKEND == "memory":
        return InMemoryMoveRepository()
    return RedisMoveRepository()


def build_saved_store() -> SavedMoveStore:
    if settings.MOVE_STORE_BACKEND == "memory":
        return InMemorySavedMoveStore()
    return RedisSavedMoveStore()


move_repository: MoveRepository = build_repository()
saved_store: SavedMoveStore = build_saved_store()
feed_hub = FeedHub()
place_client = PlaceLookupClient()

_unsubscribe: Optional[Callable[[], None]] = None


async def init_store():
    """
    Connect the document store and start pushing snapshots to the feed hub
    """
    global _unsubscribe

    if settings.MOVE_STORE_BACKEND == "redis":
        await init_redis()

    try:
        _unsubscribe = await move_repository.subscribe(feed_hub.on_snapshot, feed_hub.on_error)
        logger.info(f"Subscribed to move snapshots ({settings.MOVE_STORE_BACKEND} backend)")
    except Exception as e:
        logger.error(f"Failed to subscribe to move snapshots: {e}")
        raise


async def close_store():
    global _unsubscribe

    if _unsubscribe is not None:
        _unsubscribe()
        _unsubscribe = None
        logger.info("Move snapshot subscription closed")

    if settings.MOVE_STORE_BACKEND == "redis":
        await close_redis()


def get_move_repository() -> MoveRepository:
    return move_repository


def get_saved_store() -> SavedMoveStore:
    return saved_store


def get_clock() -> Callable[[], datetime]:
    return utc_now


def get_feed_hub() -> FeedHub:
    return feed_hub


def get_place_client() -> PlaceLookupClient:
    return place_client


def get_move_service(
    repository: MoveRepository = Depends(get_move_repository),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> MoveService:
    return MoveService(repository, clock=clock)
