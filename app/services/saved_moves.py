"""
Saved-set store: per-viewer bookmarks, independent of membership
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Dict, List
import logging

import redis.asyncio as redis

from app.core.exceptions import RemoteFailureError
from app.core.redis import redis_manager

logger = logging.getLogger(__name__)


class SavedMoveStore(ABC):

    @abstractmethod
    async def get(self, viewer_id: str) -> List[str]:
        """Saved move ids for a viewer"""

    @abstractmethod
    async def add(self, viewer_id: str, move_id: str) -> None:
        """Save a move; saving twice keeps one entry"""

    @abstractmethod
    async def remove(self, viewer_id: str, move_id: str) -> None:
        """Unsave a move; unknown ids are ignored"""

    async def is_saved(self, viewer_id: str, move_id: str) -> bool:
        return move_id in await self.get(viewer_id)

    async def toggle(self, viewer_id: str, move_id: str, currently_saved: bool) -> bool:
        """Flip the saved state and return the new one"""
        if currently_saved:
            await self.remove(viewer_id, move_id)
            return False
        await self.add(viewer_id, move_id)
        return True


class InMemorySavedMoveStore(SavedMoveStore):

    def __init__(self):
        self._saved: Dict[str, List[str]] = {}

    async def get(self, viewer_id: str) -> List[str]:
        return list(self._saved.get(viewer_id, []))

    async def add(self, viewer_id: str, move_id: str) -> None:
        saved = self._saved.setdefault(viewer_id, [])
        if move_id not in saved:
            saved.append(move_id)

    async def remove(self, viewer_id: str, move_id: str) -> None:
        self._saved[viewer_id] = [
            saved_id for saved_id in self._saved.get(viewer_id, []) if saved_id != move_id
        ]


class RedisSavedMoveStore(SavedMoveStore):
    """One Redis set per viewer"""

    def __init__(self, client_factory: Callable[[], Awaitable[redis.Redis]] = None, prefix: str = "saved_moves"):
        self._client_factory = client_factory or redis_manager.get_client
        self.prefix = prefix

    def _key(self, viewer_id: str) -> str:
        return f"{self.prefix}:{viewer_id}"

    async def get(self, viewer_id: str) -> List[str]:
        try:
            client = await self._client_factory()
            return sorted(await client.smembers(self._key(viewer_id)))
        except Exception as e:
            logger.error(f"Error fetching saved moves for {viewer_id}: {e}")
            raise RemoteFailureError("saved moves") from e

    async def add(self, viewer_id: str, move_id: str) -> None:
        try:
            client = await self._client_factory()
            await client.sadd(self._key(viewer_id), move_id)
        except Exception as e:
            logger.error(f"Error saving move {move_id} for {viewer_id}: {e}")
            raise RemoteFailureError("saved moves") from e

    async def remove(self, viewer_id: str, move_id: str) -> None:
        try:
            client = await self._client_factory()
            await client.srem(self._key(viewer_id), move_id)
        except Exception as e:
            logger.error(f"Error unsaving move {move_id} for {viewer_id}: {e}")
            raise RemoteFailureError("saved moves") from e
