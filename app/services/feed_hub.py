"""
Feed hub for real-time updates.

Holds the latest repository snapshot and the current `now`. Every snapshot
and every clock tick recomputes each connected viewer's feed from scratch and
pushes it over their WebSocket.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple
import asyncio
import logging

from fastapi import WebSocket

from app.models.move import Move
from app.models.user import Viewer
from app.schemas.move import FeedResponse, MoveResponse, WaitlistEntryResponse
from app.services.feed import FeedFilter, FeedViews, SortMode, project_feed
from app.services.geo import distance_to_move, format_distance
from app.services.saved_moves import SavedMoveStore
from app.services.status import move_status, utc_now

logger = logging.getLogger(__name__)

Origin = Tuple[float, float]


def render_feed(
    views: FeedViews,
    viewer: Viewer,
    saved_ids: Iterable[str] = (),
    origin: Optional[Origin] = None,
) -> FeedResponse:
    """Present projected views to one viewer"""
    saved = set(saved_ids)

    def present(move: Move) -> MoveResponse:
        distance = None
        if origin is not None:
            distance = format_distance(distance_to_move(move, origin[0], origin[1]))
        return MoveResponse.from_move(
            move,
            move_status(move, views.now),
            viewer_id=viewer.id,
            viewer_name=viewer.name,
            saved_ids=saved,
            distance=distance,
            now=views.now,
        )

    return FeedResponse(
        now=views.now,
        explore=[present(m) for m in views.explore],
        joined=[present(m) for m in views.joined],
        hosting=[present(m) for m in views.hosting],
        saved=[present(m) for m in views.saved],
        waitlist=[
            WaitlistEntryResponse(move=present(e.move), position=e.position, waiting=len(e.move.waitlist))
            for e in views.waitlist
        ],
        my_active=[present(m) for m in views.my_active],
        my_active_count=views.my_active_count,
    )


@dataclass
class FeedListener:
    websocket: WebSocket
    viewer: Viewer
    saved_store: SavedMoveStore
    feed_filter: FeedFilter = FeedFilter()
    sort_mode: SortMode = SortMode.UPCOMING
    origin: Optional[Origin] = None


class FeedHub:
    """Latest snapshot plus the viewers listening for recomputed feeds"""

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self.clock = clock
        self.moves: List[Move] = []
        self.now: datetime = clock()
        self.last_error: Optional[Exception] = None
        self.snapshots_received = 0
        self.listeners: Dict[WebSocket, FeedListener] = {}

    async def on_snapshot(self, moves: List[Move]):
        self.moves = list(moves)
        self.now = self.clock()
        self.last_error = None
        self.snapshots_received += 1
        await self._broadcast()

    async def on_error(self, error: Exception):
        # Keep serving the last good snapshot
        self.last_error = error
        logger.error(f"Move subscription error: {error}")

    async def tick(self):
        self.now = self.clock()
        await self._broadcast()

    def project(
        self,
        viewer: Viewer,
        feed_filter: FeedFilter = FeedFilter(),
        sort_mode: SortMode = SortMode.UPCOMING,
        saved_ids: Iterable[str] = (),
        now: Optional[datetime] = None,
    ) -> FeedViews:
        return project_feed(
            self.moves,
            now or self.clock(),
            viewer.name,
            viewer_id=viewer.id,
            feed_filter=feed_filter,
            sort_mode=sort_mode,
            saved_ids=saved_ids,
        )

    async def register(self, listener: FeedListener):
        self.listeners[listener.websocket] = listener
        logger.info(f"Feed listener connected for {listener.viewer.name}")
        await self._send(listener)

    def unregister(self, websocket: WebSocket):
        listener = self.listeners.pop(websocket, None)
        if listener is not None:
            logger.info(f"Feed listener disconnected for {listener.viewer.name}")

    async def _send(self, listener: FeedListener):
        saved_ids = await listener.saved_store.get(listener.viewer.id)
        views = self.project(
            listener.viewer,
            listener.feed_filter,
            listener.sort_mode,
            saved_ids,
            now=self.now,
        )
        feed = render_feed(views, listener.viewer, saved_ids, listener.origin)
        await listener.websocket.send_json({
            "type": "feed",
            "data": feed.model_dump(mode="json"),
        })

    async def refresh(self, viewer_id: str):
        """Re-send the current feed to one viewer's sockets, e.g. after their saved set changed"""
        await self._broadcast(viewer_id)

    async def _broadcast(self, viewer_id: Optional[str] = None):
        disconnected = []
        for websocket, listener in list(self.listeners.items()):
            if viewer_id is not None and listener.viewer.id != viewer_id:
                continue
            try:
                await self._send(listener)
            except Exception as e:
                logger.error(f"Error pushing feed to {listener.viewer.name}: {e}")
                disconnected.append(websocket)

        for websocket in disconnected:
            self.unregister(websocket)

    async def run_ticker(self, interval: float):
        """Advance `now` on a fixed interval until cancelled"""
        while True:
            await asyncio.sleep(interval)
            try:
                await self.tick()
            except Exception as e:
                logger.error(f"Feed tick failed: {e}", exc_info=True)
