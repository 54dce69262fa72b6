"""
WebSocket endpoint for real-time feed updates
"""

from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status

from app.core.exceptions import MoveAppException
from app.core.security import viewer_from_token
from app.core.store import get_feed_hub, get_saved_store
from app.models.move import ActivityType, CampusArea, MoveStatus
from app.services.feed import SortMode
from app.services.feed_hub import FeedHub, FeedListener
from app.services.saved_moves import SavedMoveStore
from app.api.v1.endpoints.feed import feed_filter_params

router = APIRouter()
logger = logging.getLogger(__name__)


@router.websocket("/feed")
async def websocket_feed(
    websocket: WebSocket,
    token: str = Query(...),
    area: Optional[List[CampusArea]] = Query(None),
    status_filter: Optional[List[MoveStatus]] = Query(None, alias="status"),
    category: Optional[List[ActivityType]] = Query(None),
    q: str = Query(""),
    sort: SortMode = Query(SortMode.UPCOMING),
    lat: Optional[float] = Query(None),
    lng: Optional[float] = Query(None),
    hub: FeedHub = Depends(get_feed_hub),
    saved_store: SavedMoveStore = Depends(get_saved_store),
):
    """
    Push the viewer's recomputed feed on every snapshot and clock tick.
    Send "ping" to receive "pong".
    """
    try:
        viewer = await viewer_from_token(token)
    except MoveAppException as e:
        logger.warning(f"Feed socket refused: {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    listener = FeedListener(
        websocket=websocket,
        viewer=viewer,
        saved_store=saved_store,
        feed_filter=feed_filter_params(area, status_filter, category, q),
        sort_mode=sort,
        origin=(lat, lng) if lat is not None and lng is not None else None,
    )

    try:
        await hub.register(listener)
        while True:
            message = await websocket.receive_text()
            if message == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        logger.info(f"Feed socket closed by {viewer.name}")
    finally:
        hub.unregister(websocket)
