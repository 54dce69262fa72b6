"""
Feed endpoint: every projection for the signed-in viewer
"""

from datetime import datetime
from typing import Any, Callable, List, Optional

from fastapi import APIRouter, Depends, Query

from app.core.security import get_current_viewer
from app.core.store import get_clock, get_feed_hub, get_saved_store
from app.models.move import ActivityType, CampusArea, MoveStatus
from app.models.user import Viewer
from app.schemas.move import FeedResponse
from app.services.feed import DEFAULT_STATUSES, FeedFilter, SortMode
from app.services.feed_hub import FeedHub, render_feed
from app.services.saved_moves import SavedMoveStore

router = APIRouter()


def feed_filter_params(
    area: Optional[List[CampusArea]] = Query(None),
    status: Optional[List[MoveStatus]] = Query(None),
    category: Optional[List[ActivityType]] = Query(None),
    q: str = Query("", max_length=100),
) -> FeedFilter:
    """Repeatable query parameters; omitting `status` shows Upcoming and Live Now"""
    return FeedFilter(
        areas=frozenset(area or ()),
        statuses=frozenset(status) if status else DEFAULT_STATUSES,
        categories=frozenset(category or ()),
        query=q,
    )


@router.get("", response_model=FeedResponse)
async def get_feed(
    feed_filter: FeedFilter = Depends(feed_filter_params),
    sort: SortMode = SortMode.UPCOMING,
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    viewer: Viewer = Depends(get_current_viewer),
    hub: FeedHub = Depends(get_feed_hub),
    saved_store: SavedMoveStore = Depends(get_saved_store),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> Any:
    """
    Explore, Joined, Hosting, Saved and Waitlist views from the latest
    snapshot. Pass `lat`/`lng` to get a distance on each move.
    """
    saved_ids = await saved_store.get(viewer.id)
    views = hub.project(viewer, feed_filter, sort, saved_ids, now=clock())
    origin = (lat, lng) if lat is not None and lng is not None else None
    return render_feed(views, viewer, saved_ids, origin)
