"""
Saved moves endpoints
"""

from typing import Any, List

from fastapi import APIRouter, Depends

from app.core.security import get_current_viewer
from app.core.store import get_feed_hub, get_move_service, get_saved_store
from app.models.user import Viewer
from app.schemas.base import BaseSchema
from app.services.feed_hub import FeedHub
from app.services.move_service import MoveService
from app.services.saved_moves import SavedMoveStore

router = APIRouter()


class SavedMoves(BaseSchema):
    move_ids: List[str]


class SavedState(BaseSchema):
    move_id: str
    saved: bool


@router.get("", response_model=SavedMoves)
async def list_saved(
    viewer: Viewer = Depends(get_current_viewer),
    saved_store: SavedMoveStore = Depends(get_saved_store),
) -> Any:
    return SavedMoves(move_ids=await saved_store.get(viewer.id))


@router.put("/{move_id}", response_model=SavedState)
async def save_move(
    move_id: str,
    viewer: Viewer = Depends(get_current_viewer),
    saved_store: SavedMoveStore = Depends(get_saved_store),
    service: MoveService = Depends(get_move_service),
    hub: FeedHub = Depends(get_feed_hub),
) -> Any:
    await service.get_move(move_id)
    await saved_store.add(viewer.id, move_id)
    await hub.refresh(viewer.id)
    return SavedState(move_id=move_id, saved=True)


@router.delete("/{move_id}", response_model=SavedState)
async def unsave_move(
    move_id: str,
    viewer: Viewer = Depends(get_current_viewer),
    saved_store: SavedMoveStore = Depends(get_saved_store),
    hub: FeedHub = Depends(get_feed_hub),
) -> Any:
    """Unsaving works for moves that have since been cancelled"""
    await saved_store.remove(viewer.id, move_id)
    await hub.refresh(viewer.id)
    return SavedState(move_id=move_id, saved=False)


@router.post("/{move_id}/toggle", response_model=SavedState)
async def toggle_saved(
    move_id: str,
    viewer: Viewer = Depends(get_current_viewer),
    saved_store: SavedMoveStore = Depends(get_saved_store),
    service: MoveService = Depends(get_move_service),
    hub: FeedHub = Depends(get_feed_hub),
) -> Any:
    currently_saved = await saved_store.is_saved(viewer.id, move_id)
    if not currently_saved:
        await service.get_move(move_id)
    saved = await saved_store.toggle(viewer.id, move_id, currently_saved)
    await hub.refresh(viewer.id)
    return SavedState(move_id=move_id, saved=saved)
