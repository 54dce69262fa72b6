"""
Move endpoints: create, detail, host edit/cancel, membership and comments
"""

from datetime import datetime
from typing import Any, Callable, Optional

from fastapi import APIRouter, Depends, status

from app.core.security import get_current_viewer
from app.core.store import get_clock, get_move_service, get_saved_store
from app.models.move import Move
from app.models.user import Viewer
from app.schemas.move import CommentCreate, JoinRequest, MoveCreate, MoveCreated, MoveResponse, MoveUpdate
from app.services.move_service import MoveService
from app.services.saved_moves import SavedMoveStore
from app.services.status import move_status

router = APIRouter()


class MovePresenter:
    """Renders a move for the requesting viewer at the current instant"""

    def __init__(
        self,
        viewer: Viewer = Depends(get_current_viewer),
        clock: Callable[[], datetime] = Depends(get_clock),
        saved_store: SavedMoveStore = Depends(get_saved_store),
    ):
        self.viewer = viewer
        self.clock = clock
        self.saved_store = saved_store

    async def __call__(self, move: Move) -> MoveResponse:
        saved_ids = set(await self.saved_store.get(self.viewer.id))
        now = self.clock()
        return MoveResponse.from_move(
            move,
            move_status(move, now),
            viewer_id=self.viewer.id,
            viewer_name=self.viewer.name,
            saved_ids=saved_ids,
            now=now,
        )


@router.post("", response_model=MoveCreated, status_code=status.HTTP_201_CREATED)
async def create_move(
    move_in: MoveCreate,
    viewer: Viewer = Depends(get_current_viewer),
    service: MoveService = Depends(get_move_service),
) -> Any:
    """
    Post a new move; the host becomes its first attendee
    """
    move_id = await service.create_move(move_in, viewer)
    return MoveCreated(id=move_id)


@router.get("/{move_id}", response_model=MoveResponse)
async def get_move(
    move_id: str,
    service: MoveService = Depends(get_move_service),
    present: MovePresenter = Depends(),
) -> Any:
    """
    Move detail with its current status
    """
    return await present(await service.get_move(move_id))


@router.patch("/{move_id}", response_model=MoveResponse)
async def edit_move(
    move_id: str,
    changes: MoveUpdate,
    service: MoveService = Depends(get_move_service),
    present: MovePresenter = Depends(),
) -> Any:
    """
    Host edit of descriptive fields
    """
    return await present(await service.edit_move(move_id, present.viewer, changes))


@router.delete("/{move_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_move(
    move_id: str,
    viewer: Viewer = Depends(get_current_viewer),
    service: MoveService = Depends(get_move_service),
) -> None:
    """
    Host cancel; the move is removed for everyone
    """
    await service.cancel_move(move_id, viewer)


@router.post("/{move_id}/join", response_model=MoveResponse)
async def join_move(
    move_id: str,
    join_in: Optional[JoinRequest] = None,
    service: MoveService = Depends(get_move_service),
    present: MovePresenter = Depends(),
) -> Any:
    """
    Join a move, answering its signup prompt if it has one.
    A full move answers 409 MOVE_FULL; join the waitlist instead.
    """
    answer = join_in.response if join_in else None
    return await present(await service.join_move(move_id, present.viewer, answer))


@router.post("/{move_id}/leave", response_model=MoveResponse)
async def leave_move(
    move_id: str,
    service: MoveService = Depends(get_move_service),
    present: MovePresenter = Depends(),
) -> Any:
    return await present(await service.leave_move(move_id, present.viewer))


@router.post("/{move_id}/waitlist", response_model=MoveResponse)
async def join_waitlist(
    move_id: str,
    join_in: Optional[JoinRequest] = None,
    service: MoveService = Depends(get_move_service),
    present: MovePresenter = Depends(),
) -> Any:
    answer = join_in.response if join_in else None
    return await present(await service.join_waitlist(move_id, present.viewer, answer))


@router.delete("/{move_id}/waitlist", response_model=MoveResponse)
async def leave_waitlist(
    move_id: str,
    service: MoveService = Depends(get_move_service),
    present: MovePresenter = Depends(),
) -> Any:
    return await present(await service.leave_waitlist(move_id, present.viewer))


@router.post("/{move_id}/comments", response_model=MoveResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    move_id: str,
    comment_in: CommentCreate,
    service: MoveService = Depends(get_move_service),
    present: MovePresenter = Depends(),
) -> Any:
    return await present(await service.add_comment(move_id, present.viewer, comment_in.text))


@router.delete("/{move_id}/comments/{comment_id}", response_model=MoveResponse)
async def delete_comment(
    move_id: str,
    comment_id: str,
    service: MoveService = Depends(get_move_service),
    present: MovePresenter = Depends(),
) -> Any:
    """
    Delete your own comment
    """
    return await present(await service.delete_comment(move_id, present.viewer, comment_id))
