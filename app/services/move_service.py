"""
Move service: runs membership, edit and comment transitions against the
latest stored move and sends the resulting field updates to the repository.
"""

from datetime import datetime
from typing import Callable, Optional
import logging

from app.config import settings
from app.core.exceptions import MoveAppException, NotFoundError, RemoteFailureError
from app.core.logging import MoveLoggerAdapter
from app.core.metrics import WAITLIST_PROMOTIONS, record_operation
from app.models.move import Move
from app.models.user import Viewer
from app.schemas.move import MoveCreate, MoveUpdate
from app.services import comments, membership
from app.services.membership import MoveMutation
from app.services.repository import MoveRepository, move_from_document, move_to_document, serialize_fields
from app.services.signup_prompt import PromptAnswer
from app.services.status import utc_now

logger = logging.getLogger(__name__)


class MoveService:
    """
    The returned Move is provisional; the next repository snapshot is the
    authoritative state.
    """

    def __init__(
        self,
        repository: MoveRepository,
        clock: Callable[[], datetime] = utc_now,
        compare_and_swap: Optional[bool] = None,
    ):
        self.repository = repository
        self.clock = clock
        self.compare_and_swap = (
            settings.MEMBERSHIP_COMPARE_AND_SWAP if compare_and_swap is None else compare_and_swap
        )

    def _log(self, move_id: str, viewer: Viewer, operation: str) -> MoveLoggerAdapter:
        return MoveLoggerAdapter(logger, {"move_id": move_id, "viewer": viewer.name, "operation": operation})

    async def get_move(self, move_id: str) -> Move:
        try:
            move = await self.repository.get(move_id)
        except MoveAppException:
            raise
        except Exception as e:
            logger.error(f"Failed to load move {move_id}: {e}")
            raise RemoteFailureError("move store") from e
        if move is None:
            raise NotFoundError("Move", move_id)
        return move

    async def create_move(self, data: MoveCreate, host: Viewer) -> str:
        now = self.clock()
        document = membership.build_move_document(data, host, now)
        try:
            move_id = await self.repository.create(document)
        except Exception as e:
            logger.error(f"Failed to create move for {host.name}: {e}")
            record_operation("create", "remote_failure")
            raise RemoteFailureError("move store") from e

        record_operation("create", "success")
        self._log(move_id, host, "create").info(f"{host.name} created move {move_id}")
        return move_id

    async def edit_move(self, move_id: str, host: Viewer, changes: MoveUpdate) -> Move:
        move = await self.get_move(move_id)
        return await self._run("edit", move, host, lambda: membership.edit_move(move, host, changes))

    async def cancel_move(self, move_id: str, host: Viewer) -> None:
        move = await self.get_move(move_id)
        try:
            membership.cancel_move(move, host)
        except MoveAppException as e:
            record_operation("cancel", e.code.lower())
            raise
        try:
            await self.repository.delete(move_id)
        except Exception as e:
            logger.error(f"Failed to cancel move {move_id}: {e}")
            record_operation("cancel", "remote_failure")
            raise RemoteFailureError("move store") from e

        record_operation("cancel", "success")
        self._log(move_id, host, "cancel").info(
            f"Move {move_id} cancelled by host; dropped {len(move.attendees)} attendees "
            f"and {len(move.waitlist)} waiters"
        )

    async def join_move(self, move_id: str, user: Viewer, answer: PromptAnswer = None) -> Move:
        move = await self.get_move(move_id)
        return await self._run("join", move, user, lambda: membership.join_move(move, user, self.clock(), answer))

    async def leave_move(self, move_id: str, user: Viewer) -> Move:
        move = await self.get_move(move_id)
        return await self._run("leave", move, user, lambda: membership.leave_move(move, user))

    async def join_waitlist(self, move_id: str, user: Viewer, answer: PromptAnswer = None) -> Move:
        move = await self.get_move(move_id)
        return await self._run("join_waitlist", move, user, lambda: membership.join_waitlist(move, user, self.clock(), answer))

    async def leave_waitlist(self, move_id: str, user: Viewer) -> Move:
        move = await self.get_move(move_id)
        return await self._run("leave_waitlist", move, user, lambda: membership.leave_waitlist(move, user))

    async def add_comment(self, move_id: str, author: Viewer, text: str) -> Move:
        move = await self.get_move(move_id)
        return await self._run("add_comment", move, author, lambda: comments.add_comment(move, author, text, self.clock()))

    async def delete_comment(self, move_id: str, user: Viewer, comment_id: str) -> Move:
        move = await self.get_move(move_id)
        return await self._run("delete_comment", move, user, lambda: comments.delete_comment(move, user, comment_id))

    async def _run(
        self, operation: str, move: Move, viewer: Viewer, transition: Callable[[], MoveMutation]
    ) -> Move:
        try:
            mutation = transition()
        except MoveAppException as e:
            record_operation(operation, e.code.lower())
            self._log(move.id, viewer, operation).info(f"Rejected for {viewer.name}: {e.message}")
            raise
        return await self._apply(move, viewer, mutation)

    async def _apply(self, move: Move, viewer: Viewer, mutation: MoveMutation) -> Move:
        log = self._log(move.id, viewer, mutation.operation)
        if not mutation.changed:
            record_operation(mutation.operation, "noop")
            log.info(f"{mutation.operation} by {viewer.name} changed nothing")
            return move

        expected_version = move.version if self.compare_and_swap else None
        try:
            await self.repository.update_fields(move.id, mutation.fields, expected_version=expected_version)
        except MoveAppException as e:
            record_operation(mutation.operation, e.code.lower())
            log.warning(f"{mutation.operation} rejected by store: {e.message}")
            raise
        except Exception as e:
            record_operation(mutation.operation, "remote_failure")
            log.error(f"{mutation.operation} failed: {e}")
            raise RemoteFailureError("move store") from e

        record_operation(mutation.operation, "success")
        log.info(f"{mutation.operation} by {viewer.name}")
        if mutation.promoted is not None:
            WAITLIST_PROMOTIONS.inc()
            log.info(f"{mutation.promoted} promoted from the waitlist")

        document = move_to_document(move)
        document.update(serialize_fields(mutation.fields))
        document["version"] = move.version + 1
        return move_from_document(document, move.id)
