"""
Comment subsystem
"""

from datetime import datetime
from typing import Optional
import uuid

from app.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.models.move import Move
from app.models.user import Viewer
from app.services.membership import MoveMutation


def add_comment(
    move: Move,
    author: Viewer,
    text: str,
    now: datetime,
    comment_id: Optional[str] = None,
) -> MoveMutation:
    body = (text or "").strip()
    if not body:
        raise ValidationError("Comment can't be empty.", field="text")

    comments = [comment.model_dump(mode="json") for comment in move.comments]
    comments.append({
        "id": comment_id or str(uuid.uuid4()),
        "author": author.name,
        "text": body,
        "created_at": now.isoformat(),
    })
    return MoveMutation(move.id, "add_comment", {"comments": comments})


def delete_comment(move: Move, user: Viewer, comment_id: str) -> MoveMutation:
    """Only the comment's author may delete it"""
    target = next((comment for comment in move.comments if comment.id == comment_id), None)
    if target is None:
        raise NotFoundError("Comment", comment_id)
    if target.author != user.name:
        raise AuthorizationError("You can only delete your own comments.")

    comments = [
        comment.model_dump(mode="json")
        for comment in move.comments
        if comment.id != comment_id
    ]
    return MoveMutation(move.id, "delete_comment", {"comments": comments})
