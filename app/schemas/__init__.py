"""
Pydantic schemas for request and response validation
"""

from app.schemas.move import (
    CommentCreate,
    CommentResponse,
    FeedResponse,
    JoinRequest,
    MoveCreate,
    MoveCreated,
    MoveResponse,
    MoveUpdate,
    WaitlistEntryResponse
)
from app.schemas.place import PlacePrediction
from app.schemas.response import (
    ErrorDetail,
    ErrorResponse,
    HealthResponse
)

__all__ = [
    "CommentCreate",
    "CommentResponse",
    "FeedResponse",
    "JoinRequest",
    "MoveCreate",
    "MoveCreated",
    "MoveResponse",
    "MoveUpdate",
    "WaitlistEntryResponse",
    "PlacePrediction",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse"
]
