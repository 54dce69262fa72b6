"""
Domain models
"""

from app.models.move import (
    ActivityType,
    CampusArea,
    Comment,
    Move,
    MoveStatus,
    Place,
    ResolvedPlace,
    SignupResponse,
    UnresolvedPlace,
)
from app.models.user import Viewer

__all__ = [
    "ActivityType",
    "CampusArea",
    "Comment",
    "Move",
    "MoveStatus",
    "Place",
    "ResolvedPlace",
    "SignupResponse",
    "UnresolvedPlace",
    "Viewer",
]
