"""
Move schemas
"""

from datetime import datetime
from typing import List, Optional, Set

from pydantic import Field

from app.models.move import ActivityType, CampusArea, Comment, Move, MoveStatus, Place, SignupResponse
from app.schemas.base import BaseSchema
from app.services.status import format_time_ago


class MoveCreate(BaseSchema):
    """
    Move creation schema.

    Length, capacity and time-window rules are checked by the membership
    engine so they surface as domain validation failures.
    """
    title: str
    description: str = ""
    remarks: str = ""
    location: str
    location_name: Optional[str] = None
    location_url: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    start_time: datetime
    end_time: datetime
    max_participants: int = 2
    area: CampusArea = CampusArea.NORTH
    activity_type: ActivityType = ActivityType.SOCIAL
    signup_prompt: Optional[str] = None
    signup_prompt_requires_response: bool = False

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Pickup soccer on Lakeside",
                "description": "Bring water, we have a ball",
                "location": "Lakeside Field, Evanston, IL",
                "location_name": "Lakeside Field",
                "latitude": 42.0425,
                "longitude": -87.672,
                "start_time": "2025-10-15T20:00:00Z",
                "end_time": "2025-10-15T21:30:00Z",
                "max_participants": 10,
                "area": "South",
                "activity_type": "Sports",
                "signup_prompt": "What position do you play?",
                "signup_prompt_requires_response": False
            }
        }


class MoveUpdate(BaseSchema):
    """Host edit; host identity, members, comments and created_at are not editable"""
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    location_name: Optional[str] = None
    location_url: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    area: Optional[CampusArea] = None
    activity_type: Optional[ActivityType] = None


class JoinRequest(BaseSchema):
    """Answer to the move's signup prompt, if it has one"""
    response: Optional[str] = None


class CommentCreate(BaseSchema):
    text: str = Field(..., max_length=2000)


class MoveCreated(BaseSchema):
    id: str


class CommentResponse(BaseSchema):
    id: str
    author: str
    text: str
    created_at: datetime
    created_ago: Optional[str] = None

    @classmethod
    def from_comment(cls, comment: Comment, now: Optional[datetime] = None) -> "CommentResponse":
        created_ago = format_time_ago(comment.created_at, now) if now is not None else None
        return cls(**comment.model_dump(), created_ago=created_ago)


class MoveResponse(BaseSchema):
    """Move as presented to a viewer, with derived fields"""
    id: str
    title: str
    description: str
    remarks: str
    location: str
    location_name: Optional[str] = None
    location_url: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    created_at: datetime
    created_ago: Optional[str] = None
    area: CampusArea
    activity_type: ActivityType
    host_id: str
    host_name: str
    attendees: List[str]
    max_participants: int
    waitlist: List[str]
    signup_prompt: Optional[str] = None
    signup_prompt_requires_response: bool = False
    signup_responses: List[SignupResponse] = []
    comments: List[CommentResponse] = []
    place: Optional[Place] = None
    status: MoveStatus
    is_full: bool
    spots_left: int
    is_host: bool = False
    is_joined: bool = False
    is_saved: bool = False
    waitlist_position: Optional[int] = None
    distance: Optional[str] = None

    @classmethod
    def from_move(
        cls,
        move: Move,
        status: MoveStatus,
        viewer_id: Optional[str] = None,
        viewer_name: Optional[str] = None,
        saved_ids: Optional[Set[str]] = None,
        distance: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "MoveResponse":
        """`now` fills in the relative "created" labels on the move and its comments"""
        data = move.model_dump(exclude={"version", "comments"})
        return cls(
            **data,
            created_ago=format_time_ago(move.created_at, now) if now is not None else None,
            comments=[CommentResponse.from_comment(c, now) for c in move.comments],
            place=move.place,
            status=status,
            is_full=move.is_full,
            spots_left=move.spots_left,
            is_host=move.is_hosted_by(viewer_id, viewer_name),
            is_joined=bool(viewer_name) and viewer_name in move.attendees,
            is_saved=bool(saved_ids) and move.id in saved_ids,
            waitlist_position=move.waitlist_position(viewer_name) if viewer_name else None,
            distance=distance,
        )


class WaitlistEntryResponse(BaseSchema):
    move: MoveResponse
    position: int
    waiting: int


class FeedResponse(BaseSchema):
    """All projections for one viewer at one instant"""
    now: datetime
    explore: List[MoveResponse]
    joined: List[MoveResponse]
    hosting: List[MoveResponse]
    saved: List[MoveResponse]
    waitlist: List[WaitlistEntryResponse]
    my_active: List[MoveResponse]
    my_active_count: int
