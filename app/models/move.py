"""
Move model
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union
import enum

from pydantic import BaseModel, Field


class CampusArea(str, enum.Enum):
    NORTH = "North"
    SOUTH = "South"
    DOWNTOWN = "Downtown"
    OTHER = "Other"

    @classmethod
    def normalize(cls, value) -> "CampusArea":
        """Unknown values from the store fall back to Other"""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class ActivityType(str, enum.Enum):
    FOOD = "Food"
    STUDY = "Study"
    SPORTS = "Sports"
    SOCIAL = "Social"
    OTHER = "Other"

    @classmethod
    def normalize(cls, value) -> "ActivityType":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class MoveStatus(str, enum.Enum):
    UPCOMING = "Upcoming"
    LIVE_NOW = "Live Now"
    PAST = "Past"

    @property
    def rank(self) -> int:
        """Sort rank used by the feed: Live Now first, Past last"""
        return _STATUS_RANK[self]


_STATUS_RANK = {
    MoveStatus.LIVE_NOW: 0,
    MoveStatus.UPCOMING: 1,
    MoveStatus.PAST: 2,
}


class Comment(BaseModel):
    id: str
    author: str
    text: str
    created_at: datetime


class SignupResponse(BaseModel):
    id: str
    attendee: str
    response: str
    created_at: datetime


class UnresolvedPlace(BaseModel):
    """Free text the host typed but never matched to a place"""
    kind: Literal["unresolved"] = "unresolved"
    raw_text: str


class ResolvedPlace(BaseModel):
    """A place with coordinates, as returned by the place lookup service"""
    kind: Literal["resolved"] = "resolved"
    name: str
    address: str = ""
    latitude: float
    longitude: float
    place_id: Optional[str] = None
    url: Optional[str] = None


Place = Annotated[Union[UnresolvedPlace, ResolvedPlace], Field(discriminator="kind")]


class Move(BaseModel):
    """
    A time-boxed campus meetup.

    Timestamps are timezone-aware; start/end are None only when the stored
    value could not be parsed.
    """

    id: str
    title: str = ""
    description: str = ""
    remarks: str = ""
    location: str = ""
    location_name: Optional[str] = None
    location_url: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    created_at: datetime
    area: CampusArea = CampusArea.OTHER
    activity_type: ActivityType = ActivityType.OTHER
    host_id: str = ""
    host_name: str = ""
    attendees: List[str] = Field(default_factory=list)
    max_participants: int = 12
    waitlist: List[str] = Field(default_factory=list)
    signup_prompt: Optional[str] = None
    signup_prompt_requires_response: bool = False
    signup_responses: List[SignupResponse] = Field(default_factory=list)
    comments: List[Comment] = Field(default_factory=list)
    version: int = 0

    @property
    def place(self) -> Union[UnresolvedPlace, ResolvedPlace]:
        if self.latitude is None or self.longitude is None:
            return UnresolvedPlace(raw_text=self.location)
        return ResolvedPlace(
            name=self.location_name or self.location,
            address=self.location,
            latitude=self.latitude,
            longitude=self.longitude,
            url=self.location_url,
        )

    @property
    def is_full(self) -> bool:
        return len(self.attendees) >= self.max_participants

    @property
    def spots_left(self) -> int:
        return max(0, self.max_participants - len(self.attendees))

    @property
    def has_signup_prompt(self) -> bool:
        return bool(self.signup_prompt and self.signup_prompt.strip())

    def is_hosted_by(self, user_id: Optional[str] = None, name: Optional[str] = None) -> bool:
        if user_id and self.host_id:
            return self.host_id == user_id
        return bool(name) and self.host_name == name

    def waitlist_position(self, name: str) -> Optional[int]:
        """1-based rank in the waitlist, or None when not waiting"""
        try:
            return self.waitlist.index(name) + 1
        except ValueError:
            return None

    def __repr__(self):
        return (
            f"<Move(id={self.id}, title={self.title}, "
            f"attendees={len(self.attendees)}/{self.max_participants}, waitlist={len(self.waitlist)})>"
        )
