"""
Membership engine.

Pure transitions over a single Move. Each operation either raises one of the
typed failures in app.core.exceptions or returns a MoveMutation holding the
field-level update to send to the repository. An empty mutation is a no-op.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
import logging

from app.config import settings
from app.core.exceptions import (
    AuthorizationError,
    CapacityConflictError,
    PreconditionError,
    ValidationError,
)
from app.models.move import ActivityType, CampusArea, Move, MoveStatus
from app.models.user import Viewer
from app.schemas.move import MoveCreate, MoveUpdate
from app.services.geo import CampusLocation, find_campus_location
from app.services.signup_prompt import PromptAnswer, collect_response, record_response
from app.services.status import ensure_aware, move_status

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "title",
    "description",
    "location",
    "location_name",
    "location_url",
    "latitude",
    "longitude",
    "start_time",
    "end_time",
    "area",
    "activity_type",
)


@dataclass
class MoveMutation:
    """Field-level update produced by one transition"""
    move_id: str
    operation: str
    fields: Dict[str, Any] = field(default_factory=dict)
    promoted: Optional[str] = None

    @property
    def changed(self) -> bool:
        return bool(self.fields)


# Validation

def validate_title(title: str) -> str:
    title = (title or "").strip()
    if not title:
        raise ValidationError("Add a title to post a move.", field="title")
    if len(title) > settings.TITLE_MAX_LENGTH:
        raise ValidationError(
            f"Title must be {settings.TITLE_MAX_LENGTH} characters or fewer.",
            field="title",
        )
    return title


def validate_capacity(max_participants: int) -> int:
    if max_participants < settings.MIN_PARTICIPANTS:
        raise ValidationError(
            f"Max participants must be at least {settings.MIN_PARTICIPANTS}.",
            field="max_participants",
        )
    if max_participants > settings.MAX_PARTICIPANTS:
        raise ValidationError(
            f"Max participants cannot exceed {settings.MAX_PARTICIPANTS}.",
            field="max_participants",
        )
    return max_participants


def validate_window(start_time: Optional[datetime], end_time: Optional[datetime]) -> Tuple[datetime, datetime]:
    if start_time is None or end_time is None:
        raise ValidationError("Add a start time and an end time.", field="start_time")
    start, end = ensure_aware(start_time), ensure_aware(end_time)
    if end <= start:
        raise ValidationError("End time must be after the start time.", field="end_time")
    return start, end


def validate_place(latitude: Optional[float], longitude: Optional[float]) -> None:
    if latitude is None or longitude is None:
        raise ValidationError(
            "Pick a suggested location so we can place it on the map.",
            field="location",
        )


def campus_location_for(location: Optional[str], latitude: Optional[float], longitude: Optional[float]) -> Optional[CampusLocation]:
    """The campus spot a typed location names, when it came without coordinates"""
    if latitude is not None and longitude is not None:
        return None
    return find_campus_location(location or "")


def validate_new_move(data: MoveCreate, now: datetime) -> None:
    """Reject a create request before anything is written"""
    if not data.title.strip() or not data.location.strip():
        raise ValidationError(
            "Add a title, location, activity type, start time, and end time to post a move."
        )
    validate_title(data.title)
    validate_capacity(data.max_participants)
    validate_place(data.latitude, data.longitude)
    start, _ = validate_window(data.start_time, data.end_time)
    if start < ensure_aware(now):
        raise ValidationError("Start time must be in the future.", field="start_time")


def build_move_document(data: MoveCreate, host: Viewer, now: datetime) -> Dict[str, Any]:
    """Storage fields for a new move; the host is its first attendee"""
    campus = campus_location_for(data.location, data.latitude, data.longitude)
    if campus is not None:
        resolved = {
            "latitude": campus.latitude,
            "longitude": campus.longitude,
            "location_name": data.location_name or campus.display_name,
        }
        if "area" not in data.model_fields_set:
            resolved["area"] = campus.area
        data = data.model_copy(update=resolved)
    validate_new_move(data, now)
    prompt = (data.signup_prompt or "").strip() or None

    return {
        "title": data.title.strip(),
        "description": data.description.strip(),
        "remarks": data.remarks.strip(),
        "location": data.location.strip(),
        "location_name": data.location_name,
        "location_url": data.location_url,
        "latitude": data.latitude,
        "longitude": data.longitude,
        "start_time": ensure_aware(data.start_time),
        "end_time": ensure_aware(data.end_time),
        "created_at": ensure_aware(now),
        "area": CampusArea.normalize(data.area),
        "activity_type": ActivityType.normalize(data.activity_type),
        "host_id": host.id,
        "host_name": host.name,
        "attendees": [host.name],
        "max_participants": data.max_participants,
        "waitlist": [],
        "signup_prompt": prompt,
        "signup_prompt_requires_response": bool(prompt) and data.signup_prompt_requires_response,
        "signup_responses": [],
        "comments": [],
        "version": 0,
    }


# Authorization

def ensure_host(move: Move, user: Viewer, action: str) -> None:
    if not move.is_hosted_by(user.id, user.name):
        raise AuthorizationError(f"Only the host can {action} this move.")


def _ensure_not_past(move: Move, now: datetime) -> None:
    if move_status(move, now) is MoveStatus.PAST:
        raise PreconditionError("This move has already ended.", details={"move_id": move.id})


# Transitions

def join_move(move: Move, user: Viewer, now: datetime, answer: PromptAnswer = None) -> MoveMutation:
    """
    Add the user to attendees.

    Already attending is a no-op. A full move raises CapacityConflictError;
    joining the waitlist is a separate operation.
    """
    mutation = MoveMutation(move.id, "join")
    if user.name in move.attendees:
        return mutation

    _ensure_not_past(move, now)
    response = collect_response(move, answer)

    if move.is_full:
        raise CapacityConflictError(move.id, move.max_participants)

    mutation.fields["attendees"] = [*move.attendees, user.name]
    if user.name in move.waitlist:
        mutation.fields["waitlist"] = [name for name in move.waitlist if name != user.name]
    if response is not None:
        mutation.fields["signup_responses"] = record_response(move, user.name, response, now)
    return mutation


def promote_from_waitlist(
    attendees: List[str],
    waitlist: List[str],
    max_participants: int,
) -> Tuple[List[str], List[str], Optional[str]]:
    """
    Move the head of the waitlist into a free slot. At most one promotion
    per call; later waiters keep their relative order.
    """
    if not waitlist or len(attendees) >= max_participants:
        return attendees, waitlist, None
    promoted, remaining = waitlist[0], waitlist[1:]
    return [*attendees, promoted], remaining, promoted


def leave_move(move: Move, user: Viewer) -> MoveMutation:
    """Remove the user from attendees, then promote the longest waiter"""
    if move.is_hosted_by(user.id, user.name):
        raise PreconditionError("Hosts can't leave their own move. Cancel it instead.")
    if user.name not in move.attendees:
        raise PreconditionError("You haven't joined this move.", details={"move_id": move.id})

    remaining = [name for name in move.attendees if name != user.name]
    attendees, waitlist, promoted = promote_from_waitlist(
        remaining, list(move.waitlist), move.max_participants
    )

    mutation = MoveMutation(move.id, "leave", {"attendees": attendees})
    if promoted is not None:
        mutation.fields["waitlist"] = waitlist
        mutation.promoted = promoted
        logger.info(f"Promoted {promoted} from the waitlist of move {move.id}")
    return mutation


def join_waitlist(move: Move, user: Viewer, now: datetime, answer: PromptAnswer = None) -> MoveMutation:
    if user.name in move.attendees:
        raise PreconditionError("You're already going to this move.")
    position = move.waitlist_position(user.name)
    if position is not None:
        raise PreconditionError(
            f"You're already #{position} on the waitlist.",
            details={"position": position},
        )
    _ensure_not_past(move, now)
    if not move.is_full:
        raise PreconditionError("This move still has open spots. Join it directly.")

    response = collect_response(move, answer)
    mutation = MoveMutation(move.id, "join_waitlist", {"waitlist": [*move.waitlist, user.name]})
    if response is not None:
        mutation.fields["signup_responses"] = record_response(move, user.name, response, now)
    return mutation


def leave_waitlist(move: Move, user: Viewer) -> MoveMutation:
    if user.name not in move.waitlist:
        raise PreconditionError("You're not on the waitlist for this move.")
    return MoveMutation(
        move.id,
        "leave_waitlist",
        {"waitlist": [name for name in move.waitlist if name != user.name]},
    )


def cancel_move(move: Move, user: Viewer) -> None:
    """Only checks authority; the caller performs the hard delete"""
    ensure_host(move, user, "cancel")


def edit_move(move: Move, user: Viewer, changes: MoveUpdate) -> MoveMutation:
    """
    Host edit of descriptive fields. Capacity is fixed after creation, so no
    membership re-validation happens here.
    """
    ensure_host(move, user, "edit")
    updates = {
        key: value
        for key, value in changes.model_dump(exclude_unset=True).items()
        if key in EDITABLE_FIELDS and value is not None
    }
    fields: Dict[str, Any] = {}

    if "title" in updates:
        fields["title"] = validate_title(updates["title"])
    if "description" in updates:
        fields["description"] = updates["description"].strip()

    if "location" in updates:
        location = updates["location"].strip()
        if not location:
            raise ValidationError("Add a location to post a move.", field="location")
        if location != move.location:
            campus = campus_location_for(location, updates.get("latitude"), updates.get("longitude"))
            if campus is not None:
                updates["latitude"] = campus.latitude
                updates["longitude"] = campus.longitude
                updates.setdefault("location_name", campus.display_name)
                updates.setdefault("area", campus.area)
            validate_place(updates.get("latitude"), updates.get("longitude"))
            fields["location_name"] = updates.get("location_name")
            fields["location_url"] = updates.get("location_url")
        fields["location"] = location
    for key in ("location_name", "location_url", "latitude", "longitude"):
        if key in updates:
            fields[key] = updates[key]

    if "start_time" in updates or "end_time" in updates:
        start, end = validate_window(
            updates.get("start_time", move.start_time),
            updates.get("end_time", move.end_time),
        )
        fields["start_time"] = start
        fields["end_time"] = end

    if "area" in updates:
        fields["area"] = CampusArea.normalize(updates["area"])
    if "activity_type" in updates:
        fields["activity_type"] = ActivityType.normalize(updates["activity_type"])

    return MoveMutation(move.id, "edit", fields)
