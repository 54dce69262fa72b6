"""
Time-window status resolution for moves.

Every function here takes `now` explicitly; nothing reads an ambient clock
except `utc_now`, which callers use to produce the value they pass in.
"""

from datetime import datetime, timezone
from typing import Optional, Union

from app.models.move import Move, MoveStatus

Timestamp = Union[datetime, str, None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Naive datetimes are treated as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_timestamp(value: Timestamp) -> Optional[datetime]:
    """Parse an ISO-8601 string or datetime; returns None when unparseable"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return ensure_aware(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
    except ValueError:
        return None


def resolve_status(start_time: Timestamp, end_time: Timestamp, now: datetime) -> MoveStatus:
    """
    Map a [start, end] window and the current time to a status.

    Both bounds are inclusive for Live Now. Unparseable bounds resolve to
    Upcoming.
    """
    start = parse_timestamp(start_time)
    end = parse_timestamp(end_time)
    if start is None or end is None:
        return MoveStatus.UPCOMING

    now = ensure_aware(now)
    if now < start:
        return MoveStatus.UPCOMING
    if now <= end:
        return MoveStatus.LIVE_NOW
    return MoveStatus.PAST


def move_status(move: Move, now: datetime) -> MoveStatus:
    return resolve_status(move.start_time, move.end_time, now)


def is_active(move: Move, now: datetime) -> bool:
    """Not yet ended; moves with an unknown end count as active"""
    if move.end_time is None:
        return True
    return ensure_aware(now) < move.end_time


def format_time_ago(value: Timestamp, now: datetime) -> str:
    timestamp = parse_timestamp(value)
    if timestamp is None:
        return "just now"

    seconds = max(0.0, (ensure_aware(now) - timestamp).total_seconds())
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{int(seconds // 60)}m ago"
    if seconds < 86400:
        return f"{int(seconds // 3600)}h ago"
    return f"{int(seconds // 86400)}d ago"
