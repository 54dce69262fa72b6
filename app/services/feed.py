"""
Feed projection engine.

Every view is recomputed from the full move set and an explicit `now`; no
state is carried between calls.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, Iterable, List, Optional
import enum
import math

from app.models.move import ActivityType, CampusArea, Move, MoveStatus
from app.services.status import is_active, move_status

DEFAULT_STATUSES: FrozenSet[MoveStatus] = frozenset({MoveStatus.UPCOMING, MoveStatus.LIVE_NOW})


class SortMode(str, enum.Enum):
    UPCOMING = "upcoming"
    NEWEST = "newest"
    POPULARITY = "popularity"


@dataclass(frozen=True)
class FeedFilter:
    """Empty sets mean no restriction on that dimension"""
    areas: FrozenSet[CampusArea] = frozenset()
    statuses: FrozenSet[MoveStatus] = DEFAULT_STATUSES
    categories: FrozenSet[ActivityType] = frozenset()
    query: str = ""


@dataclass
class WaitlistEntry:
    move: Move
    position: int


@dataclass
class FeedViews:
    now: datetime
    explore: List[Move] = field(default_factory=list)
    joined: List[Move] = field(default_factory=list)
    hosting: List[Move] = field(default_factory=list)
    saved: List[Move] = field(default_factory=list)
    waitlist: List[WaitlistEntry] = field(default_factory=list)
    joined_active: List[Move] = field(default_factory=list)
    hosting_active: List[Move] = field(default_factory=list)

    @property
    def my_active(self) -> List[Move]:
        """Joined and hosted moves that have not ended, soonest first"""
        return sorted(self.joined_active + self.hosting_active, key=lambda m: _start_key(m))

    @property
    def my_active_count(self) -> int:
        return len(self.joined_active) + len(self.hosting_active)


def _timestamp(value: Optional[datetime]) -> float:
    return value.timestamp() if value is not None else math.inf


def _start_key(move: Move) -> float:
    return _timestamp(move.start_time)


def _is_host(move: Move, viewer_name: Optional[str], viewer_id: Optional[str]) -> bool:
    if viewer_id and move.host_id == viewer_id:
        return True
    return bool(viewer_name) and move.host_name == viewer_name


def matches_filter(move: Move, now: datetime, feed_filter: FeedFilter) -> bool:
    if feed_filter.areas and move.area not in feed_filter.areas:
        return False
    if feed_filter.statuses and move_status(move, now) not in feed_filter.statuses:
        return False
    if feed_filter.categories and move.activity_type not in feed_filter.categories:
        return False

    query = feed_filter.query.strip().lower()
    if not query:
        return True
    haystack = " ".join(
        [move.title, move.description, move.location or "", move.location_name or ""]
    ).lower()
    return query in haystack


def sort_explore(moves: Iterable[Move], now: datetime, sort_mode: SortMode) -> List[Move]:
    if sort_mode is SortMode.NEWEST:
        return sorted(moves, key=lambda m: -m.created_at.timestamp())

    if sort_mode is SortMode.POPULARITY:
        return sorted(moves, key=lambda m: (-len(m.attendees), -m.created_at.timestamp()))

    def upcoming_key(move: Move):
        status = move_status(move, now)
        start = _start_key(move)
        # soonest first while not over, most recent first once past
        return (status.rank, -start if status is MoveStatus.PAST else start)

    return sorted(moves, key=upcoming_key)


def sort_active(moves: Iterable[Move], now: datetime) -> List[Move]:
    return sorted(moves, key=lambda m: (move_status(m, now).rank, _start_key(m)))


def sort_newest(moves: Iterable[Move]) -> List[Move]:
    return sorted(moves, key=lambda m: -m.created_at.timestamp())


def explore_view(
    moves: Iterable[Move],
    now: datetime,
    feed_filter: FeedFilter = FeedFilter(),
    sort_mode: SortMode = SortMode.UPCOMING,
) -> List[Move]:
    return sort_explore(
        [move for move in moves if matches_filter(move, now, feed_filter)],
        now,
        sort_mode,
    )


def joined_view(moves: Iterable[Move], viewer_name: str, viewer_id: Optional[str] = None) -> List[Move]:
    return sort_newest(
        move for move in moves
        if viewer_name in move.attendees and not _is_host(move, viewer_name, viewer_id)
    )


def hosting_view(moves: Iterable[Move], viewer_name: str, viewer_id: Optional[str] = None) -> List[Move]:
    return sort_newest(move for move in moves if _is_host(move, viewer_name, viewer_id))


def saved_view(moves: Iterable[Move], saved_ids: Iterable[str]) -> List[Move]:
    saved = set(saved_ids)
    return [move for move in moves if move.id in saved]


def waitlist_view(moves: Iterable[Move], viewer_name: str) -> List[WaitlistEntry]:
    entries = []
    for move in moves:
        position = move.waitlist_position(viewer_name)
        if position is not None:
            entries.append(WaitlistEntry(move=move, position=position))
    return entries


def project_feed(
    moves: Iterable[Move],
    now: datetime,
    viewer_name: str,
    viewer_id: Optional[str] = None,
    feed_filter: FeedFilter = FeedFilter(),
    sort_mode: SortMode = SortMode.UPCOMING,
    saved_ids: Iterable[str] = (),
) -> FeedViews:
    moves = list(moves)
    joined = joined_view(moves, viewer_name, viewer_id)
    hosting = hosting_view(moves, viewer_name, viewer_id)

    return FeedViews(
        now=now,
        explore=explore_view(moves, now, feed_filter, sort_mode),
        joined=joined,
        hosting=hosting,
        saved=saved_view(moves, saved_ids),
        waitlist=waitlist_view(moves, viewer_name),
        joined_active=sort_active((m for m in joined if is_active(m, now)), now),
        hosting_active=sort_active((m for m in hosting if is_active(m, now)), now),
    )
