"""
Unit tests for feed projections
"""

import pytest
from datetime import timedelta

from app.models.move import ActivityType, CampusArea, MoveStatus
from app.services.feed import (
    FeedFilter,
    SortMode,
    explore_view,
    hosting_view,
    joined_view,
    matches_filter,
    project_feed,
    saved_view,
    waitlist_view,
)


@pytest.fixture
def moves(make_move, now):
    return [
        make_move(
            id="past",
            title="Brunch",
            start_time=now - timedelta(hours=5),
            end_time=now - timedelta(hours=4),
            created_at=now - timedelta(days=2),
            area=CampusArea.DOWNTOWN,
            activity_type=ActivityType.FOOD,
        ),
        make_move(
            id="live",
            title="Study group",
            start_time=now - timedelta(minutes=30),
            end_time=now + timedelta(hours=1),
            created_at=now - timedelta(days=1),
            area=CampusArea.SOUTH,
            activity_type=ActivityType.STUDY,
            attendees=["Alice", "Bob", "Cara"],
        ),
        make_move(
            id="soon",
            title="Pickup soccer",
            start_time=now + timedelta(hours=1),
            end_time=now + timedelta(hours=2),
            created_at=now - timedelta(hours=3),
            host_id="uid-bob",
            host_name="Bob",
            attendees=["Bob", "Alice"],
        ),
        make_move(
            id="later",
            title="Board games",
            start_time=now + timedelta(days=1),
            end_time=now + timedelta(days=1, hours=2),
            created_at=now - timedelta(minutes=5),
            area=CampusArea.NORTH,
            activity_type=ActivityType.SOCIAL,
            host_id="uid-cara",
            host_name="Cara",
            attendees=["Cara", "Dan"],
            max_participants=2,
            waitlist=["Alice"],
        ),
    ]


def _ids(moves):
    return [move.id for move in moves]


@pytest.mark.unit
class TestExplore:

    def test_default_hides_past(self, moves, now):
        assert _ids(explore_view(moves, now)) == ["live", "soon", "later"]

    def test_upcoming_sort_puts_past_last(self, moves, now):
        everything = FeedFilter(statuses=frozenset(MoveStatus))
        assert _ids(explore_view(moves, now, everything)) == ["live", "soon", "later", "past"]

    def test_past_sorted_most_recent_first(self, make_move, now):
        older = make_move(id="older", start_time=now - timedelta(days=2), end_time=now - timedelta(days=2, hours=-1))
        newer = make_move(id="newer", start_time=now - timedelta(days=1), end_time=now - timedelta(days=1, hours=-1))
        past_only = FeedFilter(statuses=frozenset({MoveStatus.PAST}))
        assert _ids(explore_view([older, newer], now, past_only)) == ["newer", "older"]

    def test_newest_sort(self, moves, now):
        assert _ids(explore_view(moves, now, sort_mode=SortMode.NEWEST)) == ["later", "soon", "live"]

    def test_popularity_sort(self, moves, now):
        assert _ids(explore_view(moves, now, sort_mode=SortMode.POPULARITY)) == ["live", "later", "soon"]

    def test_area_and_category_filters(self, moves, now):
        south_sports = FeedFilter(
            areas=frozenset({CampusArea.SOUTH}),
            categories=frozenset({ActivityType.SPORTS}),
        )
        assert _ids(explore_view(moves, now, south_sports)) == ["soon"]

    def test_empty_status_set_is_unrestricted(self, moves, now):
        assert len(explore_view(moves, now, FeedFilter(statuses=frozenset()))) == 4

    def test_text_query_matches_location(self, moves, now):
        assert matches_filter(moves[2], now, FeedFilter(query="lakeside"))
        assert not matches_filter(moves[2], now, FeedFilter(query="library"))

    def test_recomputes_on_new_now(self, moves, now):
        later_now = now + timedelta(hours=3)
        assert "soon" not in _ids(explore_view(moves, later_now))


@pytest.mark.unit
class TestViewerViews:

    def test_joined_excludes_hosted(self, moves):
        assert _ids(joined_view(moves, "Alice", "uid-alice")) == ["soon"]
        assert _ids(joined_view(moves, "Bob", "uid-bob")) == ["live"]

    def test_hosting(self, moves):
        assert _ids(hosting_view(moves, "Alice", "uid-alice")) == ["live", "past"]

    def test_saved(self, moves):
        assert _ids(saved_view(moves, ["later", "gone"])) == ["later"]

    def test_waitlist_positions(self, moves):
        entries = waitlist_view(moves, "Alice")
        assert [(e.move.id, e.position) for e in entries] == [("later", 1)]

    def test_my_active_summary(self, moves, now):
        views = project_feed(moves, now, "Alice", "uid-alice", saved_ids=["past"])

        assert _ids(views.my_active) == ["live", "soon"]
        assert views.my_active_count == 2
        assert _ids(views.saved) == ["past"]
