"""Tests for the conflict-detection service."""

from datetime import date

import pytest
from dateutil import tz

from roombook.domain.errors import BookingValidationError
from roombook.domain.models import Booking, BookingStatus
from roombook.repos.memory import BookingRepository
from roombook.services.conflicts import check_conflict, find_conflicts, overlaps
from roombook.services.timeslots import day_start

UTC = tz.gettz("UTC")
DAY = date(2025, 1, 6)


def _make_booking(
    start: str,
    end: str,
    room_id: str = "room-a",
    day: date = DAY,
    status: BookingStatus = BookingStatus.PENDING,
) -> Booking:
    return Booking(
        room_id=room_id,
        full_name="Somchai",
        department="Finance",
        purpose="Planning",
        booking_date=day_start(day, UTC),
        start_time=start,
        end_time=end,
        status=status,
    )


@pytest.fixture()
def repo():
    return BookingRepository()


def _check(repo, start, end, **kwargs):
    kwargs.setdefault("room_id", "room-a")
    kwargs.setdefault("day", DAY)
    return check_conflict(
        repo,
        kwargs.pop("room_id"),
        kwargs.pop("day"),
        start,
        end,
        UTC,
        **kwargs,
    )


# ---------------------------------------------------------------------------
# Overlap predicate
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "a, b, c, d, expected",
    [
        (600, 660, 540, 630, True),  # partial overlap at the start
        (540, 720, 600, 630, True),  # contains the other
        (600, 630, 540, 720, True),  # contained by the other
        (600, 601, 540, 720, True),  # one minute is enough
        (600, 660, 540, 600, False),  # back-to-back after
        (540, 600, 600, 660, False),  # back-to-back before
        (480, 540, 600, 660, False),  # disjoint
    ],
)
def test_overlaps(a, b, c, d, expected):
    assert overlaps(a, b, c, d) is expected
    assert overlaps(a, b, c, d) == (a < d and b > c)


def test_find_conflicts_returns_only_overlapping_bookings():
    early = _make_booking("08:00", "09:00")
    late = _make_booking("09:30", "10:30")
    assert find_conflicts(600, 660, [early, late]) == [late]


# ---------------------------------------------------------------------------
# check_conflict against the store
# ---------------------------------------------------------------------------


def test_back_to_back_is_accepted(repo):
    """Existing 09:00-10:30, request 10:30-11:00 -> no conflict."""
    repo.add(_make_booking("09:00", "10:30"))
    assert _check(repo, "10:30", "11:00").conflict is False


def test_partial_overlap_is_rejected(repo):
    """Existing 09:00-10:30, request 10:00-11:00 -> conflict."""
    existing = _make_booking("09:00", "10:30")
    repo.add(existing)
    result = _check(repo, "10:00", "11:00")
    assert result.conflict is True
    assert result.conflicting_ids == [existing.id]


def test_other_room_and_other_day_do_not_conflict(repo):
    repo.add(_make_booking("09:00", "10:00", room_id="room-b"))
    repo.add(_make_booking("09:00", "10:00", day=date(2025, 1, 7)))
    repo.add(_make_booking("09:00", "10:00", day=date(2025, 1, 5)))
    assert _check(repo, "09:00", "10:00").conflict is False


def test_excluded_booking_never_conflicts_with_itself(repo):
    own = _make_booking("09:00", "10:00")
    repo.add(own)
    assert _check(repo, "09:00", "10:00").conflict is True
    assert _check(repo, "09:00", "10:00", exclude_booking_id=own.id).conflict is False


def test_update_scenario_against_neighbour(repo):
    """Moving X (09:00-10:00) to 09:30-10:30 collides with Y (10:00-11:00)."""
    x = _make_booking("09:00", "10:00")
    y = _make_booking("10:00", "11:00")
    repo.add(x)
    repo.add(y)
    result = _check(repo, "09:30", "10:30", exclude_booking_id=x.id)
    assert result.conflict is True
    assert result.conflicting_ids == [y.id]


def test_rejected_bookings_free_their_slot(repo):
    repo.add(_make_booking("09:00", "10:00", status=BookingStatus.REJECTED))
    assert _check(repo, "09:00", "10:00").conflict is False


def test_approved_and_pending_both_block(repo):
    repo.add(_make_booking("09:00", "10:00", status=BookingStatus.APPROVED))
    repo.add(_make_booking("13:00", "14:00", status=BookingStatus.PENDING))
    assert _check(repo, "09:30", "09:45").conflict is True
    assert _check(repo, "13:59", "15:00").conflict is True


def test_check_is_idempotent_and_read_only(repo):
    repo.add(_make_booking("09:00", "10:00"))
    first = _check(repo, "09:30", "10:30")
    second = _check(repo, "09:30", "10:30")
    assert first == second
    assert len(repo.list_all()) == 1


def test_day_given_as_iso_string(repo):
    repo.add(_make_booking("09:00", "10:00"))
    assert _check(repo, "09:00", "09:30", day="2025-01-06").conflict is True
    assert _check(repo, "09:00", "09:30", day="2025-01-06T23:00:00").conflict is True


@pytest.mark.parametrize("start, end", [("9", "10:00"), ("09:00", "10.00"), ("", "10:00")])
def test_malformed_times_fail_before_the_overlap_test(repo, start, end):
    with pytest.raises(BookingValidationError):
        _check(repo, start, end)


def test_missing_room_or_date_is_invalid_input(repo):
    with pytest.raises(BookingValidationError):
        _check(repo, "09:00", "10:00", room_id="")
    with pytest.raises(BookingValidationError):
        _check(repo, "09:00", "10:00", day=None)
