from itertools import product

import pytest

from app.schemas.timetable import normalize_time
from app.services.scheduling import intervals_overlap, period_conflicts

# Quarter hours across a morning, enough to cover every ordering of four endpoints.
TIME_POINTS = ["08:00", "08:15", "08:30", "08:45", "09:00", "09:15", "09:30"]
INTERVALS = [(start, end) for start, end in product(TIME_POINTS, repeat=2) if start < end]


def minutes_past_midnight(value):
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def test_three_case_predicate_matches_half_open_overlap():
    for (existing_start, existing_end), (new_start, new_end) in product(INTERVALS, repeat=2):
        assert period_conflicts(existing_start, existing_end, new_start, new_end) == intervals_overlap(
            existing_start, existing_end, new_start, new_end
        ), (existing_start, existing_end, new_start, new_end)


def test_overlap_is_symmetric():
    for a, b in product(INTERVALS, repeat=2):
        assert period_conflicts(*a, *b) == period_conflicts(*b, *a)
        assert intervals_overlap(*a, *b) == intervals_overlap(*b, *a)


def test_string_order_matches_clock_order():
    for left, right in product(TIME_POINTS, repeat=2):
        assert (left < right) == (minutes_past_midnight(left) < minutes_past_midnight(right))


@pytest.mark.parametrize(
    ("existing", "candidate", "expected"),
    [
        (("09:00", "10:00"), ("10:00", "11:00"), False),
        (("10:00", "11:00"), ("09:00", "10:00"), False),
        (("09:00", "10:00"), ("09:00", "10:00"), True),
        (("09:00", "12:00"), ("10:00", "11:00"), True),
        (("10:00", "11:00"), ("09:00", "12:00"), True),
        (("09:00", "10:00"), ("09:30", "10:30"), True),
        (("09:30", "10:30"), ("09:00", "10:00"), True),
    ],
)
def test_overlap_cases(existing, candidate, expected):
    assert period_conflicts(*existing, *candidate) is expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("9:05", "09:05"), ("09:05", "09:05"), (" 23:59 ", "23:59"), ("0:00", "00:00")],
)
def test_normalize_time(raw, expected):
    assert normalize_time(raw) == expected


@pytest.mark.parametrize("raw", ["24:00", "12:60", "1200", "12:5", "", "ab:cd"])
def test_normalize_time_rejects_malformed(raw):
    with pytest.raises(ValueError):
        normalize_time(raw)
