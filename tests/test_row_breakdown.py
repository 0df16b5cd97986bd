"""
Unit tests for the per-day breakdown: clock hours, premium windows,
full/part flags and flag precedence.
"""

import itertools
from dataclasses import asdict

import pytest

from domain import Flag, FlagKind
from services import (
    FLAG_PRECEDENCE,
    add_hours_to_time,
    compute_late_night_hours,
    compute_row_breakdown,
    compute_worked_hours,
    first_flag,
    to_minutes,
)

F, P = Flag.FULL, Flag.PART


@pytest.mark.parametrize(
    "start,end,expected",
    [
        ("09:00", "17:00", 8.0),
        ("22:00", "06:00", 8.0),
        ("9:30", "10:00", 0.5),
        ("08:00:00", "12:00:00", 4.0),
        ("09:00", "09:00", 24.0),
        ("25:00", "06:00", 0.0),
        ("09:60", "17:00", 0.0),
        ("", "17:00", 0.0),
        (None, None, 0.0),
        ("nine", "five", 0.0),
    ],
)
def test_compute_worked_hours(start, end, expected):
    assert compute_worked_hours(start, end) == expected


def test_to_minutes_rejects_out_of_range():
    assert to_minutes("23:59") == 23 * 60 + 59
    assert to_minutes("24:00") is None
    assert to_minutes("12:5") is None


@pytest.mark.parametrize(
    "start,end,late,night",
    [
        ("22:00", "06:00", 0.0, 8.0),
        ("12:00", "20:00", 6.0, 0.0),
        ("20:00", "02:00", 2.0, 4.0),
        ("02:00", "06:00", 0.0, 4.0),
        ("04:00", "16:00", 2.0, 2.0),
        ("06:00", "14:00", 0.0, 0.0),
    ],
)
def test_late_night_windows(start, end, late, night):
    assert compute_late_night_hours(start, end) == (late, night)


def test_add_hours_to_time_wraps_midnight():
    assert add_hours_to_time("20:00", 8) == "04:00"
    assert add_hours_to_time("09:15", 7.5) == "16:45"
    assert add_hours_to_time("bad", 2) == ""


def test_precedence_order_is_unpaid_holiday_lieu_bank_holiday():
    assert FLAG_PRECEDENCE == (FlagKind.UNPAID, FlagKind.HOLIDAY, FlagKind.LIEU, FlagKind.BANK_HOLIDAY)


def test_first_flag_picks_highest_priority(make_row):
    assert first_flag(make_row(holiday=F, lieu=F), F) is FlagKind.HOLIDAY
    assert first_flag(make_row(bank_holiday=F, unpaid=F), F) is FlagKind.UNPAID
    assert first_flag(make_row(lieu=P, bank_holiday=P), P) is FlagKind.LIEU
    assert first_flag(make_row(double=F), F) is None
    assert first_flag(make_row(), F) is None


def test_no_flags_worked_equals_clock_hours(make_row):
    b = compute_row_breakdown(make_row(scheduled_hours=8, start_time="09:00", end_time="17:00"))
    assert b.worked == 8.0
    assert b.late == 3.0
    assert b.night == 0.0
    for name in ("holiday", "lieu", "bank_holiday", "double", "unpaid_full", "unpaid_part", "sick"):
        assert getattr(b, name) == 0.0


def test_full_unpaid_zeroes_worked_and_premiums(make_row):
    b = compute_row_breakdown(make_row(scheduled_hours=8, start_time="14:00", end_time="22:00", unpaid=F))
    assert b.worked == 0.0
    assert b.unpaid_full == 8.0
    assert b.late == 0.0 and b.night == 0.0


def test_full_holiday_blocks_premiums(make_row):
    b = compute_row_breakdown(make_row(scheduled_hours=8, start_time="22:00", end_time="06:00", holiday=F))
    assert b.holiday == 8.0
    assert b.worked == 0.0
    assert b.night == 0.0


def test_overnight_shift(make_row):
    b = compute_row_breakdown(make_row(scheduled_hours=8, start_time="22:00", end_time="06:00"))
    assert b.worked == 8.0
    assert b.night == 8.0
    assert b.late == 0.0


def test_part_holiday_takes_remainder(make_row):
    b = compute_row_breakdown(make_row(scheduled_hours=10, start_time="08:00", end_time="14:00", holiday=P))
    assert b.worked == 6.0
    assert b.holiday == 4.0
    assert b.late == 0.0


def test_part_flags_follow_precedence(make_row):
    b = compute_row_breakdown(
        make_row(scheduled_hours=8, start_time="08:00", end_time="14:00", unpaid=P, holiday=P)
    )
    assert b.unpaid_part == 2.0
    assert b.holiday == 0.0


def test_full_flags_conflict_only_one_bucket_filled(make_row):
    b = compute_row_breakdown(make_row(scheduled_hours=8, unpaid=F, holiday=F, lieu=F, bank_holiday=F))
    assert b.unpaid_full == 8.0
    assert b.holiday == b.lieu == b.bank_holiday == 0.0


def test_full_flag_beats_part_flag(make_row):
    b = compute_row_breakdown(make_row(scheduled_hours=8, start_time="09:00", end_time="13:00", holiday=F, lieu=P))
    assert b.holiday == 8.0
    assert b.lieu == 0.0
    assert b.worked == 0.0


def test_full_lieu_keeps_premiums_on_scheduled_window(make_row):
    b = compute_row_breakdown(make_row(scheduled_hours=8, start_time="14:00", lieu=F, bank_holiday=F))
    assert b.worked == 0.0
    assert b.lieu == 8.0
    assert b.bank_holiday == 0.0
    assert b.late == 8.0


def test_part_lieu_protects_premiums(make_row):
    b = compute_row_breakdown(make_row(scheduled_hours=8, start_time="14:00", end_time="18:00", lieu=P))
    assert b.worked == 4.0
    assert b.lieu == 4.0
    assert b.late == 8.0


def test_part_holiday_premiums_follow_actual_end(make_row):
    b = compute_row_breakdown(make_row(scheduled_hours=8, start_time="14:00", end_time="18:00", holiday=P))
    assert b.holiday == 4.0
    assert b.late == 4.0


def test_full_double_is_worked_and_double(make_row):
    b = compute_row_breakdown(make_row(scheduled_hours=8, start_time="22:00", end_time="06:00", double=F))
    assert b.worked == 8.0
    assert b.double == 8.0
    assert b.night == 8.0
    assert b.qualifying == 8.0


def test_part_double_is_half_shift_capped_at_worked(make_row):
    full_day = compute_row_breakdown(make_row(scheduled_hours=8, start_time="09:00", end_time="17:00", double=P))
    assert full_day.double == 4.0
    short_day = compute_row_breakdown(make_row(scheduled_hours=8, start_time="09:00", end_time="12:00", double=P))
    assert short_day.double == 3.0


def test_no_premiums_without_worked_time_or_protection(make_row):
    b = compute_row_breakdown(make_row(scheduled_hours=8, start_time="14:00"))
    assert b.worked == 0.0
    assert b.late == 0.0


def test_base_shift_falls_back_to_clock_hours(make_row):
    b = compute_row_breakdown(make_row(start_time="09:00", end_time="13:00", holiday=F))
    assert b.holiday == 4.0


def test_sick_hours_are_separate(make_row):
    b = compute_row_breakdown(make_row(sick_hours=7.5))
    assert b.sick == 7.5
    assert b.worked == 0.0
    assert b.qualifying == 0.0


def test_bad_numbers_clamp_to_zero(make_row):
    row = make_row(scheduled_hours=-5, sick_hours=float("nan"), start_time="xx", end_time="17:00")
    b = compute_row_breakdown(row)
    assert row.scheduled_hours == 0.0
    assert b.sick == 0.0
    assert b.worked == 0.0


def test_breakdown_is_deterministic(make_row, rates):
    row = make_row(scheduled_hours=9, start_time="13:30", end_time="23:15", lieu=P, double=P)
    assert compute_row_breakdown(row, rates) == compute_row_breakdown(row, rates)


def test_every_flag_combination_is_non_negative(make_row):
    kinds = [k.value for k in FlagKind]
    for combo in itertools.product(list(Flag), repeat=len(kinds)):
        row = make_row(scheduled_hours=8, start_time="18:00", end_time="01:30", **dict(zip(kinds, combo)))
        b = compute_row_breakdown(row)
        assert all(v >= 0 for v in asdict(b).values()), combo
        full_buckets = [b.unpaid_full, b.holiday, b.lieu, b.bank_holiday]
        assert sum(1 for v in full_buckets if v > 0) <= 1, combo


def test_add_hours_to_time_handles_huge_hours():
    assert add_hours_to_time("14:00", 1e308) == add_hours_to_time("14:00", 1e308 % 24)
    assert add_hours_to_time("14:00", 48) == "14:00"
    assert add_hours_to_time("14:00", 26) == "16:00"


def test_huge_scheduled_hours_on_protected_row(make_row):
    row = make_row(scheduled_hours=1e308, start_time="14:00", lieu=Flag.PART)
    row.scheduled_hours = 1e308  # bypass the record's own cap
    b = compute_row_breakdown(row)
    assert b.lieu == 24.0
    assert all(v >= 0 for v in asdict(b).values())


@pytest.mark.parametrize("kind", ["double", "bank_holiday", "lieu"])
def test_protected_premiums_use_scheduled_end(make_row, kind):
    b = compute_row_breakdown(make_row(scheduled_hours=8, start_time="14:00", end_time="18:00", **{kind: P}))
    assert b.worked == 4.0
    assert b.late == 8.0


@pytest.mark.parametrize("kind", ["double", "bank_holiday", "lieu"])
def test_protected_premiums_without_schedule_use_actual_end(make_row, kind):
    b = compute_row_breakdown(make_row(start_time="14:00", end_time="18:00", **{kind: P}))
    assert b.late == 4.0


def test_full_double_short_day_keeps_scheduled_premiums(make_row):
    b = compute_row_breakdown(make_row(scheduled_hours=8, start_time="14:00", end_time="18:00", double=F))
    assert b.worked == 4.0
    assert b.double == 4.0
    assert b.late == 8.0


def test_bank_holiday_full_night_shift_keeps_night_premium(make_row):
    b = compute_row_breakdown(make_row(scheduled_hours=8, start_time="22:00", end_time="02:00", bank_holiday=F))
    assert b.worked == 0.0
    assert b.bank_holiday == 8.0
    assert b.night == 8.0


def test_no_premiums_without_base_shift(make_row):
    b = compute_row_breakdown(make_row(start_time="14:00", lieu=F))
    assert b.lieu == 0.0
    assert b.late == 0.0
    assert b.night == 0.0
