# services.py
from __future__ import annotations

import logging
import math
import re
from typing import Iterable

from domain import (
    DEFAULT_RATES,
    MAX_DAY_HOURS,
    Flag,
    FlagKind,
    MonthTotals,
    RateConfiguration,
    RowBreakdown,
    ShiftRecord,
)

logger = logging.getLogger(__name__)

DAY_MIN = 24 * 60
LATE_WINDOW = (14 * 60, 22 * 60)
NIGHT_WINDOW = (22 * 60, 30 * 60)  # 22:00 -> 06:00 next day

# Absence kinds in priority order; the first one set wins.
FLAG_PRECEDENCE = (FlagKind.UNPAID, FlagKind.HOLIDAY, FlagKind.LIEU, FlagKind.BANK_HOLIDAY)
PROTECTING_KINDS = (FlagKind.LIEU, FlagKind.BANK_HOLIDAY, FlagKind.DOUBLE)

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")


def clamp_non_neg(n: float) -> float:
    try:
        n = float(n)
    except (TypeError, ValueError):
        return 0.0
    return max(0.0, n) if math.isfinite(n) else 0.0


def day_hours(n: float) -> float:
    return min(clamp_non_neg(n), MAX_DAY_HOURS)


def _pay(hours: float, rate: float) -> float:
    """Rounded pay line; 0 when the product is not a finite amount."""
    return round(clamp_non_neg(hours * rate), 2)


def to_minutes(t: str | None) -> int | None:
    """Minutes from midnight for "H:MM", "HH:MM" or "HH:MM:SS"; None when invalid."""
    m = _TIME_RE.match((t or "").strip())
    if not m:
        return None
    hh, mm = int(m.group(1)), int(m.group(2))
    if hh > 23 or mm > 59:
        return None
    return hh * 60 + mm


def _span(start_time: str | None, end_time: str | None) -> tuple[int, int] | None:
    s = to_minutes(start_time)
    e = to_minutes(end_time)
    if s is None or e is None:
        return None
    if e <= s:
        e += DAY_MIN  # overnight
    return s, e


def compute_worked_hours(start_time: str | None, end_time: str | None) -> float:
    """Clock hours between start and end. End at or before start crosses midnight."""
    span = _span(start_time, end_time)
    if span is None:
        return 0.0
    return (span[1] - span[0]) / 60.0


def _overlap(a0: int, a1: int, b0: int, b1: int) -> int:
    return max(0, min(a1, b1) - max(a0, b0))


def compute_late_night_hours(start_time: str | None, end_time: str | None) -> tuple[float, float]:
    """
    Returns (late, night) hours of the shift.

    Late is 14:00-22:00, night is 22:00-06:00. The windows are checked on the
    previous, same and next day so a shift is handled the same whichever side
    of midnight it starts.
    """
    span = _span(start_time, end_time)
    if span is None:
        return 0.0, 0.0
    s, e = span
    late_min = night_min = 0
    for offset in (-DAY_MIN, 0, DAY_MIN):
        late_min += _overlap(s, e, offset + LATE_WINDOW[0], offset + LATE_WINDOW[1])
        night_min += _overlap(s, e, offset + NIGHT_WINDOW[0], offset + NIGHT_WINDOW[1])
    return late_min / 60.0, night_min / 60.0


def add_hours_to_time(start_time: str | None, hours: float) -> str:
    """Wall-clock time `hours` after start, wrapped to 24h. Empty string if start is invalid."""
    s = to_minutes(start_time)
    if s is None:
        return ""
    total = (s + round((clamp_non_neg(hours) % 24) * 60)) % DAY_MIN
    return f"{total // 60:02d}:{total % 60:02d}"


def first_flag(row: ShiftRecord, flag: Flag) -> FlagKind | None:
    """First absence kind (by FLAG_PRECEDENCE) set to `flag` on the row."""
    for kind in FLAG_PRECEDENCE:
        if row.flag(kind) is flag:
            return kind
    return None


_BUCKET_FOR = {
    FlagKind.UNPAID: "unpaid_full",
    FlagKind.HOLIDAY: "holiday",
    FlagKind.LIEU: "lieu",
    FlagKind.BANK_HOLIDAY: "bank_holiday",
}


def compute_row_breakdown(row: ShiftRecord, rates: RateConfiguration = DEFAULT_RATES) -> RowBreakdown:
    """
    Splits one day into hour buckets.

    - Full unpaid/holiday/lieu/bank holiday: nothing physically worked, the whole
      base shift goes to the winning bucket.
    - Full double: still worked; the base shift is also counted as double time.
    - Part flags: the unworked remainder of the base shift goes to the first part
      flag set. Part double is half the base shift, capped at worked hours.
    - Premiums are blocked by full unpaid/holiday and protected (counted across
      the scheduled window) by any lieu, bank holiday or double flag.

    Hour buckets do not depend on `rates`.
    """
    scheduled = day_hours(row.scheduled_hours)
    clock_hours = compute_worked_hours(row.start_time, row.end_time)
    base_shift = scheduled if scheduled > 0 else clock_hours

    full_kind = first_flag(row, Flag.FULL)
    if full_kind is not None and sum(row.flag(k) is Flag.FULL for k in FLAG_PRECEDENCE) > 1:
        logger.debug("%s: several full-day flags set, using %s", row.work_date, full_kind.value)

    out = RowBreakdown(sick=day_hours(row.sick_hours))
    out.worked = 0.0 if full_kind is not None else clock_hours

    if full_kind is not None:
        setattr(out, _BUCKET_FOR[full_kind], base_shift)
    else:
        part_kind = first_flag(row, Flag.PART)
        remainder = max(0.0, base_shift - out.worked)
        if part_kind is not None and remainder > 0:
            bucket = "unpaid_part" if part_kind is FlagKind.UNPAID else _BUCKET_FOR[part_kind]
            setattr(out, bucket, remainder)

    if row.double is Flag.FULL:
        out.double = min(base_shift, clock_hours) if clock_hours > 0 else base_shift
    elif row.double is Flag.PART:
        out.double = min(out.worked, base_shift / 2)

    blocked = row.unpaid is Flag.FULL or row.holiday is Flag.FULL
    if not blocked and base_shift > 0 and to_minutes(row.start_time) is not None:
        protected = any(row.flag(k) is not Flag.NONE for k in PROTECTING_KINDS)
        if protected and scheduled > 0:
            premium_end = add_hours_to_time(row.start_time, scheduled)
        else:
            premium_end = row.end_time
        if protected or out.worked > 0:
            out.late, out.night = compute_late_night_hours(row.start_time, premium_end)

    return out


def compute_month_totals(rows: Iterable[ShiftRecord], rates: RateConfiguration = DEFAULT_RATES) -> MonthTotals:
    """
    Sums the day breakdowns and prices them.

    Hour buckets are rounded to 2 decimals once, after summing. Each pay line is
    computed from the rounded hours and rounded; the total is the sum of the lines.
    """
    tot = MonthTotals()
    sums = RowBreakdown()
    for row in rows:
        b = compute_row_breakdown(row, rates)
        for name in ("worked", "holiday", "lieu", "bank_holiday", "double",
                     "unpaid_full", "unpaid_part", "sick", "late", "night"):
            setattr(sums, name, getattr(sums, name) + getattr(b, name))

    tot.worked = round(sums.worked, 2)
    tot.holiday = round(sums.holiday, 2)
    tot.lieu = round(sums.lieu, 2)
    tot.bank_holiday = round(sums.bank_holiday, 2)
    tot.double = round(sums.double, 2)
    tot.unpaid_full = round(sums.unpaid_full, 2)
    tot.unpaid_part = round(sums.unpaid_part, 2)
    tot.sick = round(sums.sick, 2)
    tot.late = round(sums.late, 2)
    tot.night = round(sums.night, 2)
    tot.qualifying = round(tot.worked + tot.holiday + tot.lieu + tot.bank_holiday, 2)

    base = clamp_non_neg(rates.base_rate)
    ot_threshold = clamp_non_neg(rates.ot_threshold)

    # Overtime can only come from worked hours not already paid as double.
    raw_overtime = max(0.0, tot.qualifying - ot_threshold)
    worked_eligible = max(0.0, tot.worked - tot.double)
    tot.overtime = round(min(worked_eligible, raw_overtime), 2)
    tot.standard = round(max(0.0, worked_eligible - tot.overtime), 2)

    tot.standard_pay = _pay(tot.standard, base)
    tot.overtime_pay = _pay(tot.overtime, base + clamp_non_neg(rates.ot_premium_add))
    tot.sick_pay = _pay(tot.sick, base)
    tot.late_pay = _pay(tot.late, clamp_non_neg(rates.late_premium_add))
    tot.night_pay = _pay(tot.night, clamp_non_neg(rates.night_premium_add))
    tot.lieu_pay = _pay(tot.lieu, base)
    tot.bank_holiday_pay = _pay(tot.bank_holiday, base)
    tot.double_pay = _pay(tot.double, base * clamp_non_neg(rates.double_rate))
    tot.holiday_pay = _pay(tot.holiday, clamp_non_neg(rates.holiday_rate))
    tot.total_pay = round(clamp_non_neg(sum(getattr(tot, f) for f in MonthTotals.PAY_FIELDS)), 2)
    return tot


class WageCalculator:
    """Binds a rate configuration to the engine functions."""
    def __init__(self, rates: RateConfiguration = DEFAULT_RATES):
        self.rates = rates

    def row_breakdown(self, row: ShiftRecord) -> RowBreakdown:
        return compute_row_breakdown(row, self.rates)

    def month_totals(self, rows: Iterable[ShiftRecord]) -> MonthTotals:
        return compute_month_totals(rows, self.rates)
