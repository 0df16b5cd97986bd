# domain.py
from __future__ import annotations

import math
from dataclasses import dataclass, fields, asdict
from datetime import date
from enum import Enum
from typing import Any, Mapping


class Flag(str, Enum):
    """Absence/adjustment marker for a day. Stored as the short codes "", "Y", "P"."""
    NONE = ""
    FULL = "Y"
    PART = "P"

    @classmethod
    def coerce(cls, value: Any) -> "Flag":
        if isinstance(value, Flag):
            return value
        code = str(value or "").strip().lower()
        if code in ("y", "full"):
            return cls.FULL
        if code in ("p", "part"):
            return cls.PART
        return cls.NONE


class FlagKind(str, Enum):
    UNPAID = "unpaid"
    HOLIDAY = "holiday"
    LIEU = "lieu"
    BANK_HOLIDAY = "bank_holiday"
    DOUBLE = "double"


MAX_DAY_HOURS = 24.0


def format_month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def safe_num(value: Any, fallback: float) -> float:
    """float(value) when finite and non-negative, otherwise the fallback."""
    try:
        n = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(n) or n < 0:
        return fallback
    return n


@dataclass
class ShiftRecord:
    """One saved day. `work_date` is the identity of the row."""
    work_date: date
    scheduled_hours: float = 0.0
    start_time: str = ""
    end_time: str = ""
    holiday: Flag = Flag.NONE
    unpaid: Flag = Flag.NONE
    lieu: Flag = Flag.NONE
    bank_holiday: Flag = Flag.NONE
    double: Flag = Flag.NONE
    sick_hours: float = 0.0

    def __post_init__(self):
        self.scheduled_hours = min(safe_num(self.scheduled_hours, 0.0), MAX_DAY_HOURS)
        self.sick_hours = min(safe_num(self.sick_hours, 0.0), MAX_DAY_HOURS)
        self.start_time = (self.start_time or "").strip()
        self.end_time = (self.end_time or "").strip()
        for kind in FlagKind:
            setattr(self, kind.value, Flag.coerce(getattr(self, kind.value)))

    def flag(self, kind: FlagKind | str) -> Flag:
        return getattr(self, FlagKind(kind).value)


# Stored (camelCase) key -> field name
_RATE_KEYS = {
    "baseRate": "base_rate",
    "otThreshold": "ot_threshold",
    "otPremiumAdd": "ot_premium_add",
    "latePremiumAdd": "late_premium_add",
    "nightPremiumAdd": "night_premium_add",
    "doubleRate": "double_rate",
    "holidayRate": "holiday_rate",
}


@dataclass(frozen=True)
class RateConfiguration:
    """
    Pay rates used for one calculation.

    `double_rate` is a multiplier on the base rate (2 means double time).
    `holiday_rate` is an absolute hourly amount, not derived from the base rate.
    """
    base_rate: float = 17.30
    ot_threshold: float = 160.0
    ot_premium_add: float = 6.70
    late_premium_add: float = 2.26
    night_premium_add: float = 3.45
    double_rate: float = 2.0
    holiday_rate: float = 0.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None,
                     fallback: "RateConfiguration | None" = None) -> "RateConfiguration":
        """
        Builds a configuration from stored data, field by field.
        Missing or invalid values keep the fallback's value (defaults if none given).
        """
        base = fallback or DEFAULT_RATES
        data = data if isinstance(data, Mapping) else {}
        values = {}
        for f in fields(cls):
            camel = next((k for k, v in _RATE_KEYS.items() if v == f.name), f.name)
            raw = data.get(camel, data.get(f.name))
            values[f.name] = safe_num(raw, getattr(base, f.name))
        return cls(**values)

    def to_mapping(self) -> dict[str, float]:
        return {camel: getattr(self, name) for camel, name in _RATE_KEYS.items()}


DEFAULT_RATES = RateConfiguration()


@dataclass
class RowBreakdown:
    """Hour buckets for a single day (unrounded)."""
    worked: float = 0.0
    holiday: float = 0.0
    lieu: float = 0.0
    bank_holiday: float = 0.0
    double: float = 0.0
    unpaid_full: float = 0.0
    unpaid_part: float = 0.0
    sick: float = 0.0
    late: float = 0.0
    night: float = 0.0

    @property
    def qualifying(self) -> float:
        # double is a subset of worked, unpaid never counts
        return self.worked + self.holiday + self.lieu + self.bank_holiday

    def rounded(self) -> dict[str, float]:
        out = {k: round(v, 2) for k, v in asdict(self).items()}
        out["qualifying"] = round(self.qualifying, 2)
        return out


@dataclass
class MonthTotals:
    # hours
    worked: float = 0.0
    qualifying: float = 0.0
    standard: float = 0.0
    overtime: float = 0.0
    late: float = 0.0
    night: float = 0.0
    holiday: float = 0.0
    lieu: float = 0.0
    bank_holiday: float = 0.0
    double: float = 0.0
    unpaid_full: float = 0.0
    unpaid_part: float = 0.0
    sick: float = 0.0
    # pay
    standard_pay: float = 0.0
    overtime_pay: float = 0.0
    sick_pay: float = 0.0
    late_pay: float = 0.0
    night_pay: float = 0.0
    lieu_pay: float = 0.0
    bank_holiday_pay: float = 0.0
    double_pay: float = 0.0
    holiday_pay: float = 0.0
    total_pay: float = 0.0

    PAY_FIELDS = (
        "standard_pay", "overtime_pay", "sick_pay", "late_pay", "night_pay",
        "lieu_pay", "bank_holiday_pay", "double_pay", "holiday_pay",
    )
