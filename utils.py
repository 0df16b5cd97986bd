# utils.py
import io
import math
from typing import Iterable

import pandas as pd

from config import CURRENCY_SYMBOL
from domain import DEFAULT_RATES, MonthTotals, RateConfiguration, ShiftRecord
from services import compute_month_totals, compute_row_breakdown, compute_worked_hours

CSV_COLUMNS = [
    "date", "startTime", "endTime", "scheduledHours", "workedHours", "lateHours", "nightHours",
    "holidayFlag", "unpaidFlag", "lieuFlag", "bankHolFlag", "doubleFlag", "sickHours",
]

# (label, hours field, pay field)
SUMMARY_LINES = [
    ("Standard", "standard", "standard_pay"),
    ("Overtime", "overtime", "overtime_pay"),
    ("Late premium", "late", "late_pay"),
    ("Night premium", "night", "night_pay"),
    ("Holiday", "holiday", "holiday_pay"),
    ("Lieu", "lieu", "lieu_pay"),
    ("Bank holiday", "bank_holiday", "bank_holiday_pay"),
    ("Double time", "double", "double_pay"),
    ("Sick", "sick", "sick_pay"),
    ("Unpaid (full)", "unpaid_full", None),
    ("Unpaid (part)", "unpaid_part", None),
]

CSV_SUMMARY = [
    ("Worked", "worked"), ("Qualifying", "qualifying"), ("STD", "standard"), ("OT", "overtime"),
    ("Late", "late"), ("Night", "night"), ("Holiday", "holiday"), ("LIEU", "lieu"),
    ("BH", "bank_holiday"), ("Double", "double"), ("UnpaidFull", "unpaid_full"),
    ("UnpaidPart", "unpaid_part"), ("Sick", "sick"), ("TotalPay", "total_pay"),
]


def fmt_gbp(value: float) -> str:
    v = value if isinstance(value, (int, float)) and math.isfinite(value) else 0.0
    return f"{CURRENCY_SYMBOL}{v:.2f}"


def rows_to_dataframe(rows: Iterable[ShiftRecord], rates: RateConfiguration = DEFAULT_RATES) -> pd.DataFrame:
    """One line per saved day with its inputs and rounded breakdown."""
    records = []
    for r in rows:
        b = compute_row_breakdown(r, rates).rounded()
        records.append({
            "Date": r.work_date.isoformat(),
            "Start": r.start_time,
            "End": r.end_time,
            "Scheduled": r.scheduled_hours,
            "Worked": b["worked"],
            "Late": b["late"],
            "Night": b["night"],
            "Holiday": b["holiday"],
            "Lieu": b["lieu"],
            "Bank hol": b["bank_holiday"],
            "Double": b["double"],
            "Unpaid": round(b["unpaid_full"] + b["unpaid_part"], 2),
            "Sick": b["sick"],
            "Qualifying": b["qualifying"],
            "Flags": " ".join(
                f"{k}:{r.flag(k).value}" for k in ("holiday", "unpaid", "lieu", "bank_holiday", "double")
                if r.flag(k).value
            ),
        })
    df = pd.DataFrame(records)
    if not df.empty:
        df = df.sort_values(["Date"]).reset_index(drop=True)
    return df


def totals_to_dataframe(totals: MonthTotals) -> pd.DataFrame:
    records = [
        {
            "Item": label,
            "Hours": getattr(totals, hours),
            "Pay": fmt_gbp(getattr(totals, pay)) if pay else "",
        }
        for label, hours, pay in SUMMARY_LINES
    ]
    records.append({"Item": "Total", "Hours": totals.qualifying, "Pay": fmt_gbp(totals.total_pay)})
    return pd.DataFrame(records)


def export_csv(rows: Iterable[ShiftRecord], rates: RateConfiguration = DEFAULT_RATES) -> str:
    """Row lines plus a trailing MONTH_SUMMARY line."""
    rows = sorted(rows, key=lambda r: r.work_date)
    lines = []
    for r in rows:
        b = compute_row_breakdown(r, rates).rounded()
        lines.append({
            "date": r.work_date.isoformat(),
            "startTime": r.start_time,
            "endTime": r.end_time,
            "scheduledHours": r.scheduled_hours,
            "workedHours": round(compute_worked_hours(r.start_time, r.end_time), 2),
            "lateHours": b["late"],
            "nightHours": b["night"],
            "holidayFlag": r.holiday.value,
            "unpaidFlag": r.unpaid.value,
            "lieuFlag": r.lieu.value,
            "bankHolFlag": r.bank_holiday.value,
            "doubleFlag": r.double.value,
            "sickHours": r.sick_hours,
        })
    df = pd.DataFrame(lines, columns=CSV_COLUMNS)

    totals = compute_month_totals(rows, rates)
    summary = ",".join(["", "MONTH_SUMMARY"] + [f"{name}={getattr(totals, f)}" for name, f in CSV_SUMMARY])

    buf = io.StringIO()
    df.to_csv(buf, index=False, lineterminator="\n")
    return buf.getvalue() + summary + "\n"
