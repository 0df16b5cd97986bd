# -----------------------------------------------
# 💷 Wage Check: shift & pay estimator (Streamlit)
# -----------------------------------------------
# Requires: streamlit, sqlmodel, pandas
# Everything is stored locally (SQLite). Rates live in the sidebar.

import logging
from datetime import date

import streamlit as st

from config import APP_TITLE, database_url, pick_data_dir, setup_logging
from domain import Flag, FlagKind, RateConfiguration, ShiftRecord, format_month_key
from repository import SettingsRepository, ShiftRepository
from services import WageCalculator, compute_worked_hours
from utils import export_csv, fmt_gbp, rows_to_dataframe, totals_to_dataframe

setup_logging()
logger = logging.getLogger("wagecheck.app")

DATA_DIR = pick_data_dir()
DB_URL = database_url(DATA_DIR)


@st.cache_resource
def get_repos(url: str):
    shifts = ShiftRepository(url, echo=False)
    return shifts, SettingsRepository(shifts.engine)


shift_repo, settings_repo = get_repos(DB_URL)

FLAG_LABELS = {Flag.NONE: "—", Flag.FULL: "Full day", Flag.PART: "Part day"}
FLAG_FIELDS = [
    (FlagKind.HOLIDAY, "Holiday"),
    (FlagKind.UNPAID, "Unpaid"),
    (FlagKind.LIEU, "Lieu"),
    (FlagKind.BANK_HOLIDAY, "Bank holiday"),
    (FlagKind.DOUBLE, "Double time"),
]
RATE_FIELDS = [
    ("base_rate", "Base rate (£/h)", 0.01),
    ("ot_threshold", "Qualifying hours before overtime", 1.0),
    ("ot_premium_add", "Overtime add-on (£/h)", 0.01),
    ("late_premium_add", "Late premium add-on (£/h)", 0.01),
    ("night_premium_add", "Night premium add-on (£/h)", 0.01),
    ("double_rate", "Double time multiplier", 0.1),
    ("holiday_rate", "Holiday rate (£/h)", 0.01),
]

st.set_page_config(page_title=APP_TITLE, page_icon="💷", layout="centered")
st.title(f"💷 {APP_TITLE}")
st.caption("Log your shifts; worked hours, premiums, overtime and pay are worked out for the month.")

# =========================
# Sidebar: rate settings
# =========================
rates = settings_repo.get()
with st.sidebar:
    st.header("⚙️ Settings")
    with st.form("rates_form"):
        entered = {name: st.number_input(label, min_value=0.0, step=step, value=float(getattr(rates, name)))
                   for name, label, step in RATE_FIELDS}
        save_rates = st.form_submit_button("Save settings", use_container_width=True)
    if save_rates:
        rates = RateConfiguration.from_mapping(entered, fallback=rates)
        settings_repo.set(rates)
        st.success("Saved")
    if st.button("Restore defaults", use_container_width=True):
        rates = settings_repo.restore_defaults()
        st.rerun()

calc = WageCalculator(rates)

# =========================
# Month picker
# =========================
today = date.today()
months = sorted(shift_repo.months_with_rows() | {format_month_key(today)}, reverse=True)
month_key = st.selectbox("Month", months)
year, month = map(int, month_key.split("-"))
rows = shift_repo.list_month(year, month)

# =========================
# ➕ Add / edit a day
# =========================
st.subheader("➕ Add or edit a day")
editing = st.session_state.get("editing")
existing = shift_repo.get(editing) if editing else None

with st.form("day_form", clear_on_submit=True):
    work_date = st.date_input("Date", value=existing.work_date if existing else today)
    c1, c2, c3 = st.columns(3)
    scheduled = c1.number_input("Scheduled hours", min_value=0.0, step=0.25,
                                value=existing.scheduled_hours if existing else 0.0)
    start = c2.text_input("Start (HH:MM)", value=existing.start_time if existing else "")
    end = c3.text_input("End (HH:MM)", value=existing.end_time if existing else "")
    flag_cols = st.columns(len(FLAG_FIELDS))
    flags = {}
    for col, (kind, label) in zip(flag_cols, FLAG_FIELDS):
        current = existing.flag(kind) if existing else Flag.NONE
        flags[kind.value] = col.selectbox(label, list(Flag), index=list(Flag).index(current),
                                          format_func=FLAG_LABELS.get)
    sick = st.number_input("Sick hours", min_value=0.0, step=0.25, value=existing.sick_hours if existing else 0.0)
    submitted = st.form_submit_button("Save day", use_container_width=True)

if submitted:
    if not work_date:
        st.warning("Choose a date first.")
    else:
        record = ShiftRecord(work_date=work_date, scheduled_hours=scheduled, start_time=start,
                             end_time=end, sick_hours=sick, **flags)
        if (start or end) and compute_worked_hours(start, end) == 0:
            st.warning("Start/end not recognised (use HH:MM); saved with no worked time.")
        shift_repo.save(record)
        if editing and editing != work_date:
            shift_repo.delete(editing)
        st.session_state.pop("editing", None)
        st.rerun()

if editing and st.button("Cancel edit"):
    st.session_state.pop("editing", None)
    st.rerun()

# =========================
# 🗓️ Saved days
# =========================
st.subheader("🗓️ Saved days")
if not rows:
    st.info("No shifts saved for this month.")
else:
    st.dataframe(rows_to_dataframe(rows, rates), use_container_width=True, hide_index=True)
    pick = st.selectbox("Select a day", [r.work_date for r in rows], format_func=lambda d: d.strftime("%a %d/%m/%Y"))
    b1, b2, b3 = st.columns(3)
    if b1.button("Edit", use_container_width=True):
        st.session_state["editing"] = pick
        st.rerun()
    if b2.button("Delete", use_container_width=True):
        shift_repo.delete(pick)
        st.rerun()
    if b3.button("Clear month", use_container_width=True):
        shift_repo.clear_month(year, month)
        st.rerun()

# =========================
# 📊 Month totals
# =========================
st.subheader("📊 Month totals")
totals = calc.month_totals(rows)
m1, m2, m3 = st.columns(3)
m1.metric("Worked", f"{totals.worked:.2f} h")
m2.metric("Overtime", f"{totals.overtime:.2f} h")
m3.metric("Total pay", fmt_gbp(totals.total_pay))
st.table(totals_to_dataframe(totals))

# =========================
# ⬇️ CSV
# =========================
st.download_button(
    "Export CSV",
    data=export_csv(rows, rates).encode("utf-8"),
    file_name=f"wage-app-export-{month_key}.csv",
    mime="text/csv",
    disabled=not rows,
    use_container_width=True,
)

with st.expander("Help"):
    st.markdown(
        "- **Full day** holiday/unpaid/lieu/bank holiday: the day was not worked; "
        "the scheduled hours go to that category.\n"
        "- **Part day**: the scheduled hours you did not work go to that category.\n"
        "- **Double time** is paid on worked hours at base rate × multiplier.\n"
        "- Late is 14:00–22:00, night is 22:00–06:00. Lieu, bank holiday and double "
        "keep premiums for the scheduled window."
    )
