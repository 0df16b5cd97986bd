# repository.py
from __future__ import annotations

import json
import logging
from datetime import date
from typing import List

from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel, Field, Session, create_engine, select

from domain import DEFAULT_RATES, RateConfiguration, ShiftRecord, format_month_key

logger = logging.getLogger(__name__)

SETTINGS_KEY = "wagecheck.settings.v1"


class ShiftRecordDB(SQLModel, table=True):
    work_date: date = Field(primary_key=True)
    scheduled_hours: float = 0.0
    start_time: str = ""
    end_time: str = ""
    holiday_flag: str = ""
    unpaid_flag: str = ""
    lieu_flag: str = ""
    bank_holiday_flag: str = ""
    double_flag: str = ""
    sick_hours: float = 0.0


class AppSettingDB(SQLModel, table=True):
    key: str = Field(primary_key=True)
    value: str


def build_engine(db_url: str, echo: bool = False):
    is_sqlite = db_url.startswith("sqlite")
    kwargs = {
        "echo": echo,
        "pool_pre_ping": True,
        "connect_args": {},
    }
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs["poolclass"] = NullPool
        kwargs["connect_args"] = {"connect_timeout": 10}
    return create_engine(db_url, **kwargs)


def _to_db(s: ShiftRecord) -> ShiftRecordDB:
    return ShiftRecordDB(
        work_date=s.work_date,
        scheduled_hours=s.scheduled_hours,
        start_time=s.start_time,
        end_time=s.end_time,
        holiday_flag=s.holiday.value,
        unpaid_flag=s.unpaid.value,
        lieu_flag=s.lieu.value,
        bank_holiday_flag=s.bank_holiday.value,
        double_flag=s.double.value,
        sick_hours=s.sick_hours,
    )


def _from_db(r: ShiftRecordDB) -> ShiftRecord:
    return ShiftRecord(
        work_date=r.work_date,
        scheduled_hours=r.scheduled_hours,
        start_time=r.start_time,
        end_time=r.end_time,
        holiday=r.holiday_flag,
        unpaid=r.unpaid_flag,
        lieu=r.lieu_flag,
        bank_holiday=r.bank_holiday_flag,
        double=r.double_flag,
        sick_hours=r.sick_hours,
    )


def _month_range(year: int, month: int) -> tuple[date, date]:
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


class ShiftRepository:
    """Saved days, one row per date. Saving a date that exists replaces it."""
    def __init__(self, url: str = "sqlite:///wagecheck.db", echo: bool = False):
        self.url = url
        self.engine = build_engine(url, echo=echo)
        SQLModel.metadata.create_all(self.engine)

    def save(self, s: ShiftRecord) -> None:
        with Session(self.engine) as session:
            replaced = session.get(ShiftRecordDB, s.work_date) is not None
            session.merge(_to_db(s))
            session.commit()
        logger.info("%s shift for %s", "Replaced" if replaced else "Saved", s.work_date.isoformat())

    def get(self, d: date) -> ShiftRecord | None:
        with Session(self.engine) as session:
            row = session.get(ShiftRecordDB, d)
            return _from_db(row) if row else None

    def delete(self, d: date) -> bool:
        with Session(self.engine) as session:
            row = session.get(ShiftRecordDB, d)
            if row is None:
                return False
            session.delete(row)
            session.commit()
        logger.info("Deleted shift for %s", d.isoformat())
        return True

    def list_all(self) -> List[ShiftRecord]:
        with Session(self.engine) as session:
            rows = session.exec(select(ShiftRecordDB).order_by(ShiftRecordDB.work_date.desc())).all()
            return [_from_db(r) for r in rows]

    def list_month(self, year: int, month: int) -> List[ShiftRecord]:
        d1, d2 = _month_range(year, month)
        with Session(self.engine) as session:
            rows = session.exec(
                select(ShiftRecordDB)
                .where(ShiftRecordDB.work_date >= d1, ShiftRecordDB.work_date < d2)
                .order_by(ShiftRecordDB.work_date)
            ).all()
            return [_from_db(r) for r in rows]

    def months_with_rows(self) -> set[str]:
        with Session(self.engine) as session:
            dates = session.exec(select(ShiftRecordDB.work_date)).all()
        return {format_month_key(d) for d in dates}

    def clear_month(self, year: int, month: int) -> int:
        d1, d2 = _month_range(year, month)
        with Session(self.engine) as session:
            rows = session.exec(
                select(ShiftRecordDB).where(ShiftRecordDB.work_date >= d1, ShiftRecordDB.work_date < d2)
            ).all()
            for r in rows:
                session.delete(r)
            session.commit()
        logger.info("Cleared %d shifts for %04d-%02d", len(rows), year, month)
        return len(rows)


class SettingsRepository:
    """Rate configuration stored as a JSON blob; get() never fails."""
    def __init__(self, engine):
        self.engine = engine
        SQLModel.metadata.create_all(self.engine)

    def get(self) -> RateConfiguration:
        with Session(self.engine) as session:
            row = session.get(AppSettingDB, SETTINGS_KEY)
            raw = row.value if row else None
        if not raw:
            return DEFAULT_RATES
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Stored settings are not valid JSON, using defaults")
            return DEFAULT_RATES
        return RateConfiguration.from_mapping(data)

    def set(self, rates: RateConfiguration) -> None:
        with Session(self.engine) as session:
            session.merge(AppSettingDB(key=SETTINGS_KEY, value=json.dumps(rates.to_mapping())))
            session.commit()
        logger.info("Saved rate settings: %s", rates.to_mapping())

    def restore_defaults(self) -> RateConfiguration:
        self.set(DEFAULT_RATES)
        return DEFAULT_RATES


__all__ = [
    "AppSettingDB", "SETTINGS_KEY", "SettingsRepository",
    "ShiftRecordDB", "ShiftRepository", "build_engine",
]
