"""
Pytest configuration and shared fixtures.

- rates: the default rate configuration
- db_url: a file-backed SQLite database under tmp_path, fresh per test
- make_row: builds a ShiftRecord with sensible defaults
"""

import datetime
import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# ruff: noqa: E402
from domain import DEFAULT_RATES, ShiftRecord


@pytest.fixture
def rates():
    return DEFAULT_RATES


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{(tmp_path / 'wagecheck_test.db').as_posix()}"


@pytest.fixture
def make_row():
    def _make(day=1, **kwargs):
        kwargs.setdefault("work_date", datetime.date(2026, 3, day))
        return ShiftRecord(**kwargs)

    return _make
