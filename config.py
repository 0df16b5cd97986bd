# config.py
"""
Runtime configuration: where data lives and how logging is set up.

Everything is driven by environment variables so the same code runs on a
laptop and on a small hosted box:

- DATA_DIR: writable directory for the SQLite file (falls back to /data, ./data, cwd)
- DATABASE_URL: full SQLAlchemy URL, overrides the SQLite file
- LOG_LEVEL: root logging level (default INFO)
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

APP_TITLE = "Wage Check"
CURRENCY_SYMBOL = "£"
DB_FILENAME = "wagecheck.db"
LOG_FORMAT = "%(levelname)-8s %(asctime)s [%(name)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def pick_data_dir() -> Path:
    candidates = []
    env = os.getenv("DATA_DIR")
    if env:
        candidates.append(Path(env))
    candidates += [Path("/data"), Path.cwd() / "data"]

    for p in candidates:
        try:
            p.mkdir(parents=True, exist_ok=True)
            t = p / ".rwtest"
            t.write_text("ok")
            t.unlink(missing_ok=True)
            return p
        except OSError:
            continue
    return Path.cwd()


def database_url(data_dir: Path | None = None) -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    d = data_dir or pick_data_dir()
    return f"sqlite:///{(d / DB_FILENAME).as_posix()}"


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger once with a console handler."""
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))

    root_logger.handlers.clear()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
    root_logger.addHandler(handler)

    # SQL echo is opt-in through the engine, keep the library quiet otherwise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    logging.getLogger(__name__).debug("Logging configured (level=%s)", level_name)
