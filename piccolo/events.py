from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import closing
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

from .errors import ConfigError

logger = logging.getLogger("piccolo")


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


@dataclass(frozen=True)
class EventRow:
    id: int
    ts: str
    level: str
    catalog: str | None
    component: str | None
    message: str


def _resolve_db_path(path: str) -> str:
    """Return a file path usable by sqlite.

    If the configured path is a directory (e.g. a bind mount created by Docker),
    the journal file is placed inside it.
    """
    p = os.path.abspath(path)
    if os.path.isdir(p):
        p = os.path.join(p, "piccolo-events.db")
    parent = os.path.dirname(p)
    if parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)
    return p


class EventLog:
    """Agent event sink: console logging plus an optional append-only SQLite journal.

    The journal is an audit trail only. Nothing in the reconcile path reads it back.
    """

    def __init__(self, db_path: str | None = None):
        self.db_path = None
        if not db_path:
            return
        try:
            self.db_path = _resolve_db_path(db_path)
            self.init_db()
        except (OSError, sqlite3.Error) as e:
            raise ConfigError(f"Cannot open event journal {db_path}: {e}") from e

    def connect(self) -> sqlite3.Connection:
        if not self.db_path:
            raise RuntimeError("event journal is disabled")
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        with closing(self.connect()) as conn, conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS events (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  ts TEXT NOT NULL,
                  level TEXT NOT NULL,
                  catalog TEXT,
                  component TEXT,
                  message TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_events_ts ON events(ts);
                """
            )

    def log_event(
        self,
        level: str,
        message: str,
        catalog: str | None = None,
        component: str | None = None,
    ) -> None:
        level = level.upper()
        prefix = "/".join(x for x in (catalog, component) if x)
        logger.log(_LEVELS.get(level, logging.INFO), "%s%s", f"[{prefix}] " if prefix else "", message)

        if not self.db_path:
            return
        try:
            with closing(self.connect()) as conn, conn:
                conn.execute(
                    "INSERT INTO events (ts, level, catalog, component, message) VALUES (?, ?, ?, ?, ?)",
                    (utc_now(), level, catalog, component, message),
                )
        except sqlite3.Error as e:
            logger.warning("event journal write failed: %s", e)

    def list_events(self, limit: int = 20) -> list[EventRow]:
        if not self.db_path:
            return []
        with closing(self.connect()) as conn, conn:
            rows = conn.execute(
                "SELECT * FROM events ORDER BY id DESC LIMIT ?", (max(0, int(limit)),)
            ).fetchall()
            return _rows_to_events(rows)


def _rows_to_events(rows: Iterable[sqlite3.Row]) -> list[EventRow]:
    return [EventRow(**dict(r)) for r in rows]
