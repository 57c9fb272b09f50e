import logging
import sqlite3

import pytest

from piccolo.errors import ConfigError
from piccolo.events import EventLog


def test_journal_disabled_by_default(caplog):
    log = EventLog()
    with caplog.at_level(logging.INFO, logger="piccolo"):
        log.log_event("INFO", "hello", catalog="apps", component="web")

    assert log.db_path is None
    assert log.list_events() == []
    assert "[apps/web] hello" in caplog.text


def test_log_event_writes_row(tmp_path):
    log = EventLog(str(tmp_path / "events.db"))
    log.log_event("warn", "first")
    log.log_event("ERROR", "second", catalog="apps", component="web")

    rows = log.list_events(limit=10)
    assert [r.message for r in rows] == ["second", "first"]
    assert rows[0].level == "ERROR"
    assert (rows[0].catalog, rows[0].component) == ("apps", "web")
    assert rows[1].level == "WARN"

    conn = sqlite3.connect(log.db_path)
    count = conn.execute("SELECT COUNT(*) FROM events").fetchone()[0]
    conn.close()
    assert count == 2


def test_directory_path_gets_a_db_file_inside(tmp_path):
    log = EventLog(str(tmp_path))
    assert log.db_path == str(tmp_path / "piccolo-events.db")
    log.log_event("INFO", "x")
    assert len(log.list_events()) == 1


def test_unusable_journal_path_is_config_error(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")
    with pytest.raises(ConfigError):
        EventLog(str(blocker / "events.db"))


def test_connections_are_closed_after_each_write(tmp_path, monkeypatch):
    log = EventLog(str(tmp_path / "events.db"))
    opened = []
    connect = log.connect

    def tracking_connect():
        conn = connect()
        opened.append(conn)
        return conn

    monkeypatch.setattr(log, "connect", tracking_connect)
    log.log_event("INFO", "one")
    log.list_events()

    assert len(opened) == 2
    for conn in opened:
        with pytest.raises(sqlite3.ProgrammingError):
            conn.execute("SELECT 1")
