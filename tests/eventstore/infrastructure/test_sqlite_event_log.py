"""Tests for SqliteEventLog against a real database file."""

import sqlite3
from pathlib import Path

import pytest

from qjudge.core.db import get_connection
from qjudge.eventstore.domain.errors import ConcurrencyConflictError
from qjudge.eventstore.domain.event import PendingEvent
from qjudge.eventstore.infrastructure.sqlite import SqliteEventLog


def _event(n: int) -> PendingEvent:
    return PendingEvent(event_type="thing-happened", payload={"type": "thing-happened", "n": n})


class TestAppendAndRead:
    def test_read_unknown_entity_is_empty(self, conn: sqlite3.Connection) -> None:
        assert SqliteEventLog(conn=conn).read("judge", "j1") == []

    def test_append_assigns_versions_from_expected(self, conn: sqlite3.Connection) -> None:
        log = SqliteEventLog(conn=conn)

        stored = log.append("judge", "j1", expected_version=0, events=[_event(1), _event(2)])

        assert [e.version for e in stored] == [1, 2]
        assert [e.payload["n"] for e in log.read("judge", "j1")] == [1, 2]

    def test_seq_is_global_and_increasing(self, conn: sqlite3.Connection) -> None:
        log = SqliteEventLog(conn=conn)
        first = log.append("judge", "j1", expected_version=0, events=[_event(1)])
        second = log.append("run", "r1", expected_version=0, events=[_event(2)])

        assert second[0].seq > first[0].seq

    def test_logs_are_isolated_per_entity(self, conn: sqlite3.Connection) -> None:
        log = SqliteEventLog(conn=conn)
        log.append("judge", "j1", expected_version=0, events=[_event(1)])
        log.append("judge", "j2", expected_version=0, events=[_event(2)])

        assert [e.entity_id for e in log.read("judge", "j1")] == ["j1"]

    def test_events_survive_reconnect(self, db_path: Path) -> None:
        first = get_connection(db_path=db_path)
        SqliteEventLog(conn=first).append(
            "judge", "j1", expected_version=0, events=[_event(1)]
        )
        first.close()

        second = get_connection(db_path=db_path)
        try:
            assert len(SqliteEventLog(conn=second).read("judge", "j1")) == 1
        finally:
            second.close()


class TestOptimisticConcurrency:
    def test_stale_expected_version_is_rejected(self, conn: sqlite3.Connection) -> None:
        log = SqliteEventLog(conn=conn)
        log.append("judge", "j1", expected_version=0, events=[_event(1)])

        with pytest.raises(ConcurrencyConflictError) as exc_info:
            log.append("judge", "j1", expected_version=0, events=[_event(2)])

        assert exc_info.value.retriable is True
        assert len(log.read("judge", "j1")) == 1

    def test_failed_transaction_appends_nothing(self, conn: sqlite3.Connection) -> None:
        log = SqliteEventLog(conn=conn)

        with pytest.raises(RuntimeError):
            with log.transaction():
                log.append("judge", "j1", expected_version=0, events=[_event(1)])
                raise RuntimeError("boom")

        assert log.read("judge", "j1") == []


class TestReadSince:
    def test_filters_by_entity_type_and_cursor(self, conn: sqlite3.Connection) -> None:
        log = SqliteEventLog(conn=conn)
        [a] = log.append("judge", "j1", expected_version=0, events=[_event(1)])
        log.append("run", "r1", expected_version=0, events=[_event(2)])
        [c] = log.append("judge", "j2", expected_version=0, events=[_event(3)])

        assert [e.seq for e in log.read_since(0, ["judge"], limit=10)] == [a.seq, c.seq]
        assert [e.seq for e in log.read_since(a.seq, ["judge"], limit=10)] == [c.seq]

    def test_respects_limit(self, conn: sqlite3.Connection) -> None:
        log = SqliteEventLog(conn=conn)
        log.append("judge", "j1", expected_version=0, events=[_event(n) for n in range(5)])

        assert len(log.read_since(0, ["judge"], limit=2)) == 2

    def test_no_entity_types_reads_nothing(self, conn: sqlite3.Connection) -> None:
        log = SqliteEventLog(conn=conn)
        log.append("judge", "j1", expected_version=0, events=[_event(1)])

        assert log.read_since(0, [], limit=10) == []
