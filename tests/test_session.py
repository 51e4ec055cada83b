# tests/test_session.py
"""Tests for the unit-of-work helper."""

from types import SimpleNamespace

import pytest

from quill.core.settings import settings
from quill.db.session import transaction


class RecordingSession:
    """Session double that records executed statements and their outcome."""

    def __init__(self, dialect: str) -> None:
        self.dialect = dialect
        self.executed: list[tuple[str, dict]] = []
        self.committed = False
        self.rolled_back = False

    def get_bind(self):
        return SimpleNamespace(dialect=SimpleNamespace(name=self.dialect))

    def execute(self, statement, params=None):
        self.executed.append((str(statement), params or {}))

    def commit(self) -> None:
        self.committed = True

    def rollback(self) -> None:
        self.rolled_back = True


def test_postgres_transaction_bounds_statements_and_idle_time(monkeypatch) -> None:
    monkeypatch.setattr(settings, "transaction_timeout_seconds", 5)
    db = RecordingSession("postgresql")

    with transaction(db):
        pass

    assert [params for _, params in db.executed] == [
        {"name": "statement_timeout", "timeout": "5000"},
        {"name": "idle_in_transaction_session_timeout", "timeout": "5000"},
    ]
    assert all("set_config" in sql for sql, _ in db.executed)
    assert db.committed


def test_sqlite_transaction_sets_no_timeouts() -> None:
    db = RecordingSession("sqlite")
    with transaction(db):
        pass
    assert db.executed == []
    assert db.committed


def test_failed_block_rolls_back() -> None:
    db = RecordingSession("sqlite")
    with pytest.raises(ValueError):
        with transaction(db):
            raise ValueError("boom")
    assert db.rolled_back
    assert not db.committed
