"""
Unit-of-work helper tests.
"""

from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from conftest import transaction_payload
from trxdesk.errors import ConflictError
from trxdesk.models import Transaction, User
from trxdesk.services import concurrency
from trxdesk.services.concurrency import commit_unit, run_with_retry


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(concurrency.time, "sleep", lambda _seconds: None)


def test_retries_lock_failures(db_session):
    attempts = []

    def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise OperationalError("UPDATE transactions", {}, Exception("database is locked"))
        return "done"

    assert run_with_retry(flaky) == "done"
    assert len(attempts) == 3


def test_gives_up_after_last_attempt(db_session):
    def stale():
        raise StaleDataError("version mismatch")

    with pytest.raises(StaleDataError):
        run_with_retry(stale, attempts=2)


def test_other_errors_are_not_retried(db_session):
    attempts = []

    def broken():
        attempts.append(1)
        raise ValueError("bad input")

    with pytest.raises(ValueError):
        run_with_retry(broken)
    assert len(attempts) == 1


def test_commit_unit_reports_unique_violation_as_conflict(db_session):
    for _ in range(2):
        db_session.add(User(email="dup@trxdesk.test", full_name="Dup", password_hash="x", role="employee"))

    with pytest.raises(ConflictError):
        commit_unit()

    assert db_session.query(User).filter_by(email="dup@trxdesk.test").count() == 0


class _FailingSession:
    """Session stand-in whose commit raises the given error."""

    def __init__(self, exc):
        self.exc = exc
        self.rolled_back = False

    def commit(self):
        raise self.exc

    def rollback(self):
        self.rolled_back = True


def _operational(message, *, connection_invalidated=False):
    return OperationalError("COMMIT", {}, Exception(message), connection_invalidated=connection_invalidated)


class TestCommitFailures:

    def _commit_with(self, monkeypatch, exc):
        session = _FailingSession(exc)
        monkeypatch.setattr(concurrency, "db", SimpleNamespace(session=session))
        return session

    def test_lock_timeout_is_a_conflict(self, monkeypatch):
        session = self._commit_with(monkeypatch, _operational("database is locked"))

        with pytest.raises(ConflictError):
            commit_unit()
        assert session.rolled_back

    def test_stale_version_is_a_conflict(self, monkeypatch):
        self._commit_with(monkeypatch, StaleDataError("version mismatch"))

        with pytest.raises(ConflictError):
            commit_unit()

    def test_lost_connection_is_not_a_conflict(self, monkeypatch):
        session = self._commit_with(
            monkeypatch,
            _operational("server closed the connection unexpectedly", connection_invalidated=True),
        )

        with pytest.raises(OperationalError):
            commit_unit()
        assert session.rolled_back

    def test_disk_failure_is_not_a_conflict(self, monkeypatch):
        self._commit_with(monkeypatch, _operational("disk I/O error"))

        with pytest.raises(OperationalError):
            commit_unit()


def test_storage_failure_is_not_retried(db_session):
    attempts = []

    def broken_disk():
        attempts.append(1)
        raise _operational("disk I/O error")

    with pytest.raises(OperationalError):
        run_with_retry(broken_disk)
    assert len(attempts) == 1


def test_storage_failure_on_commit_is_internal(client, db_session, employee_a_headers, monkeypatch):
    monkeypatch.setattr(concurrency, "db", SimpleNamespace(session=_FailingSession(_operational("disk I/O error"))))

    resp = client.post("/api/transactions", json=transaction_payload(), headers=employee_a_headers)

    assert resp.status_code == 500
    assert resp.json["kind"] == "internal"
    assert db_session.query(Transaction).count() == 0
