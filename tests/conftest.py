from datetime import date
from decimal import Decimal
from itertools import count

import pytest

from household_recon.db import connection
from household_recon.models.expense import CostAssignment, Expense
from household_recon.models.statement import StatementTransaction

USER = "user-1"
PARTNER = "user-2"


@pytest.fixture()
def make_expense():
    ids = count(1)

    def _make(amount, day, assignment=CostAssignment.SHARED, user_id=USER, **kwargs):
        kwargs.setdefault("id", f"exp-{next(ids)}")
        return Expense(
            user_id=user_id,
            amount=Decimal(str(amount)),
            date=day if isinstance(day, date) else date.fromisoformat(day),
            cost_assignment=assignment,
            **kwargs,
        )

    return _make


@pytest.fixture()
def make_tx():
    ids = count(1)

    def _make(amount, day, description=None, **kwargs):
        kwargs.setdefault("id", f"tx-{next(ids)}")
        return StatementTransaction(
            amount=Decimal(str(amount)),
            date=day if isinstance(day, date) else date.fromisoformat(day),
            description=description,
            **kwargs,
        )

    return _make


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.rows = []
        self.rowcount = 0

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params=None):
        self.conn.executed.append((" ".join(sql.split()), params))
        if self.conn.fail_on and self.conn.fail_on in sql:
            raise RuntimeError("database unavailable")
        self.rows = self.conn.results.pop(0) if self.conn.results else []
        self.rowcount = len(self.rows)

    def fetchone(self):
        return self.rows[0] if self.rows else None

    def fetchall(self):
        return list(self.rows)


class FakeConnection:
    def __init__(self):
        self.executed = []
        self.results = []
        self.commits = 0
        self.rollbacks = 0
        self.fail_on = None

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1


class FakePool:
    def __init__(self, conn):
        self.conn = conn
        self.borrowed = 0

    def getconn(self):
        self.borrowed += 1
        return self.conn

    def putconn(self, conn):
        self.borrowed -= 1


@pytest.fixture()
def fake_db(monkeypatch):
    conn = FakeConnection()
    pool = FakePool(conn)
    monkeypatch.setattr(connection, "_pool", pool)
    conn.pool = pool
    return conn
