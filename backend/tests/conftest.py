"""
Pytest fixtures for barpos backend tests.

Provides the in-memory application, a clean database per test, and a
scripted stand-in for the storage reader so service tests can exercise
every fallback branch without a schema.
"""

import pytest

from barpos import create_app
from barpos.extensions import db
from barpos.services.order_schemas import CanonicalOrder, LineItem
from barpos.services.storage_reader import DataSourceError, RelationMissingError, StorageReader


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def reader(db_session):
    """Storage reader bound to the test database."""
    return StorageReader(db_session, db.metadata)


def _role_headers(app, role):
    return {app.config['ROLE_HEADER']: role}


@pytest.fixture
def owner_headers(app):
    return _role_headers(app, 'owner')


@pytest.fixture
def manager_headers(app):
    return _role_headers(app, 'manager')


@pytest.fixture
def staff_headers(app):
    return _role_headers(app, 'staff')


class FakeReader:
    """
    In-memory storage reader.

    ``tables`` maps relation -> rows. ``missing`` and ``broken`` hold either a
    relation name (every call fails) or a ``(relation, method)`` pair (only
    that call fails) and raise RelationMissingError / DataSourceError.
    Every call is recorded in ``calls`` as ``(method, relation)``.
    """

    def __init__(self, tables=None, missing=(), broken=()):
        self.tables = tables or {}
        self.missing = set(missing)
        self.broken = set(broken)
        self.calls = []

    def _check(self, relation, method):
        self.calls.append((method, relation))
        for key in (relation, (relation, method)):
            if key in self.missing:
                raise RelationMissingError(relation, f'relation "public.{relation}" does not exist')
            if key in self.broken:
                raise DataSourceError(f"Failed to read {relation}: connection reset by peer")

    def _rows(self, relation):
        return [dict(row) for row in self.tables.get(relation, [])]

    def read_range(self, relation, columns, start_iso, end_iso, *, time_column="created_at"):
        self._check(relation, "read_range")
        return self._rows(relation)

    def read_in(self, relation, columns, column, values):
        self._check(relation, "read_in")
        wanted = {str(value) for value in values}
        return [row for row in self._rows(relation) if str(row.get(column)) in wanted]

    def get_by_id(self, relation, columns, row_id):
        self._check(relation, "get_by_id")
        return next((row for row in self._rows(relation) if row.get("id") == row_id), None)

    def read_all(self, relation, columns):
        self._check(relation, "read_all")
        return self._rows(relation)

    def latest(self, relation, columns, order_by):
        self._check(relation, "latest")
        rows = self._rows(relation)
        return max(rows, key=lambda row: row[order_by]) if rows else None

    def called(self, method, relation):
        return (method, relation) in self.calls


@pytest.fixture
def fake_reader():
    """Factory: ``fake_reader(tables={...}, missing=[...], broken=[...])``."""
    return FakeReader


@pytest.fixture
def make_order():
    """Factory for CanonicalOrder with line items given as dicts."""
    def _make(order_id, total, created_at="2024-01-15T12:00:00.000Z", items=(), payment_method="CASH", row_id=None):
        return CanonicalOrder(
            id=str(row_id if row_id is not None else order_id),
            order_id=order_id,
            total_amount=total,
            payment_method=payment_method,
            created_at=created_at,
            items=tuple(
                LineItem(
                    item_id=item["id"],
                    item_name=item.get("name", item["id"]),
                    quantity=item.get("qty", 1),
                    unit_price=item.get("unit_price"),
                    line_total=item.get("line_total"),
                )
                for item in items
            ),
        )
    return _make
