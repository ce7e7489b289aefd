"""
Pytest configuration and fixtures for backend tests.
"""

import re
from decimal import Decimal

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import sessionmaker

from shared.infrastructure.db import create_db_engine
from shared.infrastructure.events import reset_event_circuit_breaker
from shared.utils.schemas import CreateOrderRequest, LineItemInput, ModifierInput
from ordering.models import Base, Venue, Table, Stall, MenuItem


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_db_engine(SQLALCHEMY_DATABASE_URL)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _fresh_circuit_breaker():
    """Every test starts with a CLOSED event circuit breaker."""
    reset_event_circuit_breaker()
    yield
    reset_event_circuit_breaker()


class RecordingNotifier:
    """Notifier double that records notifications instead of publishing them."""

    def __init__(self):
        self.sent: list[tuple[str, dict]] = []

    def notify(self, topic, payload):
        self.sent.append((topic, payload))

    @property
    def topics(self) -> list[str]:
        return [topic for topic, _ in self.sent]

    def payloads(self, topic: str) -> list[dict]:
        return [payload for t, payload in self.sent if t == topic]


@pytest.fixture
def fake_notifier():
    return RecordingNotifier()


@pytest.fixture
def seed_venue(db_session):
    """Create a test venue."""
    venue = Venue(id=1, name="Harbour Food Court")
    db_session.add(venue)
    db_session.commit()
    db_session.refresh(venue)
    return venue


@pytest.fixture
def seed_table(db_session, seed_venue):
    """Create table "12" in the test venue."""
    table = Table(
        id=1,
        venue_id=seed_venue.id,
        table_number="12",
        qr_code="qr-table-12",
    )
    db_session.add(table)
    db_session.commit()
    db_session.refresh(table)
    return table


@pytest.fixture
def seed_inactive_table(db_session, seed_venue):
    table = Table(
        id=2,
        venue_id=seed_venue.id,
        table_number="99",
        is_active=False,
    )
    db_session.add(table)
    db_session.commit()
    db_session.refresh(table)
    return table


@pytest.fixture
def seed_stall(db_session, seed_venue):
    """Create a test stall."""
    stall = Stall(id=1, venue_id=seed_venue.id, name="Noodle Bar")
    db_session.add(stall)
    db_session.commit()
    db_session.refresh(stall)
    return stall


@pytest.fixture
def seed_menu_items(db_session, seed_stall):
    """Create three menu items on the test stall (IDs 1, 2, 3)."""
    items = [
        MenuItem(id=1, stall_id=seed_stall.id, name="Laksa", price=Decimal("8.50")),
        MenuItem(id=2, stall_id=seed_stall.id, name="Char Kway Teow", price=Decimal("7.00")),
        MenuItem(id=3, stall_id=seed_stall.id, name="Iced Tea", price=Decimal("2.00")),
    ]
    db_session.add_all(items)
    db_session.commit()
    return items


@pytest.fixture
def order_request(seed_table, seed_menu_items):
    """
    Factory for a valid CreateOrderRequest at table "12".

    order_request() gives two lines; order_request(item_ids=[1, 2, 3]) one line per item.
    """
    def _build(item_ids=(1, 2), **overrides):
        data = {
            "table_number": seed_table.table_number,
            "total_price": Decimal("15.50"),
            "items": [
                LineItemInput(item_id=item_id, quantity=1, unit_price=Decimal("5.00"))
                for item_id in item_ids
            ],
            "user_id": 7,
        }
        data.update(overrides)
        return CreateOrderRequest(**data)

    return _build


@pytest.fixture
def modifier():
    """Factory for a ModifierInput."""
    def _build(option_id=1, name="Extra egg", price=Decimal("1.00")):
        return ModifierInput(option_id=option_id, name=name, price=price)

    return _build


class StatementLog:
    """
    Statements a session executed, compiled for PostgreSQL.

    SQLite drops FOR UPDATE, so lock clauses are only visible in the
    PostgreSQL rendering. COMMIT and ROLLBACK are recorded as markers.
    """

    def __init__(self):
        self.entries: list[str] = []

    def record(self, statement):
        self.entries.append(str(statement.compile(dialect=postgresql.dialect())))

    def locks(self) -> list[str]:
        """Table locked by each SELECT ... FOR UPDATE, in execution order."""
        return [_from_table(sql) for sql in self.entries if sql.endswith("FOR UPDATE")]

    def index(self, prefix: str) -> int:
        """Position of the first entry starting with prefix."""
        return next(i for i, sql in enumerate(self.entries) if sql.startswith(prefix))


def _from_table(sql: str) -> str:
    return re.search(r"\bFROM\s+(\w+)", sql).group(1)


@pytest.fixture
def statement_log(db_session, monkeypatch):
    """Record what db_session executes from here on."""
    log = StatementLog()

    def recording(method):
        def wrapper(statement, *args, **kwargs):
            log.record(statement)
            return method(statement, *args, **kwargs)
        return wrapper

    def marking(method, marker):
        def wrapper(*args, **kwargs):
            log.entries.append(marker)
            return method(*args, **kwargs)
        return wrapper

    for name in ("execute", "scalar", "scalars"):
        monkeypatch.setattr(db_session, name, recording(getattr(db_session, name)))
    monkeypatch.setattr(db_session, "commit", marking(db_session.commit, "COMMIT"))
    monkeypatch.setattr(db_session, "rollback", marking(db_session.rollback, "ROLLBACK"))
    return log
