import os
import tempfile
from datetime import date
from decimal import Decimal

# must be set before the app modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_PATH", os.path.join(tempfile.gettempdir(), "tripfund-tests.log"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from models.Trip import Trip  # noqa: F401  registers the table on Base
from schemas import Contribution, Expense, TripRead, FUND_PAYER


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    from main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_trip():
    """Build an in-memory trip.

    `initial` is the per-person initial contribution; `paid` lists who has
    paid it (default: everybody). Expenses are (amount, payer, participants)
    tuples; payer None means paid from the fund.
    """
    def _make(participants, initial=0, paid=None, expenses=()):
        paid = participants if paid is None else paid
        trip_expenses = []
        for i, (amount, payer, shared_by) in enumerate(expenses):
            trip_expenses.append(Expense(
                id=f"e{i}",
                description=f"expense {i}",
                amount=Decimal(str(amount)),
                paid_by=payer or FUND_PAYER,
                date=date(2025, 7, 1),
                participants=list(shared_by),
                paid_from_fund=payer is None,
            ))
        return TripRead(
            id="trip-1",
            custom_id="hanoi-abc123",
            name="Summer trip",
            destination="Hanoi",
            start_date=date(2025, 7, 1),
            end_date=date(2025, 7, 4),
            participants=list(participants),
            contributions=[
                Contribution(participant=p, amount=Decimal(str(initial)), paid=p in paid)
                for p in participants
            ],
            expenses=trip_expenses,
        )
    return _make
