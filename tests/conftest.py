# tests/conftest.py
"""
Shared fixtures: in-memory SQLite database, session and sample inventory.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["SMTP_HOST"] = ""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.data.database import Base
from storefront.data.models import (
    CardModel,
    CartItemModel,
    CouponModel,
    FigurineModel,
    UserModel,
)
from storefront.services.notification_service import NotificationService


@pytest.fixture
def engine():
    """SQLite in memory with working SAVEPOINTs."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite sam nie emituje BEGIN - bez tego begin_nested() nie działa
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    """Session configured like SessionLocal."""
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifications():
    """Notification service stub, no Celery broker needed."""
    return MagicMock(spec=NotificationService)


@pytest.fixture
def user(db):
    u = UserModel(username="collector", email="collector@example.com")
    db.add(u)
    db.commit()
    return u


@pytest.fixture
def make_card(db):
    def _make(**overrides):
        values = {
            "card_name": "Michael Jordan Rookie",
            "set_name": "1986 Fleer",
            "card_number": "57",
            "year": 1986,
            "condition": "near_mint",
            "price_nzd": Decimal("50.00"),
            "quantity": 5,
        }
        values.update(overrides)
        card = CardModel(**values)
        db.add(card)
        db.commit()
        return card

    return _make


@pytest.fixture
def make_figurine(db):
    def _make(**overrides):
        values = {
            "product_name": "Pikachu Figure",
            "price_nzd": Decimal("25.00"),
            "quantity": 3,
        }
        values.update(overrides)
        figurine = FigurineModel(**values)
        db.add(figurine)
        db.commit()
        return figurine

    return _make


@pytest.fixture
def add_to_cart(db):
    def _add(user_id, card_id=None, figurine_id=None, quantity=1):
        line = CartItemModel(
            user_id=user_id,
            card_id=card_id,
            figurine_id=figurine_id,
            quantity=quantity,
        )
        db.add(line)
        db.commit()
        return line

    return _add


@pytest.fixture
def make_coupon(db):
    def _make(**overrides):
        values = {
            "code": "SAVE10",
            "discount_type": "percentage",
            "discount_value": Decimal("10"),
            "used_count": 0,
            "active": True,
        }
        values.update(overrides)
        coupon = CouponModel(**values)
        db.add(coupon)
        db.commit()
        return coupon

    return _make
