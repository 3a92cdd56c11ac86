"""Shared fixtures: in-memory SQLite database plus fake price and transfer feeds."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("RUN_MIGRATIONS", "false")
os.environ.setdefault("TRANSFER_RETRY_DELAY_SECONDS", "0")
os.environ.setdefault("DOCS_ENABLED", "true")

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.assets import NATIVE_SOL_MINT
from app.models import Base
from app.services.tracking_service import RoundupTracker
from app.tests.factories import FakePriceOracle, FakeTransferSource


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def transfer_source():
    return FakeTransferSource()


@pytest.fixture
def price_oracle():
    return FakePriceOracle({NATIVE_SOL_MINT: Decimal("150")})


@pytest.fixture
def tracker(db_session, price_oracle, transfer_source):
    return RoundupTracker(
        db_session,
        price_oracle,
        transfer_source,
        fetch_attempts=3,
        retry_delay=0,
        price_timeout=1.0,
    )
