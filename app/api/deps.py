"""API dependencies"""

from typing import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.db import SessionLocal
from app.ingestion.base import BaseTransferSource
from app.services.price_service import PriceOracle
from app.services.tracking_service import RoundupTracker


def get_db() -> Generator[Session, None, None]:
    """Database dependency"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_price_oracle(request: Request) -> PriceOracle:
    """Process-wide oracle built in the app lifespan."""
    return request.app.state.price_oracle


def get_transfer_source(request: Request) -> BaseTransferSource:
    """Process-wide transfer source built in the app lifespan."""
    return request.app.state.transfer_source


def get_tracker(
    db: Session = Depends(get_db),
    price_oracle: PriceOracle = Depends(get_price_oracle),
    transfer_source: BaseTransferSource = Depends(get_transfer_source),
) -> RoundupTracker:
    return RoundupTracker(
        db,
        price_oracle,
        transfer_source,
        fetch_attempts=settings.TRANSFER_FETCH_ATTEMPTS,
        retry_delay=settings.TRANSFER_RETRY_DELAY_SECONDS,
        price_timeout=settings.PRICE_TIMEOUT_SECONDS,
        investment_threshold=settings.INVESTMENT_THRESHOLD_USD,
    )
