"""Data Service - read-only queries behind the stats and health endpoints."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.roundup import RoundupRecord
from app.models.runs import TrackingRun
from app.models.wallet_tracking import WalletTracking


class DataService:
    """Handles run-history and wallet queries - reads from DB only, no writes."""

    def __init__(self, db: Session):
        self.db = db

    # -------------------------------------------------------------------------
    # Tracking Runs
    # -------------------------------------------------------------------------
    def get_tracking_runs(
        self,
        wallet_address: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 10,
    ) -> List[TrackingRun]:
        """Get recent tracking runs with optional filtering."""
        stmt = select(TrackingRun)

        if wallet_address:
            stmt = stmt.where(TrackingRun.wallet_address == wallet_address)
        if status:
            stmt = stmt.where(TrackingRun.status == status)

        stmt = stmt.order_by(TrackingRun.started_at.desc()).limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def get_latest_run(self, wallet_address: Optional[str] = None) -> Optional[TrackingRun]:
        stmt = select(TrackingRun)
        if wallet_address:
            stmt = stmt.where(TrackingRun.wallet_address == wallet_address)
        stmt = stmt.order_by(TrackingRun.started_at.desc()).limit(1)
        return self.db.execute(stmt).scalar_one_or_none()

    # -------------------------------------------------------------------------
    # Wallets
    # -------------------------------------------------------------------------
    def get_wallet_summaries(self, limit: int = 100) -> List[Dict[str, Any]]:
        """Baseline and round-up count per tracked wallet."""
        counts = (
            select(RoundupRecord.wallet_address, func.count().label("roundup_count"))
            .group_by(RoundupRecord.wallet_address)
            .subquery()
        )
        stmt = (
            select(WalletTracking, func.coalesce(counts.c.roundup_count, 0))
            .outerjoin(counts, counts.c.wallet_address == WalletTracking.wallet_address)
            .order_by(WalletTracking.updated_at.desc())
            .limit(limit)
        )

        return [
            {
                "wallet_address": tracking.wallet_address,
                "last_tracked_tx": tracking.last_tracked_tx,
                "last_tracked_at": tracking.last_tracked_at,
                "roundup_count": roundup_count,
            }
            for tracking, roundup_count in self.db.execute(stmt).all()
        ]
