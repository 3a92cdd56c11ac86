"""Baseline store: the newest transfer id already accounted for, per wallet."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.models.wallet_tracking import WalletTracking

log = get_logger("baseline_service")


class BaselineStore:
    """Reads and moves wallet baselines.

    A wallet without a row (or with a NULL ``last_tracked_tx``) is
    uninitialized. Once set, the baseline only advances; ``delete`` is the
    administrative escape hatch.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, wallet_address: str) -> Optional[WalletTracking]:
        return self.db.get(WalletTracking, wallet_address)

    def is_initialized(self, wallet_address: str) -> bool:
        tracking = self.get(wallet_address)
        return tracking is not None and tracking.is_initialized

    def set_baseline(self, wallet_address: str, transfer_id: str) -> WalletTracking:
        """Create the tracking row or overwrite its baseline (upsert)."""
        now = datetime.now(timezone.utc)
        tracking = self.get(wallet_address)

        if tracking is None:
            tracking = WalletTracking(
                wallet_address=wallet_address,
                last_tracked_tx=transfer_id,
                last_tracked_at=now,
            )
            self.db.add(tracking)
            try:
                self.db.commit()
            except IntegrityError:
                # Another request created the row first; fall through to the update
                self.db.rollback()
                tracking = self.get(wallet_address)
            else:
                log.info(f"Baseline created for {wallet_address}: {transfer_id[:8]}...")
                return tracking

        tracking.last_tracked_tx = transfer_id
        tracking.last_tracked_at = now
        self.db.commit()
        log.info(f"Baseline set for {wallet_address}: {transfer_id[:8]}...")
        return tracking

    def advance(self, wallet_address: str, transfer_id: str, expected: Optional[str]) -> bool:
        """Move the baseline from ``expected`` to ``transfer_id`` atomically.

        Returns False when the stored baseline is no longer ``expected`` (a
        concurrent run already advanced it) or the wallet has no row.
        """
        if transfer_id == expected:
            return True

        condition = (
            WalletTracking.last_tracked_tx.is_(None)
            if expected is None
            else WalletTracking.last_tracked_tx == expected
        )
        now = datetime.now(timezone.utc)
        stmt = (
            update(WalletTracking)
            .where(WalletTracking.wallet_address == wallet_address, condition)
            .values(last_tracked_tx=transfer_id, last_tracked_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        self.db.commit()

        if result.rowcount == 0:
            log.warning(
                f"Baseline for {wallet_address} moved concurrently; "
                f"kept existing value instead of {transfer_id[:8]}..."
            )
            return False

        # The bulk UPDATE bypassed the identity map
        tracking = self.db.get(WalletTracking, wallet_address)
        if tracking is not None:
            self.db.refresh(tracking)
        log.info(f"Baseline advanced for {wallet_address}: {transfer_id[:8]}...")
        return True

    def delete(self, wallet_address: str) -> bool:
        """Administrative reset: the wallet becomes uninitialized again."""
        result = self.db.execute(delete(WalletTracking).where(WalletTracking.wallet_address == wallet_address))
        self.db.commit()
        if result.rowcount:
            log.warning(f"Deleted baseline for {wallet_address}")
        return bool(result.rowcount)

    def list_wallets(self, limit: int = 100) -> List[WalletTracking]:
        stmt = select(WalletTracking).order_by(WalletTracking.updated_at.desc()).limit(limit)
        return list(self.db.execute(stmt).scalars().all())
