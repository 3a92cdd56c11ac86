"""Stats routes - tracking run observability."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.schemas.api import TrackingRunOut, WalletSummaryOut
from app.services.data_service import DataService

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=list[TrackingRunOut])
def get_tracking_stats(
    wallet: Optional[str] = Query(None, description="Filter by wallet address"),
    status: Optional[str] = Query(None, description="Filter by status (running, success, failure)"),
    limit: int = Query(10, ge=1, le=50, description="Number of runs to return"),
    db: Session = Depends(get_db),
):
    """
    Get recent round-up tracking runs.

    Shows processed/stored/skipped counts, status, and error messages.
    A run with many skips is a candidate for a ``reprocess`` re-run.
    """
    service = DataService(db)
    runs = service.get_tracking_runs(wallet_address=wallet, status=status, limit=limit)

    return [
        TrackingRunOut(
            run_id=str(run.run_id),
            wallet_address=run.wallet_address,
            mode=run.mode,
            status=run.status,
            processed=run.processed,
            stored=run.stored,
            skipped=run.skipped,
            error_message=run.error_message,
            started_at=run.started_at,
            ended_at=run.ended_at,
        )
        for run in runs
    ]


@router.get("/wallets", response_model=list[WalletSummaryOut])
def get_wallets(
    limit: int = Query(100, ge=1, le=500, description="Number of wallets to return"),
    db: Session = Depends(get_db),
):
    """Tracked wallets with their baseline and number of stored round-ups."""
    service = DataService(db)
    return [WalletSummaryOut(**row) for row in service.get_wallet_summaries(limit=limit)]
