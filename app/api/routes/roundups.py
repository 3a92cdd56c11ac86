"""Round-up routes - tracking runs and ledger reads."""

import uuid

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_tracker
from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.api import (
    ERROR_RESPONSES,
    RoundupListResponse,
    RoundupRecordOut,
    RoundupTotalResponse,
    TrackRequest,
    TrackResponse,
)
from app.services.tracking_service import RoundupTracker

router = APIRouter(prefix="/roundups", tags=["roundups"])
log = get_logger("roundup_routes")


@router.post("/track", response_model=TrackResponse, responses=ERROR_RESPONSES)
async def track_roundups(
    body: TrackRequest,
    tracker: RoundupTracker = Depends(get_tracker),
):
    """
    Fetch outgoing transfers since the wallet's baseline and record round-ups.

    1. Reject wallets that were never initialized (409 not_initialized)
    2. Fetch new outgoing transfers (all of them with ``reprocess=true``)
    3. Price each transfer and compute its round-up to the next dollar
    4. Record each round-up once per transaction
    5. Advance the baseline to the newest transfer fetched

    Transfers that cannot be priced are counted in ``skipped``.
    """
    result = await tracker.track_roundups(body.address, limit=body.limit, reprocess=body.reprocess)
    return TrackResponse(**result.model_dump())


@router.get("", response_model=RoundupListResponse, responses=ERROR_RESPONSES)
def get_roundups(
    address: str = Query(..., min_length=1, description="Wallet address"),
    limit: int = Query(settings.TRACK_DEFAULT_LIMIT, ge=1, le=settings.TRACK_MAX_LIMIT, description="Number of records to return"),
    tracker: RoundupTracker = Depends(get_tracker),
):
    """Stored round-ups for a wallet, newest transfer first, with the running total."""
    summary = tracker.get_roundups(address, limit=limit)

    return RoundupListResponse(
        request_id=str(uuid.uuid4()),
        records=[RoundupRecordOut.model_validate(r) for r in summary["records"]],
        total_roundup=summary["total_roundup"],
        count=summary["count"],
        is_ready_for_investment=summary["is_ready_for_investment"],
    )


@router.get("/total", response_model=RoundupTotalResponse, responses=ERROR_RESPONSES)
def get_total(
    address: str = Query(..., min_length=1, description="Wallet address"),
    tracker: RoundupTracker = Depends(get_tracker),
):
    total = tracker.get_total(address)
    return RoundupTotalResponse(
        wallet_address=address.strip(),
        total_roundup=total,
        is_ready_for_investment=total >= tracker.ledger.investment_threshold,
    )
