"""Wallet routes - baseline initialization when a wallet connects."""

from fastapi import APIRouter, Depends

from app.api.deps import get_tracker
from app.core.addresses import validate_wallet_address
from app.core.errors import NotInitializedError
from app.core.logging import get_logger
from app.schemas.api import ERROR_RESPONSES, WalletInitRequest, WalletInitResponse, WalletStatusResponse
from app.services.tracking_service import RoundupTracker

router = APIRouter(prefix="/wallet", tags=["wallet"])
log = get_logger("wallet_routes")


@router.post("/init", response_model=WalletInitResponse, responses=ERROR_RESPONSES)
async def initialize_wallet(
    body: WalletInitRequest,
    tracker: RoundupTracker = Depends(get_tracker),
):
    """
    Set up baseline tracking for a newly connected wallet.

    The wallet's most recent transaction becomes the baseline, so history
    from before the connection never produces round-ups. Calling this again
    for an initialized wallet returns the existing baseline unchanged.
    """
    log.info(f"Wallet init requested for {body.address}")
    result = await tracker.initialize_wallet(body.address)
    return WalletInitResponse(**result.model_dump())


@router.get("/{address}", response_model=WalletStatusResponse, responses=ERROR_RESPONSES)
def get_wallet_status(address: str, tracker: RoundupTracker = Depends(get_tracker)):
    """Current baseline for a wallet; 409 when it was never initialized."""
    address = validate_wallet_address(address)
    tracking = tracker.baselines.get(address)
    if tracking is None:
        raise NotInitializedError(address)

    return WalletStatusResponse(
        wallet_address=tracking.wallet_address,
        last_tracked_tx=tracking.last_tracked_tx,
        last_tracked_at=tracking.last_tracked_at,
        is_initialized=tracking.is_initialized,
    )
