from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from app.core.config import settings


class WalletInitRequest(BaseModel):
    address: str


class WalletInitResponse(BaseModel):
    success: bool = True
    wallet_address: str
    last_tracked_tx: str
    last_tracked_at: datetime | None = None
    is_new_wallet: bool


class WalletStatusResponse(BaseModel):
    wallet_address: str
    last_tracked_tx: str | None
    last_tracked_at: datetime | None
    is_initialized: bool


class TrackRequest(BaseModel):
    address: str
    limit: int = Field(
        settings.TRACK_DEFAULT_LIMIT,
        ge=1,
        le=settings.TRACK_MAX_LIMIT,
        description="Maximum outgoing transfers to process",
    )
    reprocess: bool = Field(False, description="Ignore the baseline and rescan history")


class TrackResponse(BaseModel):
    success: bool = True
    processed: int
    stored: int
    skipped: int
    total_roundup: Decimal
    new_baseline: str | None
    is_ready_for_investment: bool
    mode: str


class RoundupRecordOut(BaseModel):
    wallet_address: str
    transaction_id: str
    transaction_date: datetime
    token: str
    token_mint: Optional[str] = None
    token_amount: Decimal
    usd_value: Decimal
    round_up_value: Decimal
    price_source: str
    slot: Optional[int] = None
    network_fee: Optional[Decimal] = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class RoundupListResponse(BaseModel):
    request_id: str
    records: list[RoundupRecordOut]
    total_roundup: Decimal
    count: int
    is_ready_for_investment: bool


class RoundupTotalResponse(BaseModel):
    wallet_address: str
    total_roundup: Decimal
    is_ready_for_investment: bool


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    message: str
    detail: str | None = None


ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid address or request body"},
    404: {"model": ErrorResponse, "description": "Wallet has no transaction history"},
    409: {"model": ErrorResponse, "description": "Wallet was never initialized"},
    502: {"model": ErrorResponse, "description": "Transfer or price feed unavailable"},
}


class HealthResponse(BaseModel):
    database: str
    solana_cluster: str
    last_tracking_status: str | None


class TrackingRunOut(BaseModel):
    run_id: str
    wallet_address: str
    mode: str
    status: str
    processed: int
    stored: int
    skipped: int
    error_message: str | None = None
    started_at: datetime
    ended_at: datetime | None


class WalletSummaryOut(BaseModel):
    wallet_address: str
    last_tracked_tx: str | None
    last_tracked_at: datetime | None
    roundup_count: int
