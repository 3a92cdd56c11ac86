"""Domain schemas passed between the transfer source, price oracle, ledger and tracker."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel

TrackingMode = Literal["incremental", "historical"]


class Transfer(BaseModel):
    """An outgoing transfer observed for a wallet."""

    transfer_id: str
    timestamp: int  # unix seconds (block time)
    slot: int = 0
    fee: Decimal = Decimal("0")  # SOL
    amount: Decimal
    token: str
    token_mint: Optional[str] = None  # None for native SOL
    from_address: str
    to_address: str

    @property
    def transfer_date(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc)


class PriceQuote(BaseModel):
    price_usd: Decimal
    timestamp: datetime
    source: str
    confidence: Optional[float] = None
    cached: bool = False

    @property
    def is_available(self) -> bool:
        return self.price_usd > 0


class RoundupCalculation(BaseModel):
    """A priced transfer ready to be written to the ledger."""

    transaction_id: str
    transaction_date: datetime
    token: str
    token_mint: Optional[str] = None
    token_amount: Decimal
    usd_value: Decimal
    round_up_value: Decimal
    price_source: str
    slot: Optional[int] = None
    network_fee: Optional[Decimal] = None  # SOL


class InitResult(BaseModel):
    wallet_address: str
    last_tracked_tx: str
    last_tracked_at: Optional[datetime] = None
    is_new_wallet: bool


class TrackResult(BaseModel):
    processed: int
    stored: int
    skipped: int
    total_roundup: Decimal
    new_baseline: Optional[str]
    is_ready_for_investment: bool
    mode: TrackingMode = "incremental"
