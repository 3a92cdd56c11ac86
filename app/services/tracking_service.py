"""Round-up accumulation: baseline check, fetch, price, record, advance, report."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from sqlalchemy.orm import Session

from app.core.addresses import validate_wallet_address
from app.core.assets import asset_id_for
from app.core.errors import (
    InvalidInputError,
    NoTransactionHistoryError,
    NotInitializedError,
    TransferSourceError,
    UpstreamUnavailableError,
)
from app.core.logging import get_logger
from app.ingestion.base import BaseTransferSource
from app.models.runs import TrackingRun
from app.schemas.tracking import (
    InitResult,
    PriceQuote,
    RoundupCalculation,
    TrackingMode,
    TrackResult,
    Transfer,
)
from app.services.baseline_service import BaselineStore
from app.services.price_service import PriceOracle
from app.services.roundup_service import DEFAULT_INVESTMENT_THRESHOLD, RoundupLedger, to_usd

log = get_logger("tracking_service")

T = TypeVar("T")


class RoundupTracker:
    """Runs wallet initialization and round-up tracking for one database session.

    Collaborators are passed in explicitly so tests can swap the price oracle
    and the transfer source for fakes.

    Retry policy: transfer-source calls are attempted ``fetch_attempts`` times
    (client errors other than 429 are not retried) before the whole operation
    fails with ``UpstreamUnavailableError``. Price failures never fail a run;
    the transfer is counted as skipped and the baseline still advances past it.
    """

    def __init__(
        self,
        db: Session,
        price_oracle: PriceOracle,
        transfer_source: BaseTransferSource,
        *,
        fetch_attempts: int = 3,
        retry_delay: float = 1.0,
        price_timeout: float = 10.0,
        investment_threshold: Decimal = DEFAULT_INVESTMENT_THRESHOLD,
    ):
        self.db = db
        self.price_oracle = price_oracle
        self.transfer_source = transfer_source
        self.fetch_attempts = max(1, fetch_attempts)
        self.retry_delay = retry_delay
        self.price_timeout = price_timeout
        self.baselines = BaselineStore(db)
        self.ledger = RoundupLedger(db, investment_threshold=investment_threshold)

    # -------------------------------------------------------------------------
    # Wallet initialization
    # -------------------------------------------------------------------------
    async def initialize_wallet(self, address: str) -> InitResult:
        """Record the wallet's newest transaction as its starting baseline.

        Idempotent: an initialized wallet gets its existing baseline back.
        """
        address = validate_wallet_address(address)

        existing = self.baselines.get(address)
        if existing is not None and existing.is_initialized:
            return InitResult(
                wallet_address=existing.wallet_address,
                last_tracked_tx=existing.last_tracked_tx,
                last_tracked_at=existing.last_tracked_at,
                is_new_wallet=False,
            )

        most_recent = await self._call_source(
            lambda: self.transfer_source.most_recent(address),
            f"most recent transaction for {address}",
        )
        if not most_recent:
            raise NoTransactionHistoryError(address, self.transfer_source.network)

        tracking = self.baselines.set_baseline(address, most_recent)
        log.info(f"Wallet {address} initialized at {most_recent[:8]}...")
        return InitResult(
            wallet_address=tracking.wallet_address,
            last_tracked_tx=tracking.last_tracked_tx,
            last_tracked_at=tracking.last_tracked_at,
            is_new_wallet=existing is None,
        )

    # -------------------------------------------------------------------------
    # Round-up tracking
    # -------------------------------------------------------------------------
    async def track_roundups(
        self, address: str, limit: int = 100, reprocess: bool = False
    ) -> TrackResult:
        """Price and record every outgoing transfer since the wallet's baseline.

        ``reprocess=True`` ignores the baseline and rescans the available
        history; already recorded transfers are skipped by the ledger.
        """
        address = validate_wallet_address(address)
        if limit < 1:
            raise InvalidInputError("limit must be a positive integer", detail=f"limit={limit}")

        tracking = self.baselines.get(address)
        if tracking is None or not tracking.is_initialized:
            raise NotInitializedError(address)
        baseline = tracking.last_tracked_tx

        mode: TrackingMode = "historical" if reprocess else "incremental"
        run = TrackingRun(wallet_address=address, mode=mode, status="running")
        self.db.add(run)
        self.db.commit()

        try:
            if reprocess:
                log.info(f"Fetching ALL outgoing transfers for {address} (ignoring baseline), limit={limit}")
            else:
                log.info(f"Fetching outgoing transfers for {address} after baseline {baseline[:8]}...")

            transfers = await self._call_source(
                lambda: self.transfer_source.fetch_outgoing(
                    address, limit, since=None if reprocess else baseline
                ),
                f"outgoing transfers for {address}",
            )
            log.info(f"Found {len(transfers)} new outgoing transfers for {address}")

            stored, skipped = 0, 0
            for transfer in transfers:
                if await self._process_transfer(address, transfer):
                    stored += 1
                else:
                    skipped += 1

            new_baseline = baseline
            if transfers:
                # Newest first: position in the stream, not pricing success, moves the baseline
                newest = transfers[0].transfer_id
                if self.baselines.advance(address, newest, expected=baseline):
                    new_baseline = newest
                else:
                    current = self.baselines.get(address)
                    new_baseline = current.last_tracked_tx if current else baseline

            total = self.ledger.total_for(address)
            result = TrackResult(
                processed=len(transfers),
                stored=stored,
                skipped=skipped,
                total_roundup=total,
                new_baseline=new_baseline,
                is_ready_for_investment=total >= self.ledger.investment_threshold,
                mode=mode,
            )

            run.status = "success"
            run.processed = result.processed
            run.stored = result.stored
            run.skipped = result.skipped
            run.ended_at = datetime.now(timezone.utc)
            self.db.commit()

            log.info(
                f"Tracking finished for {address} | processed={result.processed} "
                f"stored={result.stored} skipped={result.skipped} total={result.total_roundup}"
            )
            return result

        except Exception as exc:  # noqa: BLE001
            self.db.rollback()
            run.status = "failure"
            run.error_message = str(exc)
            run.ended_at = datetime.now(timezone.utc)
            self.db.add(run)
            self.db.commit()
            log.error(f"Tracking failed for {address}: {exc}")
            raise

    async def _process_transfer(self, address: str, transfer: Transfer) -> bool:
        """Price, compute and record one transfer. Returns True when a new row was stored."""
        quote = await self._quote(transfer)
        if quote is None:
            log.warning(
                f"Skipping transaction {transfer.transfer_id[:8]}... - unable to get price for {transfer.token}"
            )
            return False

        usd_value = transfer.amount * quote.price_usd
        calculation = RoundupCalculation(
            transaction_id=transfer.transfer_id,
            transaction_date=transfer.transfer_date,
            token=transfer.token,
            token_mint=transfer.token_mint,
            token_amount=transfer.amount,
            usd_value=to_usd(usd_value),
            round_up_value=self.ledger.calculate_roundup(usd_value),
            price_source=quote.source,
            slot=transfer.slot,
            network_fee=transfer.fee,
        )

        record = self.ledger.record(address, calculation)
        if record is None:
            return False

        confidence = "" if quote.confidence is None else f", confidence {quote.confidence:.2f}"
        log.info(
            f"Stored round-up: {calculation.round_up_value} USD for tx {transfer.transfer_id[:8]}... "
            f"(price {quote.price_usd} via {quote.source}{confidence})"
        )
        return True

    async def _quote(self, transfer: Transfer) -> Optional[PriceQuote]:
        asset_id = asset_id_for(transfer.token_mint)
        try:
            quote = await asyncio.wait_for(
                self.price_oracle.price_at(asset_id, transfer.timestamp),
                timeout=self.price_timeout,
            )
        except asyncio.TimeoutError:
            log.warning(f"Price lookup for {asset_id} timed out after {self.price_timeout}s")
            return None
        return quote if quote.is_available else None

    async def _call_source(self, call: Callable[[], Awaitable[T]], description: str) -> T:
        last_error: Optional[TransferSourceError] = None
        for attempt in range(1, self.fetch_attempts + 1):
            try:
                return await call()
            except TransferSourceError as exc:
                last_error = exc
                log.warning(
                    f"Fetching {description} from {self.transfer_source.name} failed "
                    f"(attempt {attempt}/{self.fetch_attempts}): {exc}"
                )
                if not _is_retryable(exc) or attempt == self.fetch_attempts:
                    break
                await asyncio.sleep(self.retry_delay)

        raise UpstreamUnavailableError(self.transfer_source.name, detail=str(last_error)) from last_error

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------
    def get_roundups(self, address: str, limit: int = 100) -> Dict[str, Any]:
        """Stored round-ups (newest first) plus the running total."""
        if not address or not address.strip():
            raise InvalidInputError("Missing wallet address")
        address = address.strip()

        records = self.ledger.list_for(address, limit=limit)
        total = self.ledger.total_for(address)
        return {
            "records": records,
            "total_roundup": total,
            "count": len(records),
            "is_ready_for_investment": total >= self.ledger.investment_threshold,
        }

    def get_total(self, address: str) -> Decimal:
        if not address or not address.strip():
            raise InvalidInputError("Missing wallet address")
        return self.ledger.total_for(address.strip())


def _is_retryable(exc: TransferSourceError) -> bool:
    status = exc.status_code
    return status is None or status == 429 or status >= 500
