"""Round-up ledger: calculation, idempotent recording and running totals."""

from __future__ import annotations

from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal
from typing import List, Optional, Union

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.models.roundup import RoundupRecord
from app.schemas.tracking import RoundupCalculation

log = get_logger("roundup_service")

CENT = Decimal("0.01")
WHOLE_DOLLAR = Decimal("1")
DEFAULT_INVESTMENT_THRESHOLD = Decimal("1.00")

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

Amount = Union[Decimal, int, float, str]


def to_usd(value: Amount) -> Decimal:
    """Quantize an amount to cents. Floats go through ``str`` to keep their shortest repr."""
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class RoundupLedger:
    """Reads and writes ``roundup_records`` for one database session."""

    def __init__(self, db: Session, investment_threshold: Decimal = DEFAULT_INVESTMENT_THRESHOLD):
        self.db = db
        self.investment_threshold = investment_threshold

    @staticmethod
    def calculate_roundup(usd_value: Amount) -> Decimal:
        """Spare change up to the next whole dollar.

        The value is rounded to cents first, so the result is always in
        [0.00, 0.99] and adds up with the stored ``usd_value`` to a whole dollar:

        - $200.80 -> $201.00 -> 0.20
        - $50.10  -> $51.00  -> 0.90
        - $100.00 -> $100.00 -> 0.00

        Rounding to cents before taking the ceiling differs from the plain
        ``ceil(v) - v`` on sub-cent inputs:

        - $12.995 rounds to $13.00 and gives 0.00, where ``ceil(v) - v`` gives 0.01
        - $12.004 rounds to $12.00 and gives 0.00, where ``ceil(v) - v`` gives 1.00
        """
        cents = to_usd(usd_value)
        roundup = cents.to_integral_value(rounding=ROUND_CEILING) - cents
        return max(Decimal("0.00"), roundup).quantize(CENT)

    def record(self, wallet_address: str, calculation: RoundupCalculation) -> Optional[RoundupRecord]:
        """Insert a round-up; returns None when the transaction was already recorded."""
        insert = _INSERTS.get(self.db.get_bind().dialect.name)
        if insert is None:
            raise RuntimeError(f"Unsupported database dialect: {self.db.get_bind().dialect.name}")

        stmt = insert(RoundupRecord).values(
            wallet_address=wallet_address,
            transaction_id=calculation.transaction_id,
            transaction_date=calculation.transaction_date,
            token=calculation.token,
            token_mint=calculation.token_mint,
            token_amount=calculation.token_amount,
            usd_value=to_usd(calculation.usd_value),
            round_up_value=to_usd(calculation.round_up_value),
            price_source=calculation.price_source,
            slot=calculation.slot,
            network_fee=calculation.network_fee,
        )
        stmt = stmt.on_conflict_do_nothing(index_elements=[RoundupRecord.transaction_id])

        result = self.db.execute(stmt)
        self.db.commit()

        if result.rowcount == 0:
            log.info(f"Round-up already recorded for transaction {calculation.transaction_id[:8]}...")
            return None

        return self.db.execute(
            select(RoundupRecord).where(RoundupRecord.transaction_id == calculation.transaction_id)
        ).scalar_one()

    def list_for(self, wallet_address: str, limit: int = 100) -> List[RoundupRecord]:
        """Round-ups for a wallet, newest transfer first."""
        stmt = (
            select(RoundupRecord)
            .where(RoundupRecord.wallet_address == wallet_address)
            .order_by(RoundupRecord.transaction_date.desc(), RoundupRecord.id.desc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())

    def count_for(self, wallet_address: str) -> int:
        stmt = (
            select(func.count())
            .select_from(RoundupRecord)
            .where(RoundupRecord.wallet_address == wallet_address)
        )
        return self.db.execute(stmt).scalar() or 0

    def total_for(self, wallet_address: str) -> Decimal:
        # Summed in Python: SQLite would add these as floats
        values = self.db.execute(
            select(RoundupRecord.round_up_value).where(RoundupRecord.wallet_address == wallet_address)
        ).scalars()
        total = sum((to_usd(value) for value in values), Decimal("0"))
        return total.quantize(CENT, rounding=ROUND_HALF_UP)

    def is_ready_for_investment(self, wallet_address: str) -> bool:
        return self.total_for(wallet_address) >= self.investment_threshold
