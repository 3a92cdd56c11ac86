"""Append-only round-up ledger, one row per outgoing transfer."""

from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class RoundupRecord(Base):
    __tablename__ = "roundup_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    wallet_address: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Transaction signatures are globally unique on-chain
    transaction_id: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)

    transaction_date: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    token: Mapped[str] = mapped_column(String(20), nullable=False)
    token_mint: Mapped[str | None] = mapped_column(String(64), nullable=True, comment="NULL for native SOL")
    token_amount: Mapped[Decimal] = mapped_column(Numeric(38, 12), nullable=False)

    usd_value: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    round_up_value: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)

    price_source: Mapped[str] = mapped_column(String(32), nullable=False)

    slot: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    network_fee: Mapped[Decimal | None] = mapped_column(Numeric(20, 9), nullable=True, comment="SOL")

    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
