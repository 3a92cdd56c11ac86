"""Per-wallet baseline: the newest transfer already accounted for."""

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class WalletTracking(Base):
    """One row per connected wallet.

    ``last_tracked_tx`` stays NULL until the wallet is initialized; after that it
    only ever moves forward to newer transfer ids.
    """

    __tablename__ = "wallet_tracking"

    wallet_address: Mapped[str] = mapped_column(String(64), primary_key=True)

    last_tracked_tx: Mapped[str | None] = mapped_column(String(128), nullable=True)

    last_tracked_at: Mapped[DateTime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    updated_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    @property
    def is_initialized(self) -> bool:
        return self.last_tracked_tx is not None
