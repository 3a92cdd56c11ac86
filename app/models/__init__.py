from app.models.base import Base
from app.models.wallet_tracking import WalletTracking
from app.models.roundup import RoundupRecord
from app.models.runs import TrackingRun

__all__ = [
    "Base",
    "WalletTracking",
    "RoundupRecord",
    "TrackingRun",
]
