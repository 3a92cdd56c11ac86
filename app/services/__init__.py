# Services package
from app.services.baseline_service import BaselineStore
from app.services.data_service import DataService
from app.services.price_service import PriceOracle, build_price_oracle
from app.services.roundup_service import RoundupLedger
from app.services.tracking_service import RoundupTracker

__all__ = [
    "BaselineStore",
    "DataService",
    "PriceOracle",
    "build_price_oracle",
    "RoundupLedger",
    "RoundupTracker",
]
