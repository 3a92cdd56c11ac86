"""Test doubles and Helius-shaped transaction builders."""

import time
from decimal import Decimal
from typing import Any, Dict, List, Optional

from app.core.errors import TransferSourceError
from app.ingestion.helius_source import HeliusSource
from app.services.price_service import PriceOracle, PriceUnavailable

# Valid Solana pubkeys (base58, 32 bytes)
WALLET = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
OTHER_WALLET = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
UNPRICED_MINT = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"


def recent_ts(seconds_ago: int = 30) -> int:
    return int(time.time()) - seconds_ago


def native_tx(signature: str, sender: str, recipient: str, lamports: int, timestamp: Optional[int] = None) -> Dict[str, Any]:
    return {
        "signature": signature,
        "timestamp": timestamp or recent_ts(),
        "slot": 250_000_000,
        "fee": 5000,
        "type": "TRANSFER",
        "feePayer": sender,
        "nativeTransfers": [
            {"fromUserAccount": sender, "toUserAccount": recipient, "amount": lamports},
        ],
        "tokenTransfers": [],
    }


def token_tx(
    signature: str,
    sender: str,
    recipient: str,
    amount: float,
    mint: str = USDC_MINT,
    timestamp: Optional[int] = None,
) -> Dict[str, Any]:
    return {
        "signature": signature,
        "timestamp": timestamp or recent_ts(),
        "slot": 250_000_001,
        "fee": 5000,
        "type": "TRANSFER",
        "feePayer": sender,
        "nativeTransfers": [],
        "tokenTransfers": [
            {
                "fromUserAccount": sender,
                "toUserAccount": recipient,
                "fromTokenAccount": "",
                "toTokenAccount": "",
                "tokenAmount": amount,
                "mint": mint,
                "tokenStandard": "Fungible",
            }
        ],
    }


class FakeTransferSource(HeliusSource):
    """Serves an in-memory Helius feed (newest first) through the real pagination and parsing."""

    def __init__(self, transactions: Optional[List[Dict[str, Any]]] = None, page_size: int = 2, max_pages: int = 10):
        super().__init__(api_key="test-key", network="devnet", page_size=page_size, max_pages=max_pages)
        self.transactions = list(transactions or [])
        self.page_requests: List[Optional[str]] = []
        self.failures: List[TransferSourceError] = []

    async def fetch_page(self, address: str, before: Optional[str] = None) -> List[Dict[str, Any]]:
        self.page_requests.append(before)
        if self.failures:
            raise self.failures.pop(0)

        start = 0
        if before:
            ids = [tx["signature"] for tx in self.transactions]
            start = ids.index(before) + 1
        return self.transactions[start:start + self.page_size]


class FakePriceOracle(PriceOracle):
    """Real oracle (stablecoin bypass, caching, zero-on-failure) over a fixed price table."""

    def __init__(self, prices: Optional[Dict[str, Decimal]] = None, **kwargs: Any):
        super().__init__(**kwargs)
        self.prices = dict(prices or {})
        self.lookups: List[str] = []

    async def _fetch_usd_price(self, asset_id: str) -> Decimal:
        self.lookups.append(asset_id)
        price = self.prices.get(asset_id)
        if price is None:
            raise PriceUnavailable(f"no price for {asset_id}")
        return price
