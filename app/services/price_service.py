"""USD price lookup backed by CoinGecko with a short in-memory cache.

Stablecoins are pinned to $1.00 without a network call. Any failure of the
upstream feed (network error, timeout, non-200, missing field) yields a zero
quote instead of an exception: callers treat ``price_usd == 0`` as "price
unavailable" and skip the transfer.

Historical pricing is an approximation. A transfer older than the historical
window is priced at the *current* price, with the quote's timestamp moved back
to the block time. There is no point-in-time price feed behind this.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Optional, Tuple

import httpx

from app.core.assets import is_stablecoin, token_info
from app.core.errors import InvalidInputError
from app.core.logging import get_logger
from app.schemas.tracking import PriceQuote

log = get_logger("price_service")

STABLECOIN_PRICE = Decimal("1.00")
ZERO_PRICE = Decimal("0")


class PriceUnavailable(Exception):
    """Upstream price feed failed or returned unusable data."""


class PriceOracle:
    """Per-process price lookup. Construct once and pass it where needed."""

    def __init__(
        self,
        api_url: str = "https://api.coingecko.com/api/v3",
        api_key: Optional[str] = None,
        cache_seconds: float = 60,
        historical_window_seconds: int = 300,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.cache_seconds = cache_seconds
        self.historical_window_seconds = historical_window_seconds
        self.timeout = timeout
        self._transport = transport
        self._clock = clock
        self._cache: Dict[str, Tuple[PriceQuote, float]] = {}

    async def price(self, asset_id: str) -> PriceQuote:
        """Current USD unit price for ``asset_id`` (a mint address)."""
        if not asset_id or not asset_id.strip():
            raise InvalidInputError("asset identifier must be non-empty")

        if is_stablecoin(asset_id):
            return PriceQuote(
                price_usd=STABLECOIN_PRICE, timestamp=_utcnow(), source="stablecoin", confidence=1.0
            )

        cached = self._get_cached(asset_id)
        if cached:
            return cached

        try:
            unit_price = await self._fetch_usd_price(asset_id)
        except PriceUnavailable as exc:
            log.warning(f"Price unavailable for {asset_id}: {exc}")
            return PriceQuote(price_usd=ZERO_PRICE, timestamp=_utcnow(), source="unavailable")

        quote = PriceQuote(price_usd=unit_price, timestamp=_utcnow(), source="coingecko")
        self._cache[asset_id] = (quote, self._clock())
        return quote

    async def price_at(self, asset_id: str, block_time: int) -> PriceQuote:
        """USD unit price for a transfer made at ``block_time`` (unix seconds)."""
        quote = await self.price(asset_id)
        age = int(time.time()) - block_time
        if age < self.historical_window_seconds:
            return quote

        log.debug(f"Approximating historical price for {asset_id} ({age}s old) with current price")
        return quote.model_copy(
            update={"timestamp": datetime.fromtimestamp(block_time, tz=timezone.utc)}
        )

    def clear_cache(self) -> None:
        self._cache.clear()

    # -------------------------------------------------------------------------
    # Cache
    # -------------------------------------------------------------------------
    def _get_cached(self, asset_id: str) -> Optional[PriceQuote]:
        entry = self._cache.get(asset_id)
        if not entry:
            return None

        quote, fetched_at = entry
        if self._clock() - fetched_at >= self.cache_seconds:
            self._cache.pop(asset_id, None)
            return None

        return quote.model_copy(update={"cached": True})

    # -------------------------------------------------------------------------
    # CoinGecko
    # -------------------------------------------------------------------------
    async def _fetch_usd_price(self, asset_id: str) -> Decimal:
        info = token_info(asset_id)
        if info:
            coin_id = info["coingecko_id"]
            data = await self._get("/simple/price", {"ids": coin_id, "vs_currencies": "usd"})
            return _extract_usd(data, coin_id)

        data = await self._get(
            "/simple/token_price/solana",
            {"contract_addresses": asset_id, "vs_currencies": "usd"},
        )
        # CoinGecko may echo contract addresses lower-cased
        if isinstance(data, dict):
            data = {str(key).lower(): value for key, value in data.items()}
        return _extract_usd(data, asset_id.lower())

    async def _get(self, path: str, params: Dict[str, Any]) -> Any:
        headers = {"accept": "application/json"}
        if self.api_key:
            headers["x-cg-demo-api-key"] = self.api_key

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(f"{self.api_url}{path}", params=params, headers=headers)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPError as exc:
            raise PriceUnavailable(f"CoinGecko request failed: {exc}") from exc
        except ValueError as exc:
            raise PriceUnavailable("CoinGecko returned invalid JSON") from exc


def _extract_usd(data: Any, key: str) -> Decimal:
    entry = data.get(key) if isinstance(data, dict) else None
    usd = entry.get("usd") if isinstance(entry, dict) else None
    if usd is None or isinstance(usd, bool):
        raise PriceUnavailable("Price data not available")
    try:
        price = Decimal(str(usd))
    except InvalidOperation as exc:
        raise PriceUnavailable(f"Malformed price value: {usd!r}") from exc
    if not price.is_finite() or price <= 0:
        raise PriceUnavailable(f"Non-positive price value: {usd!r}")
    return price


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_price_oracle(settings: Any) -> PriceOracle:
    """Create the process-wide oracle from application settings."""
    return PriceOracle(
        api_url=settings.COINGECKO_API_URL,
        api_key=settings.COINGECKO_API_KEY,
        cache_seconds=settings.PRICE_CACHE_SECONDS,
        historical_window_seconds=settings.HISTORICAL_PRICE_WINDOW_SECONDS,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
