"""Helius enhanced-transactions feed."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

import httpx
from pydantic import ValidationError

from app.core.assets import (
    LAMPORTS_PER_SOL,
    NATIVE_SOL_SYMBOL,
    UNKNOWN_TOKEN_SYMBOL,
    token_info,
)
from app.core.errors import TransferSourceError
from app.core.logging import get_logger
from app.schemas.raw import HeliusTransaction
from app.schemas.tracking import Transfer
from .base import BaseTransferSource

log = get_logger("ingestion.helius")

HeliusNetwork = Literal["mainnet", "devnet"]


class HeliusSource(BaseTransferSource):
    """Fetches parsed wallet transactions from the Helius REST API."""

    name = "helius"

    def __init__(
        self,
        api_key: Optional[str],
        network: HeliusNetwork = "mainnet",
        page_size: int = 100,
        max_pages: int = 10,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(page_size=page_size, max_pages=max_pages)
        self.api_key = api_key or ""
        self.network = network
        self.timeout = timeout
        self._transport = transport
        if not self.api_key:
            log.warning("HELIUS_API_KEY is not set; Helius requests will be rejected")

    @property
    def base_url(self) -> str:
        return f"https://api{'-devnet' if self.network == 'devnet' else ''}.helius-rpc.com"

    async def fetch_page(self, address: str, before: Optional[str] = None) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/v0/addresses/{address}/transactions"
        params: Dict[str, Any] = {"api-key": self.api_key, "limit": self.page_size}
        if before:
            params["before"] = before

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(url, params=params)
        except httpx.TimeoutException as exc:
            raise TransferSourceError(f"Helius request timed out after {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            raise TransferSourceError(f"Helius request failed: {exc}") from exc

        if resp.status_code != 200:
            log.error(f"Helius API error response ({resp.status_code}): {resp.text[:500]}")
            raise TransferSourceError(
                f"Helius API error ({resp.status_code}): {resp.reason_phrase}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise TransferSourceError("Invalid JSON from Helius API") from exc

        if not isinstance(data, list):
            log.error(f"Unexpected Helius response format: {str(data)[:500]}")
            raise TransferSourceError("Invalid response format from Helius API")

        log.debug(f"Fetched {len(data)} transactions from Helius ({self.network}) before={before}")
        return data

    def parse_outgoing(self, raw: Dict[str, Any], address: str) -> Optional[Transfer]:
        try:
            tx = HeliusTransaction.model_validate(raw)
        except ValidationError as exc:
            log.warning(f"Skipping malformed Helius transaction {self.transfer_id(raw)}: {exc.error_count()} errors")
            return None

        # Token legs take precedence over SOL legs in the same transaction
        for leg in tx.token_transfers:
            if leg.from_user_account != address or leg.to_user_account in (None, address):
                continue
            amount = Decimal(str(leg.token_amount))
            if amount <= 0:
                continue
            info = token_info(leg.mint)
            return Transfer(
                transfer_id=tx.signature,
                timestamp=tx.timestamp,
                slot=tx.slot,
                fee=Decimal(tx.fee) / LAMPORTS_PER_SOL,
                amount=amount,
                token=info["symbol"] if info else UNKNOWN_TOKEN_SYMBOL,
                token_mint=leg.mint,
                from_address=address,
                to_address=leg.to_user_account,
            )

        for leg in tx.native_transfers:
            if leg.from_user_account != address or leg.to_user_account in (None, address):
                continue
            if leg.amount <= 0:
                continue
            return Transfer(
                transfer_id=tx.signature,
                timestamp=tx.timestamp,
                slot=tx.slot,
                fee=Decimal(tx.fee) / LAMPORTS_PER_SOL,
                amount=Decimal(leg.amount) / LAMPORTS_PER_SOL,
                token=NATIVE_SOL_SYMBOL,
                token_mint=None,
                from_address=address,
                to_address=leg.to_user_account,
            )

        return None


def build_transfer_source(settings: Any) -> HeliusSource:
    """Create the process-wide Helius source from application settings."""
    log.info(f"Initializing Helius source for {settings.helius_network}")
    return HeliusSource(
        api_key=settings.HELIUS_API_KEY,
        network=settings.helius_network,
        page_size=settings.HELIUS_PAGE_SIZE,
        max_pages=settings.HELIUS_MAX_PAGES,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
