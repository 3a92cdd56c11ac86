"""Abstract transfer-source interface with baseline-aware pagination."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from app.core.logging import get_logger
from app.schemas.tracking import Transfer

log = get_logger("ingestion.base")


class BaseTransferSource(ABC):
    """Walks a wallet's transaction feed (newest first) and yields outgoing transfers."""

    name: str
    network: str = "mainnet"

    def __init__(self, page_size: int = 100, max_pages: int = 10):
        self.page_size = page_size
        self.max_pages = max_pages

    @abstractmethod
    async def fetch_page(self, address: str, before: Optional[str] = None) -> List[Dict[str, Any]]:
        """Fetch one page of raw transactions older than ``before``, newest first."""

    @abstractmethod
    def parse_outgoing(self, raw: Dict[str, Any], address: str) -> Optional[Transfer]:
        """Return the transfer if ``address`` sent it to someone else, else None."""

    @staticmethod
    def transfer_id(raw: Dict[str, Any]) -> Optional[str]:
        return raw.get("signature") if isinstance(raw, dict) else None

    async def most_recent(self, address: str) -> Optional[str]:
        """Id of the newest transaction touching the wallet, in any direction."""
        page = await self.fetch_page(address)
        for raw in page:
            transfer_id = self.transfer_id(raw)
            if transfer_id:
                return transfer_id
        return None

    async def fetch_outgoing(
        self, address: str, limit: int, since: Optional[str] = None
    ) -> List[Transfer]:
        """Collect up to ``limit`` outgoing transfers newer than ``since``.

        ``since`` itself and everything older are excluded. Passing ``since=None``
        scans the whole available history (bounded by ``max_pages``).
        """
        collected: List[Transfer] = []
        before: Optional[str] = None

        for page_number in range(1, self.max_pages + 1):
            page = await self.fetch_page(address, before)
            if not page:
                break

            for raw in page:
                transfer_id = self.transfer_id(raw)
                if since and transfer_id == since:
                    log.debug(f"Reached baseline {since[:8]}... on page {page_number}")
                    return collected

                transfer = self.parse_outgoing(raw, address)
                if transfer is None:
                    continue
                collected.append(transfer)
                if len(collected) >= limit:
                    return collected

            before = self.transfer_id(page[-1])
            if not before:
                break
        else:
            log.warning(
                f"Stopped after {self.max_pages} pages for {address} "
                f"(collected={len(collected)}, baseline_found=False)"
            )

        return collected
