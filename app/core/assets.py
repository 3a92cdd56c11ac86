"""Well-known Solana assets: symbols and CoinGecko ids keyed by mint."""

from typing import Any, Dict, Optional

# Wrapped SOL mint, used as the asset identifier for native SOL transfers
NATIVE_SOL_MINT = "So11111111111111111111111111111111111111112"
NATIVE_SOL_SYMBOL = "SOL"
LAMPORTS_PER_SOL = 10**9

UNKNOWN_TOKEN_SYMBOL = "UNKNOWN"

WELL_KNOWN_TOKENS = [
    {"mint": NATIVE_SOL_MINT, "symbol": "SOL", "coingecko_id": "solana", "stablecoin": False},
    {"mint": "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v", "symbol": "USDC", "coingecko_id": "usd-coin", "stablecoin": True},
    # Devnet USDC
    {"mint": "4zMMC9srt5Ri5X14GAgXhaHii3GnPAEERYPJgZJDncDU", "symbol": "USDC", "coingecko_id": "usd-coin", "stablecoin": True},
    {"mint": "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB", "symbol": "USDT", "coingecko_id": "tether", "stablecoin": True},
    {"mint": "mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So", "symbol": "mSOL", "coingecko_id": "msol", "stablecoin": False},
]

_BY_MINT: Dict[str, Dict[str, Any]] = {token["mint"]: token for token in WELL_KNOWN_TOKENS}

STABLECOIN_MINTS = frozenset(token["mint"] for token in WELL_KNOWN_TOKENS if token["stablecoin"])


def token_info(mint: Optional[str]) -> Optional[Dict[str, Any]]:
    """Look up a well-known token; ``None`` means native SOL."""
    return _BY_MINT.get(mint or NATIVE_SOL_MINT)


def asset_id_for(mint: Optional[str]) -> str:
    """Price-lookup identifier for a transfer's asset."""
    return mint or NATIVE_SOL_MINT


def is_stablecoin(asset_id: str) -> bool:
    return asset_id in STABLECOIN_MINTS
