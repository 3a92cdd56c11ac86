"""Solana wallet address validation."""

from solders.pubkey import Pubkey

from app.core.errors import InvalidAddressError

# Base58-encoded 32-byte keys are 32 to 44 characters long
MIN_ADDRESS_LENGTH = 32
MAX_ADDRESS_LENGTH = 44


def validate_wallet_address(address: object) -> str:
    """Return the stripped address or raise InvalidAddressError."""
    if not isinstance(address, str) or not address.strip():
        raise InvalidAddressError("Invalid wallet address", detail="address must be a non-empty string")

    address = address.strip()
    if not MIN_ADDRESS_LENGTH <= len(address) <= MAX_ADDRESS_LENGTH:
        raise InvalidAddressError(
            "Invalid wallet address format",
            detail=f"expected {MIN_ADDRESS_LENGTH}-{MAX_ADDRESS_LENGTH} characters, got {len(address)}",
        )
    try:
        Pubkey.from_string(address)
    except Exception as exc:  # noqa: BLE001
        raise InvalidAddressError("Invalid wallet address format", detail=str(exc)) from exc
    return address
