"""Error taxonomy for wallet initialization and round-up tracking.

Every failure surfaced to a caller carries a machine-readable ``kind`` plus an
optional upstream ``detail`` so clients can tell whether to retry, initialize
the wallet first, or show a terminal message.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class RoundupError(Exception):
    """Base class for errors surfaced to API and CLI callers."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": self.kind,
            "message": self.message,
            "detail": self.detail,
        }


class InvalidInputError(RoundupError):
    kind = "invalid_input"
    status_code = 400


class InvalidAddressError(InvalidInputError):
    kind = "invalid_address"


class NotInitializedError(RoundupError):
    """Wallet has no baseline yet; call wallet initialization first."""

    kind = "not_initialized"
    status_code = 409

    def __init__(self, wallet_address: str):
        super().__init__(
            f"Wallet {wallet_address} is not initialized. Initialize it before tracking round-ups."
        )
        self.wallet_address = wallet_address


class NoTransactionHistoryError(RoundupError):
    kind = "no_transaction_history"
    status_code = 404

    def __init__(self, wallet_address: str, network: str):
        super().__init__(
            f"No transactions found for wallet {wallet_address} on {network}",
            detail=f"network={network}",
        )
        self.wallet_address = wallet_address
        self.network = network


class UpstreamUnavailableError(RoundupError):
    """The transfer feed could not be reached or answered with garbage."""

    kind = "upstream_unavailable"
    status_code = 502

    def __init__(self, source: str, detail: Optional[str] = None):
        super().__init__(f"Transfer source '{source}' is unavailable", detail=detail)
        self.source = source


class TransferSourceError(Exception):
    """Raised by transfer sources; translated to UpstreamUnavailableError by the tracker."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
