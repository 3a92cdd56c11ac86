"""Raw Helius enhanced-transaction schemas (only the fields we read)."""

from typing import List, Optional

from pydantic import BaseModel, Field


class NativeTransfer(BaseModel):
    from_user_account: Optional[str] = Field(None, alias="fromUserAccount")
    to_user_account: Optional[str] = Field(None, alias="toUserAccount")
    amount: int = 0  # lamports


class TokenTransfer(BaseModel):
    from_user_account: Optional[str] = Field(None, alias="fromUserAccount")
    to_user_account: Optional[str] = Field(None, alias="toUserAccount")
    token_amount: float = Field(0, alias="tokenAmount")
    mint: str


class HeliusTransaction(BaseModel):
    signature: str
    timestamp: int
    slot: int = 0
    fee: int = 0  # lamports
    native_transfers: List[NativeTransfer] = Field(default_factory=list, alias="nativeTransfers")
    token_transfers: List[TokenTransfer] = Field(default_factory=list, alias="tokenTransfers")

    class Config:
        populate_by_name = True
