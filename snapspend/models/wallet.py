"""Wallet (payment source) models."""

from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class WalletType(str, Enum):
    """
    Kind of payment source.

    Only used for icon/label selection - no behavior depends on it.
    """
    CASH = "cash"
    CARD = "card"
    BANK = "bank"
    DIGITAL = "digital"
    OTHER = "other"


class Wallet(BaseModel):
    """A named payment source expenses are attributed to."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        min_length=1,
        description="Unique wallet identifier"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name (need not be unique)"
    )
    type: WalletType = Field(default=WalletType.OTHER)


DEFAULT_WALLETS = [
    Wallet(id="default-cash", name="Cash", type=WalletType.CASH),
]
