"""Domain models for the distribution engine."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class MissingFieldError(ValueError):
    """Raised when a required field is absent from serialized input."""


class AssetKind(Enum):
    NATIVE = "NATIVE"
    TOKEN = "TOKEN"


class DistributionMode(Enum):
    EQUAL = "equal"
    CUSTOM = "custom"


@dataclass(frozen=True)
class RecipientRow:
    """Raw recipient input; either field may be empty or invalid."""

    address: str = ""
    amount: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"address": self.address, "amount": self.amount}

    @staticmethod
    def from_dict(data: Dict[str, object]) -> "RecipientRow":
        if "address" not in data:
            raise MissingFieldError("Recipient row requires an address field.")
        amount = data.get("amount")
        return RecipientRow(
            address=str(data["address"] or ""),
            amount="" if amount is None else str(amount),
        )


@dataclass(frozen=True)
class AssetDescriptor:
    """The asset being distributed. Re-selection builds a new descriptor."""

    kind: AssetKind
    decimals: int
    symbol: str
    token_address: Optional[str] = None

    def __post_init__(self) -> None:
        if not 0 <= self.decimals <= 255:
            raise ValueError("decimals must fit in a uint8.")
        if self.kind == AssetKind.TOKEN and not self.token_address:
            raise MissingFieldError("Token assets require a token address.")
        if self.kind == AssetKind.NATIVE and self.token_address:
            raise ValueError("Native assets must not carry a token address.")

    @property
    def is_native(self) -> bool:
        return self.kind == AssetKind.NATIVE

    @property
    def label(self) -> str:
        return self.symbol or self.token_address or ""

    @staticmethod
    def native(symbol: str = "ETH", decimals: int = 18) -> "AssetDescriptor":
        return AssetDescriptor(kind=AssetKind.NATIVE, decimals=decimals, symbol=symbol)

    @staticmethod
    def token(token_address: str, decimals: int, symbol: str = "") -> "AssetDescriptor":
        return AssetDescriptor(
            kind=AssetKind.TOKEN,
            decimals=decimals,
            symbol=symbol,
            token_address=token_address,
        )


@dataclass(frozen=True)
class ResolvedBatch:
    """Parallel recipient/amount arrays ready for a distribution call."""

    recipients: Tuple[str, ...] = ()
    amounts: Tuple[int, ...] = ()

    @property
    def total_minor_units(self) -> int:
        return sum(self.amounts)

    @property
    def is_empty(self) -> bool:
        return not self.recipients

    def to_dict(self) -> Dict[str, object]:
        return {
            "recipients": list(self.recipients),
            "amounts": [str(amount) for amount in self.amounts],
            "total_minor_units": str(self.total_minor_units),
        }


EMPTY_BATCH = ResolvedBatch()


@dataclass(frozen=True)
class RecipientStats:
    total: int
    valid: int
    invalid: int
    empty: int
    with_amounts: int
    near_limit: bool
    at_limit: bool


@dataclass(frozen=True)
class AmountCheck:
    issues: Tuple[str, ...]
    warnings: Tuple[str, ...]

    @property
    def is_valid(self) -> bool:
        return not self.issues
