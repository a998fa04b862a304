"""Persisted records for distribution history and the address book."""

from dataclasses import dataclass
from typing import Dict, Tuple

from distribution_engine.models import DistributionMode

SAMPLE_RECIPIENT_LIMIT = 3


@dataclass(frozen=True)
class HistoryEntry:
    """One completed distribution. Never mutated after creation."""

    id: str
    timestamp: int
    asset_label: str
    is_native: bool
    recipient_count: int
    total_amount_decimal: str
    fee_decimal: str
    sample_recipients: Tuple[str, ...]
    mode: DistributionMode
    reference_id: str

    def __post_init__(self) -> None:
        if len(self.sample_recipients) > SAMPLE_RECIPIENT_LIMIT:
            raise ValueError(f"At most {SAMPLE_RECIPIENT_LIMIT} sample recipients are kept.")

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "asset_label": self.asset_label,
            "is_native": self.is_native,
            "recipient_count": self.recipient_count,
            "total_amount": self.total_amount_decimal,
            "fee": self.fee_decimal,
            "recipients": list(self.sample_recipients),
            "mode": self.mode.value,
            "reference_id": self.reference_id,
        }

    @staticmethod
    def from_dict(data: Dict[str, object]) -> "HistoryEntry":
        return HistoryEntry(
            id=str(data["id"]),
            timestamp=int(data["timestamp"]),
            asset_label=str(data["asset_label"]),
            is_native=bool(data["is_native"]),
            recipient_count=int(data["recipient_count"]),
            total_amount_decimal=str(data["total_amount"]),
            fee_decimal=str(data["fee"]),
            sample_recipients=tuple(str(item) for item in data.get("recipients", [])),
            mode=DistributionMode(data["mode"]),
            reference_id=str(data["reference_id"]),
        )


@dataclass(frozen=True)
class AddressBookEntry:
    address: str
    label: str
    timestamp: int

    def to_dict(self) -> Dict[str, object]:
        return {"address": self.address, "label": self.label, "timestamp": self.timestamp}

    @staticmethod
    def from_dict(data: Dict[str, object]) -> "AddressBookEntry":
        return AddressBookEntry(
            address=str(data["address"]),
            label=str(data.get("label", "")),
            timestamp=int(data.get("timestamp", 0)),
        )
