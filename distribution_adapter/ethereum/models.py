"""Call shapes requested from the distribution contract and token."""

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class SendCall:
    function_name: str
    to_address: str
    args: Tuple[object, ...]
    value: int
    recipient_count: int

    def to_dict(self) -> Dict[str, object]:
        return {
            "function_name": self.function_name,
            "to_address": self.to_address,
            "args": [_jsonable(arg) for arg in self.args],
            "value": str(self.value),
            "recipient_count": self.recipient_count,
        }


@dataclass(frozen=True)
class ApprovalCall:
    token_address: str
    spender: str
    amount: int

    def to_dict(self) -> Dict[str, object]:
        return {
            "function_name": "approve",
            "to_address": self.token_address,
            "args": [self.spender, str(self.amount)],
            "value": "0",
        }


def _jsonable(value: object) -> object:
    if isinstance(value, tuple):
        return [_jsonable(item) for item in value]
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value
