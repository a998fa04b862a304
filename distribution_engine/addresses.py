"""Recipient address syntax rules."""

import re
from typing import Iterable, List, Set, Tuple

_ADDRESS_PATTERN = re.compile(r"0x[0-9a-fA-F]{40}")


class InvalidAddressError(ValueError):
    """Raised when an address is not a 20-byte hex address."""


def is_valid_address(value: object) -> bool:
    """Return True for ``0x`` followed by 40 hex digits, in any case."""

    if not isinstance(value, str):
        return False
    return _ADDRESS_PATTERN.fullmatch(value) is not None


def require_address(value: object, field: str = "address") -> str:
    if not is_valid_address(value):
        raise InvalidAddressError(f"Invalid {field}: {value!r}")
    return value  # type: ignore[return-value]


def find_duplicate_addresses(addresses: Iterable[str]) -> Tuple[str, ...]:
    """Return lower-cased addresses that appear more than once, first-seen order.

    Blank entries are ignored. Duplicates are advisory only; paying one
    address twice is allowed.
    """

    seen: Set[str] = set()
    duplicates: List[str] = []
    for address in addresses:
        if not address or not address.strip():
            continue
        normalized = address.strip().lower()
        if normalized in seen:
            if normalized not in duplicates:
                duplicates.append(normalized)
        else:
            seen.add(normalized)
    return tuple(duplicates)


def shorten_address(address: str, start: int = 6, end: int = 4) -> str:
    if not is_valid_address(address):
        return address
    return f"{address[:start]}...{address[-end:]}"
