"""Exact conversion between decimal strings and integer minor units."""

import re

_NUMERAL_PATTERN = re.compile(r"(?P<whole>[0-9]*)(?:\.(?P<fraction>[0-9]*))?")


class AmountError(ValueError):
    """Base class for amount conversion failures."""


class MalformedAmountError(AmountError):
    """Raised when a string is not a non-negative decimal numeral at the precision."""


class NonPositiveAmountError(AmountError):
    """Raised when a strictly positive amount is required but zero was given."""


def to_minor_units(text: str, decimals: int, require_positive: bool = False) -> int:
    """Convert a human decimal string to integer minor units.

    Extra fractional precision is rejected rather than truncated.
    """

    _check_decimals(decimals)
    if not isinstance(text, str):
        raise MalformedAmountError(f"Amount must be a string, got {type(text).__name__}.")

    candidate = text.strip()
    match = _NUMERAL_PATTERN.fullmatch(candidate)
    if match is None:
        raise MalformedAmountError(f"Malformed amount: {text!r}")

    whole = match.group("whole") or ""
    fraction = match.group("fraction") or ""
    if not whole and not fraction:
        raise MalformedAmountError(f"Malformed amount: {text!r}")
    if len(fraction) > decimals:
        raise MalformedAmountError(
            f"Amount {text!r} has more than {decimals} fractional digits."
        )

    value = int(whole or "0") * 10**decimals + int(fraction.ljust(decimals, "0") or "0")
    if require_positive and value <= 0:
        raise NonPositiveAmountError(f"Amount must be greater than zero: {text!r}")
    return value


def to_decimal_string(value: int, decimals: int) -> str:
    """Format minor units as a decimal string without trailing zeros."""

    _check_decimals(decimals)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("Minor-unit values must be integers.")
    if value < 0:
        raise ValueError("Minor-unit values must be non-negative.")

    whole, fraction = divmod(value, 10**decimals)
    if decimals == 0 or fraction == 0:
        return str(whole)
    return f"{whole}.{str(fraction).zfill(decimals).rstrip('0')}"


def is_decimal_numeral(text: object) -> bool:
    """Syntax-only check that ignores precision."""

    if not isinstance(text, str):
        return False
    match = _NUMERAL_PATTERN.fullmatch(text.strip())
    return match is not None and bool(match.group("whole") or match.group("fraction"))


def is_positive_amount(text: object, decimals: int) -> bool:
    try:
        to_minor_units(text, decimals, require_positive=True)  # type: ignore[arg-type]
    except AmountError:
        return False
    return True


def _check_decimals(decimals: int) -> None:
    if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
        raise ValueError("decimals must be a non-negative integer.")
