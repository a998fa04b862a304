"""Pure amount resolution for equal and custom distributions."""

from typing import Iterable, List, Optional, Sequence

from .addresses import is_valid_address
from .amounts import (
    AmountError,
    is_decimal_numeral,
    is_positive_amount,
    to_decimal_string,
    to_minor_units,
)
from .models import (
    EMPTY_BATCH,
    AmountCheck,
    AssetDescriptor,
    DistributionMode,
    RecipientRow,
    RecipientStats,
    ResolvedBatch,
)

SMALL_AMOUNT_THRESHOLD = "0.0001"
LARGE_TOTAL_THRESHOLD = "1000000"


def resolve_batch(
    mode: DistributionMode,
    rows: Iterable[RecipientRow],
    equal_amount: Optional[str],
    decimals: int,
) -> ResolvedBatch:
    """Resolve raw rows into parallel recipient and minor-unit arrays.

    Incomplete input yields the empty batch instead of an error, so callers
    can re-resolve on every keystroke.
    """

    rows = tuple(rows)
    if mode == DistributionMode.EQUAL:
        return _resolve_equal(rows, equal_amount, decimals)
    if mode == DistributionMode.CUSTOM:
        return _resolve_custom(rows, decimals)
    raise ValueError(f"Unsupported distribution mode: {mode!r}")


def _resolve_equal(
    rows: Sequence[RecipientRow], equal_amount: Optional[str], decimals: int
) -> ResolvedBatch:
    recipients = tuple(row.address for row in rows if is_valid_address(row.address))
    if not equal_amount or not recipients:
        return EMPTY_BATCH
    try:
        amount = to_minor_units(equal_amount, decimals, require_positive=True)
    except AmountError:
        return EMPTY_BATCH
    return ResolvedBatch(recipients=recipients, amounts=(amount,) * len(recipients))


def _resolve_custom(rows: Sequence[RecipientRow], decimals: int) -> ResolvedBatch:
    retained = [
        row
        for row in rows
        if is_valid_address(row.address) and _is_nonzero_numeral(row.amount)
    ]
    amounts: List[int] = []
    for row in retained:
        try:
            amounts.append(to_minor_units(row.amount, decimals, require_positive=True))
        except AmountError:
            # One unconvertible amount must not produce a partial total.
            return EMPTY_BATCH
    return ResolvedBatch(
        recipients=tuple(row.address for row in retained),
        amounts=tuple(amounts),
    )


def _is_nonzero_numeral(text: str) -> bool:
    if not text or not is_decimal_numeral(text):
        return False
    return any(char in "123456789" for char in text)


def is_sendable(
    asset: Optional[AssetDescriptor],
    distributor_address: Optional[str],
    batch: ResolvedBatch,
) -> bool:
    return (
        asset is not None
        and bool(distributor_address)
        and len(batch.recipients) > 0
        and len(batch.amounts) == len(batch.recipients)
        and batch.total_minor_units > 0
    )


def summarize_rows(
    rows: Iterable[RecipientRow],
    mode: DistributionMode,
    decimals: int,
    max_recipients: int = 200,
) -> RecipientStats:
    rows = tuple(rows)
    valid = [row for row in rows if row.address and is_valid_address(row.address)]
    invalid = [row for row in rows if row.address.strip() and not is_valid_address(row.address)]
    empty = [row for row in rows if not row.address.strip()]
    if mode == DistributionMode.CUSTOM:
        with_amounts = sum(1 for row in valid if is_positive_amount(row.amount, decimals))
    else:
        with_amounts = len(valid)
    return RecipientStats(
        total=len(rows),
        valid=len(valid),
        invalid=len(invalid),
        empty=len(empty),
        with_amounts=with_amounts,
        near_limit=len(valid) >= max_recipients * 0.9,
        at_limit=len(valid) >= max_recipients,
    )


def amount_warnings(
    mode: DistributionMode,
    equal_amount: Optional[str],
    total: int,
    balance: Optional[int],
    decimals: int,
    symbol: str = "",
) -> AmountCheck:
    """Balance issues and advisory size warnings for a resolved total."""

    issues: List[str] = []
    warnings: List[str] = []
    unit = f" {symbol}" if symbol else ""

    if balance is not None and total > balance:
        issues.append(
            f"Insufficient balance. You have {to_decimal_string(balance, decimals)}{unit} "
            f"but need {to_decimal_string(total, decimals)}{unit}."
        )

    if mode == DistributionMode.EQUAL and equal_amount:
        try:
            per_recipient = to_minor_units(equal_amount, decimals)
            small = to_minor_units(SMALL_AMOUNT_THRESHOLD, decimals)
        except AmountError:
            per_recipient = None
            small = 0
        if per_recipient is not None and per_recipient < small:
            warnings.append("Amount per recipient is very small. Consider using a larger amount.")

    if total > int(LARGE_TOTAL_THRESHOLD) * 10**decimals:
        warnings.append("Large transaction amount. Please double-check all details.")

    return AmountCheck(issues=tuple(issues), warnings=tuple(warnings))
