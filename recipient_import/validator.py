"""All-or-nothing validation of imported recipient rows."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from distribution_engine.addresses import is_valid_address
from distribution_engine.amounts import AmountError, to_minor_units
from distribution_engine.models import RecipientRow

from .csv_parser import parse_csv_recipients

DEFAULT_MAX_ERRORS = 5


class RejectionReason(Enum):
    MISSING_ADDRESS = "MISSING_ADDRESS"
    INVALID_ADDRESS = "INVALID_ADDRESS"
    MISSING_AMOUNT = "MISSING_AMOUNT"
    INVALID_AMOUNT = "INVALID_AMOUNT"


@dataclass(frozen=True)
class Rejection:
    line_number: int
    reason: RejectionReason
    message: str


@dataclass(frozen=True)
class ImportValidation:
    is_valid: bool
    errors: Tuple[str, ...]
    accepted_rows: Tuple[RecipientRow, ...]
    rejections: Tuple[Rejection, ...] = ()

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "accepted_rows": [row.to_dict() for row in self.accepted_rows],
            "rejected_count": len(self.rejections),
        }


def validate_recipients(
    rows: Iterable[RecipientRow], amounts_required: bool, decimals: int = 18
) -> ImportValidation:
    """Check every row; any rejection invalidates the whole import."""

    accepted: List[RecipientRow] = []
    rejections: List[Rejection] = []
    for index, row in enumerate(rows):
        rejection = _check_row(index + 1, row, amounts_required, decimals)
        if rejection is None:
            accepted.append(
                RecipientRow(address=(row.address or "").strip(), amount=(row.amount or "").strip())
            )
        else:
            rejections.append(rejection)

    is_valid = not rejections
    return ImportValidation(
        is_valid=is_valid,
        errors=tuple(rejection.message for rejection in rejections),
        accepted_rows=tuple(accepted) if is_valid else (),
        rejections=tuple(rejections),
    )


def validate_import(
    text: str,
    has_headers: bool = True,
    amounts_required: bool = False,
    decimals: int = 18,
    max_errors: int = DEFAULT_MAX_ERRORS,
) -> ImportValidation:
    """Parse and validate CSV text, surfacing at most ``max_errors`` messages."""

    rows = parse_csv_recipients(text, has_headers=has_headers, amounts_expected=amounts_required)
    result = validate_recipients(rows, amounts_required, decimals)
    if len(result.errors) <= max_errors:
        return result
    return ImportValidation(
        is_valid=result.is_valid,
        errors=result.errors[:max_errors],
        accepted_rows=result.accepted_rows,
        rejections=result.rejections,
    )


def _check_row(
    line_number: int, row: RecipientRow, amounts_required: bool, decimals: int
) -> Optional[Rejection]:
    address = row.address.strip() if row.address else ""
    if not address:
        return Rejection(
            line_number, RejectionReason.MISSING_ADDRESS, f"Line {line_number}: Address is required"
        )
    if not is_valid_address(address):
        return Rejection(
            line_number,
            RejectionReason.INVALID_ADDRESS,
            f'Line {line_number}: Invalid address "{row.address}"',
        )

    if amounts_required:
        amount = row.amount.strip() if row.amount else ""
        if not amount:
            return Rejection(
                line_number, RejectionReason.MISSING_AMOUNT, f"Line {line_number}: Amount is required"
            )
        try:
            to_minor_units(amount, decimals, require_positive=True)
        except AmountError:
            return Rejection(
                line_number,
                RejectionReason.INVALID_AMOUNT,
                f'Line {line_number}: Invalid amount "{row.amount}"',
            )
    return None
