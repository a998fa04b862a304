"""CSV ingestion for bulk recipient lists."""

import csv
from typing import List, Tuple

from distribution_engine.models import RecipientRow

TEMPLATE_ADDRESS = "0x742d35Cc6634C0532925a3b844Bc454e4438f44e"
_TEMPLATE_AMOUNTS = ("1.5", "2.0", "0.25")


def parse_csv_recipients(
    text: str, has_headers: bool = True, amounts_expected: bool = False
) -> Tuple[RecipientRow, ...]:
    """Parse raw CSV text into recipient rows in file order.

    The first column is the address; the second is the amount when
    ``amounts_expected`` is set. Rows without an address are dropped.
    """

    lines = [line for line in text.splitlines() if line.strip()]
    if has_headers:
        lines = lines[1:]

    rows: List[RecipientRow] = []
    for line in lines:
        fields = _split_line(line)
        address = fields[0] if fields else ""
        if not address:
            continue
        amount = fields[1] if amounts_expected and len(fields) >= 2 else ""
        rows.append(RecipientRow(address=address, amount=amount))
    return tuple(rows)


def _split_line(line: str) -> List[str]:
    # One reader per line keeps an unbalanced quote from swallowing the next row.
    fields = next(csv.reader([line], skipinitialspace=True), [])
    return [field.strip() for field in fields]


def generate_template(custom_amounts: bool = False, include_headers: bool = True) -> str:
    lines: List[str] = []
    if include_headers:
        lines.append("address,amount" if custom_amounts else "address")
    for amount in _TEMPLATE_AMOUNTS:
        lines.append(f"{TEMPLATE_ADDRESS},{amount}" if custom_amounts else TEMPLATE_ADDRESS)
    return "\n".join(lines) + "\n"
