from .csv_parser import TEMPLATE_ADDRESS, generate_template, parse_csv_recipients
from .validator import (
    ImportValidation,
    Rejection,
    RejectionReason,
    validate_import,
    validate_recipients,
)

__all__ = [
    "TEMPLATE_ADDRESS",
    "ImportValidation",
    "Rejection",
    "RejectionReason",
    "generate_template",
    "parse_csv_recipients",
    "validate_import",
    "validate_recipients",
]
