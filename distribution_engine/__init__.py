from .addresses import (
    InvalidAddressError,
    find_duplicate_addresses,
    is_valid_address,
    require_address,
    shorten_address,
)
from .amounts import (
    AmountError,
    MalformedAmountError,
    NonPositiveAmountError,
    is_positive_amount,
    to_decimal_string,
    to_minor_units,
)
from .fees import FeeQuote, GasQuote, GasThresholds, GasTier, classify_gas, quote_fee, quote_gas
from .models import (
    EMPTY_BATCH,
    AmountCheck,
    AssetDescriptor,
    AssetKind,
    DistributionMode,
    MissingFieldError,
    RecipientRow,
    RecipientStats,
    ResolvedBatch,
)
from .resolver import amount_warnings, is_sendable, resolve_batch, summarize_rows
from .settings import EngineSettings, load_settings

__all__ = [
    "EMPTY_BATCH",
    "AmountCheck",
    "AmountError",
    "AssetDescriptor",
    "AssetKind",
    "DistributionMode",
    "EngineSettings",
    "FeeQuote",
    "GasQuote",
    "GasThresholds",
    "GasTier",
    "InvalidAddressError",
    "MalformedAmountError",
    "MissingFieldError",
    "NonPositiveAmountError",
    "RecipientRow",
    "RecipientStats",
    "ResolvedBatch",
    "amount_warnings",
    "classify_gas",
    "find_duplicate_addresses",
    "is_positive_amount",
    "is_sendable",
    "is_valid_address",
    "load_settings",
    "quote_fee",
    "quote_gas",
    "require_address",
    "resolve_batch",
    "shorten_address",
    "summarize_rows",
    "to_decimal_string",
    "to_minor_units",
]
