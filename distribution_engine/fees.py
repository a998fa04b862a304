"""Protocol fee and gas tier estimation."""

from dataclasses import dataclass
from enum import Enum

BASIS_POINT_DENOMINATOR = 10_000


class GasTier(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class FeeQuote:
    fee_minor_units: int
    basis_points: int


@dataclass(frozen=True)
class GasThresholds:
    """Upper bounds (exclusive, in gas units) for the low and medium tiers."""

    low: int = 1_000_000
    medium: int = 3_000_000

    def __post_init__(self) -> None:
        if self.low < 0 or self.medium < self.low:
            raise ValueError("Gas thresholds must satisfy 0 <= low <= medium.")


@dataclass(frozen=True)
class GasQuote:
    estimate: int
    tier: GasTier


def quote_fee(total_minor_units: int, basis_points: int) -> FeeQuote:
    """Floor of ``total * basis_points / 10000``; zero basis points disables the fee."""

    if total_minor_units < 0:
        raise ValueError("Total must be non-negative.")
    if basis_points < 0:
        raise ValueError("Basis points must be non-negative.")
    fee = total_minor_units * basis_points // BASIS_POINT_DENOMINATOR
    return FeeQuote(fee_minor_units=fee, basis_points=basis_points)


def classify_gas(estimate: int, thresholds: GasThresholds) -> GasTier:
    if estimate < thresholds.low:
        return GasTier.LOW
    if estimate < thresholds.medium:
        return GasTier.MEDIUM
    return GasTier.HIGH


def quote_gas(estimate: int, thresholds: GasThresholds) -> GasQuote:
    if estimate < 0:
        raise ValueError("Gas estimate must be non-negative.")
    return GasQuote(estimate=estimate, tier=classify_gas(estimate, thresholds))
