"""Pure send-readiness predicate."""

from dataclasses import dataclass
from typing import Optional, Tuple

from distribution_engine.models import AssetDescriptor, ResolvedBatch
from distribution_engine.resolver import is_sendable

from .phases import IN_FLIGHT_PHASES, TransactionPhase


@dataclass(frozen=True)
class SendGate:
    allowed: bool
    reasons: Tuple[str, ...]


def needs_approval(asset: AssetDescriptor, allowance: Optional[int], required: int) -> bool:
    """Tokens need approval while the allowance (unread counts as 0) is below ``required``."""

    if asset.is_native or required <= 0:
        return False
    return (allowance or 0) < required


def evaluate_send_gate(
    asset: AssetDescriptor,
    distributor_address: Optional[str],
    batch: ResolvedBatch,
    phase: TransactionPhase,
    allowance: Optional[int],
    balance: Optional[int],
    required: int,
) -> SendGate:
    reasons = []

    if phase in IN_FLIGHT_PHASES:
        reasons.append("A request is already in flight.")
    if not is_sendable(asset, distributor_address, batch):
        reasons.append("Batch is not ready to send.")
    if needs_approval(asset, allowance, required):
        reasons.append("Approval is required before sending.")
    if balance is None or balance < required:
        reasons.append("Insufficient balance.")

    return SendGate(allowed=not reasons, reasons=tuple(reasons))
