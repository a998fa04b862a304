"""Translate resolved batches into distribution contract calls."""

from typing import Dict, Optional, Tuple

from distribution_engine.addresses import is_valid_address
from distribution_engine.fees import FeeQuote
from distribution_engine.models import AssetDescriptor, AssetKind, DistributionMode, ResolvedBatch

from .models import ApprovalCall, SendCall


class AdapterError(ValueError):
    """Raised when a batch cannot be adapted to a contract call."""


_CALL_SHAPES: Dict[Tuple[AssetKind, DistributionMode], str] = {
    (AssetKind.TOKEN, DistributionMode.EQUAL): "sendEqual",
    (AssetKind.TOKEN, DistributionMode.CUSTOM): "sendToMany",
    (AssetKind.NATIVE, DistributionMode.EQUAL): "sendNativeEqual",
    (AssetKind.NATIVE, DistributionMode.CUSTOM): "sendNativeToMany",
}


def build_send_call(
    asset: AssetDescriptor,
    mode: DistributionMode,
    batch: ResolvedBatch,
    fee: FeeQuote,
    distributor_address: Optional[str],
) -> SendCall:
    _validate_batch(batch)
    if not is_valid_address(distributor_address):
        raise AdapterError("A valid distributor address is required.")

    function_name = _CALL_SHAPES.get((asset.kind, mode))
    if function_name is None:
        raise AdapterError("Unsupported asset kind or distribution mode.")

    recipients = tuple(batch.recipients)
    if mode == DistributionMode.EQUAL:
        if len(set(batch.amounts)) != 1:
            raise AdapterError("Equal distributions require identical amounts.")
        amount_args: Tuple[object, ...] = (recipients, batch.amounts[0])
    else:
        amount_args = (recipients, tuple(batch.amounts))

    if asset.is_native:
        args = amount_args
        value = batch.total_minor_units + fee.fee_minor_units
    else:
        args = (asset.token_address,) + amount_args
        value = 0

    return SendCall(
        function_name=function_name,
        to_address=distributor_address,  # type: ignore[arg-type]
        args=args,
        value=value,
        recipient_count=len(recipients),
    )


def build_approval_call(asset: AssetDescriptor, spender: Optional[str], amount: int) -> ApprovalCall:
    if asset.is_native:
        raise AdapterError("Native assets do not require approval.")
    if not is_valid_address(spender):
        raise AdapterError("A valid spender address is required.")
    if amount <= 0:
        raise AdapterError("Approval amount must be positive.")
    return ApprovalCall(
        token_address=asset.token_address,  # type: ignore[arg-type]
        spender=spender,  # type: ignore[arg-type]
        amount=amount,
    )


def _validate_batch(batch: ResolvedBatch) -> None:
    if batch.is_empty:
        raise AdapterError("Batch must include at least one recipient.")
    if len(batch.recipients) != len(batch.amounts):
        raise AdapterError("Recipients and amounts must be parallel.")
    if any(amount <= 0 for amount in batch.amounts):
        raise AdapterError("Every amount must be positive.")
    if not all(is_valid_address(address) for address in batch.recipients):
        raise AdapterError("Every recipient must be a valid address.")
