"""Approve-then-send orchestration over an async ledger gateway."""

import asyncio
import logging
import time
import uuid
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from distribution_adapter.ethereum.adapter import build_approval_call, build_send_call
from distribution_adapter.ethereum.gateway import (
    ExternalConfirmationFailedError,
    ExternalRequestRejectedError,
    LedgerGateway,
)
from distribution_engine.addresses import require_address
from distribution_engine.amounts import to_decimal_string
from distribution_engine.fees import FeeQuote, GasQuote, quote_fee, quote_gas
from distribution_engine.models import AssetDescriptor, DistributionMode, RecipientRow, ResolvedBatch
from distribution_engine.resolver import is_sendable, resolve_batch
from distribution_engine.settings import EngineSettings
from history_ledger.ledger import HistoryLedger
from history_ledger.models import SAMPLE_RECIPIENT_LIMIT, HistoryEntry
from recipient_import.validator import ImportValidation, validate_import

from .gate import SendGate, evaluate_send_gate, needs_approval
from .phases import (
    IN_FLIGHT_PHASES,
    FailureKind,
    FailureNotice,
    FailureStage,
    TransactionPhase,
    require_transition,
)

logger = logging.getLogger(__name__)


class SendBlockedError(RuntimeError):
    """Raised when an action is requested while the send gate is closed."""


class InsufficientBalanceError(SendBlockedError):
    """Raised when the balance does not cover total plus fee."""


class InsufficientAllowanceError(SendBlockedError):
    """Raised when a token send is requested before a sufficient approval."""


class DistributionOrchestrator:
    """Holds distribution inputs and drives the approve/send state machine.

    Derived values (batch, fee, gate) are recomputed from the current inputs
    and the latest external reads on every access; nothing is cached.
    """

    def __init__(
        self,
        gateway: LedgerGateway,
        ledger: HistoryLedger,
        sender: str,
        asset: Optional[AssetDescriptor] = None,
        settings: Optional[EngineSettings] = None,
        distributor_address: Optional[str] = None,
        time_provider: Optional[Callable[[], int]] = None,
        id_provider: Optional[Callable[[], str]] = None,
    ) -> None:
        self._settings = settings or EngineSettings()
        distributor = distributor_address or self._settings.distributor_address
        self._distributor = require_address(distributor or "", "distributor address")
        self._sender = require_address(sender, "sender address")
        self._gateway = gateway
        self._ledger = ledger
        self._time_provider = time_provider or (lambda: int(time.time() * 1000))
        self._id_provider = id_provider or (lambda: str(uuid.uuid4()))

        self._asset = asset or AssetDescriptor.native()
        self._mode = DistributionMode.EQUAL
        self._rows: List[RecipientRow] = [RecipientRow()]
        self._equal_amount = ""

        self._phase = TransactionPhase.IDLE
        self._balance: Optional[int] = None
        self._allowance: Optional[int] = None
        self._fee_basis_points = 0
        self._gas: Optional[GasQuote] = None
        self._last_failure: Optional[FailureNotice] = None
        self._last_reference: Optional[str] = None

    # Inputs

    @property
    def asset(self) -> AssetDescriptor:
        return self._asset

    @property
    def mode(self) -> DistributionMode:
        return self._mode

    @property
    def distributor_address(self) -> str:
        return self._distributor

    @property
    def sender(self) -> str:
        return self._sender

    @property
    def rows(self) -> Tuple[RecipientRow, ...]:
        return tuple(self._rows)

    @property
    def equal_amount(self) -> str:
        return self._equal_amount

    @equal_amount.setter
    def equal_amount(self, value: str) -> None:
        self._refuse_in_flight()
        self._equal_amount = value

    def select_asset(self, asset: AssetDescriptor) -> None:
        """Switch asset; cached reads belong to the old asset and are dropped."""

        self._refuse_in_flight()
        self._asset = asset
        self._balance = None
        self._allowance = None
        self._gas = None
        self._last_failure = None
        if self._phase != TransactionPhase.IDLE:
            self._transition(TransactionPhase.IDLE)

    def set_mode(self, mode: DistributionMode) -> None:
        self._refuse_in_flight()
        self._mode = mode

    def add_row(self, address: str = "", amount: str = "") -> int:
        self._refuse_in_flight()
        self._rows.append(RecipientRow(address=address, amount=amount))
        return len(self._rows) - 1

    def update_row(self, index: int, address: Optional[str] = None, amount: Optional[str] = None) -> None:
        self._refuse_in_flight()
        row = self._rows[index]
        self._rows[index] = RecipientRow(
            address=row.address if address is None else address,
            amount=row.amount if amount is None else amount,
        )

    def remove_row(self, index: int) -> None:
        self._refuse_in_flight()
        del self._rows[index]
        if not self._rows:
            self._rows.append(RecipientRow())

    def replace_rows(self, rows: Sequence[RecipientRow]) -> None:
        self._refuse_in_flight()
        self._rows = list(rows) or [RecipientRow()]

    def extend_rows(self, rows: Sequence[RecipientRow]) -> None:
        self._refuse_in_flight()
        self._rows.extend(rows)

    def import_csv(self, text: str, has_headers: bool = True) -> ImportValidation:
        """Validate CSV text and append its rows only when every line is valid."""

        self._refuse_in_flight()
        validation = validate_import(
            text,
            has_headers=has_headers,
            amounts_required=self._mode == DistributionMode.CUSTOM,
            decimals=self._asset.decimals,
            max_errors=self._settings.max_import_errors,
        )
        if validation.is_valid:
            self.extend_rows(validation.accepted_rows)
        return validation

    # Derived state

    @property
    def phase(self) -> TransactionPhase:
        return self._phase

    @property
    def balance(self) -> Optional[int]:
        return self._balance

    @property
    def allowance(self) -> Optional[int]:
        return self._allowance

    @property
    def gas(self) -> Optional[GasQuote]:
        return self._gas

    @property
    def last_failure(self) -> Optional[FailureNotice]:
        return self._last_failure

    @property
    def last_reference(self) -> Optional[str]:
        return self._last_reference

    @property
    def batch(self) -> ResolvedBatch:
        return resolve_batch(self._mode, self._rows, self._equal_amount, self._asset.decimals)

    @property
    def fee(self) -> FeeQuote:
        return quote_fee(self.batch.total_minor_units, self._fee_basis_points)

    @property
    def required_minor_units(self) -> int:
        return self.batch.total_minor_units + self.fee.fee_minor_units

    @property
    def needs_approval(self) -> bool:
        return needs_approval(self._asset, self._allowance, self.required_minor_units)

    @property
    def has_enough_balance(self) -> bool:
        return self._balance is not None and self._balance >= self.required_minor_units

    @property
    def gate(self) -> SendGate:
        return evaluate_send_gate(
            self._asset,
            self._distributor,
            self.batch,
            self._phase,
            self._allowance,
            self._balance,
            self.required_minor_units,
        )

    @property
    def can_send(self) -> bool:
        return self.gate.allowed

    # External reads

    async def refresh(self) -> None:
        """Re-read balance, allowance, fee rate and gas; failed reads keep their old value."""

        asset = self._asset
        batch = self.batch
        reads: List[Tuple[str, Awaitable[object]]] = [
            ("balance", self._gateway.balance_of(self._sender, asset)),
            ("fee_basis_points", self._gateway.fee_basis_points()),
        ]
        if not asset.is_native:
            reads.append(("allowance", self._gateway.allowance(self._sender, self._distributor, asset)))
        if is_sendable(asset, self._distributor, batch):
            call = build_send_call(asset, self._mode, batch, self.fee, self._distributor)
            reads.append(("gas", self._gateway.estimate_gas(call)))

        results = await asyncio.gather(*(read for _, read in reads), return_exceptions=True)

        if asset != self._asset:
            logger.debug("Discarding reads for %s after asset change", asset.label)
            return
        for (name, _), result in zip(reads, results):
            if isinstance(result, BaseException):
                logger.warning("Could not read %s: %s", name, result)
                continue
            if name == "balance":
                self._balance = int(result)  # type: ignore[call-overload]
            elif name == "fee_basis_points":
                self._fee_basis_points = int(result)  # type: ignore[call-overload]
            elif name == "allowance":
                self._allowance = int(result)  # type: ignore[call-overload]
            else:
                self._gas = quote_gas(int(result), self._settings.gas_thresholds)  # type: ignore[call-overload]

    async def refresh_allowance(self) -> Optional[int]:
        if self._asset.is_native:
            return None
        asset = self._asset
        allowance = await self._gateway.allowance(self._sender, self._distributor, asset)
        if asset == self._asset:
            self._allowance = allowance
        return self._allowance

    # Actions

    async def approve(self) -> TransactionPhase:
        """Request approval for total plus fee and wait for it to confirm."""

        self._refuse_in_flight()
        if not is_sendable(self._asset, self._distributor, self.batch):
            raise SendBlockedError("Batch is not ready to send.")
        if not self.needs_approval:
            raise SendBlockedError("Approval is not required.")

        call = build_approval_call(self._asset, self._distributor, self.required_minor_units)
        self._last_failure = None
        self._transition(TransactionPhase.APPROVING)
        try:
            reference = await self._gateway.request_approval(call)
        except ExternalRequestRejectedError as exc:
            return self._fail(FailureStage.APPROVAL, FailureKind.REQUEST_REJECTED, str(exc))
        except Exception as exc:
            return self._fail(FailureStage.APPROVAL, FailureKind.GATEWAY_ERROR, str(exc))

        self._last_reference = reference
        self._transition(TransactionPhase.APPROVAL_CONFIRMING)
        failure = await self._await_confirmation(reference)
        if failure is not None:
            return self._fail(FailureStage.APPROVAL, failure[0], failure[1])

        try:
            await self.refresh_allowance()
        except Exception as exc:
            logger.warning("Could not re-read allowance after approval %s: %s", reference, exc)
        self._transition(TransactionPhase.READY_TO_SEND)
        return self._phase

    async def send(self) -> TransactionPhase:
        """Submit the distribution, record it and reset inputs once confirmed."""

        self._check_gate()
        asset = self._asset
        mode = self._mode
        batch = self.batch
        fee = self.fee
        call = build_send_call(asset, mode, batch, fee, self._distributor)

        self._last_failure = None
        self._transition(TransactionPhase.SENDING)
        try:
            reference = await self._gateway.request_send(call)
        except ExternalRequestRejectedError as exc:
            return self._fail(FailureStage.SEND, FailureKind.REQUEST_REJECTED, str(exc))
        except Exception as exc:
            return self._fail(FailureStage.SEND, FailureKind.GATEWAY_ERROR, str(exc))

        self._last_reference = reference
        self._transition(TransactionPhase.SEND_CONFIRMING)
        failure = await self._await_confirmation(reference)
        if failure is not None:
            return self._fail(FailureStage.SEND, failure[0], failure[1])

        try:
            self._ledger.append(
                HistoryEntry(
                    id=self._id_provider(),
                    timestamp=self._time_provider(),
                    asset_label=asset.label,
                    is_native=asset.is_native,
                    recipient_count=len(batch.recipients),
                    total_amount_decimal=to_decimal_string(batch.total_minor_units, asset.decimals),
                    fee_decimal=to_decimal_string(fee.fee_minor_units, asset.decimals),
                    sample_recipients=batch.recipients[:SAMPLE_RECIPIENT_LIMIT],
                    mode=mode,
                    reference_id=reference,
                )
            )
        except Exception as exc:
            logger.error("Could not record distribution %s: %s", reference, exc)
        self._rows = [RecipientRow()]
        self._equal_amount = ""
        self._transition(TransactionPhase.SUCCEEDED)
        await self.refresh()
        return self._phase

    # Internals

    async def _await_confirmation(self, reference: str) -> Optional[Tuple[FailureKind, str]]:
        timeout = self._settings.confirmation_timeout
        try:
            if timeout is None:
                await self._gateway.wait_for_confirmation(reference)
            else:
                await asyncio.wait_for(self._gateway.wait_for_confirmation(reference), timeout)
        except ExternalConfirmationFailedError as exc:
            return FailureKind.CONFIRMATION_FAILED, str(exc)
        except asyncio.TimeoutError:
            return FailureKind.TIMED_OUT, f"Confirmation for {reference} timed out after {timeout}s."
        except Exception as exc:
            return FailureKind.GATEWAY_ERROR, str(exc)
        return None

    def _check_gate(self) -> None:
        gate = self.gate
        if gate.allowed:
            return
        if self._phase in IN_FLIGHT_PHASES or not is_sendable(
            self._asset, self._distributor, self.batch
        ):
            raise SendBlockedError(" ".join(gate.reasons))
        if self.needs_approval:
            raise InsufficientAllowanceError("Approval is required before sending.")
        raise InsufficientBalanceError("Insufficient balance for total plus fee.")

    def _refuse_in_flight(self) -> None:
        if self._phase in IN_FLIGHT_PHASES:
            raise SendBlockedError("A request is already in flight.")

    def _fail(self, stage: FailureStage, kind: FailureKind, message: str) -> TransactionPhase:
        self._last_failure = FailureNotice(stage=stage, kind=kind, message=message)
        logger.warning("%s failed (%s): %s", stage.value.lower(), kind.value, message)
        target = TransactionPhase.FAILED if stage == FailureStage.APPROVAL else TransactionPhase.READY_TO_SEND
        self._transition(target)
        return self._phase

    def _transition(self, target: TransactionPhase) -> None:
        require_transition(self._phase, target)
        logger.info("Phase %s -> %s", self._phase.value, target.value)
        self._phase = target
