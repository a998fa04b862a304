"""Simulate the distribution contract and token ledger without network calls."""

import asyncio
from collections import deque
from typing import Deque, Dict, List, Optional, Tuple, Union

from distribution_engine.fees import quote_fee
from distribution_engine.models import AssetDescriptor

from .gateway import ExternalConfirmationFailedError, ExternalRequestRejectedError
from .models import ApprovalCall, SendCall

NATIVE_KEY = "native"
DEFAULT_FEE_COLLECTOR = "0x00000000000000000000000000000000000fee00"

_BASE_GAS = 21_000
_GAS_PER_RECIPIENT = 30_000
_STAGES = ("approve", "send")
_OUTCOMES = ("reject", "revert")


class SimulationError(ValueError):
    """Raised when the simulated ledger is driven with invalid input."""


class SimulatedLedger:
    """In-memory ledger gateway for dry runs and tests.

    Requests succeed by default. ``fail_next`` scripts the outcome of the next
    approval or send: ``reject`` fails at submission, ``revert`` fails at
    confirmation. With ``stall_confirmations`` set, confirmations never resolve.
    """

    def __init__(
        self,
        sender: str,
        fee_basis_points: int = 0,
        fee_collector: str = DEFAULT_FEE_COLLECTOR,
    ) -> None:
        self._sender = sender.lower()
        self._fee_basis_points = fee_basis_points
        self._fee_collector = fee_collector.lower()
        self._balances: Dict[Tuple[str, str], int] = {}
        self._allowances: Dict[Tuple[str, str, str], int] = {}
        self._pending: Dict[str, Tuple[Union[ApprovalCall, SendCall], Optional[str]]] = {}
        self._scripted: Dict[str, Deque[Tuple[str, str]]] = {stage: deque() for stage in _STAGES}
        self._counter = 0
        self.stall_confirmations = False
        self.journal: List[Tuple[str, str]] = []

    # Scenario setup

    def set_balance(self, owner: str, amount: int, token_address: Optional[str] = None) -> None:
        self._balances[(_key(token_address), owner.lower())] = amount

    def set_allowance(self, owner: str, spender: str, token_address: str, amount: int) -> None:
        self._allowances[(token_address.lower(), owner.lower(), spender.lower())] = amount

    def set_fee_basis_points(self, basis_points: int) -> None:
        self._fee_basis_points = basis_points

    def fail_next(self, stage: str, outcome: str, message: str) -> None:
        if stage not in _STAGES or outcome not in _OUTCOMES:
            raise SimulationError(f"Unsupported scripted failure: {stage}/{outcome}")
        self._scripted[stage].append((outcome, message))

    def balance(self, owner: str, token_address: Optional[str] = None) -> int:
        return self._balances.get((_key(token_address), owner.lower()), 0)

    # Gateway surface

    async def balance_of(self, owner: str, asset: AssetDescriptor) -> int:
        await asyncio.sleep(0)
        return self.balance(owner, asset.token_address)

    async def allowance(self, owner: str, spender: str, asset: AssetDescriptor) -> int:
        await asyncio.sleep(0)
        if asset.is_native:
            return 0
        return self._allowances.get(
            (asset.token_address.lower(), owner.lower(), spender.lower()), 0  # type: ignore[union-attr]
        )

    async def fee_basis_points(self) -> int:
        await asyncio.sleep(0)
        return self._fee_basis_points

    async def estimate_gas(self, call: SendCall) -> int:
        await asyncio.sleep(0)
        return _BASE_GAS + _GAS_PER_RECIPIENT * call.recipient_count

    async def request_approval(self, call: ApprovalCall) -> str:
        return await self._submit("approve", call)

    async def request_send(self, call: SendCall) -> str:
        return await self._submit("send", call)

    async def wait_for_confirmation(self, reference: str) -> None:
        if self.stall_confirmations:
            await asyncio.Event().wait()
        await asyncio.sleep(0)
        try:
            call, revert_message = self._pending.pop(reference)
        except KeyError:
            raise ExternalConfirmationFailedError(f"Unknown reference: {reference}") from None
        if revert_message is not None:
            self.journal.append(("reverted", reference))
            raise ExternalConfirmationFailedError(revert_message)
        if isinstance(call, ApprovalCall):
            self._apply_approval(call)
        else:
            self._apply_send(call)
        self.journal.append(("confirmed", reference))

    # Internals

    async def _submit(self, stage: str, call: Union[ApprovalCall, SendCall]) -> str:
        await asyncio.sleep(0)
        scripted = self._scripted[stage].popleft() if self._scripted[stage] else None
        if scripted is not None and scripted[0] == "reject":
            self.journal.append(("rejected", stage))
            raise ExternalRequestRejectedError(scripted[1])
        self._counter += 1
        reference = f"0x{self._counter:064x}"
        self._pending[reference] = (call, scripted[1] if scripted is not None else None)
        self.journal.append((stage, reference))
        return reference

    def _apply_approval(self, call: ApprovalCall) -> None:
        key = (call.token_address.lower(), self._sender, call.spender.lower())
        self._allowances[key] = call.amount

    def _apply_send(self, call: SendCall) -> None:
        native = call.function_name.startswith("sendNative")
        if native:
            recipients, amounts_arg = call.args
            token_key = NATIVE_KEY
        else:
            token_address, recipients, amounts_arg = call.args
            token_key = str(token_address).lower()

        if isinstance(amounts_arg, tuple):
            amounts = list(amounts_arg)
        else:
            amounts = [int(amounts_arg)] * len(recipients)  # type: ignore[call-overload]
        total = sum(amounts)
        required = total + quote_fee(total, self._fee_basis_points).fee_minor_units

        if native and call.value != required:
            raise ExternalConfirmationFailedError("Incorrect native value sent.")
        if self._balances.get((token_key, self._sender), 0) < required:
            raise ExternalConfirmationFailedError("Transfer amount exceeds balance.")
        if not native:
            allowance_key = (token_key, self._sender, call.to_address.lower())
            allowance = self._allowances.get(allowance_key, 0)
            if allowance < required:
                raise ExternalConfirmationFailedError("ERC20: insufficient allowance")
            self._allowances[allowance_key] = allowance - required

        self._balances[(token_key, self._sender)] -= required
        for recipient, amount in zip(recipients, amounts):  # type: ignore[arg-type]
            balance_key = (token_key, str(recipient).lower())
            self._balances[balance_key] = self._balances.get(balance_key, 0) + amount
        fee_key = (token_key, self._fee_collector)
        self._balances[fee_key] = self._balances.get(fee_key, 0) + (required - total)


def _key(token_address: Optional[str]) -> str:
    return token_address.lower() if token_address else NATIVE_KEY
