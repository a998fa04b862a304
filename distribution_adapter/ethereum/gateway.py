"""Narrow async interface to the remote ledger."""

from typing import Protocol

from distribution_engine.models import AssetDescriptor

from .models import ApprovalCall, SendCall


class ExternalRequestRejectedError(RuntimeError):
    """Raised when the signer declines or fails to submit a request."""


class ExternalConfirmationFailedError(RuntimeError):
    """Raised when a submitted request reverts or never confirms."""


class LedgerGateway(Protocol):
    async def balance_of(self, owner: str, asset: AssetDescriptor) -> int:
        ...

    async def allowance(self, owner: str, spender: str, asset: AssetDescriptor) -> int:
        ...

    async def fee_basis_points(self) -> int:
        ...

    async def estimate_gas(self, call: SendCall) -> int:
        ...

    async def request_approval(self, call: ApprovalCall) -> str:
        """Submit an approval; returns a reference once the signer accepts."""
        ...

    async def request_send(self, call: SendCall) -> str:
        """Submit a distribution; returns a reference once the signer accepts."""
        ...

    async def wait_for_confirmation(self, reference: str) -> None:
        """Resolve once confirmed; raise ExternalConfirmationFailedError on revert."""
        ...
