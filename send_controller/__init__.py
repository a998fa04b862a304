from distribution_adapter.ethereum.gateway import (
    ExternalConfirmationFailedError,
    ExternalRequestRejectedError,
    LedgerGateway,
)

from .controller import (
    DistributionOrchestrator,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    SendBlockedError,
)
from .gate import SendGate, evaluate_send_gate, needs_approval
from .phases import (
    IN_FLIGHT_PHASES,
    FailureKind,
    FailureNotice,
    FailureStage,
    PhaseTransitionError,
    TransactionPhase,
    can_transition,
    require_transition,
)

__all__ = [
    "IN_FLIGHT_PHASES",
    "DistributionOrchestrator",
    "ExternalConfirmationFailedError",
    "ExternalRequestRejectedError",
    "FailureKind",
    "FailureNotice",
    "FailureStage",
    "InsufficientAllowanceError",
    "InsufficientBalanceError",
    "LedgerGateway",
    "PhaseTransitionError",
    "SendBlockedError",
    "SendGate",
    "TransactionPhase",
    "can_transition",
    "evaluate_send_gate",
    "needs_approval",
    "require_transition",
]
