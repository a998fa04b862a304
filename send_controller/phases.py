"""Transaction phases, legal transitions and failure notices."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet


class PhaseTransitionError(ValueError):
    """Raised when an illegal phase transition is attempted."""


class TransactionPhase(Enum):
    IDLE = "IDLE"
    APPROVING = "APPROVING"
    APPROVAL_CONFIRMING = "APPROVAL_CONFIRMING"
    READY_TO_SEND = "READY_TO_SEND"
    SENDING = "SENDING"
    SEND_CONFIRMING = "SEND_CONFIRMING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


IN_FLIGHT_PHASES: FrozenSet[TransactionPhase] = frozenset(
    {
        TransactionPhase.APPROVING,
        TransactionPhase.APPROVAL_CONFIRMING,
        TransactionPhase.SENDING,
        TransactionPhase.SEND_CONFIRMING,
    }
)

_TRANSITIONS: Dict[TransactionPhase, FrozenSet[TransactionPhase]] = {
    TransactionPhase.IDLE: frozenset({TransactionPhase.APPROVING, TransactionPhase.SENDING}),
    TransactionPhase.APPROVING: frozenset(
        {TransactionPhase.APPROVAL_CONFIRMING, TransactionPhase.FAILED}
    ),
    TransactionPhase.APPROVAL_CONFIRMING: frozenset(
        {TransactionPhase.READY_TO_SEND, TransactionPhase.FAILED}
    ),
    TransactionPhase.READY_TO_SEND: frozenset(
        {TransactionPhase.SENDING, TransactionPhase.APPROVING, TransactionPhase.IDLE}
    ),
    TransactionPhase.SENDING: frozenset(
        {TransactionPhase.SEND_CONFIRMING, TransactionPhase.READY_TO_SEND}
    ),
    TransactionPhase.SEND_CONFIRMING: frozenset(
        {TransactionPhase.SUCCEEDED, TransactionPhase.READY_TO_SEND}
    ),
    TransactionPhase.SUCCEEDED: frozenset(
        {TransactionPhase.IDLE, TransactionPhase.APPROVING, TransactionPhase.SENDING}
    ),
    TransactionPhase.FAILED: frozenset(
        {TransactionPhase.IDLE, TransactionPhase.APPROVING, TransactionPhase.SENDING}
    ),
}


def can_transition(current: TransactionPhase, target: TransactionPhase) -> bool:
    return target in _TRANSITIONS[current]


def require_transition(current: TransactionPhase, target: TransactionPhase) -> None:
    if not can_transition(current, target):
        raise PhaseTransitionError(f"Cannot move from {current.value} to {target.value}.")


class FailureStage(Enum):
    APPROVAL = "APPROVAL"
    SEND = "SEND"


class FailureKind(Enum):
    REQUEST_REJECTED = "REQUEST_REJECTED"
    CONFIRMATION_FAILED = "CONFIRMATION_FAILED"
    TIMED_OUT = "TIMED_OUT"
    GATEWAY_ERROR = "GATEWAY_ERROR"


@dataclass(frozen=True)
class FailureNotice:
    """Why the last approval or send did not complete; message is passed through verbatim."""

    stage: FailureStage
    kind: FailureKind
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"stage": self.stage.value, "kind": self.kind.value, "message": self.message}
