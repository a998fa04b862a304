"""Phase transition table and send gate predicate."""

import unittest

from distribution_engine.models import AssetDescriptor, ResolvedBatch

from send_controller.gate import evaluate_send_gate, needs_approval
from send_controller.phases import (
    IN_FLIGHT_PHASES,
    PhaseTransitionError,
    TransactionPhase,
    can_transition,
    require_transition,
)

ALICE = "0x742d35Cc6634C0532925a3b844Bc454e4438f44e"
TOKEN = "0x2222222222222222222222222222222222222222"
DISTRIBUTOR = "0x9999999999999999999999999999999999999999"


class PhaseTableTests(unittest.TestCase):
    def test_happy_paths(self) -> None:
        approve_path = [
            TransactionPhase.IDLE,
            TransactionPhase.APPROVING,
            TransactionPhase.APPROVAL_CONFIRMING,
            TransactionPhase.READY_TO_SEND,
            TransactionPhase.SENDING,
            TransactionPhase.SEND_CONFIRMING,
            TransactionPhase.SUCCEEDED,
        ]
        for current, target in zip(approve_path, approve_path[1:]):
            require_transition(current, target)
        self.assertTrue(can_transition(TransactionPhase.IDLE, TransactionPhase.SENDING))

    def test_failures_are_resumable(self) -> None:
        self.assertTrue(can_transition(TransactionPhase.APPROVING, TransactionPhase.FAILED))
        self.assertTrue(can_transition(TransactionPhase.FAILED, TransactionPhase.APPROVING))
        self.assertTrue(can_transition(TransactionPhase.SENDING, TransactionPhase.READY_TO_SEND))
        self.assertTrue(
            can_transition(TransactionPhase.SEND_CONFIRMING, TransactionPhase.READY_TO_SEND)
        )
        self.assertFalse(can_transition(TransactionPhase.SENDING, TransactionPhase.IDLE))

    def test_illegal_transitions_raise(self) -> None:
        with self.assertRaises(PhaseTransitionError):
            require_transition(TransactionPhase.IDLE, TransactionPhase.SUCCEEDED)
        with self.assertRaises(PhaseTransitionError):
            require_transition(TransactionPhase.APPROVAL_CONFIRMING, TransactionPhase.SENDING)
        for phase in IN_FLIGHT_PHASES:
            self.assertFalse(can_transition(phase, TransactionPhase.IDLE))


class SendGateTests(unittest.TestCase):
    def setUp(self) -> None:
        self.token = AssetDescriptor.token(TOKEN, 0, "TKN")
        self.native = AssetDescriptor.native()
        self.batch = ResolvedBatch(recipients=(ALICE,), amounts=(1000,))

    def test_needs_approval_rule(self) -> None:
        self.assertTrue(needs_approval(self.token, 0, 1000))
        self.assertTrue(needs_approval(self.token, None, 1000))
        self.assertTrue(needs_approval(self.token, 999, 1000))
        self.assertFalse(needs_approval(self.token, 1000, 1000))
        self.assertFalse(needs_approval(self.native, 0, 1000))
        self.assertFalse(needs_approval(self.token, 0, 0))

    def test_open_gate(self) -> None:
        gate = evaluate_send_gate(
            self.token, DISTRIBUTOR, self.batch, TransactionPhase.READY_TO_SEND, 1000, 1000, 1000
        )
        self.assertTrue(gate.allowed)
        self.assertEqual(gate.reasons, ())

    def test_each_condition_closes_gate(self) -> None:
        cases = [
            (TransactionPhase.SENDING, 1000, 1000, self.batch, "in flight"),
            (TransactionPhase.IDLE, 0, 1000, self.batch, "Approval"),
            (TransactionPhase.IDLE, 1000, 999, self.batch, "Insufficient balance"),
            (TransactionPhase.IDLE, 1000, None, self.batch, "Insufficient balance"),
            (TransactionPhase.IDLE, 1000, 1000, ResolvedBatch(), "not ready"),
        ]
        for phase, allowance, balance, batch, fragment in cases:
            with self.subTest(fragment=fragment, phase=phase):
                gate = evaluate_send_gate(
                    self.token, DISTRIBUTOR, batch, phase, allowance, balance, 1000
                )
                self.assertFalse(gate.allowed)
                self.assertTrue(any(fragment in reason for reason in gate.reasons))


if __name__ == "__main__":
    unittest.main()
