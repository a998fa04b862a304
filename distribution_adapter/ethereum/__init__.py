from .adapter import AdapterError, build_approval_call, build_send_call
from .gateway import ExternalConfirmationFailedError, ExternalRequestRejectedError, LedgerGateway
from .models import ApprovalCall, SendCall
from .simulator import SimulatedLedger, SimulationError

__all__ = [
    "AdapterError",
    "ApprovalCall",
    "ExternalConfirmationFailedError",
    "ExternalRequestRejectedError",
    "LedgerGateway",
    "SendCall",
    "SimulatedLedger",
    "SimulationError",
    "build_approval_call",
    "build_send_call",
]
