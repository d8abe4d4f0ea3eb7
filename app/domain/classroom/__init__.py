from .classroom_domain import ClassroomService
from .effects import Broadcast, BroadcastScope, Disconnect, Effect, EnterRoom, Outcome
from .events import InboundEvent, OutboundEvent

__all__ = [
    "Broadcast",
    "BroadcastScope",
    "ClassroomService",
    "Disconnect",
    "Effect",
    "EnterRoom",
    "InboundEvent",
    "Outcome",
    "OutboundEvent",
]
