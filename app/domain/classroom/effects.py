"""Outbound effects produced by the classroom domain.

Domain operations never talk to the transport directly. They return an
``Outcome`` holding the effects to apply, in order: broadcasts, room membership
changes and forced disconnects.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from app.schemas import ParticipantRole

from .classroom_models import ChatMessage, PeerInfo, SessionSnapshot


class BroadcastScope(str, Enum):
    DIRECT = "direct"  # one recipient: ``target``
    ROOM_EXCEPT = "room_except"  # everyone in the room but ``target``
    ROOM = "room"  # everyone in the room

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Broadcast:
    event: str
    payload: dict[str, Any] | None
    scope: BroadcastScope
    target: str | None = None

    @classmethod
    def direct(cls, to: str, event: str, payload: dict[str, Any] | None = None) -> "Broadcast":
        return cls(event=event, payload=payload, scope=BroadcastScope.DIRECT, target=to)

    @classmethod
    def to_others(
        cls, sender: str, event: str, payload: dict[str, Any] | None = None
    ) -> "Broadcast":
        return cls(event=event, payload=payload, scope=BroadcastScope.ROOM_EXCEPT, target=sender)

    @classmethod
    def to_room(cls, event: str, payload: dict[str, Any] | None = None) -> "Broadcast":
        return cls(event=event, payload=payload, scope=BroadcastScope.ROOM)


@dataclass(frozen=True, slots=True)
class EnterRoom:
    participant_id: str


@dataclass(frozen=True, slots=True)
class Disconnect:
    participant_id: str
    delay: float = 0.0


Effect = Broadcast | EnterRoom | Disconnect


@dataclass
class Outcome:
    effects: list[Effect] = field(default_factory=list)

    def add(self, effect: Effect) -> None:
        self.effects.append(effect)

    def extend(self, other: "Outcome") -> None:
        self.effects.extend(other.effects)

    def broadcasts(self, event: str | None = None) -> list[Broadcast]:
        return [
            effect
            for effect in self.effects
            if isinstance(effect, Broadcast) and (event is None or effect.event == event)
        ]


@dataclass
class JoinOutcome(Outcome):
    role: ParticipantRole | None = None
    snapshot: SessionSnapshot | None = None


@dataclass
class ClaimAdminOutcome(Outcome):
    granted: bool = False
    error: str | None = None


@dataclass
class AnnounceOutcome(Outcome):
    peers: list[PeerInfo] = field(default_factory=list)
    duplicate: bool = False


@dataclass
class ChatOutcome(Outcome):
    message: ChatMessage | None = None
