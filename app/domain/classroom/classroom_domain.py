"""Classroom domain service - wires the components around one session store."""

from collections.abc import Callable
from typing import Any

from .chat_log import ChatLog
from .classroom_models import StateSummary
from .effects import Effect
from .event_router import EventRouter
from .membership import MembershipManager
from .peer_directory import PeerDirectory
from .permission_gate import PermissionGate
from .session_store import SessionStore


class ClassroomService:
    """The single classroom session of this process."""

    def __init__(
        self,
        admin_secret: str,
        is_connected: Callable[[str], bool],
        kick_grace_seconds: float = 0.1,
    ):
        self.store = SessionStore.create(admin_secret)
        self.peers = PeerDirectory(self.store)
        self.gate = PermissionGate(self.store)
        self.chat = ChatLog(self.store)
        self.membership = MembershipManager(
            self.store,
            self.peers,
            self.gate,
            is_connected=is_connected,
            kick_grace_seconds=kick_grace_seconds,
        )
        self.router = EventRouter(
            self.store,
            membership=self.membership,
            gate=self.gate,
            chat=self.chat,
            peers=self.peers,
        )

    def dispatch(self, sender_id: str, event: str, payload: Any = None) -> list[Effect]:
        return self.router.dispatch(sender_id, event, payload)

    def state_summary(self) -> StateSummary:
        return self.store.summary()

    def close(self) -> None:
        self.store.teardown()
