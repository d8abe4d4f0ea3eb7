"""Dispatch of inbound classroom events.

Every inbound event goes through ``EventRouter.dispatch``: the payload is
validated, the sender resolved, the matching component invoked and the
resulting effects handed back for the transport to deliver. Dispatch never
suspends, so one event is fully applied before the next one starts.
"""

from collections.abc import Callable
from typing import Any

from loguru import logger
from pydantic import BaseModel, ValidationError

from app.schemas import LeaveMode
from app.utils.app_errors import AppError

from .chat_log import ChatLog
from .effects import Broadcast, Effect, Outcome
from .events import (
    ChatMessageIn,
    DeleteMessageIn,
    InboundEvent,
    JoinRoomIn,
    KickUserIn,
    OutboundEvent,
    PeerIn,
    SetAdminIn,
    SetUserDrawIn,
    StreamStatusIn,
    ToggleDrawIn,
)
from .membership import MembershipManager
from .peer_directory import PeerDirectory
from .permission_gate import PermissionGate
from .session_store import SessionStore

Handler = Callable[[str, Any], Outcome]

# Events accepted from senders that have no participant record
OPEN_EVENTS = {InboundEvent.JOIN_ROOM.value, InboundEvent.DISCONNECT.value}


class EventRouter:
    def __init__(
        self,
        store: SessionStore,
        membership: MembershipManager,
        gate: PermissionGate,
        chat: ChatLog,
        peers: PeerDirectory,
    ):
        self._store = store
        self._membership = membership
        self._gate = gate
        self._chat = chat
        self._peers = peers

        self._routes: dict[str, tuple[type[BaseModel] | None, Handler]] = {
            InboundEvent.JOIN_ROOM.value: (JoinRoomIn, self._on_join_room),
            InboundEvent.SET_ADMIN.value: (SetAdminIn, self._on_set_admin),
            InboundEvent.PEER_READY.value: (PeerIn, self._on_peer_ready),
            InboundEvent.PEER_JOINED.value: (PeerIn, self._on_peer_ready),
            InboundEvent.PEER_LEFT.value: (PeerIn, self._on_peer_left),
            InboundEvent.LEAVE_SESSION.value: (None, self._on_leave_session),
            InboundEvent.CHAT_MESSAGE.value: (ChatMessageIn, self._on_chat_message),
            InboundEvent.DELETE_MESSAGE.value: (DeleteMessageIn, self._on_delete_message),
            InboundEvent.DRAW_DATA.value: (None, self._on_draw_data),
            InboundEvent.CLEAR_CANVAS.value: (None, self._on_clear_canvas),
            InboundEvent.TOGGLE_DRAW.value: (ToggleDrawIn, self._on_toggle_draw),
            InboundEvent.SET_USER_DRAW.value: (SetUserDrawIn, self._on_set_user_draw),
            InboundEvent.KICK_USER.value: (KickUserIn, self._on_kick_user),
            InboundEvent.STREAM_STATUS.value: (StreamStatusIn, self._on_stream_status),
            InboundEvent.DISCONNECT.value: (None, self._on_disconnect),
        }

    @property
    def events(self) -> list[str]:
        return list(self._routes)

    def dispatch(self, sender_id: str, event: str, payload: Any = None) -> list[Effect]:
        """Apply one inbound event and return the effects to deliver.

        Unknown events, unknown senders, malformed payloads and refused actions
        all produce no effects.
        """
        event = str(event)
        route = self._routes.get(event)
        if route is None:
            logger.debug(f"Ignoring unknown event {event!r} from {sender_id}")
            return []

        if event not in OPEN_EVENTS and self._store.get(sender_id) is None:
            logger.debug(f"Ignoring {event} from unknown sender {sender_id}")
            return []

        model, handler = route
        if model is not None:
            try:
                payload = model.model_validate(payload if payload is not None else {})
            except ValidationError as exc:
                logger.warning(
                    "Invalid payload: event={} sender={} errors={}",
                    event,
                    sender_id,
                    exc.errors(include_url=False),
                )
                return []

        try:
            outcome = handler(sender_id, payload)
        except AppError as exc:
            logger.warning(
                f"{exc.errcode} {exc.erresid} msg={exc.errmesg} caller={exc.caller_info}"
            )
            return []

        return outcome.effects

    # ==================== MEMBERSHIP ====================

    def _on_join_room(self, sender_id: str, data: JoinRoomIn) -> Outcome:
        return self._membership.join(sender_id, data.name, data.admin_code)

    def _on_set_admin(self, sender_id: str, data: SetAdminIn) -> Outcome:
        return self._membership.claim_admin(sender_id, data.admin_code)

    def _on_leave_session(self, sender_id: str, _: Any) -> Outcome:
        return self._membership.leave(sender_id, LeaveMode.EXPLICIT)

    def _on_disconnect(self, sender_id: str, _: Any) -> Outcome:
        return self._membership.leave(sender_id, LeaveMode.DISCONNECT)

    def _on_kick_user(self, sender_id: str, data: KickUserIn) -> Outcome:
        return self._membership.kick(sender_id, data.target_user_id)

    # ==================== VIDEO PEERS ====================

    def _on_peer_ready(self, sender_id: str, data: PeerIn) -> Outcome:
        return self._peers.announce(sender_id, data.peer_id)

    def _on_peer_left(self, sender_id: str, data: PeerIn) -> Outcome:
        return self._peers.depart(sender_id, data.peer_id)

    def _on_stream_status(self, sender_id: str, data: StreamStatusIn) -> Outcome:
        participant = self._store.require(sender_id)
        participant.stream_active = data.stream_active

        return Outcome(
            [
                Broadcast.to_others(
                    sender_id,
                    OutboundEvent.USER_STREAM_STATUS,
                    {"userId": sender_id, "streamActive": data.stream_active},
                )
            ]
        )

    # ==================== CHAT ====================

    def _on_chat_message(self, sender_id: str, data: ChatMessageIn) -> Outcome:
        return self._chat.append(sender_id, data.message)

    def _on_delete_message(self, sender_id: str, data: DeleteMessageIn) -> Outcome:
        return self._chat.delete(sender_id, data.message_id)

    # ==================== DRAWING ====================

    def _on_draw_data(self, sender_id: str, data: Any) -> Outcome:
        if not isinstance(data, dict):
            logger.warning(f"Ignoring draw_data from {sender_id}: payload is not an object")
            return Outcome()
        return self._gate.relay_drawing(sender_id, data)

    def _on_clear_canvas(self, sender_id: str, _: Any) -> Outcome:
        return self._gate.clear_canvas(sender_id)

    def _on_toggle_draw(self, sender_id: str, data: ToggleDrawIn) -> Outcome:
        return self._gate.set_global_drawing(sender_id, data.enabled)

    def _on_set_user_draw(self, sender_id: str, data: SetUserDrawIn) -> Outcome:
        return self._gate.set_participant_draw(sender_id, data.target_user_id, data.can_draw)
