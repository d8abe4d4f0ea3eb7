"""Inbound and outbound event vocabulary with inbound payload validation."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InboundEvent(str, Enum):
    JOIN_ROOM = "join_room"
    SET_ADMIN = "set_admin"
    PEER_READY = "peer_ready"
    PEER_JOINED = "peer_joined"  # legacy alias of peer_ready
    PEER_LEFT = "peer_left"
    LEAVE_SESSION = "leave_session"
    CHAT_MESSAGE = "chat_message"
    DELETE_MESSAGE = "delete_message"
    DRAW_DATA = "draw_data"
    CLEAR_CANVAS = "clear_canvas"
    TOGGLE_DRAW = "toggle_draw"
    SET_USER_DRAW = "set_user_draw"
    KICK_USER = "kick_user"
    STREAM_STATUS = "stream_status"
    DISCONNECT = "disconnect"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def client_events(cls) -> list["InboundEvent"]:
        """Events a client may emit; ``disconnect`` comes from the transport itself."""
        return [event for event in cls if event != cls.DISCONNECT]


class OutboundEvent(str, Enum):
    JOIN_SUCCESS = "join_success"
    USER_JOINED = "user_joined"
    ADMIN_SET = "admin_set"
    NEW_ADMIN = "new_admin"
    PEERS_IN_ROOM = "peers_in_room"
    PEER_JOINED = "peer_joined"
    PEER_LEFT = "peer_left"
    SESSION_ENDED = "session_ended"
    USER_LEFT = "user_left"
    NEW_MESSAGE = "new_message"
    MESSAGE_DELETED = "message_deleted"
    DRAW_DATA = "draw_data"
    CLEAR_CANVAS = "clear_canvas"
    DRAWING_TOGGLED = "drawing_toggled"
    USER_UPDATED = "user_updated"
    KICKED = "kicked"
    USER_STREAM_STATUS = "user_stream_status"

    def __str__(self) -> str:
        return self.value


class InboundPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class AdminCodePayload(InboundPayload):
    """Any code value is accepted; one that is not a string simply never matches."""

    admin_code: str | None = Field(default=None, alias="adminCode")

    @field_validator("admin_code", mode="before")
    @classmethod
    def _code_as_str(cls, value: Any) -> str | None:
        return None if value is None else str(value)


class JoinRoomIn(AdminCodePayload):
    name: str


class SetAdminIn(AdminCodePayload):
    pass


class PeerIn(InboundPayload):
    peer_id: str = Field(alias="peerId", min_length=1)


class ChatMessageIn(InboundPayload):
    message: str


class DeleteMessageIn(InboundPayload):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    message_id: str = Field(alias="messageId")


class ToggleDrawIn(InboundPayload):
    enabled: bool


class SetUserDrawIn(InboundPayload):
    target_user_id: str = Field(alias="targetUserId")
    can_draw: bool = Field(default=False, alias="canDraw")

    @field_validator("can_draw", mode="before")
    @classmethod
    def _truthy(cls, value: Any) -> bool:
        return bool(value)


class KickUserIn(InboundPayload):
    target_user_id: str = Field(alias="targetUserId")


class StreamStatusIn(InboundPayload):
    stream_active: bool = Field(alias="streamActive")
