"""Classroom domain models.

Field names are snake_case in Python and camelCase on the wire, matching what the
browser client already sends and expects.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.schemas import ParticipantRole, ParticipantStatus


class WireModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class SessionRecord(BaseModel):
    """The singleton session: who is admin, whether drawing is open, the admin secret."""

    admin_secret: str = Field(repr=False)
    admin_id: str | None = None
    drawing_enabled: bool = True


class Participant(WireModel):
    """One connected user, keyed by the transport-assigned id."""

    id: str = Field(exclude=True)
    name: str
    role: ParticipantRole = ParticipantRole.STUDENT
    stream_active: bool = False
    can_draw: bool = True
    in_video_call: bool = False
    peer_id: str | None = None

    # Server-side only
    status: ParticipantStatus = Field(default=ParticipantStatus.ACTIVE, exclude=True)

    @property
    def is_admin(self) -> bool:
        return self.role == ParticipantRole.ADMIN


class ChatMessage(BaseModel):
    """A chat entry. The role is captured at send time and never re-linked."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    author_id: str = Field(alias="userId")
    username: str
    text: str = Field(alias="message")
    timestamp: datetime
    role: ParticipantRole

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class PeerInfo(WireModel):
    """Discovery metadata for one active video peer."""

    peer_id: str
    user_name: str
    user_role: ParticipantRole


class SessionSnapshot(WireModel):
    """Full session state sent to a participant right after joining."""

    role: ParticipantRole
    users: dict[str, Participant]
    chat: list[ChatMessage]
    drawing_enabled: bool
    is_admin: bool

    def to_wire(self) -> dict:
        return {
            "role": self.role.value,
            "users": {user_id: user.to_wire() for user_id, user in self.users.items()},
            "chat": [message.to_wire() for message in self.chat],
            "drawingEnabled": self.drawing_enabled,
            "isAdmin": self.is_admin,
        }


class StateSummary(WireModel):
    """Counters exposed by the HTTP state endpoint."""

    user_count: int
    has_admin: bool
    chat_messages: int
    drawing_enabled: bool
