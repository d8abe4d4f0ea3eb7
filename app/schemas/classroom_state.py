"""Common enums used across the classroom domain."""

from enum import Enum


class ParticipantRole(str, Enum):
    """Role of a participant inside the classroom.

    At most one participant holds ADMIN at any time. Everyone else is a STUDENT.
    """

    ADMIN = "admin"
    STUDENT = "student"

    def __str__(self) -> str:
        return self.value


class ParticipantStatus(str, Enum):
    """Connection lifecycle of a participant record.

    State Transition Flow:

    ACTIVE → PENDING_DISCONNECT → (record removed)
      ↓
    (record removed)

    State Descriptions:
    - ACTIVE: Registered by join_room. Default for every participant.
    - PENDING_DISCONNECT: Kicked by the admin; the target was notified and a forced
      disconnect is scheduled after the grace period. Commands from this state are
      still honored.

    Removal is not a status: the record simply disappears from the participant table.
    """

    ACTIVE = "active"
    PENDING_DISCONNECT = "pending_disconnect"

    def __str__(self) -> str:
        return self.value


class LeaveMode(str, Enum):
    """How a participant left the session."""

    EXPLICIT = "explicit"
    DISCONNECT = "disconnect"

    def __str__(self) -> str:
        return self.value


__all__ = ["LeaveMode", "ParticipantRole", "ParticipantStatus"]
