"""Shared enums for the classroom session."""

from .classroom_state import LeaveMode, ParticipantRole, ParticipantStatus

__all__ = [
    "LeaveMode",
    "ParticipantRole",
    "ParticipantStatus",
]
