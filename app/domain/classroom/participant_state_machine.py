"""Participant state machine for the kick grace period."""

from loguru import logger

from app.schemas import ParticipantStatus
from app.utils.app_errors import AppError, AppErrorCode

from .classroom_models import Participant


class ParticipantStateMachine:
    """State machine for participant connection status.

    State flow with triggers:
    - ACTIVE (join_room) -> PENDING_DISCONNECT (kick_user while the target is connected)
    - PENDING_DISCONNECT is terminal; the record is dropped once the forced
      disconnect reaches the server as a regular transport disconnect.

    A participant in PENDING_DISCONNECT is still a valid sender until then.
    """

    TRANSITIONS: dict[ParticipantStatus, set[ParticipantStatus]] = {
        ParticipantStatus.ACTIVE: {ParticipantStatus.PENDING_DISCONNECT},
        ParticipantStatus.PENDING_DISCONNECT: set(),
    }

    TERMINAL_STATES: set[ParticipantStatus] = {ParticipantStatus.PENDING_DISCONNECT}

    @classmethod
    def can_transition(cls, current: ParticipantStatus, new: ParticipantStatus) -> bool:
        """Check if a status transition is valid."""
        return new in cls.TRANSITIONS.get(current, set())

    @classmethod
    def is_terminal(cls, status: ParticipantStatus) -> bool:
        return status in cls.TERMINAL_STATES

    @classmethod
    def get_valid_transitions(cls, status: ParticipantStatus) -> set[ParticipantStatus]:
        return cls.TRANSITIONS.get(status, set())

    @classmethod
    def transition(cls, participant: Participant, new_status: ParticipantStatus) -> Participant:
        """Move a participant to ``new_status``.

        Raises:
            AppError: If the transition is not allowed from the current status
        """
        if participant.status == new_status:
            logger.debug(f"Participant {participant.id} already {new_status}, skipping")
            return participant

        if not cls.can_transition(participant.status, new_status):
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg=f"Invalid status transition: {participant.status} -> {new_status}",
            )

        participant.status = new_status
        logger.info(f"Participant {participant.id} status updated to {new_status}")
        return participant
