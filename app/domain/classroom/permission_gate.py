"""Permission checks for drawing and moderation.

The predicates are plain functions over a participant and the session record.
``PermissionGate`` wraps them for the admin-only drawing commands.
"""

from loguru import logger

from app.utils.app_errors import AppError, AppErrorCode

from .classroom_models import Participant, SessionRecord
from .effects import Broadcast, Outcome
from .events import OutboundEvent
from .session_store import SessionStore


def is_admin(participant: Participant | None) -> bool:
    return participant is not None and participant.is_admin


def can_draw(participant: Participant | None, session: SessionRecord) -> bool:
    """Admins always draw; everyone else needs both the global and the personal flag."""
    if participant is None:
        return False
    return participant.is_admin or (session.drawing_enabled and participant.can_draw)


class PermissionGate:
    def __init__(self, store: SessionStore):
        self._store = store

    def can_draw(self, participant: Participant | None) -> bool:
        return can_draw(participant, self._store.session)

    def require_admin(self, participant_id: str) -> Participant:
        """Return the requester if it is the admin.

        Raises:
            AppError: If the requester is unknown or not the admin
        """
        participant = self._store.require(participant_id)
        if not is_admin(participant):
            raise AppError(
                errcode=AppErrorCode.E_NOT_ADMIN,
                errmesg=f"Participant {participant_id} is not the admin",
            )
        return participant

    def set_global_drawing(self, requester_id: str, enabled: bool) -> Outcome:
        self.require_admin(requester_id)

        self._store.session.drawing_enabled = enabled
        logger.info(f"Global drawing {'enabled' if enabled else 'disabled'}")

        return Outcome([Broadcast.to_room(OutboundEvent.DRAWING_TOGGLED, {"enabled": enabled})])

    def set_participant_draw(self, requester_id: str, target_id: str, allowed: bool) -> Outcome:
        self.require_admin(requester_id)

        target = self._store.get(target_id)
        if target is None:
            raise AppError(
                errcode=AppErrorCode.E_TARGET_NOT_FOUND,
                errmesg=f"Participant {target_id} is not in the session",
            )

        target.can_draw = allowed
        logger.info(f"Drawing {'allowed' if allowed else 'revoked'} for {target.name} ({target_id})")

        return Outcome(
            [
                Broadcast.to_room(
                    OutboundEvent.USER_UPDATED, {"userId": target_id, "user": target.to_wire()}
                )
            ]
        )

    def clear_canvas(self, requester_id: str) -> Outcome:
        self.require_admin(requester_id)
        return Outcome([Broadcast.to_room(OutboundEvent.CLEAR_CANVAS)])

    def relay_drawing(self, sender_id: str, data: dict) -> Outcome:
        """Relay a stroke to everyone else. Strokes are never stored."""
        sender = self._store.require(sender_id)
        if not self.can_draw(sender):
            raise AppError(
                errcode=AppErrorCode.E_DRAW_DENIED,
                errmesg=f"Participant {sender_id} may not draw",
            )

        payload = {**data, "userId": sender_id}
        return Outcome([Broadcast.to_others(sender_id, OutboundEvent.DRAW_DATA, payload)])
