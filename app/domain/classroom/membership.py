"""Membership operations: join, admin claim, leave and kick."""

import hmac
from collections.abc import Callable

from loguru import logger

from app.schemas import LeaveMode, ParticipantRole, ParticipantStatus

from .classroom_models import Participant
from .effects import Broadcast, ClaimAdminOutcome, Disconnect, EnterRoom, JoinOutcome, Outcome
from .events import OutboundEvent
from .participant_state_machine import ParticipantStateMachine
from .peer_directory import PeerDirectory
from .permission_gate import PermissionGate
from .session_store import SessionStore

SESSION_ENDED_REASON = "Admin left the session"
KICKED_REASON = "Removed by admin"
ADMIN_UNAVAILABLE_ERROR = "Invalid code or admin already exists"


class MembershipManager:
    """Orchestrates who is in the session and who is admin.

    This is the only component that resets the session store.
    """

    def __init__(
        self,
        store: SessionStore,
        peers: PeerDirectory,
        gate: PermissionGate,
        is_connected: Callable[[str], bool],
        kick_grace_seconds: float = 0.1,
    ):
        self._store = store
        self._peers = peers
        self._gate = gate
        self._is_connected = is_connected
        self._kick_grace_seconds = kick_grace_seconds

    def _code_matches(self, supplied_code: str | None) -> bool:
        secret = self._store.admin_secret
        if not secret or supplied_code is None:
            return False
        return hmac.compare_digest(str(supplied_code).encode(), secret.encode())

    def _admin_available(self, supplied_code: str | None) -> bool:
        return self._code_matches(supplied_code) and not self._store.has_admin

    # ==================== JOIN ====================

    def join(self, participant_id: str, name: str, supplied_code: str | None) -> JoinOutcome:
        """Register a participant and hand back the full session snapshot.

        The first join with the admin code while nobody is admin becomes admin;
        every other join is a student. A repeated join from the same connection
        only renames the participant.
        """
        participant = self._store.get(participant_id)

        if participant is not None:
            logger.info(f"{participant.name} re-joined as {name}")
            participant.name = name
        else:
            role = (
                ParticipantRole.ADMIN
                if self._admin_available(supplied_code)
                else ParticipantRole.STUDENT
            )
            participant = self._store.add(Participant(id=participant_id, name=name, role=role))
            if role == ParticipantRole.ADMIN:
                self._store.session.admin_id = participant_id
            logger.info(f"{name} joined as {role}")

        snapshot = self._store.snapshot_for(participant)

        return JoinOutcome(
            effects=[
                EnterRoom(participant_id),
                Broadcast.direct(participant_id, OutboundEvent.JOIN_SUCCESS, snapshot.to_wire()),
                Broadcast.to_others(
                    participant_id,
                    OutboundEvent.USER_JOINED,
                    {"userId": participant_id, "user": participant.to_wire()},
                ),
            ],
            role=participant.role,
            snapshot=snapshot,
        )

    # ==================== ADMIN ====================

    def claim_admin(self, participant_id: str, supplied_code: str | None) -> ClaimAdminOutcome:
        """Promote an already joined participant, if the code matches and no admin exists.

        A refused claim leaves the state untouched and answers the caller with the reason.
        """
        participant = self._store.require(participant_id)

        if not self._admin_available(supplied_code):
            logger.warning(f"Admin claim refused for {participant.name} ({participant_id})")
            return ClaimAdminOutcome(
                effects=[
                    Broadcast.direct(
                        participant_id,
                        OutboundEvent.ADMIN_SET,
                        {"isAdmin": False, "error": ADMIN_UNAVAILABLE_ERROR},
                    )
                ],
                granted=False,
                error=ADMIN_UNAVAILABLE_ERROR,
            )

        participant.role = ParticipantRole.ADMIN
        self._store.session.admin_id = participant_id
        logger.info(f"{participant.name} is now admin")

        return ClaimAdminOutcome(
            effects=[
                Broadcast.direct(participant_id, OutboundEvent.ADMIN_SET, {"isAdmin": True}),
                Broadcast.to_others(
                    participant_id,
                    OutboundEvent.NEW_ADMIN,
                    {"userId": participant_id, "user": participant.to_wire()},
                ),
            ],
            granted=True,
        )

    # ==================== LEAVE ====================

    def leave(self, participant_id: str, mode: LeaveMode) -> Outcome:
        """Remove a participant; the admin leaving ends the session for everyone.

        Leaving twice, or leaving without having joined, is a no-op.
        """
        outcome = Outcome()
        participant = self._store.get(participant_id)

        if participant is None:
            logger.debug(f"Leave ({mode}) for unknown participant {participant_id}, nothing to do")
        else:
            outcome.extend(self._peers.release(participant_id))

            if participant.is_admin:
                outcome.add(
                    Broadcast.to_room(OutboundEvent.SESSION_ENDED, {"reason": SESSION_ENDED_REASON})
                )
                self._store.reset()
                logger.info(f"Admin {participant.name} left ({mode}), session ended")
            else:
                self._store.remove(participant_id)
                outcome.add(
                    Broadcast.to_others(
                        participant_id, OutboundEvent.USER_LEFT, {"userId": participant_id}
                    )
                )
                logger.info(f"{participant.name} left ({mode})")

        if mode == LeaveMode.EXPLICIT:
            outcome.add(Disconnect(participant_id))

        return outcome

    # ==================== KICK ====================

    def kick(self, requester_id: str, target_id: str) -> Outcome:
        """Remove ``target_id`` on behalf of the admin.

        A connected target is told it was kicked and disconnected after the grace
        period; the transport disconnect then runs the regular leave path. A target
        whose connection is already gone is dropped from the table right away.
        """
        self._gate.require_admin(requester_id)

        target = self._store.get(target_id)

        if self._is_connected(target_id):
            if target is not None and target.status == ParticipantStatus.PENDING_DISCONNECT:
                logger.debug(f"Participant {target_id} already pending disconnect")
                return Outcome()

            if target is not None:
                ParticipantStateMachine.transition(target, ParticipantStatus.PENDING_DISCONNECT)

            logger.info(f"Kicking {target_id} in {self._kick_grace_seconds}s")
            return Outcome(
                [
                    Broadcast.direct(target_id, OutboundEvent.KICKED, {"reason": KICKED_REASON}),
                    Disconnect(target_id, delay=self._kick_grace_seconds),
                ]
            )

        if target is not None and target.is_admin:
            return self.leave(target_id, LeaveMode.DISCONNECT)

        outcome = Outcome()
        outcome.extend(self._peers.release(target_id))
        self._store.remove(target_id)
        outcome.add(Broadcast.to_room(OutboundEvent.USER_LEFT, {"userId": target_id}))
        logger.info(f"Kicked {target_id} had no live connection, removed from session")

        return outcome
