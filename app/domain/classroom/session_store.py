"""In-memory store for the single classroom session.

The store owns the session record, the participant table and the chat entries.
It is created once per process and injected into every classroom component.
"""

from loguru import logger

from app.utils.app_errors import AppError, AppErrorCode

from .classroom_models import (
    ChatMessage,
    Participant,
    SessionRecord,
    SessionSnapshot,
    StateSummary,
)


class SessionStore:
    """Holds the singleton session record, the participant table and the chat log entries."""

    def __init__(self, admin_secret: str):
        self._admin_secret = admin_secret
        self.session = SessionRecord(admin_secret=admin_secret)
        self.participants: dict[str, Participant] = {}
        self.messages: list[ChatMessage] = []

    @classmethod
    def create(cls, admin_secret: str) -> "SessionStore":
        store = cls(admin_secret)
        logger.info("Classroom session store created")
        return store

    def reset(self) -> None:
        """Drop every participant and message and reopen drawing.

        Only ``MembershipManager`` calls this, when the admin leaves.
        """
        self.session = SessionRecord(admin_secret=self._admin_secret)
        self.participants.clear()
        self.messages.clear()
        logger.info("Classroom session reset")

    def teardown(self) -> None:
        self.participants.clear()
        self.messages.clear()
        self.session.admin_id = None
        logger.info("Classroom session store torn down")

    # ==================== PARTICIPANTS ====================

    def get(self, participant_id: str) -> Participant | None:
        return self.participants.get(participant_id)

    def require(self, participant_id: str) -> Participant:
        """Return the participant or raise when the id is not registered."""
        participant = self.participants.get(participant_id)
        if participant is None:
            raise AppError(
                errcode=AppErrorCode.E_UNKNOWN_SENDER,
                errmesg=f"Participant {participant_id} is not in the session",
            )
        return participant

    def add(self, participant: Participant) -> Participant:
        self.participants[participant.id] = participant
        return participant

    def remove(self, participant_id: str) -> Participant | None:
        """Remove a participant. Removing an absent id is a no-op."""
        return self.participants.pop(participant_id, None)

    def others(self, participant_id: str) -> list[Participant]:
        return [p for pid, p in self.participants.items() if pid != participant_id]

    # ==================== ADMIN ====================

    @property
    def admin_secret(self) -> str:
        return self._admin_secret

    @property
    def has_admin(self) -> bool:
        return self.session.admin_id is not None

    @property
    def admin(self) -> Participant | None:
        if self.session.admin_id is None:
            return None
        return self.participants.get(self.session.admin_id)

    # ==================== VIEWS ====================

    def snapshot_for(self, participant: Participant) -> SessionSnapshot:
        return SessionSnapshot(
            role=participant.role,
            users=dict(self.participants),
            chat=list(self.messages),
            drawing_enabled=self.session.drawing_enabled,
            is_admin=participant.is_admin,
        )

    def summary(self) -> StateSummary:
        return StateSummary(
            user_count=len(self.participants),
            has_admin=self.has_admin,
            chat_messages=len(self.messages),
            drawing_enabled=self.session.drawing_enabled,
        )
