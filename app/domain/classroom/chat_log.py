"""Chat transcript for the current session."""

from loguru import logger

from app.shared.domain.clock import utc_now, utc_now_ms
from app.utils.app_errors import AppError, AppErrorCode

from .classroom_models import ChatMessage
from .effects import Broadcast, ChatOutcome, Outcome
from .events import OutboundEvent
from .permission_gate import is_admin
from .session_store import SessionStore


class ChatLog:
    """Ordered chat entries, stored on the session store and cleared with it."""

    def __init__(self, store: SessionStore):
        self._store = store
        self._last_id_ms = 0

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._store.messages)

    def _next_message_id(self) -> str:
        # Epoch milliseconds, bumped when two messages land in the same millisecond.
        self._last_id_ms = max(utc_now_ms(), self._last_id_ms + 1)
        return str(self._last_id_ms)

    def append(self, author_id: str, text: str) -> ChatOutcome:
        author = self._store.require(author_id)

        message = ChatMessage(
            id=self._next_message_id(),
            author_id=author_id,
            username=author.name,
            text=text,
            timestamp=utc_now(),
            role=author.role,
        )
        self._store.messages.append(message)
        logger.debug(f"Chat message {message.id} from {author.name}")

        return ChatOutcome(
            effects=[Broadcast.to_room(OutboundEvent.NEW_MESSAGE, message.to_wire())],
            message=message,
        )

    def delete(self, requester_id: str, message_id: str) -> Outcome:
        """Remove the entry with ``message_id``. Unknown ids remove nothing."""
        requester = self._store.require(requester_id)
        if not is_admin(requester):
            raise AppError(
                errcode=AppErrorCode.E_NOT_ADMIN,
                errmesg=f"Participant {requester_id} may not delete messages",
            )

        message_id = str(message_id)
        before = len(self._store.messages)
        self._store.messages[:] = [m for m in self._store.messages if m.id != message_id]
        if len(self._store.messages) == before:
            logger.debug(f"Chat message {message_id} not found, nothing removed")
        else:
            logger.info(f"Chat message {message_id} deleted by admin")

        payload = {"messageId": message_id}
        return Outcome([Broadcast.to_room(OutboundEvent.MESSAGE_DELETED, payload)])
