"""Tests for the chat transcript."""

from unittest.mock import patch

import pytest

from app.domain.classroom import BroadcastScope, OutboundEvent
from app.domain.classroom.chat_log import ChatLog
from app.domain.classroom.classroom_models import Participant
from app.domain.classroom.session_store import SessionStore
from app.schemas import ParticipantRole
from app.utils.app_errors import AppError, AppErrorCode


@pytest.fixture
def store() -> SessionStore:
    store = SessionStore.create("teach123")
    store.add(Participant(id="a1", name="Teacher", role=ParticipantRole.ADMIN))
    store.add(Participant(id="s1", name="Bob"))
    store.session.admin_id = "a1"
    return store


@pytest.fixture
def chat(store: SessionStore) -> ChatLog:
    return ChatLog(store)


class TestAppend:
    """Tests for ChatLog.append."""

    def test_append_broadcasts_to_room(self, chat: ChatLog):
        """Test a new message is stored and sent to the whole room."""
        # Act
        outcome = chat.append("s1", "hello")

        # Assert
        assert len(chat.messages) == 1
        (broadcast,) = outcome.broadcasts()
        assert broadcast.event == OutboundEvent.NEW_MESSAGE
        assert broadcast.scope == BroadcastScope.ROOM

        wire = broadcast.payload
        assert wire["id"] == outcome.message.id
        assert wire["userId"] == "s1"
        assert wire["username"] == "Bob"
        assert wire["message"] == "hello"
        assert wire["role"] == "student"
        assert isinstance(wire["timestamp"], str)

    def test_role_is_captured_at_send_time(self, chat: ChatLog, store: SessionStore):
        """Test a later role change does not rewrite earlier messages."""
        chat.append("s1", "before promotion")

        store.get("s1").role = ParticipantRole.ADMIN

        assert chat.messages[0].role == ParticipantRole.STUDENT

    def test_ids_are_unique_within_one_millisecond(self, chat: ChatLog):
        """Test two messages in the same millisecond get distinct ids."""
        with patch("app.domain.classroom.chat_log.utc_now_ms", return_value=1_000):
            first = chat.append("s1", "one").message
            second = chat.append("s1", "two").message

        assert first.id == "1000"
        assert second.id == "1001"

    def test_ids_never_go_backwards(self, chat: ChatLog):
        """Test ids keep increasing when the clock steps back."""
        with patch("app.domain.classroom.chat_log.utc_now_ms", side_effect=[5_000, 4_000]):
            first = chat.append("s1", "one").message
            second = chat.append("s1", "two").message

        assert int(second.id) > int(first.id)

    def test_unknown_author_raises(self, chat: ChatLog):
        """Test an unregistered author is rejected."""
        with pytest.raises(AppError) as exc_info:
            chat.append("ghost", "hi")

        assert exc_info.value.errcode == AppErrorCode.E_UNKNOWN_SENDER.value


class TestDelete:
    """Tests for ChatLog.delete."""

    def test_admin_deletes_message(self, chat: ChatLog):
        """Test the admin removes a message and the room is told."""
        message = chat.append("s1", "oops").message

        outcome = chat.delete("a1", message.id)

        assert chat.messages == ()
        (deleted,) = outcome.broadcasts()
        assert deleted.event == OutboundEvent.MESSAGE_DELETED
        assert deleted.scope == BroadcastScope.ROOM
        assert deleted.payload == {"messageId": message.id}

    def test_unknown_id_still_broadcasts(self, chat: ChatLog):
        """Test an unknown id removes nothing but still broadcasts."""
        chat.append("s1", "keep me")

        outcome = chat.delete("a1", "does-not-exist")

        assert len(chat.messages) == 1
        assert outcome.broadcasts()[0].payload == {"messageId": "does-not-exist"}

    def test_student_cannot_delete(self, chat: ChatLog):
        """Test a student delete is refused and leaves the log intact."""
        message = chat.append("s1", "mine").message

        with pytest.raises(AppError) as exc_info:
            chat.delete("s1", message.id)

        assert exc_info.value.errcode == AppErrorCode.E_NOT_ADMIN.value
        assert len(chat.messages) == 1
