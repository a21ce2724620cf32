# tests/test_session_manager.py
import time

from core.domain.models import ChatMessage
from infrastructure.session.session_manager import ReviewSession, SessionManager


class TestSessionManager:
    def test_create_and_get(self):
        manager = SessionManager(start_cleanup=False)
        session = manager.create_session()
        assert manager.get_session(session.session_id) is session
        assert manager.get_session("missing") is None

    def test_expired_sessions_are_removed(self):
        manager = SessionManager(session_timeout=10, start_cleanup=False)
        stale = manager.create_session()
        fresh = manager.create_session()
        manager.session_timestamps[stale.session_id] = time.time() - 60

        assert manager.cleanup_expired_sessions() == [stale.session_id]
        assert manager.get_session(stale.session_id) is None
        assert manager.get_session(fresh.session_id) is fresh

    def test_delete(self):
        manager = SessionManager(start_cleanup=False)
        session = manager.create_session()
        manager.delete_session(session.session_id)
        assert manager.get_session(session.session_id) is None


class TestReviewSessionTranscript:
    def test_chunks_accumulate_into_last_model_message(self):
        session = ReviewSession(session_id="s")
        session.transcript.append(ChatMessage("user", "hi"))
        session.begin_model_message()
        for chunk in ["Hel", "lo"]:
            session.append_chunk(chunk)
        assert session.transcript == [ChatMessage("user", "hi"), ChatMessage("model", "Hello")]

    def test_error_replaces_empty_placeholder(self):
        session = ReviewSession(session_id="s")
        session.begin_model_message()
        session.record_model_error("Sorry")
        assert session.transcript == [ChatMessage("model", "Sorry")]

    def test_error_after_partial_reply_is_a_new_message(self):
        session = ReviewSession(session_id="s")
        session.begin_model_message()
        session.append_chunk("partial")
        session.record_model_error("Sorry")
        assert [message.content for message in session.transcript] == ["partial", "Sorry"]

    def test_reset_clears_review_state(self):
        session = ReviewSession(session_id="s", issue_description="bug", fixed_files=[])
        session.reset()
        assert session.fixed_files is None
        assert session.issue_description == ""
        assert session.session_id == "s"
