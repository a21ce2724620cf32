# tests/test_conversation_use_case.py
import pytest

from application.use_cases.conversation import ACKNOWLEDGEMENT, ConversationUseCase
from conftest import FakeModelClient
from core.domain.errors import ConversationBusyError, ModelResponseError, TransportError, ValidationError


class TestStartConversation:
    def test_seeds_user_context_and_model_acknowledgement(self, project_files):
        client = FakeModelClient()
        handle = ConversationUseCase(client).start_conversation(project_files, "memory leak")

        history = client.conversations[0].history
        assert [message.role for message in history] == ["user", "model"]
        assert "/* FILE: src/app.py */" in history[0].content
        assert 'primary problem is: "memory leak"' in history[0].content
        assert history[1].content == ACKNOWLEDGEMENT
        assert handle.seed_history == tuple(history)

    def test_blank_issue_is_left_out(self, project_files):
        client = FakeModelClient()
        ConversationUseCase(client).start_conversation(project_files, "  ")
        assert "primary problem" not in client.conversations[0].history[0].content

    def test_requires_files(self, fake_client):
        with pytest.raises(ValidationError):
            ConversationUseCase(fake_client).start_conversation([], "")


class TestSendMessage:
    def test_increments_arrive_in_order(self, project_files):
        client = FakeModelClient(replies=[["Hel", "", "lo", "!"]])
        use_case = ConversationUseCase(client)
        handle = use_case.start_conversation(project_files, "")

        chunks = list(use_case.send_message(handle, "Why?"))

        assert chunks == ["Hel", "lo", "!"]
        assert client.conversations[0].sent == ["Why?"]
        assert not handle.busy

    def test_stream_is_lazy(self, project_files):
        client = FakeModelClient(replies=[["a"]])
        use_case = ConversationUseCase(client)
        handle = use_case.start_conversation(project_files, "")

        use_case.send_message(handle, "hi")
        assert client.conversations[0].sent == []

    def test_blank_message_rejected(self, project_files, fake_client):
        use_case = ConversationUseCase(fake_client)
        handle = use_case.start_conversation(project_files, "")
        with pytest.raises(ValidationError):
            use_case.send_message(handle, "   ")

    def test_overlapping_send_is_rejected(self, project_files):
        client = FakeModelClient(replies=[["one", "two"], ["three"]])
        use_case = ConversationUseCase(client)
        handle = use_case.start_conversation(project_files, "")

        first = use_case.send_message(handle, "first")
        assert next(first) == "one"
        assert handle.busy
        with pytest.raises(ConversationBusyError):
            use_case.send_message(handle, "second")

        assert list(first) == ["two"]
        assert list(use_case.send_message(handle, "second")) == ["three"]

    def test_closing_early_releases_the_handle(self, project_files):
        client = FakeModelClient(replies=[["one", "two"], ["three"]])
        use_case = ConversationUseCase(client)
        handle = use_case.start_conversation(project_files, "")

        stream = use_case.send_message(handle, "first")
        next(stream)
        stream.close()
        assert not handle.busy

    def test_transport_error_is_generic_and_releases(self, project_files):
        client = FakeModelClient(replies=[TransportError("socket reset by 10.1.1.1")])
        use_case = ConversationUseCase(client)
        handle = use_case.start_conversation(project_files, "")

        with pytest.raises(TransportError) as exc_info:
            list(use_case.send_message(handle, "hi"))
        assert "10.1.1.1" not in str(exc_info.value)
        assert not handle.busy

    def test_second_send_before_first_is_read_is_rejected(self, project_files):
        client = FakeModelClient(replies=[["one"], ["two"]])
        use_case = ConversationUseCase(client)
        handle = use_case.start_conversation(project_files, "")

        first = use_case.send_message(handle, "first")
        assert handle.busy
        with pytest.raises(ConversationBusyError):
            use_case.send_message(handle, "second")

        assert list(first) == ["one"]
        assert client.conversations[0].sent == ["first"]

    def test_closing_an_unread_stream_releases_the_handle(self, project_files):
        client = FakeModelClient(replies=[["one"]])
        use_case = ConversationUseCase(client)
        handle = use_case.start_conversation(project_files, "")

        use_case.send_message(handle, "first").close()
        assert not handle.busy
        assert client.conversations[0].sent == []

    def test_adapter_response_error_is_generic(self, project_files):
        client = FakeModelClient(replies=[ModelResponseError("finish_reason SAFETY")])
        use_case = ConversationUseCase(client)
        handle = use_case.start_conversation(project_files, "")

        with pytest.raises(TransportError) as exc_info:
            list(use_case.send_message(handle, "hi"))
        assert "SAFETY" not in str(exc_info.value)
        assert not handle.busy
