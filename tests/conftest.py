# tests/conftest.py
"""
Shared fixtures: a scripted model client that records every prompt and
schema it receives, plus small project file sets and zip builders.
"""
import io
import json
import zipfile

import pytest

from core.domain.models import SourceFile
from core.ports.model_client_port import ConversationSessionPort, ModelClientPort


class FakeConversation(ConversationSessionPort):
    def __init__(self, history, replies):
        self.history = list(history)
        self.replies = replies
        self.sent = []

    def send_stream(self, message):
        self.sent.append(message)
        reply = self.replies.pop(0) if self.replies else []
        if isinstance(reply, Exception):
            raise reply
        for chunk in reply:
            yield chunk


class FakeModelClient(ModelClientPort):
    """Returns queued responses in order; queued exceptions are raised instead"""

    def __init__(self, responses=None, replies=None):
        self.responses = list(responses or [])
        self.replies = list(replies or [])
        self.calls = []
        self.conversations = []

    def generate_structured(self, prompt, schema):
        self.calls.append((prompt, schema))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def create_conversation(self, history):
        conversation = FakeConversation(history, self.replies)
        self.conversations.append(conversation)
        return conversation


@pytest.fixture
def fake_client():
    return FakeModelClient()


@pytest.fixture
def project_files():
    return [
        SourceFile(name="src/app.py", content="def main():\n    return 1 / 0\n"),
        SourceFile(name="README.md", content="# Demo\n"),
    ]


def make_zip(entries):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in entries:
            archive.writestr(name, content)
    return buffer.getvalue()


@pytest.fixture
def zip_bytes():
    return make_zip


def analysis_json(**fields):
    data = {"overallSummary": "Looks mostly fine."}
    data.update(fields)
    return json.dumps(data)
