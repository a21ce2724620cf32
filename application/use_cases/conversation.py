# application/use_cases/conversation.py
import logging
import threading
from typing import Iterator, Sequence, Tuple

from core.domain.errors import MODEL_CLIENT_ERRORS, ConversationBusyError, TransportError, ValidationError
from core.domain.models import ChatMessage, SourceFile
from core.ports.model_client_port import ConversationSessionPort, ModelClientPort
from core.services.prompt_formatter import format_files

logger = logging.getLogger(__name__)

CHAT_FAILED_MESSAGE = "An error occurred while chatting. Please try again."
ACKNOWLEDGEMENT = ("Understood. I have received the project files and am ready to assist you "
                   "with your questions about the code.")
GREETING = "I have reviewed the code based on your selections. I'm ready to help. What would you like to discuss?"


class ConversationHandle:
    """A seeded model conversation that accepts one streamed message at a time"""

    def __init__(self, session: ConversationSessionPort, seed_history: Sequence[ChatMessage]):
        self.session = session
        self.seed_history: Tuple[ChatMessage, ...] = tuple(seed_history)
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def claim(self):
        if not self._lock.acquire(blocking=False):
            raise ConversationBusyError("A response is already being generated for this conversation.")

    def release(self):
        self._lock.release()


class ReplyStream:
    """
    Lazy iterator over one streamed reply.

    The conversation stays claimed from creation until the stream is
    exhausted, fails, or is closed.
    """

    def __init__(self, handle: ConversationHandle, text: str):
        self._handle = handle
        self._text = text
        self._chunks = None
        self._open = True

    def __iter__(self):
        return self

    def __next__(self) -> str:
        if not self._open:
            raise StopIteration
        try:
            if self._chunks is None:
                self._chunks = iter(self._handle.session.send_stream(self._text))
            chunk = next(self._chunks)
            while not chunk:
                chunk = next(self._chunks)
            return chunk
        except MODEL_CLIENT_ERRORS as e:
            self.close()
            logger.error("Chat stream failed: %s", e)
            raise TransportError(CHAT_FAILED_MESSAGE) from e
        except BaseException:
            self.close()
            raise

    def close(self):
        if not self._open:
            return
        self._open = False
        try:
            if hasattr(self._chunks, "close"):
                self._chunks.close()
        finally:
            self._handle.release()

    def __del__(self):
        self.close()


class ConversationUseCase:
    def __init__(self, model_client: ModelClientPort):
        self.model_client = model_client

    def build_seed_history(self, files: Sequence[SourceFile], issue_description: str) -> Tuple[ChatMessage, ...]:
        issue = (issue_description or "").strip()
        issue_context = (f'The user\'s primary problem is: "{issue}". Keep this in mind during the conversation.'
                         if issue else "")

        instruction = (
            f"You are an expert software development assistant. The user has provided you with their "
            f"project code. {issue_context} Your task is to answer their questions about this code, help "
            f"diagnose issues, and suggest improvements. You have already performed an initial analysis. "
            f"Now, engage in a conversation to provide further assistance.\n\n"
            f"Here is the project code for context:\n{format_files(files)}"
        )
        return (
            ChatMessage(role="user", content=instruction),
            ChatMessage(role="model", content=ACKNOWLEDGEMENT),
        )

    def start_conversation(self, files: Sequence[SourceFile], issue_description: str) -> ConversationHandle:
        """Open a model session whose history already holds the project files"""
        if not files:
            raise ValidationError("Cannot start a conversation without project files.")

        history = self.build_seed_history(files, issue_description)
        try:
            session = self.model_client.create_conversation(history)
        except MODEL_CLIENT_ERRORS as e:
            logger.error("Could not open conversation: %s", e)
            raise type(e)(CHAT_FAILED_MESSAGE) from e

        logger.info("Conversation seeded with %d files", len(files))
        return ConversationHandle(session, history)

    def send_message(self, handle: ConversationHandle, text: str) -> Iterator[str]:
        """
        Send a user message and return the reply as a lazy stream of text increments.

        The caller appends the increments, in order, to its own model message.
        Only one stream per handle may be in flight; a second call while the
        first is still open raises ConversationBusyError immediately.
        """
        if not text or not text.strip():
            raise ValidationError("Message must not be empty.")
        handle.claim()
        return ReplyStream(handle, text)
