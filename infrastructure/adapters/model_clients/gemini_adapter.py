# infrastructure/adapters/model_clients/gemini_adapter.py
import logging
from typing import Any, Iterator, Mapping, Sequence

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from core.domain.errors import ConfigError, ModelResponseError, TransportError
from core.domain.models import ChatMessage, ReviewConfig
from core.ports.model_client_port import ConversationSessionPort, ModelClientPort
from core.services.schema_builder import to_plain

logger = logging.getLogger(__name__)

_BLOCKED = (genai.types.BlockedPromptException, genai.types.StopCandidateException)
_BROKEN_HISTORY = (genai.types.BrokenResponseError, genai.types.IncompleteIterationError)
_UNUSABLE_EXCHANGE = _BLOCKED + _BROKEN_HISTORY + (google_exceptions.GoogleAPIError,)


def _chunk_text(chunk) -> str:
    try:
        return chunk.text or ""
    except ValueError:
        # chunk carries no text parts (e.g. a finish or safety marker)
        return ""


class GeminiConversation(ConversationSessionPort):
    def __init__(self, chat):
        self.chat = chat

    def _repair_history(self):
        """Finish or drop the previous exchange so the SDK can build the next request"""
        last = self.chat.last
        if last is None:
            return
        try:
            # drains an abandoned stream; no-op when it was read to the end
            last.resolve()
            # folding the exchange into the history raises when it is broken
            self.chat.history
        except _UNUSABLE_EXCHANGE as e:
            logger.warning("Dropping the previous exchange from the chat history: %s", e)
            self.chat.rewind()

    def send_stream(self, message: str) -> Iterator[str]:
        try:
            self._repair_history()
            response = self.chat.send_message(message, stream=True)
            for chunk in response:
                text = _chunk_text(chunk)
                if text:
                    yield text
        except _BLOCKED as e:
            logger.error("Gemini blocked the chat response: %s", e)
            raise TransportError("The model refused to answer this message") from e
        except _BROKEN_HISTORY as e:
            logger.error("Gemini chat history is unusable: %s", e)
            raise TransportError("Model service request failed") from e
        except google_exceptions.GoogleAPIError as e:
            logger.error("Gemini chat request failed", exc_info=True)
            raise TransportError("Model service request failed") from e


class GeminiModelAdapter(ModelClientPort):
    def __init__(self, api_key: str, config: ReviewConfig):
        if not api_key:
            raise ConfigError("API_KEY environment variable not set.")
        self.config = config
        genai.configure(api_key=api_key)

    def _model(self, **kwargs):
        return genai.GenerativeModel(model_name=self.config.model_name, **kwargs)

    def generate_structured(self, prompt: str, schema: Mapping[str, Any]) -> str:
        generation_config = genai.GenerationConfig(
            response_mime_type="application/json",
            response_schema=to_plain(schema),
            temperature=self.config.temperature,
            max_output_tokens=self.config.max_output_tokens,
        )
        try:
            response = self._model().generate_content(prompt, generation_config=generation_config)
        except _BLOCKED as e:
            raise ModelResponseError(f"Gemini blocked the request: {e}") from e
        except google_exceptions.GoogleAPIError as e:
            logger.error("Gemini structured request failed", exc_info=True)
            raise TransportError("Model service request failed") from e

        try:
            return response.text
        except ValueError as e:
            raise ModelResponseError("Gemini returned no text candidates") from e

    def create_conversation(self, history: Sequence[ChatMessage]) -> GeminiConversation:
        model = self._model(generation_config=genai.GenerationConfig(temperature=self.config.temperature))
        chat = model.start_chat(history=[
            {"role": message.role, "parts": [message.content]} for message in history
        ])
        return GeminiConversation(chat)
