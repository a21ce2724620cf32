# infrastructure/adapters/model_clients/huggingface_client.py
import json
import logging
from typing import Any, Iterator, List, Mapping, Sequence

from core.domain.errors import ConfigError, ModelResponseError, TransportError
from core.domain.models import ChatMessage
from core.ports.model_client_port import ConversationSessionPort, ModelClientPort
from core.ports.prompt_builder_port import PromptBuilderPort
from core.ports.response_generator_port import ResponseGeneratorPort
from core.services.schema_builder import to_plain

logger = logging.getLogger(__name__)

JSON_INSTRUCTION = ("\n\nIMPORTANT: Your entire response MUST be a single JSON object matching this schema, "
                    "with no text before or after it:\n{schema}")


def extract_json_object(text: str) -> str:
    """Cut the outermost {...} block out of a free-form completion"""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise ModelResponseError("Local model did not produce a JSON object")
    return text[start:end + 1]


class HuggingFaceConversation(ConversationSessionPort):
    def __init__(self, client: "HuggingFaceModelClient", history: Sequence[ChatMessage]):
        self.client = client
        self.history: List[ChatMessage] = list(history)

    def send_stream(self, message: str) -> Iterator[str]:
        self.history.append(ChatMessage(role="user", content=message))
        reply = ""
        for chunk in self.client.stream(self.history):
            reply += chunk
            yield chunk
        self.history.append(ChatMessage(role="model", content=reply))


class HuggingFaceModelClient(ModelClientPort):
    """Runs the review pipeline against a locally loaded transformers model"""

    def __init__(self, model_manager, prompt_builder: PromptBuilderPort,
                 response_generator: ResponseGeneratorPort, model_name: str):
        self.model_manager = model_manager
        self.prompt_builder = prompt_builder
        self.response_generator = response_generator
        self.model_name = model_name

    def _load(self):
        try:
            if not self.model_manager.is_initialized():
                self.model_manager.initialize(self.model_name)
            return self.model_manager.get_model_and_tokenizer()
        except ImportError as e:
            raise ConfigError("The huggingface provider needs the 'local' extra (transformers, torch)") from e
        except (OSError, ValueError) as e:
            raise TransportError(f"Local model {self.model_name} is unavailable") from e

    def stream(self, history: Sequence[ChatMessage]) -> Iterator[str]:
        model, tokenizer = self._load()
        prompt = self.prompt_builder.build_prompt(history, tokenizer)
        return self.response_generator.stream_response(prompt, model, tokenizer)

    def generate_structured(self, prompt: str, schema: Mapping[str, Any]) -> str:
        instruction = JSON_INSTRUCTION.format(schema=json.dumps(to_plain(schema)))
        history = [ChatMessage(role="user", content=prompt + instruction)]
        completion = "".join(self.stream(history))
        logger.debug("Local structured completion: %d characters", len(completion))
        return extract_json_object(completion)

    def create_conversation(self, history: Sequence[ChatMessage]) -> HuggingFaceConversation:
        return HuggingFaceConversation(self, history)
