# core/ports/model_client_port.py
from abc import ABC, abstractmethod
from typing import Any, Iterator, Mapping, Sequence

from core.domain.models import ChatMessage


class ConversationSessionPort(ABC):
    @abstractmethod
    def send_stream(self, message: str) -> Iterator[str]:
        """Send one user turn and yield the reply text increment by increment"""
        pass


class ModelClientPort(ABC):
    @abstractmethod
    def generate_structured(self, prompt: str, schema: Mapping[str, Any]) -> str:
        """Return the raw JSON text of a response constrained by schema"""
        pass

    @abstractmethod
    def create_conversation(self, history: Sequence[ChatMessage]) -> ConversationSessionPort:
        pass
