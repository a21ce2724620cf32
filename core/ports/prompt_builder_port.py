# core/ports/prompt_builder_port.py
from abc import ABC, abstractmethod
from typing import Sequence

from core.domain.models import ChatMessage


class PromptBuilderPort(ABC):
    @abstractmethod
    def build_prompt(self, history: Sequence[ChatMessage], tokenizer) -> str:
        pass
