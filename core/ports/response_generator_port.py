# core/ports/response_generator_port.py
from abc import ABC, abstractmethod
from typing import Iterator


class ResponseGeneratorPort(ABC):
    @abstractmethod
    def stream_response(self, prompt: str, model, tokenizer) -> Iterator[str]:
        pass
