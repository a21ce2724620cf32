# core/ports/chat_output_port.py
from abc import ABC, abstractmethod


class ChatOutputPort(ABC):
    """Where review output and streamed conversation replies are shown"""

    @abstractmethod
    def display_message(self, message: str):
        pass

    @abstractmethod
    def stream_chunk(self, chunk: str):
        pass

    @abstractmethod
    def complete(self):
        """Mark the end of a streamed reply"""
        pass

    @abstractmethod
    def error(self, message: str):
        pass

    @abstractmethod
    def get_user_input(self, prompt: str) -> str:
        pass
