# core/ports/file_handler_port.py
from abc import ABC, abstractmethod


class FileHandlerPort(ABC):
    @abstractmethod
    def read_bytes(self, path: str) -> bytes:
        pass

    @abstractmethod
    def save_archive(self, directory: str, filename: str, data: bytes) -> str:
        pass
