# core/ports/upload_handler_port.py
from abc import ABC, abstractmethod
from typing import Tuple


class UploadHandlerPort(ABC):
    @abstractmethod
    def read_upload(self, file) -> Tuple[bytes, str]:
        """Return the archive bytes and a sanitized filename of an uploaded project"""
        pass

    @abstractmethod
    def download_name(self, original_name: str) -> str:
        pass
