# core/ports/archive_port.py
from abc import ABC, abstractmethod
from typing import List, Sequence, Tuple

from core.domain.models import SourceFile


class ArchivePort(ABC):
    @abstractmethod
    def extract(self, data: bytes) -> List[SourceFile]:
        pass

    @abstractmethod
    def create(self, files: Sequence[SourceFile], suggested_name: str) -> Tuple[bytes, str]:
        pass
