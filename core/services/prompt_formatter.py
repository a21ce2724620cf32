# core/services/prompt_formatter.py
from typing import Iterable

from core.domain.models import SourceFile

FILE_SEPARATOR = "\n---\n"


def format_file(file: SourceFile) -> str:
    return f"\n/* FILE: {file.name} */\n```\n{file.content}\n```\n"


def format_files(files: Iterable[SourceFile]) -> str:
    """Render files in the given order as fenced blocks, content untouched"""
    return FILE_SEPARATOR.join(format_file(file) for file in files)
