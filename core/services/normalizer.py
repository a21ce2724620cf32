# core/services/normalizer.py
from typing import Optional


def normalize(text: Optional[str]) -> str:
    """
    Canonical form of source text used only for equality checks.

    Line endings collapse to LF, every line is stripped, and lines that end up
    empty are dropped. The result is never shown to the user or written out.
    """
    if not text:
        return ""
    unified = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = (line.strip() for line in unified.split("\n"))
    return "\n".join(line for line in lines if line)


def is_substantive_change(original: Optional[str], candidate: Optional[str]) -> bool:
    return normalize(original) != normalize(candidate)
