"""Utility helpers for matching portal text."""

from __future__ import annotations

import re
from typing import Iterable, Optional

from bs4 import Tag


def normalise_whitespace(text: str) -> str:
    """Collapse repeated whitespace (including ideographic spaces) into single spaces."""
    return re.sub(r"\s+", " ", (text or "").replace("　", " ")).strip()


def element_text(tag: Optional[Tag]) -> str:
    """Normalised text content of ``tag``, empty for ``None``."""
    if tag is None:
        return ""
    return normalise_whitespace(tag.get_text(" "))


def contains_any(text: str, needles: Iterable[str]) -> bool:
    """Case-insensitive substring test against any of ``needles``."""
    if not text:
        return False
    haystack = text.casefold()
    return any(needle and needle.casefold() in haystack for needle in needles)

