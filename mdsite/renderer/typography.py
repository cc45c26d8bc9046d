"""Em-dash typography for rendered text nodes."""

from __future__ import annotations

import re

NBSP_DASH = "\u00a0— "
DASH_RULES = (
    re.compile(r" — "),
    re.compile(r" —(?=\S)"),
    re.compile(r"(?<=\S)— "),
    re.compile(r"(?<=[a-zA-Zа-яА-ЯёЁ])—(?=[a-zA-Zа-яА-ЯёЁ])"),
)


def apply_typography(text: str | None) -> str | None:
    """Bind an em dash to the preceding word with a non-breaking space.

    >>> apply_typography("слово—слово")
    'слово\\xa0— слово'
    """
    if not text or "—" not in text:
        return text
    for rule in DASH_RULES:
        text = rule.sub(NBSP_DASH, text)
    return text


__all__ = ["apply_typography"]
