r"""Turn heading text into URL-safe anchor slugs.

Two slug flavours exist. The canonical mode builds the anchors mdsite emits:
slashes become separators so ``Настройка/Конфигурация`` keeps both words.
The GitHub mode deletes slashes instead, reproducing the anchors that
authors wrote against the hosting platform so those links can be mapped back
to canonical anchors.

Example
-------
>>> from mdsite.slugify import slugify
>>> slugify("Настройка/Конфигурация")
'настройка-конфигурация'
>>> slugify("Настройка/Конфигурация", "github")
'настройкаконфигурация'
>>> slugify("1. Overview")
'overview'
"""

from __future__ import annotations

import re
import typing as typ

SlugMode = typ.Literal["canonical", "github"]
CaseMode = typ.Literal["lower", "upper", "none"]

TAG_PATTERN = re.compile(r"<[^>]+>")
ORDINAL_PREFIX_PATTERN = re.compile(r"^\d+(?:\.\d+)*\.\s+(?=\S)")
SLASH_PATTERN = re.compile(r"[/\\]+")
SPACING_PATTERN = re.compile(r"[\s_]+")
PLATFORM_STRIP_PATTERN = re.compile(r"[^\w\s\u0400-\u04FF-]")
WHITESPACE_PATTERN = re.compile(r"\s+")


def _apply_case(text: str, case: CaseMode) -> str:
    if case == "lower":
        return text.lower()
    if case == "upper":
        return text.upper()
    return text


def slugify(
    text: str,
    mode: SlugMode = "canonical",
    *,
    case: CaseMode = "lower",
    separator: str = "-",
) -> str:
    """Return a URL-safe slug for ``text``.

    Parameters
    ----------
    text : str
        Heading text; may contain inline HTML and an ordinal prefix such as
        ``"2.1. "``.
    mode : {"canonical", "github"}, optional
        ``"canonical"`` replaces slashes with ``separator``; ``"github"``
        deletes them.
    case : {"lower", "upper", "none"}, optional
        Case transformation applied before anything else.
    separator : str, optional
        Word separator, ``"-"`` by default.

    Returns
    -------
    str
        Slug containing only Latin letters, digits, Cyrillic letters, dots,
        and single separators, never starting or ending with a separator.
    """
    sep = re.escape(separator)
    slug = _apply_case(text, case)
    slug = TAG_PATTERN.sub("", slug).strip()
    slug = ORDINAL_PREFIX_PATTERN.sub("", slug, count=1)
    slug = SLASH_PATTERN.sub(separator if mode == "canonical" else "", slug)
    slug = SPACING_PATTERN.sub(separator, slug)
    slug = re.sub(rf"[^a-zA-Z0-9\u0400-\u04FF.{sep}]+", "", slug)
    slug = re.sub(rf"^(?:{sep})+|(?:{sep})+$", "", slug)
    return re.sub(rf"(?:{sep})+", separator, slug)


def clean_heading_text(text: str) -> str:
    """Strip inline tags and a leading ordinal prefix from heading text.

    Version-like headings such as ``"2.4.3"`` are left untouched because the
    prefix must be followed by whitespace and more text.
    """
    cleaned = TAG_PATTERN.sub("", text).strip()
    return ORDINAL_PREFIX_PATTERN.sub("", cleaned, count=1).strip()


def platform_slug(text: str) -> str:
    """Return the hosting platform's punctuation-stripping slug for ``text``.

    Unlike :func:`slugify`, dots and ordinal prefixes are dropped character
    by character, so ``"2.0.5"`` becomes ``"205"`` and ``"1. Intro"`` becomes
    ``"1-intro"``.
    """
    slug = PLATFORM_STRIP_PATTERN.sub("", text.strip().lower())
    return WHITESPACE_PATTERN.sub("-", slug)


__all__ = [
    "CaseMode",
    "SlugMode",
    "clean_heading_text",
    "platform_slug",
    "slugify",
]
