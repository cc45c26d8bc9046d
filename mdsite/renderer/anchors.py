"""Hierarchical heading anchors and the reverse map used by other documents.

Every document render owns one :class:`HeadingTracker`. Each heading entered
into it updates the :class:`HeadingStack`, produces the canonical anchor
(``overview-setup-requirements`` for an H3 under ``Setup`` under
``1. Overview``), and records the GitHub-style slugs that authors may have
linked to in the document's :class:`AnchorMap`.

Example
-------
>>> from mdsite.renderer.anchors import HeadingTracker
>>> tracker = HeadingTracker("guides/setup.md")
>>> tracker.track(1, "1. Overview").anchor
'overview'
>>> tracker.track(2, "Setup").anchor
'overview-setup'
>>> tracker.anchor_map.lookup("setup")
'overview-setup'
"""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ
from urllib.parse import quote, unquote

from mdsite.errors import DuplicateAnchorError
from mdsite.slugify import clean_heading_text, platform_slug, slugify

if typ.TYPE_CHECKING:
    import collections.abc as cabc

CUSTOM_ANCHOR_PATTERN = re.compile(r"\s*\{#([^}]+)\}\s*$")
URI_COMPONENT_SAFE = "-_.!~*'()"


def build_hierarchical_anchor(parts: cabc.Sequence[str]) -> str:
    """Join the canonical slugs of ``parts`` with ``-``.

    Leading parts that slugify to nothing are skipped so the anchor never
    starts with a separator; empty parts after the first non-empty one are
    kept and yield a double separator.
    """
    slugs = [slugify(part or "") for part in parts]
    first = next((idx for idx, slug in enumerate(slugs) if slug), None)
    if first is None:
        return ""
    return "-".join(slugs[first:])


@dc.dataclass(frozen=True, slots=True)
class Heading:
    """A heading seen during a document render.

    Attributes
    ----------
    level : int
        Heading level between 1 and 6.
    text : str
        Display text with any ``{#custom-id}`` suffix removed.
    anchor : str
        Canonical anchor emitted as the heading ``id``; empty when the heading
        has no sluggable text.
    github_slug : str
        GitHub-compatible slug after duplicate suffixing.
    path : tuple[str, ...]
        Cleaned heading texts of the active ancestors, this heading last.
    """

    level: int
    text: str
    anchor: str
    github_slug: str
    path: tuple[str, ...]


class HeadingStack:
    """Active heading texts indexed by level (index 0 holds the H1)."""

    def __init__(self) -> None:
        self._entries: list[str] = []

    def enter(self, level: int, text: str) -> tuple[str, ...]:
        """Enter a heading at ``level`` and return the resulting stack."""
        if not 1 <= level <= 6:
            msg = f"Heading level must be between 1 and 6, got {level}."
            raise ValueError(msg)
        del self._entries[level - 1 :]
        self._entries.extend([""] * (level - 1 - len(self._entries)))
        self._entries.append(text)
        return tuple(self._entries)

    @property
    def path(self) -> tuple[str, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class AnchorMap:
    """Map GitHub-style fragments of one document to its canonical anchors.

    The first registration of a key wins, so entries only ever accumulate.
    """

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}

    def add(self, slug: str, anchor: str) -> None:
        """Register ``slug`` and its percent-encoded form for ``anchor``."""
        if not slug or not anchor:
            return
        self._entries.setdefault(slug, anchor)
        self._entries.setdefault(quote(slug, safe=URI_COMPONENT_SAFE), anchor)

    def lookup(self, fragment: str) -> str | None:
        """Return the canonical anchor for ``fragment`` as given or URL-decoded."""
        found = self._entries.get(fragment)
        if found is None:
            found = self._entries.get(unquote(fragment))
        return found

    def __contains__(self, fragment: object) -> bool:
        return isinstance(fragment, str) and self.lookup(fragment) is not None

    def __len__(self) -> int:
        return len(self._entries)


class HeadingTracker:
    """Per-render heading state: stack, emitted anchors and GitHub counters."""

    def __init__(self, source_path: str) -> None:
        self.source_path = source_path
        self.stack = HeadingStack()
        self.anchor_map = AnchorMap()
        self.headings: list[Heading] = []
        self._emitted: set[str] = set()
        self._github_counts: dict[str, int] = {}
        self._platform_counts: dict[str, int] = {}

    def track(self, level: int, raw_text: str) -> Heading:
        """Enter a heading and return its anchors.

        Parameters
        ----------
        level : int
            Heading level (1-6).
        raw_text : str
            Heading source text, possibly ending with ``{#custom-id}``.

        Returns
        -------
        Heading
            The recorded heading, also appended to :attr:`headings`.

        Raises
        ------
        DuplicateAnchorError
            If the canonical anchor was already emitted in this document.
        """
        match = CUSTOM_ANCHOR_PATTERN.search(raw_text)
        custom_anchor = match.group(1).strip() if match else None
        text = (raw_text[: match.start()] if match else raw_text).strip()

        path = self.stack.enter(level, clean_heading_text(text))
        anchor = custom_anchor or build_hierarchical_anchor(path)
        if anchor:
            self._claim(anchor, text)

        github_slug = _next_slug(self._github_counts, slugify(raw_text, "github"))
        alias = _next_slug(self._platform_counts, platform_slug(text))
        self.anchor_map.add(github_slug, anchor)
        self.anchor_map.add(alias, anchor)
        self.anchor_map.add(anchor, anchor)

        heading = Heading(
            level=level,
            text=text,
            anchor=anchor,
            github_slug=github_slug,
            path=path,
        )
        self.headings.append(heading)
        return heading

    def _claim(self, anchor: str, text: str) -> None:
        if anchor in self._emitted:
            msg = (
                f'Duplicate heading ID in {self.source_path}: "{text}"\n'
                f'The heading "{text}" generates a duplicate ID "{anchor}".'
            )
            hint = (
                f'Use custom anchor syntax like "# {text} {{#custom-id}}" '
                "to create a unique ID."
            )
            raise DuplicateAnchorError(msg, source_path=self.source_path, hint=hint)
        self._emitted.add(anchor)


def _next_slug(counts: dict[str, int], base: str) -> str:
    """Apply the platform's duplicate convention: ``note``, ``note-1``, ..."""
    seen = counts.get(base, 0)
    counts[base] = seen + 1
    if seen == 0 or not base:
        return base
    return f"{base}-{seen}"


__all__ = [
    "AnchorMap",
    "Heading",
    "HeadingStack",
    "HeadingTracker",
    "build_hierarchical_anchor",
]
