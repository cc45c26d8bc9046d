"""Exceptions raised when Markdown content cannot be built into a site.

Every error here is a content defect and is never retried. It propagates to
the build driver carrying the offending file and, where one exists, a
remediation hint.
"""

from __future__ import annotations


class BuildError(Exception):
    """Base class for fatal content errors raised while rendering documents.

    Attributes
    ----------
    source_path : str
        Sitemap-relative path of the document being rendered.
    line : int or None
        1-based line number of the defect when it is known.
    hint : str or None
        Suggested remediation appended to the message.
    """

    def __init__(
        self,
        message: str,
        *,
        source_path: str,
        line: int | None = None,
        hint: str | None = None,
    ) -> None:
        self.source_path = source_path
        self.line = line
        self.hint = hint
        full_message = f"{message}\n{hint}" if hint else message
        super().__init__(full_message)


class DuplicateAnchorError(BuildError):
    """Raised when two headings in one document produce the same anchor."""


class UnresolvedLinkError(BuildError):
    """Raised when a relative Markdown link names a file missing from the sitemap."""


class DisallowedLinkError(BuildError):
    """Raised for relative links to ``.html``, ``.php`` and similar files."""


class MalformedMarkdownError(BuildError):
    """Raised when the renderer receives empty, non-text, or broken input."""


class ReferenceCycleError(BuildError):
    """Raised when a document is asked to render while it is already rendering."""


__all__ = [
    "BuildError",
    "DisallowedLinkError",
    "DuplicateAnchorError",
    "MalformedMarkdownError",
    "ReferenceCycleError",
    "UnresolvedLinkError",
]
