"""Utilities for rendering Markdown documents into article HTML."""

from __future__ import annotations

import re
import typing as typ
from html import escape

from markdown import Markdown
from pygments.formatters.html import HtmlFormatter

from mdsite._constants import CODE_CLASS, STANDALONE_SOURCE
from mdsite.errors import MalformedMarkdownError
from mdsite.renderer.context import RenderContext
from mdsite.renderer.extension import SiteMarkdownExtension
from mdsite.renderer.serializer import HtmlSerializer

if typ.TYPE_CHECKING:
    from markdown.extensions import Extension

    from mdsite.renderer.links import LinkResolver
else:  # pragma: no cover - type-checking fallback
    Extension = typ.Any

CODE_BLOCK_PATTERN = re.compile(r"```([A-Za-z0-9_+#.-]+)?[^\n]*\n(.*?)```", re.DOTALL)
FENCED_INDENT_PATTERN = re.compile(r"^[ ]{1,3}([`~]{3,})", re.MULTILINE)
FENCE_LABEL_PATTERN = re.compile(
    r"^([`~]{3,})([A-Za-z0-9_+#.-]+)?(,[^\r\n]+)$", re.MULTILINE
)
FENCED_SPAN_PATTERN = re.compile(
    r"^(?P<fence>[`~]{3,}).*?^(?P=fence)[ \t]*$", re.DOTALL | re.MULTILINE
)
INLINE_CODE_PATTERN = re.compile(r"`[^`\n]*`")
UNTERMINATED_LINK_PATTERNS = (
    re.compile(r"\[[^\]\n]+\]\([^)\n]*$", re.MULTILINE),
    re.compile(r"\[([^\]\n]+)$", re.MULTILINE),
)
CODEHILITE_OPEN_TAG = re.compile(rf'<div class="{CODE_CLASS}">')


def validate_markdown(text: object, source_path: str) -> str:
    """Return ``text`` when it is renderable Markdown.

    Raises
    ------
    MalformedMarkdownError
        If ``text`` is not a string, is blank, or contains a link whose
        bracket or parenthesis is never closed outside code.
    """
    if not isinstance(text, str):
        msg = (
            f"Cannot render {source_path}: expected Markdown text, "
            f"got {type(text).__name__}."
        )
        raise MalformedMarkdownError(msg, source_path=source_path)
    if not text.strip():
        msg = f"Cannot render {source_path}: the document is empty."
        raise MalformedMarkdownError(msg, source_path=source_path)

    prose = FENCED_SPAN_PATTERN.sub(
        lambda match: "\n" * match.group(0).count("\n"), text
    )
    prose = INLINE_CODE_PATTERN.sub("", prose)
    for pattern in UNTERMINATED_LINK_PATTERNS:
        match = pattern.search(prose)
        if match is None:
            continue
        line = prose.count("\n", 0, match.start()) + 1
        msg = (
            f"Malformed link syntax in {source_path} at line {line}: "
            f'"{match.group(0).strip()}"'
        )
        raise MalformedMarkdownError(
            msg,
            source_path=source_path,
            line=line,
            hint="Close the link text with ']' and the target with ')'.",
        )
    return text


class HtmlContentRenderer:
    """Render Markdown documents with consistent article styling."""

    def __init__(
        self,
        pygments_style: str = "monokai",
        serializer: HtmlSerializer | None = None,
    ) -> None:
        """Initialize a renderer with an optional pygments style.

        Parameters
        ----------
        pygments_style : str, optional
            Name of the Pygments style used for syntax highlighting. Defaults to
            ``"monokai"``.
        serializer : HtmlSerializer, optional
            Serializer applied to the converted HTML; a default instance is
            used when omitted.
        """
        self.pygments_style = pygments_style
        self._formatter = HtmlFormatter(style=pygments_style, cssclass=CODE_CLASS)
        self._serializer = serializer or HtmlSerializer()

    @property
    def stylesheet(self) -> str:
        """Return the CSS used for highlighted code blocks."""
        return self._formatter.get_style_defs(f".{CODE_CLASS}")

    def render(
        self,
        text: str,
        context: RenderContext | None = None,
        resolver: LinkResolver | None = None,
    ) -> str:
        """Render ``text`` into serialized article HTML.

        Parameters
        ----------
        text : str
            Markdown source of one document.
        context : RenderContext, optional
            Render context carrying the sitemap, mappings and processing
            state; a standalone context is created when omitted.
        resolver : LinkResolver, optional
            Resolver override used by tests to observe link resolution.

        Returns
        -------
        str
            Minimal HTML5 markup for the document body.

        Raises
        ------
        MalformedMarkdownError
            If ``text`` fails :func:`validate_markdown`.
        BuildError
            Any fatal link or anchor error raised while rendering.
        """
        ctx = context or RenderContext(source_path=STANDALONE_SOURCE)
        validate_markdown(text, ctx.source_path)
        normalized = self._normalize_fenced_blocks(text)
        extensions: list[Extension | str] = [
            "fenced_code",
            "codehilite",
            "tables",
            "sane_lists",
            "def_list",
            SiteMarkdownExtension(ctx, resolver),
        ]
        md = Markdown(
            extensions=extensions,
            extension_configs={
                "codehilite": {
                    "linenums": False,
                    "guess_lang": False,
                    "css_class": CODE_CLASS,
                    "pygments_style": self.pygments_style,
                }
            },
            output_format="html",
        )
        html = md.convert(normalized)
        html = self._annotate_codehilite(html, normalized)
        return self._serializer.serialize(html)

    def _annotate_codehilite(self, html: str, source_markdown: str) -> str:
        """Attach language metadata to each highlighted block in converted markdown."""
        languages = [
            match.group(1) or "text"
            for match in CODE_BLOCK_PATTERN.finditer(source_markdown)
        ]
        if not languages:
            return html
        lang_iter = iter(languages)

        def _repl(match: re.Match[str]) -> str:
            lang = next(lang_iter, "text")
            return f'<div class="{CODE_CLASS}" data-language="{escape(lang, quote=True)}">'

        return CODEHILITE_OPEN_TAG.sub(_repl, html, len(languages))

    @staticmethod
    def _normalize_fenced_blocks(text: str) -> str:
        without_indent = FENCED_INDENT_PATTERN.sub(r"\1", text)

        def _strip_labels(match: re.Match[str]) -> str:
            fence, language, _extras = match.groups()
            label = language or ""
            return f"{fence}{label}"

        return FENCE_LABEL_PATTERN.sub(_strip_labels, without_indent)


__all__ = ["CODE_BLOCK_PATTERN", "HtmlContentRenderer", "validate_markdown"]
