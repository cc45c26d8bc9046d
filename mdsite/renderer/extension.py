"""Python-Markdown extension wiring anchors, links and article markup.

:class:`SiteMarkdownExtension` registers the processors below on a
``markdown.Markdown`` instance. Registration priorities place them around the
built-in stages (``fenced_code_block`` preprocessor 25, ``hilite``
treeprocessor 30, ``inline`` treeprocessor 20, ``raw_html`` postprocessor 30)
so that:

* asset URLs are rewritten in fenced code before it is stashed;
* every heading of the document is registered before any link is resolved,
  which lets same-page forward references use the anchor map;
* heading self-links wrap only the leading text produced by inline
  processing;
* typography and BEM classes see the fully inlined tree.
"""

from __future__ import annotations

import re
import typing as typ

from markdown.extensions import Extension
from markdown.postprocessors import Postprocessor
from markdown.preprocessors import Preprocessor
from markdown.treeprocessors import Treeprocessor
from markdown.util import HTML_PLACEHOLDER_RE, AtomicString

from mdsite._constants import (
    CODE_CLASS,
    CODE_COPY_CLASS,
    HEADING_ANCHOR_CLASS,
    HEADING_CLASS_TEMPLATE,
    YOUTUBE_EMBED_URL,
)
from mdsite.renderer.links import LinkResolver
from mdsite.renderer.typography import apply_typography

if typ.TYPE_CHECKING:
    from xml.etree.ElementTree import Element

    from markdown import Markdown

    from mdsite.renderer.anchors import HeadingTracker
    from mdsite.renderer.context import RenderContext
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any
    Element = typ.Any

HEADING_LEVELS = {f"h{level}": level for level in range(1, 7)}
FENCED_BLOCK_PATTERN = re.compile(
    r"^(?P<fence>[`~]{3,}).*?^(?P=fence)[ \t]*$", re.DOTALL | re.MULTILINE
)
VIDEO_EMBED_PATTERN = re.compile(r"^ {0,3}@\[youtube\]\(([A-Za-z0-9_-]+)\)\s*$")
RAW_IMG_SRC_PATTERN = re.compile(
    r"(<img\b[^>]*?\bsrc=)([\"'])([^\"']+)\2", re.IGNORECASE
)
CODE_BLOCK_END_PATTERN = re.compile(
    rf'(<div class="{CODE_CLASS}"[^>]*>.*?)(</pre>)', re.DOTALL
)
COPY_BUTTON = (
    f'<button type="button" class="{CODE_COPY_CLASS}" '
    'aria-label="Copy code to clipboard" title="Copy code"></button>'
)
ARTICLE_CLASSES = {
    "p": "article__paragraph",
    "ul": "article__list",
    "ol": "article__list article__list_ordered",
    "li": "article__list-item",
    "blockquote": "article__blockquote",
    "img": "article__image",
    "a": "article__link",
    "table": "article__table",
    "thead": "article__table-head",
    "tbody": "article__table-body",
    "tr": "article__table-row",
    "th": "article__table-cell article__table-cell_header",
    "td": "article__table-cell",
}

HeadingPaths = dict[Element, tuple[str, ...]]


def _add_class(element: Element, class_name: str) -> None:
    existing = element.get("class", "")
    element.set("class", f"{existing} {class_name}" if existing else class_name)


class CodeAssetPreprocessor(Preprocessor):
    """Rewrite origin asset URLs inside fenced code blocks."""

    def __init__(self, md: Markdown, resolver: LinkResolver) -> None:
        super().__init__(md)
        self.resolver = resolver

    def run(self, lines: list[str]) -> list[str]:
        if not self.resolver.context.asset_mapping:
            return lines
        text = "\n".join(lines)
        rewritten = FENCED_BLOCK_PATTERN.sub(
            lambda match: self.resolver.rewrite_code_assets(match.group(0)), text
        )
        return rewritten.split("\n")


class VideoEmbedPreprocessor(Preprocessor):
    """Replace ``@[youtube](VIDEO_ID)`` lines with an embedded player.

    Lines indented by four or more spaces belong to code blocks and are kept.
    """

    def run(self, lines: list[str]) -> list[str]:
        output: list[str] = []
        for line in lines:
            match = VIDEO_EMBED_PATTERN.match(line)
            if match is None:
                output.append(line)
                continue
            src = YOUTUBE_EMBED_URL.format(video_id=match.group(1)).replace(
                "&", "&amp;"
            )
            html = (
                '<div class="video"><iframe class="video__iframe" '
                f'src="{src}" allowfullscreen></iframe></div>'
            )
            output.extend(["", self.md.htmlStash.store(html), ""])
        return output


class CodeAssetTreeprocessor(Treeprocessor):
    """Rewrite origin asset URLs in indented code blocks before highlighting."""

    def __init__(self, md: Markdown, resolver: LinkResolver) -> None:
        super().__init__(md)
        self.resolver = resolver

    def run(self, root: Element) -> None:
        for element in root.iter("code"):
            if element.text:
                element.text = AtomicString(
                    self.resolver.rewrite_code_assets(element.text)
                )


class HeadingAnchorTreeprocessor(Treeprocessor):
    """Assign hierarchical ids to headings and register their aliases.

    Runs over the whole tree before inline processing, so the document's
    anchor map is complete before :class:`LinkTreeprocessor` runs.
    """

    def __init__(
        self, md: Markdown, tracker: HeadingTracker, paths: HeadingPaths
    ) -> None:
        super().__init__(md)
        self.tracker = tracker
        self.paths = paths

    def run(self, root: Element) -> None:
        for element in root.iter():
            level = HEADING_LEVELS.get(element.tag)
            if level is None:
                continue
            heading = self.tracker.track(level, element.text or "")
            self.paths[element] = heading.path
            element.set("class", HEADING_CLASS_TEMPLATE.format(level=level))
            element.text = heading.text
            if heading.anchor:
                element.set("id", heading.anchor)


class HeadingLinkTreeprocessor(Treeprocessor):
    """Wrap the leading text of each anchored heading in a self-link.

    Only the text before the first inline element is wrapped, so links and
    other markup inside the heading never end up nested in the anchor.
    """

    def run(self, root: Element) -> None:
        for element in list(root.iter()):
            anchor = element.get("id")
            if element.tag not in HEADING_LEVELS or not anchor:
                continue
            if not (element.text or "").strip():
                continue
            link = element.makeelement(
                "a", {"href": f"#{anchor}", "class": HEADING_ANCHOR_CLASS}
            )
            link.text = element.text
            element.text = None
            element.insert(0, link)


class LinkTreeprocessor(Treeprocessor):
    """Resolve link targets, image sources and inline code asset URLs."""

    def __init__(
        self, md: Markdown, resolver: LinkResolver, paths: HeadingPaths
    ) -> None:
        super().__init__(md)
        self.resolver = resolver
        self.paths = paths

    def run(self, root: Element) -> None:
        heading_path: tuple[str, ...] = ()
        for element in root.iter():
            if element.tag in HEADING_LEVELS:
                heading_path = self.paths.get(element, heading_path)
            elif element.tag == "a":
                self._rewrite_link(element, heading_path)
            elif element.tag == "img":
                src = element.get("src")
                if src:
                    element.set("src", self.resolver.resolve_image(src))
            elif element.tag == "code" and element.text:
                element.text = AtomicString(
                    self.resolver.rewrite_code_assets(element.text)
                )
        self._rewrite_raw_images()

    def _rewrite_link(self, element: Element, heading_path: tuple[str, ...]) -> None:
        href = element.get("href")
        if not href or HEADING_ANCHOR_CLASS in element.get("class", ""):
            return
        element.set("href", self.resolver.resolve_href(href, heading_path))

    def _rewrite_raw_images(self) -> None:
        blocks = self.md.htmlStash.rawHtmlBlocks
        for index, block in enumerate(blocks):
            if isinstance(block, str) and "<img" in block.lower():
                blocks[index] = RAW_IMG_SRC_PATTERN.sub(self._replace_src, block)

    def _replace_src(self, match: re.Match[str]) -> str:
        prefix, quote, src = match.groups()
        return f"{prefix}{quote}{self.resolver.resolve_image(src)}{quote}"


class TypographyTreeprocessor(Treeprocessor):
    """Apply em-dash typography to text outside code."""

    def run(self, root: Element) -> None:
        self._walk(root)

    def _walk(self, element: Element) -> None:
        if element.tag not in {"code", "pre"}:
            element.text = apply_typography(element.text)
            for child in element:
                self._walk(child)
        element.tail = apply_typography(element.tail)


class ArticleClassTreeprocessor(Treeprocessor):
    """Attach ``article__*`` classes and unwrap tight list-item paragraphs."""

    def run(self, root: Element) -> None:
        for element in list(root.iter()):
            if element.tag == "li":
                self._unwrap_leading_paragraph(element)
            class_name = ARTICLE_CLASSES.get(element.tag)
            if class_name is None:
                continue
            if element.tag == "a" and HEADING_ANCHOR_CLASS in element.get("class", ""):
                continue
            if element.tag == "p" and self._is_stash_placeholder(element):
                # raw_html only swaps a bare <p>placeholder</p> for block HTML
                continue
            _add_class(element, class_name)

    @staticmethod
    def _is_stash_placeholder(paragraph: Element) -> bool:
        return len(paragraph) == 0 and bool(
            HTML_PLACEHOLDER_RE.fullmatch((paragraph.text or "").strip())
        )

    @staticmethod
    def _unwrap_leading_paragraph(item: Element) -> None:
        if len(item) == 0 or (item.text or "").strip():
            return
        paragraph = item[0]
        if paragraph.tag != "p":
            return
        if len(item) > 1 and item[1].tag not in {"ul", "ol"}:
            return
        item.remove(paragraph)
        item.text = paragraph.text
        children = list(paragraph)
        for offset, child in enumerate(children):
            item.insert(offset, child)


class CodeCopyPostprocessor(Postprocessor):
    """Append a copy-to-clipboard button inside each highlighted block."""

    def run(self, text: str) -> str:
        return CODE_BLOCK_END_PATTERN.sub(rf"\1{COPY_BUTTON}\2", text)


class SiteMarkdownExtension(Extension):
    """Register mdsite's processors for a single document render.

    Parameters
    ----------
    context : RenderContext
        Context of the document being rendered; its tracker receives every
        heading.
    resolver : LinkResolver, optional
        Resolver for links, images and code assets; built from ``context``
        when omitted.
    """

    def __init__(
        self, context: RenderContext, resolver: LinkResolver | None = None
    ) -> None:
        super().__init__()
        self.context = context
        self.resolver = resolver or LinkResolver(context)

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register preprocessors, treeprocessors and postprocessors on ``md``."""
        paths: HeadingPaths = {}
        md.preprocessors.register(
            CodeAssetPreprocessor(md, self.resolver), "mdsite_code_assets", 27
        )
        md.preprocessors.register(VideoEmbedPreprocessor(md), "mdsite_video", 22)
        md.treeprocessors.register(
            CodeAssetTreeprocessor(md, self.resolver), "mdsite_indented_code", 35
        )
        md.treeprocessors.register(
            HeadingAnchorTreeprocessor(md, self.context.tracker, paths),
            "mdsite_headings",
            25,
        )
        md.treeprocessors.register(
            HeadingLinkTreeprocessor(md), "mdsite_heading_links", 16
        )
        md.treeprocessors.register(
            LinkTreeprocessor(md, self.resolver, paths), "mdsite_links", 15
        )
        md.treeprocessors.register(
            TypographyTreeprocessor(md), "mdsite_typography", 14
        )
        md.treeprocessors.register(
            ArticleClassTreeprocessor(md), "mdsite_article_classes", 12
        )
        md.postprocessors.register(CodeCopyPostprocessor(md), "mdsite_code_copy", 5)


__all__ = [
    "ArticleClassTreeprocessor",
    "CodeAssetPreprocessor",
    "CodeAssetTreeprocessor",
    "CodeCopyPostprocessor",
    "HeadingAnchorTreeprocessor",
    "HeadingLinkTreeprocessor",
    "LinkTreeprocessor",
    "SiteMarkdownExtension",
    "TypographyTreeprocessor",
    "VideoEmbedPreprocessor",
]
