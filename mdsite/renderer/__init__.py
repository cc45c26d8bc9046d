"""Render Markdown documents with hierarchical anchors and resolved links."""

from .anchors import AnchorMap, Heading, HeadingStack, HeadingTracker
from .context import ProcessingState, RenderContext, RenderOutcome
from .extension import SiteMarkdownExtension
from .links import LinkKind, LinkResolver, classify_link
from .markdown_renderer import HtmlContentRenderer, validate_markdown
from .processor import DocumentProcessor, RenderedDocument
from .serializer import HtmlSerializer
from .typography import apply_typography

__all__ = [
    "AnchorMap",
    "DocumentProcessor",
    "Heading",
    "HeadingStack",
    "HeadingTracker",
    "HtmlContentRenderer",
    "HtmlSerializer",
    "LinkKind",
    "LinkResolver",
    "ProcessingState",
    "RenderContext",
    "RenderOutcome",
    "RenderedDocument",
    "SiteMarkdownExtension",
    "apply_typography",
    "classify_link",
    "validate_markdown",
]
