"""Render sitemap documents on demand and publish their anchor maps.

A :class:`DocumentProcessor` owns the :class:`ProcessingState` of one build.
Documents are rendered in sitemap order by :meth:`DocumentProcessor.render_all`,
but a link such as ``../faq/common.md#setup`` makes the link resolver call
:meth:`DocumentProcessor.ensure_rendered` for ``faq/common.md`` first, so its
anchors are known before the link is written. The chain of documents being
rendered is carried explicitly in ``in_progress``; a document that reappears
on that chain is reported as :attr:`RenderOutcome.CYCLE` rather than rendered
again.

Examples
--------
>>> from mdsite.sitemap import Sitemap
>>> sources = {"a.md": "# A\\n\\n[see](b.md#b)", "b.md": "# B"}
>>> processor = DocumentProcessor(
...     Sitemap.from_md2url({"a.md": "/a", "b.md": "/b"}),
...     source_loader=sources.__getitem__,
... )
>>> processor.process("/a").html  # doctest: +SKIP
'<h1 class="article__heading article__heading_level_1" id=a>...'
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import logging
import typing as typ

from mdsite.errors import ReferenceCycleError
from mdsite.renderer.context import ProcessingState, RenderContext, RenderOutcome
from mdsite.renderer.links import LinkResolver
from mdsite.renderer.markdown_renderer import HtmlContentRenderer

if typ.TYPE_CHECKING:
    from mdsite.renderer.anchors import Heading
    from mdsite.sitemap import Sitemap

logger = logging.getLogger(__name__)

SourceLoader = cabc.Callable[[str], str]


@dc.dataclass(frozen=True, slots=True)
class RenderedDocument:
    """Rendered HTML of one sitemap document and the headings it declared."""

    url: str
    source_path: str
    html: str
    headings: tuple[Heading, ...] = ()


class DocumentProcessor:
    """Drive rendering of every document in a sitemap.

    Parameters
    ----------
    sitemap : Sitemap
        Bidirectional mapping between source paths and URLs.
    source_loader : Callable[[str], str]
        Returns the Markdown text for a sitemap-relative source path; raises
        ``FileNotFoundError`` when the source is missing.
    image_mapping : Mapping[str, str], optional
        Source-relative image path to published image reference.
    asset_mapping : Mapping[str, str], optional
        Origin asset URL to local URL.
    site_url : str, optional
        Prefix for rewritten asset URLs inside code.
    renderer : HtmlContentRenderer, optional
        Markdown renderer; a default instance is created when omitted.
    state : ProcessingState, optional
        Build state; a fresh one is created when omitted.
    """

    def __init__(
        self,
        sitemap: Sitemap,
        *,
        source_loader: SourceLoader,
        image_mapping: cabc.Mapping[str, str] | None = None,
        asset_mapping: cabc.Mapping[str, str] | None = None,
        site_url: str = "",
        renderer: HtmlContentRenderer | None = None,
        state: ProcessingState | None = None,
    ) -> None:
        self.sitemap = sitemap
        self.source_loader = source_loader
        self.image_mapping = dict(image_mapping or {})
        self.asset_mapping = dict(asset_mapping or {})
        self.site_url = site_url
        self.renderer = renderer or HtmlContentRenderer()
        self.state = state or ProcessingState()

    def process(
        self, url: str, *, in_progress: tuple[str, ...] = ()
    ) -> RenderedDocument:
        """Render the document published at ``url`` unless already rendered.

        Raises
        ------
        KeyError
            If ``url`` is not in the sitemap.
        ReferenceCycleError
            If ``url`` is already on the ``in_progress`` chain.
        BuildError
            Any fatal content error raised by the renderer.
        """
        cached = self.state.documents.get(url)
        if cached is not None:
            return cached
        source_path = self.sitemap.url2md[url]
        if url in in_progress:
            chain = " -> ".join((*in_progress, url))
            msg = f"Reference cycle while rendering {source_path}: {chain}"
            raise ReferenceCycleError(msg, source_path=source_path)

        text = self.source_loader(source_path)
        context = RenderContext(
            source_path=source_path,
            url=url,
            sitemap=self.sitemap,
            image_mapping=self.image_mapping,
            asset_mapping=self.asset_mapping,
            site_url=self.site_url,
            state=self.state,
            in_progress=(*in_progress, url),
            processor=self,
        )
        logger.debug("Rendering %s (%s)", source_path, url)
        html = self.renderer.render(text, context, LinkResolver(context))
        document = RenderedDocument(
            url=url,
            source_path=source_path,
            html=html,
            headings=tuple(context.tracker.headings),
        )
        self.state.documents[url] = document
        self.state.publish(url, context.tracker.anchor_map)
        logger.debug("Rendered %s with %d headings", url, len(document.headings))
        return document

    def ensure_rendered(
        self, url: str, in_progress: tuple[str, ...]
    ) -> RenderOutcome:
        """Render ``url`` if needed so its anchor map becomes available."""
        if url in self.state.completed:
            return RenderOutcome.COMPLETED
        if url in in_progress:
            return RenderOutcome.CYCLE
        if url not in self.sitemap.url2md:
            return RenderOutcome.UNAVAILABLE
        try:
            self.process(url, in_progress=in_progress)
        except FileNotFoundError as exc:
            logger.warning(
                "Cannot render %s on demand: %s", self.sitemap.url2md[url], exc
            )
            return RenderOutcome.UNAVAILABLE
        return RenderOutcome.COMPLETED

    def render_all(self) -> dict[str, RenderedDocument]:
        """Render every sitemap document and return them in sitemap order."""
        for url in self.sitemap.url2md:
            self.process(url)
        return {url: self.state.documents[url] for url in self.sitemap.url2md}


__all__ = ["DocumentProcessor", "RenderOutcome", "RenderedDocument", "SourceLoader"]
