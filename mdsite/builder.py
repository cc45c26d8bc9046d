"""Site build driver.

This module turns a :class:`~mdsite.config.SiteConfig` into a directory of
static pages. It loads the sitemap and the mapping tables, renders every
document through a :class:`~mdsite.renderer.DocumentProcessor`, wraps each
result in the ``page.jinja`` template, and writes ``<output>/<url>/index.html``.

Example
-------
>>> from pathlib import Path
>>> from mdsite.config import load_site_config
>>> from mdsite.builder import SiteBuilder
>>> builder = SiteBuilder(load_site_config(Path("mdsite.yaml")))  # doctest: +SKIP
>>> builder.run()  # doctest: +SKIP
[PosixPath('public/index.html'), PosixPath('public/guides/setup/index.html')]
"""

from __future__ import annotations

import logging
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from mdsite._constants import INDEX_FILENAME, PAGE_TEMPLATE
from mdsite.renderer import DocumentProcessor, HtmlContentRenderer
from mdsite.sitemap import load_mapping, load_sitemap

if typ.TYPE_CHECKING:
    from mdsite.config import SiteConfig
    from mdsite.renderer import RenderedDocument
    from mdsite.sitemap import Sitemap

logger = logging.getLogger(__name__)


def output_path_for(output_dir: Path, url: str) -> Path:
    """Return the file a page published at ``url`` is written to.

    >>> output_path_for(Path("public"), "/guides/setup").as_posix()
    'public/guides/setup/index.html'
    >>> output_path_for(Path("public"), "/").as_posix()
    'public/index.html'
    """
    parts = [part for part in url.split("/") if part]
    return output_dir.joinpath(*parts, INDEX_FILENAME)


class SiteBuilder:
    """Render every sitemap document into themed HTML files."""

    def __init__(
        self,
        config: SiteConfig,
        *,
        output_dir: Path | None = None,
        templates_dir: Path | None = None,
    ) -> None:
        """Initialize the builder and its Jinja environment.

        Parameters
        ----------
        config : SiteConfig
            Resolved build configuration.
        output_dir : Path, optional
            Override for the configured output directory.
        templates_dir : Path, optional
            Directory containing ``page.jinja``; defaults to the configured
            templates directory, then to the package templates.
        """
        self.config = config
        self.output_dir = output_dir or config.output_dir
        default_templates = Path(__file__).resolve().parent / "templates"
        self.templates_dir = templates_dir or config.templates_dir or default_templates
        self.renderer = HtmlContentRenderer(config.pygments_style)
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.template = self.env.get_template(PAGE_TEMPLATE)

    def check(self) -> dict[str, RenderedDocument]:
        """Render every document without writing anything.

        Raises
        ------
        BuildError
            The first fatal content error found in any document.
        """
        sitemap = load_sitemap(self.config.sitemap)
        return self._processor(sitemap).render_all()

    def run(self) -> list[Path]:
        """Render every document and write its page.

        Returns
        -------
        list[Path]
            Written files in sitemap order.
        """
        sitemap = load_sitemap(self.config.sitemap)
        documents = self._processor(sitemap).render_all()
        written: list[Path] = []
        for url, document in documents.items():
            output_path = output_path_for(self.output_dir, url)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            html = self.template.render(**self._page_context(sitemap, document))
            output_path.write_text(html, encoding="utf-8")
            logger.debug("Wrote %s", output_path)
            written.append(output_path)
        return written

    def _processor(self, sitemap: Sitemap) -> DocumentProcessor:
        return DocumentProcessor(
            sitemap,
            source_loader=self._load_source,
            image_mapping=self._load_optional_mapping(self.config.image_mapping),
            asset_mapping=self._load_optional_mapping(self.config.asset_mapping),
            site_url=self.config.site_url,
            renderer=self.renderer,
        )

    def _load_source(self, source_path: str) -> str:
        return (self.config.content_dir / source_path).read_text(encoding="utf-8")

    @staticmethod
    def _load_optional_mapping(path: Path | None) -> dict[str, str]:
        if path is None:
            return {}
        return load_mapping(path)

    def _page_context(
        self, sitemap: Sitemap, document: RenderedDocument
    ) -> dict[str, typ.Any]:
        page = sitemap.pages.get(document.url)
        breadcrumbs = [
            {"url": url, "title": sitemap.title_for(url)}
            for url in (page.breadcrumbs if page else ())
            if url in sitemap.pages
        ]
        canonical_url = (
            f"{self.config.site_url}{document.url}" if self.config.site_url else None
        )
        return {
            "title": sitemap.title_for(document.url),
            "site_name": self.config.site_name,
            "language": self.config.language,
            "url": document.url,
            "canonical_url": canonical_url,
            "breadcrumbs": breadcrumbs,
            "content": document.html,
            "pygments_css": self.renderer.stylesheet,
        }


__all__ = ["SiteBuilder", "output_path_for"]
