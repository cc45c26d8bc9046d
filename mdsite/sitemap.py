"""Load the sitemap and the image/asset mapping tables.

The sitemap is a YAML file whose ``sitemap`` key holds a nested list of page
lines in the form ``Title [url, path/to/file.md]``. A page with children is
written as a single-key mapping from its line to the list of child lines;
child URLs that do not start with ``/`` are relative to the parent's URL.

Example ``sitemap.yaml``::

    sitemap:
      - Home [/, index.md]
      - Guides [/guides, guides/index.md]:
          - Setup [setup, guides/setup.md]
          - FAQ [/faq, faq/common.md]

Image and asset mappings are produced by other build steps and arrive as
flat JSON objects.
"""

from __future__ import annotations

import dataclasses as dc
import json
import logging
import re
import typing as typ

from ruamel.yaml import YAML

from mdsite.config.models import SiteConfigError

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

logger = logging.getLogger(__name__)

SITEMAP_LINE_PATTERN = re.compile(r"^(.+?)\s*\[([^,\]]+),\s*([^,\]]+)\]$")


@dc.dataclass(frozen=True, slots=True)
class SitemapPage:
    """One page declared in the sitemap."""

    title: str
    url: str
    file: str

    @property
    def breadcrumbs(self) -> tuple[str, ...]:
        """Ancestor URLs of this page, outermost first."""
        parts = [part for part in self.url.split("/") if part]
        return tuple("/" + "/".join(parts[: idx + 1]) for idx in range(len(parts) - 1))


@dc.dataclass(slots=True)
class Sitemap:
    """Bidirectional source-path and URL lookup in sitemap order.

    Attributes
    ----------
    md2url : dict[str, str]
        Sitemap-relative Markdown path to published URL.
    url2md : dict[str, str]
        Published URL to sitemap-relative Markdown path.
    pages : dict[str, SitemapPage]
        Page metadata keyed by URL.
    """

    md2url: dict[str, str] = dc.field(default_factory=dict)
    url2md: dict[str, str] = dc.field(default_factory=dict)
    pages: dict[str, SitemapPage] = dc.field(default_factory=dict)

    @classmethod
    def from_md2url(cls, mapping: cabc.Mapping[str, str]) -> Sitemap:
        """Build a sitemap from a plain path-to-URL mapping.

        >>> Sitemap.from_md2url({"guides/setup.md": "/guides/setup"}).url2md
        {'/guides/setup': 'guides/setup.md'}
        """
        sitemap = cls()
        for file, url in mapping.items():
            sitemap.add(SitemapPage(title=file, url=url, file=file))
        return sitemap

    def add(self, page: SitemapPage) -> None:
        self.md2url[page.file] = page.url
        self.url2md[page.url] = page.file
        self.pages[page.url] = page

    def title_for(self, url: str) -> str:
        page = self.pages.get(url)
        return page.title if page else url


def parse_sitemap_line(line: str) -> SitemapPage | None:
    """Parse ``"Title [url, file.md]"``; return ``None`` when it does not match.

    >>> parse_sitemap_line("Setup [setup, guides/setup.md]")
    SitemapPage(title='Setup', url='setup', file='guides/setup.md')
    """
    match = SITEMAP_LINE_PATTERN.match(line.strip())
    if match is None:
        return None
    title, url, file = (part.strip() for part in match.groups())
    return SitemapPage(title=title, url=url, file=file)


def build_full_url(parent_url: str, url: str) -> str:
    """Resolve ``url`` against ``parent_url`` unless it is already absolute.

    >>> build_full_url("/guides", "setup")
    '/guides/setup'
    >>> build_full_url("/guides", "/faq")
    '/faq'
    """
    if url.startswith("/"):
        return url
    return f"{parent_url.rstrip('/')}/{url}"


def _collect(items: cabc.Iterable[typ.Any], parent_url: str, sitemap: Sitemap) -> None:
    for item in items:
        match item:
            case str():
                line, children = item, []
            case dict() if len(item) == 1:
                line, children = next(iter(item.items()))
                children = children or []
            case _:
                logger.warning("Skipping unsupported sitemap entry: %r", item)
                continue
        parsed = parse_sitemap_line(str(line))
        if parsed is None:
            logger.warning("Could not parse sitemap line: %s", line)
            continue
        page = dc.replace(parsed, url=build_full_url(parent_url, parsed.url))
        sitemap.add(page)
        _collect(children, page.url, sitemap)


def load_sitemap(path: Path) -> Sitemap:
    """Load ``path`` into a :class:`Sitemap`.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    SiteConfigError
        If the file has no ``sitemap`` list.
    """
    if not path.exists():
        msg = f"Sitemap file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    items = loaded.get("sitemap") if isinstance(loaded, dict) else None
    if not isinstance(items, list):
        msg = f"Sitemap file '{path}' must define a 'sitemap' list."
        raise SiteConfigError(msg)

    sitemap = Sitemap()
    _collect(items, "", sitemap)
    logger.debug("Loaded %d sitemap pages from %s", len(sitemap.pages), path)
    return sitemap


def load_mapping(path: Path) -> dict[str, str]:
    """Load a flat JSON object mapping such as the image or asset mapping.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    SiteConfigError
        If the JSON document is not an object.
    """
    if not path.exists():
        msg = f"Mapping file '{path}' not found."
        raise FileNotFoundError(msg)
    content = path.read_text(encoding="utf-8")
    if not content.strip():
        return {}
    loaded = json.loads(content)
    if not isinstance(loaded, dict):
        msg = f"Mapping file '{path}' must contain a JSON object."
        raise SiteConfigError(msg)
    return {str(key): str(value) for key, value in loaded.items()}


__all__ = [
    "Sitemap",
    "SitemapPage",
    "build_full_url",
    "load_mapping",
    "load_sitemap",
    "parse_sitemap_line",
]
