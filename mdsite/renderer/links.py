"""Resolve link, image and code-asset references against the site maps.

Links written for the hosting platform point at Markdown files and
GitHub-style fragments (``../faq/common.md#настройкаконфигурация``). The
:class:`LinkResolver` turns those into published URLs with canonical
hierarchical anchors, driving the orchestrator to render target documents on
demand when their anchors are not yet known.
"""

from __future__ import annotations

import enum
import logging
import posixpath
import re
import typing as typ
from urllib.parse import unquote

from mdsite._constants import (
    DISALLOWED_LINK_EXTENSIONS,
    EXTERNAL_SCHEMES,
    MARKDOWN_EXTENSION,
)
from mdsite.errors import DisallowedLinkError, UnresolvedLinkError
from mdsite.renderer.anchors import build_hierarchical_anchor
from mdsite.renderer.context import RenderOutcome

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from mdsite.renderer.anchors import AnchorMap
    from mdsite.renderer.context import RenderContext

logger = logging.getLogger(__name__)

HASHED_IMAGE_PATTERN = re.compile(
    r"^/[a-f0-9]{16}\.(png|jpg|jpeg|gif|svg|webp)$", re.IGNORECASE
)
DUPLICATE_SUFFIX_PATTERN = re.compile(r"-\d+$")
IMAGE_PASSTHROUGH_PREFIXES = ("http://", "https://", "data:", "//")


class LinkKind(enum.Enum):
    """Classification of an ``href`` found in a rendered document."""

    EXTERNAL = "external"
    ABSOLUTE = "absolute"
    DISALLOWED = "disallowed"
    SAME_PAGE_ANCHOR = "same_page_anchor"
    MARKDOWN = "markdown"
    ASSET = "asset"


def _split_target(href: str) -> tuple[str, str, str]:
    """Split ``href`` into path, query and fragment without normalising them."""
    path, _, fragment = href.partition("#")
    path, _, query = path.partition("?")
    return path, query, fragment


def classify_link(href: str) -> LinkKind:
    """Classify ``href``; the first matching rule wins.

    Examples
    --------
    >>> classify_link("https://example.com").name
    'EXTERNAL'
    >>> classify_link("../faq/common.md#setup").name
    'MARKDOWN'
    >>> classify_link("legacy/page.HTML").name
    'DISALLOWED'
    """
    if href.startswith(EXTERNAL_SCHEMES):
        return LinkKind.EXTERNAL
    if href.startswith("/"):
        return LinkKind.ABSOLUTE
    if href.startswith("#"):
        return LinkKind.SAME_PAGE_ANCHOR
    path, _query, _fragment = _split_target(href)
    if path.lower().endswith(DISALLOWED_LINK_EXTENSIONS):
        return LinkKind.DISALLOWED
    if path.endswith(MARKDOWN_EXTENSION):
        return LinkKind.MARKDOWN
    return LinkKind.ASSET


class LinkResolver:
    """Resolve references for the document described by ``context``."""

    def __init__(self, context: RenderContext) -> None:
        self.context = context

    def resolve_href(self, href: str, heading_path: cabc.Sequence[str] = ()) -> str:
        """Return the published form of a link target.

        Parameters
        ----------
        href : str
            Link target as written in the Markdown source.
        heading_path : Sequence[str], optional
            Heading stack at the link's position, used to synthesize anchors
            for same-page references that the anchor map does not know.

        Returns
        -------
        str
            Rewritten target, or ``href`` unchanged when nothing applies.

        Raises
        ------
        DisallowedLinkError
            If ``href`` is a relative link to an ``.html``-like file.
        UnresolvedLinkError
            If ``href`` names a Markdown file missing from the sitemap.
        """
        match classify_link(href):
            case LinkKind.EXTERNAL | LinkKind.ASSET:
                return self.context.asset_mapping.get(href, href)
            case LinkKind.ABSOLUTE:
                return href
            case LinkKind.DISALLOWED:
                self._raise_disallowed(href)
            case LinkKind.SAME_PAGE_ANCHOR:
                anchor = self.resolve_anchor(self.context.url, href[1:], heading_path)
                return f"#{anchor}" if anchor else href
            case LinkKind.MARKDOWN:
                return self._resolve_markdown(href)
        return href  # pragma: no cover - every LinkKind is handled above

    def resolve_source(self, target: str) -> str:
        """Return the sitemap key a relative ``.md`` target refers to.

        Raises
        ------
        UnresolvedLinkError
            If no sitemap entry matches ``target``.
        """
        md2url = self.context.sitemap.md2url
        if target.startswith("../"):
            parts = target.split("/")
            up_levels = parts.count("..")
            remainder = [part for part in parts if part != ".."]
            base = self.context.source_dir.split("/") if self.context.source_dir else []
            kept = base[: len(base) - up_levels] if up_levels <= len(base) else []
            candidate = "/".join([*kept, *remainder])
            if candidate in md2url:
                return candidate
            self._raise_unresolved(target, candidate)

        candidate = target.removeprefix("./")
        if candidate in md2url:
            return candidate
        section = self.context.section
        if section and f"{section}/{candidate}" in md2url:
            return f"{section}/{candidate}"

        basename = posixpath.basename(candidate)
        if section:
            for key in md2url:
                if key.startswith(f"{section}/") and posixpath.basename(key) == basename:
                    return key
        for key in md2url:
            if key == candidate or key.endswith(f"/{candidate}"):
                return key
        for key in md2url:
            if posixpath.basename(key) == basename:
                return key
        self._raise_unresolved(target, candidate)

    def resolve_anchor(
        self,
        url: str,
        fragment: str,
        heading_path: cabc.Sequence[str] = (),
    ) -> str | None:
        """Map a GitHub-style ``fragment`` of ``url`` to its canonical anchor.

        Returns ``None`` when the anchor cannot be resolved; such links are
        left as written.
        """
        if not fragment:
            return None
        anchor_map = self._anchor_map_for(url)
        if anchor_map is None and self._render_on_demand(url):
            anchor_map = self._anchor_map_for(url)
        if anchor_map is not None:
            found = anchor_map.lookup(fragment)
            if found:
                return found
        if url == self.context.url:
            return self._same_page_fallback(fragment, heading_path)
        return None

    def resolve_image(self, path: str) -> str:
        """Return the published reference for an image source path."""
        if not path or path.startswith(IMAGE_PASSTHROUGH_PREFIXES):
            return path
        if HASHED_IMAGE_PATTERN.match(path):
            return path

        mapping = self.context.image_mapping
        normalized = path.replace("\\", "/").lstrip("/")
        published = mapping.get(normalized)
        section = self.context.section
        if published is None and section:
            published = mapping.get(f"{section}/{normalized}")
        if published is None:
            filename = posixpath.basename(normalized)
            published = next(
                (
                    value
                    for key, value in mapping.items()
                    if key == filename or key.endswith(f"/{filename}")
                ),
                None,
            )
        if published is not None:
            return f"/{published.lstrip('/')}"

        reported = self.context.state.reported_images
        if normalized not in reported:
            reported.add(normalized)
            logger.warning(
                "Unmapped image %s in %s", path, self.context.source_path
            )
        return path

    def rewrite_code_assets(self, text: str) -> str:
        """Replace origin asset URLs in code text with their local URLs."""
        for origin, local in self.context.asset_mapping.items():
            if origin and origin in text:
                text = text.replace(origin, f"{self.context.site_url}{local}")
        return text

    def _resolve_markdown(self, href: str) -> str:
        path, query, fragment = _split_target(href)
        key = self.resolve_source(path)
        url = self.context.sitemap.md2url[key]
        resolved = f"{url}?{query}" if query else url
        if not fragment:
            return resolved
        anchor = self.resolve_anchor(url, fragment)
        if anchor is None:
            decoded = unquote(fragment)
            anchor = fragment if decoded.isascii() else decoded
        return f"{resolved}#{anchor}"

    def _anchor_map_for(self, url: str) -> AnchorMap | None:
        if url == self.context.url:
            return self.context.tracker.anchor_map
        return self.context.state.anchor_maps.get(url)

    def _render_on_demand(self, url: str) -> bool:
        state = self.context.state
        processor = self.context.processor
        if url in state.completed or processor is None:
            return False
        outcome = processor.ensure_rendered(url, self.context.in_progress)
        if outcome is RenderOutcome.CYCLE:
            logger.debug(
                "Reference cycle through %s while rendering %s",
                url,
                self.context.source_path,
            )
        return outcome is RenderOutcome.COMPLETED

    def _same_page_fallback(
        self, fragment: str, heading_path: cabc.Sequence[str]
    ) -> str | None:
        context_parts = [part for part in heading_path if part]
        if not context_parts:
            return None
        stem = DUPLICATE_SUFFIX_PATTERN.sub("", unquote(fragment))
        anchor = build_hierarchical_anchor([*context_parts, stem])
        if anchor and anchor != fragment:
            return anchor
        return None

    def _raise_unresolved(self, href: str, candidate: str) -> typ.NoReturn:
        source = self.context.source_path
        msg = (
            f'Unknown relative link in {source}: "{href}"\n'
            f'Markdown file "{candidate}" was not found in the sitemap.'
        )
        raise UnresolvedLinkError(msg, source_path=source)

    def _raise_disallowed(self, href: str) -> typ.NoReturn:
        source = self.context.source_path
        msg = f'Unknown relative link type in {source}: "{href}"'
        hint = (
            "Relative links to .html, .php, and similar files are not allowed. "
            "Use .md files or absolute URLs."
        )
        raise DisallowedLinkError(msg, source_path=source, hint=hint)


__all__ = ["LinkKind", "LinkResolver", "classify_link"]
