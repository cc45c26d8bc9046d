"""Typed state threaded through a single document render."""

from __future__ import annotations

import dataclasses as dc
import enum
import posixpath
import typing as typ

from mdsite._constants import STANDALONE_URL
from mdsite.renderer.anchors import AnchorMap, HeadingTracker

if typ.TYPE_CHECKING:
    from mdsite.renderer.processor import RenderedDocument
    from mdsite.sitemap import Sitemap


class RenderOutcome(enum.Enum):
    """Result of asking the orchestrator to render a document on demand."""

    COMPLETED = "completed"
    CYCLE = "cycle"
    UNAVAILABLE = "unavailable"


class DocumentRenderer(typ.Protocol):
    """Orchestrator surface used by the link resolver."""

    def ensure_rendered(
        self, url: str, in_progress: tuple[str, ...]
    ) -> RenderOutcome: ...


@dc.dataclass(slots=True)
class ProcessingState:
    """Build-scoped record of finished documents and their anchor maps.

    Attributes
    ----------
    completed : set[str]
        URLs whose render finished.
    anchor_maps : dict[str, AnchorMap]
        Published anchor maps keyed by URL; present only for completed URLs.
    documents : dict[str, RenderedDocument]
        Rendered output keyed by URL.
    reported_images : set[str]
        Unmapped image paths already warned about in this build.
    """

    completed: set[str] = dc.field(default_factory=set)
    anchor_maps: dict[str, AnchorMap] = dc.field(default_factory=dict)
    documents: dict[str, RenderedDocument] = dc.field(default_factory=dict)
    reported_images: set[str] = dc.field(default_factory=set)

    def publish(self, url: str, anchor_map: AnchorMap) -> None:
        """Expose ``anchor_map`` to other documents and mark ``url`` completed."""
        self.anchor_maps[url] = anchor_map
        self.completed.add(url)


def _empty_sitemap() -> Sitemap:
    from mdsite.sitemap import Sitemap

    return Sitemap()


@dc.dataclass(slots=True)
class RenderContext:
    """Everything the Markdown pipeline needs to know about one render.

    A fresh context, and therefore a fresh :class:`HeadingTracker`, is built
    for every document so heading stacks and duplicate counters never leak
    between documents.
    """

    source_path: str
    url: str = STANDALONE_URL
    sitemap: Sitemap = dc.field(default_factory=_empty_sitemap)
    image_mapping: typ.Mapping[str, str] = dc.field(default_factory=dict)
    asset_mapping: typ.Mapping[str, str] = dc.field(default_factory=dict)
    site_url: str = ""
    state: ProcessingState = dc.field(default_factory=ProcessingState)
    in_progress: tuple[str, ...] = ()
    processor: DocumentRenderer | None = None
    tracker: HeadingTracker = dc.field(init=False)

    def __post_init__(self) -> None:
        self.tracker = HeadingTracker(self.source_path)

    @property
    def section(self) -> str | None:
        """First path segment of a nested source path, ``None`` at top level."""
        parts = self.source_path.split("/")
        return parts[0] if len(parts) > 1 else None

    @property
    def source_dir(self) -> str:
        return posixpath.dirname(self.source_path)


__all__ = [
    "DocumentRenderer",
    "ProcessingState",
    "RenderContext",
    "RenderOutcome",
]
