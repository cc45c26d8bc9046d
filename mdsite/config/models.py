"""Typed dataclasses describing mdsite build configuration."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path


class SiteConfigError(ValueError):
    """Raised when the site configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class SiteConfig:
    """Resolved build settings.

    Every path is absolute or relative to the current working directory; the
    loader resolves configured paths against the configuration file's
    directory.
    """

    sitemap: Path
    content_dir: Path = Path("content")
    output_dir: Path = Path("public")
    site_name: str = "mdsite"
    site_url: str = ""
    image_mapping: Path | None = None
    asset_mapping: Path | None = None
    templates_dir: Path | None = None
    pygments_style: str = "monokai"
    language: str = "en"
