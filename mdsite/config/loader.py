"""Load site configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from .models import SiteConfig, SiteConfigError

PATH_KEYS = ("content_dir", "output_dir", "image_mapping", "asset_mapping", "templates_dir")


def _resolve(base_dir: Path, value: typ.Any) -> Path:
    path = Path(str(value))
    return path if path.is_absolute() else base_dir / path


def load_site_config(path: Path) -> SiteConfig:
    """Load the YAML configuration describing a site build.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML configuration file (for example,
        ``mdsite.yaml``).

    Returns
    -------
    SiteConfig
        Parsed configuration with paths resolved against the directory that
        contains ``path``.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    TypeError
        If the top-level YAML structure is not a mapping.
    SiteConfigError
        If the required ``sitemap`` entry is missing or a value has the wrong
        type.
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from pathlib import Path
    >>> from mdsite.config import load_site_config
    >>> config = load_site_config(Path("mdsite.yaml"))  # doctest: +SKIP
    >>> config.sitemap.name  # doctest: +SKIP
    'sitemap.yaml'
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    raw: dict[str, typ.Any] = dict(loaded)

    base_dir = path.parent
    sitemap = raw.get("sitemap")
    if not sitemap:
        msg = f"Configuration file '{path}' must define 'sitemap'."
        raise SiteConfigError(msg)

    optional_paths = {
        key: _resolve(base_dir, raw[key]) for key in PATH_KEYS if raw.get(key)
    }
    for key in ("site_name", "site_url", "pygments_style", "language"):
        value = raw.get(key)
        if value is not None and not isinstance(value, str):
            msg = f"Configuration key '{key}' must be a string."
            raise SiteConfigError(msg)

    defaults = SiteConfig(sitemap=_resolve(base_dir, sitemap))
    return SiteConfig(
        sitemap=defaults.sitemap,
        content_dir=optional_paths.get("content_dir", base_dir / defaults.content_dir),
        output_dir=optional_paths.get("output_dir", base_dir / defaults.output_dir),
        site_name=raw.get("site_name") or defaults.site_name,
        site_url=(raw.get("site_url") or defaults.site_url).rstrip("/"),
        image_mapping=optional_paths.get("image_mapping"),
        asset_mapping=optional_paths.get("asset_mapping"),
        templates_dir=optional_paths.get("templates_dir"),
        pygments_style=raw.get("pygments_style") or defaults.pygments_style,
        language=raw.get("language") or defaults.language,
    )
