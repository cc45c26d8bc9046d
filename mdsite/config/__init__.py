"""Load and validate the YAML configuration of an mdsite build.

:func:`load_site_config` reads ``mdsite.yaml``, resolves every configured
path against the configuration file's directory, and returns a
:class:`SiteConfig` that the site builder consumes.

Examples
--------
>>> from pathlib import Path
>>> from mdsite.config import load_site_config
>>> site = load_site_config(Path("mdsite.yaml"))  # doctest: +SKIP
>>> site.output_dir.name  # doctest: +SKIP
'public'
"""

from .loader import load_site_config
from .models import SiteConfig, SiteConfigError

__all__ = ["SiteConfig", "SiteConfigError", "load_site_config"]
