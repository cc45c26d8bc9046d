"""Build static HTML sites from sitemap-indexed Markdown documents.

This package renders each document with hierarchical heading anchors,
resolves links between documents (rendering link targets on demand so their
anchors are known), and writes minimal HTML5 pages through a Jinja template.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from mdsite import main
>>> main()  # doctest: +SKIP
>>> from mdsite import app
>>> app.name[0]
'mdsite'
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
