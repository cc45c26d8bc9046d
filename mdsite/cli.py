"""Cyclopts CLI entrypoint for building mdsite static sites.

The ``mdsite`` console script defined here renders every document listed in
the sitemap into ``<output>/<url>/index.html`` (``mdsite build``) or renders
them without writing to surface content errors early (``mdsite check``).
Typical usage runs ``mdsite check`` in CI on every change and ``mdsite build``
before deployment.

Examples
--------
Build the site described by the default configuration:

>>> from mdsite.cli import main
>>> main()  # doctest: +SKIP

Build into a custom directory:

>>> from mdsite.cli import app
>>> app(["build", "--output-dir", "dist"])  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .builder import SiteBuilder
from .config import load_site_config

DEFAULT_CONFIG = Path("mdsite.yaml")
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

app = App(name="mdsite", config=cyclopts.config.Env("MDSITE_", command=False))  # type: ignore[unknown-argument]


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT
    )


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


@app.command(help="Render every sitemap document into static HTML pages.")
def build(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="MDSITE_CONFIG")
    ] = DEFAULT_CONFIG,
    output_dir: typ.Annotated[
        Path | None,
        Parameter(help="Override the output folder", env_var="MDSITE_OUTPUT_DIR"),
    ] = None,
    verbose: typ.Annotated[
        bool, Parameter(help="Log every rendered document")
    ] = False,
) -> None:
    """Build the site described by ``config``.

    Parameters
    ----------
    config : Path, optional
        Path to the ``mdsite.yaml`` configuration file (overridable via
        ``MDSITE_CONFIG``).
    output_dir : Path or None, optional
        Override for the configured output directory.
    verbose : bool, optional
        Enable debug logging.

    Returns
    -------
    None
        Writes one ``index.html`` per document and prints each written path.

    Raises
    ------
    BuildError
        If any document contains a fatal content error; nothing further is
        written once it is raised.
    """
    _configure_logging(verbose=verbose)
    site_config = load_site_config(config)
    written = SiteBuilder(site_config, output_dir=output_dir).run()
    for path in written:
        print(f"wrote {_format_path(path)}")


@app.command(help="Render every document without writing, reporting content errors.")
def check(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="MDSITE_CONFIG")
    ] = DEFAULT_CONFIG,
    verbose: typ.Annotated[
        bool, Parameter(help="Log every rendered document")
    ] = False,
) -> None:
    """Render the site in memory and print a summary."""
    _configure_logging(verbose=verbose)
    documents = SiteBuilder(load_site_config(config)).check()
    print(f"checked {len(documents)} documents")


def main() -> None:
    """Invoke the Cyclopts application that powers the `mdsite` console command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
