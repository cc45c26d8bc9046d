"""Behaviour tests for links between documents of one site.

These pytest-bdd scenarios build a small site with ``SiteBuilder`` and check
the written pages. The first proves that a GitHub-style Cyrillic fragment in
``guides/setup.md`` is mapped to the hierarchical anchor of a document that
appears later in the sitemap. The second proves that two documents linking to
each other terminate, with the back-link keeping its fragment as written.

Usage
-----
Run ``pytest tests/bdd/test_cross_document_links.py -v``. Everything is
written under ``tmp_path``; no network access is needed.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest
from bs4 import BeautifulSoup
from pytest_bdd import given, parsers, scenarios, then, when

from mdsite.builder import SiteBuilder, output_path_for
from mdsite.config import load_site_config

FEATURE_FILE = (
    Path(__file__).resolve().parents[2] / "features" / "cross_document_links.feature"
)
scenarios(FEATURE_FILE)


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


def _write_site(
    tmp_path: Path, sitemap: str, documents: dict[str, str]
) -> Path:
    content_dir = tmp_path / "content"
    for source, text in documents.items():
        path = content_dir / source
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    (tmp_path / "sitemap.yaml").write_text(sitemap, encoding="utf-8")
    config_path = tmp_path / "mdsite.yaml"
    config_path.write_text("sitemap: sitemap.yaml\n", encoding="utf-8")
    return config_path


def _article_links(scenario_state: dict[str, object], url: str) -> list[str]:
    output_dir = typ.cast("Path", scenario_state["output_dir"])
    html = output_path_for(output_dir, url).read_text(encoding="utf-8")
    soup = BeautifulSoup(html, "html.parser")
    return [a["href"] for a in soup.select("article a.article__link")]


@given("a site whose setup guide links to a question in the FAQ")
def given_faq_site(tmp_path: Path, scenario_state: dict[str, object]) -> None:
    """Write a site where the linking page precedes its target in the sitemap."""
    scenario_state["config_path"] = _write_site(
        tmp_path,
        "sitemap:\n"
        "  - Setup [/guides/setup, guides/setup.md]\n"
        "  - FAQ [/faq/common, faq/common.md]\n",
        {
            "guides/setup.md": (
                "# Установка\n\n"
                "См. [вопрос](../faq/common.md#настройкаконфигурация).\n"
            ),
            "faq/common.md": "# Вопросы\n\n## Настройка/Конфигурация\n\nОтвет.\n",
        },
    )


@given("a site whose two pages link to each other's sections")
def given_cyclic_site(tmp_path: Path, scenario_state: dict[str, object]) -> None:
    """Write two documents whose sections reference each other."""
    scenario_state["config_path"] = _write_site(
        tmp_path,
        "sitemap:\n  - A [/a, a.md]\n  - B [/b, b.md]\n",
        {
            "a.md": "# A\n\n## X\n\nSee [y](b.md#y).\n",
            "b.md": "# B\n\n## Y\n\nSee [x](a.md#x).\n",
        },
    )


@when("I build the site")
def when_build_site(scenario_state: dict[str, object]) -> None:
    """Run the builder for the configured site."""
    config = load_site_config(typ.cast("Path", scenario_state["config_path"]))
    scenario_state["output_dir"] = config.output_dir
    scenario_state["written"] = SiteBuilder(config).run()


@then(parsers.parse('the setup page links to "{href}"'))
def then_setup_links(scenario_state: dict[str, object], href: str) -> None:
    """Verify the cross-document link uses the hierarchical anchor."""
    assert _article_links(scenario_state, "/guides/setup") == [href], (
        "expected the GitHub-style fragment to map to the hierarchical anchor"
    )


@then(parsers.parse('the FAQ heading carries the id "{anchor}"'))
def then_faq_heading(scenario_state: dict[str, object], anchor: str) -> None:
    """Verify the linked heading exposes the same anchor."""
    output_dir = typ.cast("Path", scenario_state["output_dir"])
    html = output_path_for(output_dir, "/faq/common").read_text(encoding="utf-8")
    soup = BeautifulSoup(html, "html.parser")
    heading = soup.find("h2")
    assert heading is not None
    assert heading["id"] == anchor


@then(parsers.parse('the first page links to "{href}"'))
def then_first_page_links(scenario_state: dict[str, object], href: str) -> None:
    """Verify the forward link resolved through the rendered target."""
    assert _article_links(scenario_state, "/a") == [href]


@then(parsers.parse('the second page links to "{href}"'))
def then_second_page_links(scenario_state: dict[str, object], href: str) -> None:
    """Verify the back-link left inside the cycle keeps its fragment."""
    assert _article_links(scenario_state, "/b") == [href]
