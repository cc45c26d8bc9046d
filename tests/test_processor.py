"""Tests for on-demand cross-document rendering and cycle handling."""

from __future__ import annotations

import logging
import typing as typ
from urllib.parse import quote

import pytest
from bs4 import BeautifulSoup

from mdsite.errors import ReferenceCycleError, UnresolvedLinkError
from mdsite.renderer import DocumentProcessor, RenderOutcome
from mdsite.sitemap import Sitemap

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from pytest_mock import MockerFixture


def _loader(sources: dict[str, str]) -> cabc.Callable[[str], str]:
    def _load(source_path: str) -> str:
        try:
            return sources[source_path]
        except KeyError:
            raise FileNotFoundError(source_path) from None

    return _load


def _processor(sources: dict[str, str], md2url: dict[str, str]) -> DocumentProcessor:
    return DocumentProcessor(
        Sitemap.from_md2url(md2url), source_loader=_loader(sources)
    )


def _hrefs(html: str) -> list[str]:
    soup = BeautifulSoup(html, "html.parser")
    return [a["href"] for a in soup.select("a.article__link")]


SETUP_AND_FAQ = {
    "guides/setup.md": "/guides/setup",
    "faq/common.md": "/faq/common",
}


def test_link_target_is_rendered_on_demand() -> None:
    processor = _processor(
        {
            "guides/setup.md": (
                "# Setup\n\nSee [questions](../faq/common.md#configuration).\n"
            ),
            "faq/common.md": "# FAQ\n\n## Configuration\n",
        },
        SETUP_AND_FAQ,
    )
    document = processor.process("/guides/setup")
    assert _hrefs(document.html) == ["/faq/common#faq-configuration"]
    assert processor.state.completed == {"/guides/setup", "/faq/common"}
    assert list(processor.state.documents) == ["/faq/common", "/guides/setup"]


@pytest.mark.parametrize(
    "fragment",
    ["настройкаконфигурация", quote("настройкаконфигурация")],
)
def test_cyrillic_fragments_map_to_canonical_anchor(fragment: str) -> None:
    processor = _processor(
        {
            "guides/setup.md": f"# Setup\n\n[config](../faq/common.md#{fragment})\n",
            "faq/common.md": "# Вопросы\n\n## Настройка/Конфигурация\n",
        },
        SETUP_AND_FAQ,
    )
    document = processor.process("/guides/setup")
    assert _hrefs(document.html) == ["/faq/common#вопросы-настройка-конфигурация"]


def test_reference_cycle_terminates() -> None:
    processor = _processor(
        {
            "a.md": "# A\n\n## X\n\n[to b](b.md#y)\n",
            "b.md": "# B\n\n## Y\n\n[to a](a.md#x)\n",
        },
        {"a.md": "/a", "b.md": "/b"},
    )
    documents = processor.render_all()
    assert list(documents) == ["/a", "/b"]
    assert _hrefs(documents["/a"].html) == ["/b#b-y"]
    assert _hrefs(documents["/b"].html) == ["/a#x"]


def test_process_rejects_url_already_in_progress() -> None:
    processor = _processor({"a.md": "# A\n"}, {"a.md": "/a"})
    with pytest.raises(ReferenceCycleError, match="/a -> /a"):
        processor.process("/a", in_progress=("/a",))


def test_ensure_rendered_outcomes() -> None:
    processor = _processor({"a.md": "# A\n"}, {"a.md": "/a", "gone.md": "/gone"})
    assert processor.ensure_rendered("/a", ("/a",)) is RenderOutcome.CYCLE
    assert processor.ensure_rendered("/unknown", ()) is RenderOutcome.UNAVAILABLE
    assert processor.ensure_rendered("/gone", ()) is RenderOutcome.UNAVAILABLE
    assert processor.ensure_rendered("/a", ()) is RenderOutcome.COMPLETED
    assert processor.ensure_rendered("/a", ("/a",)) is RenderOutcome.COMPLETED


def test_missing_link_target_source_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    processor = _processor(
        {"a.md": "# A\n\n[to b](b.md#y)\n"},
        {"a.md": "/a", "b.md": "/b"},
    )
    with caplog.at_level(logging.WARNING, logger="mdsite.renderer.processor"):
        document = processor.process("/a")
    assert _hrefs(document.html) == ["/b#y"]
    assert any("b.md" in record.getMessage() for record in caplog.records)


def test_documents_are_rendered_once(mocker: MockerFixture) -> None:
    load = mocker.Mock(side_effect=_loader({"a.md": "# A\n\n## Part\n"}))
    processor = DocumentProcessor(
        Sitemap.from_md2url({"a.md": "/a"}), source_loader=load
    )
    first = processor.process("/a")
    assert processor.process("/a") is first
    load.assert_called_once_with("a.md")
    assert [heading.anchor for heading in first.headings] == ["a", "a-part"]


def test_unknown_markdown_link_is_fatal() -> None:
    processor = _processor({"a.md": "# A\n\n[gone](missing.md)\n"}, {"a.md": "/a"})
    with pytest.raises(UnresolvedLinkError, match="missing.md"):
        processor.render_all()


def test_builds_do_not_share_state() -> None:
    sources = {"a.md": "# A\n"}
    first = _processor(sources, {"a.md": "/a"})
    second = _processor(sources, {"a.md": "/a"})
    first.render_all()
    assert second.state.completed == set()
    assert first.state.anchor_maps["/a"].lookup("a") == "a"
