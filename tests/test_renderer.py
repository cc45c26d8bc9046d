"""Tests for the Markdown pipeline: anchors, links, markup and validation."""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from mdsite.errors import DuplicateAnchorError, MalformedMarkdownError
from mdsite.renderer import HtmlContentRenderer, RenderContext
from mdsite.sitemap import Sitemap


@pytest.fixture(scope="module")
def renderer() -> HtmlContentRenderer:
    return HtmlContentRenderer()


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def test_headings_get_hierarchical_ids(renderer: HtmlContentRenderer) -> None:
    html = renderer.render("# 1. Overview\n\n## Setup\n\n### Requirements\n")
    soup = _soup(html)
    h1 = soup.find("h1")
    assert h1 is not None
    assert h1["id"] == "overview"
    assert h1["class"] == ["article__heading", "article__heading_level_1"]
    anchor = h1.find("a")
    assert anchor is not None
    assert anchor["href"] == "#overview"
    assert anchor["class"] == ["article__heading-anchor"]
    assert anchor.get_text() == "1. Overview"
    assert [h["id"] for h in soup.find_all(["h2", "h3"])] == [
        "overview-setup",
        "overview-setup-requirements",
    ]


def test_duplicate_headings_are_rejected(renderer: HtmlContentRenderer) -> None:
    with pytest.raises(DuplicateAnchorError, match="custom-id"):
        renderer.render("# Intro\n\ntext\n\n# Intro\n")


def test_custom_anchor_syntax(renderer: HtmlContentRenderer) -> None:
    soup = _soup(renderer.render("# Guide\n\n## Install {#setup-guide}\n"))
    h2 = soup.find("h2")
    assert h2 is not None
    assert h2["id"] == "setup-guide"
    assert h2.get_text() == "Install"


def test_same_page_links_resolve_forward_and_backward(
    renderer: HtmlContentRenderer,
) -> None:
    markdown = (
        "# Guide\n\n"
        "See [notes](#notes) and [missing](#details-2).\n\n"
        "## Notes\n\n"
        "Back to [top](#guide).\n"
    )
    soup = _soup(renderer.render(markdown))
    hrefs = [a["href"] for a in soup.select("a.article__link")]
    assert hrefs == ["#guide-notes", "#guide-details", "#guide"]


def test_article_classes(renderer: HtmlContentRenderer) -> None:
    markdown = (
        "Paragraph with [link](https://example.com).\n\n"
        "- one\n- two\n\n"
        "1. first\n2. second\n\n"
        "> quoted\n\n"
        "| A | B |\n| --- | --- |\n| 1 | 2 |\n"
    )
    soup = _soup(renderer.render(markdown))
    assert soup.select_one("p.article__paragraph") is not None
    assert soup.select_one("a.article__link")["href"] == "https://example.com"
    assert soup.select_one("ul.article__list") is not None
    assert soup.select_one("ol.article__list.article__list_ordered") is not None
    assert len(soup.select("li.article__list-item")) == 4
    assert soup.select_one("blockquote.article__blockquote") is not None
    assert soup.select_one("table.article__table") is not None
    assert soup.select_one("thead.article__table-head") is not None
    assert soup.select_one("tbody.article__table-body") is not None
    assert soup.select_one("th.article__table-cell.article__table-cell_header")
    assert soup.select_one("td.article__table-cell") is not None


def test_list_items_omit_end_tags(renderer: HtmlContentRenderer) -> None:
    html = renderer.render("- one\n- two\n")
    assert "one</li>" not in html
    assert "<li class=article__list-item>two</li></ul>" in html


def test_loose_list_paragraphs_are_unwrapped(renderer: HtmlContentRenderer) -> None:
    html = renderer.render("- one\n\n- two\n")
    assert html == (
        "<ul class=article__list><li class=article__list-item>one"
        "<li class=article__list-item>two</li></ul>"
    )


def test_typography_skips_code(renderer: HtmlContentRenderer) -> None:
    html = renderer.render("Мир — труд, `a — b`\n")
    assert "Мир\u00a0— труд" in html
    assert "<code>a — b</code>" in html


def test_fenced_code_gets_language_and_copy_button(
    renderer: HtmlContentRenderer,
) -> None:
    soup = _soup(renderer.render("```python\nprint('hi')\n```\n"))
    block = soup.select_one("div.article__code")
    assert block is not None
    assert block["data-language"] == "python"
    button = block.select_one("pre button.article__code-copy")
    assert button is not None
    assert button["aria-label"] == "Copy code to clipboard"
    assert soup.select("p div.article__code") == []


def test_video_embed(renderer: HtmlContentRenderer) -> None:
    soup = _soup(renderer.render("Intro\n\n@[youtube](dQw4w9WgXcQ)\n"))
    iframe = soup.select_one("div.video iframe.video__iframe")
    assert iframe is not None
    assert iframe["src"] == (
        "https://www.youtube.com/embed/dQw4w9WgXcQ?rel=0&modestbranding=1"
    )
    assert iframe.has_attr("allowfullscreen")
    assert soup.select("p div.video") == []


def test_images_use_mapping() -> None:
    context = RenderContext(
        source_path="guides/setup.md",
        url="/guides/setup",
        sitemap=Sitemap.from_md2url({"guides/setup.md": "/guides/setup"}),
        image_mapping={"guides/img/a.png": "0123456789abcdef.png"},
    )
    markdown = '![Diagram](img/a.png)\n\n<div><img src="img/a.png"></div>\n'
    soup = _soup(HtmlContentRenderer().render(markdown, context))
    images = soup.find_all("img")
    assert [img["src"] for img in images] == [
        "/0123456789abcdef.png",
        "/0123456789abcdef.png",
    ]
    assert images[0]["class"] == ["article__image"]


def test_code_assets_are_rewritten() -> None:
    context = RenderContext(
        source_path="index.md",
        asset_mapping={"https://cdn.example.com/lib.js": "/assets/lib.js"},
        site_url="https://site.example",
    )
    markdown = (
        "Use `https://cdn.example.com/lib.js`.\n\n"
        "```html\n<script src=\"https://cdn.example.com/lib.js\"></script>\n```\n"
    )
    html = HtmlContentRenderer().render(markdown, context)
    assert "cdn.example.com" not in html
    assert html.count("https://site.example/assets/lib.js") == 2


@pytest.mark.parametrize("text", ["", "   \n\t", None, 42])
def test_empty_or_non_text_input_is_rejected(
    renderer: HtmlContentRenderer, text: object
) -> None:
    with pytest.raises(MalformedMarkdownError):
        renderer.render(text)  # type: ignore[arg-type]


def test_unterminated_link_reports_line(renderer: HtmlContentRenderer) -> None:
    with pytest.raises(MalformedMarkdownError) as excinfo:
        renderer.render("Intro\n\nSee [broken link\n")
    assert excinfo.value.line == 3

    with pytest.raises(MalformedMarkdownError) as excinfo:
        renderer.render("[text](http://example.com\n")
    assert excinfo.value.line == 1


def test_brackets_inside_code_are_ignored(renderer: HtmlContentRenderer) -> None:
    html = renderer.render("```\n[not a link\n```\n\nUse `arr[0` here.\n")
    assert "[not a link" in html


def test_stylesheet_targets_code_class(renderer: HtmlContentRenderer) -> None:
    assert ".article__code" in renderer.stylesheet


def test_heading_anchor_wraps_only_leading_text() -> None:
    context = RenderContext(
        source_path="a.md",
        url="/a",
        sitemap=Sitemap.from_md2url({"a.md": "/a", "b.md": "/b"}),
    )
    soup = _soup(HtmlContentRenderer().render("# A\n\n## See [B](b.md)\n", context))
    assert soup.select("a.article__heading-anchor a") == []
    h2 = soup.find("h2")
    assert h2 is not None
    anchor = h2.select_one("a.article__heading-anchor")
    assert anchor is not None
    assert anchor.get_text() == "See "
    link = h2.select_one("a.article__link")
    assert link is not None
    assert link["href"] == "/b"


def test_heading_starting_with_markup_is_not_wrapped(
    renderer: HtmlContentRenderer,
) -> None:
    soup = _soup(renderer.render("# `mdsite` usage\n"))
    h1 = soup.find("h1")
    assert h1 is not None
    assert h1["id"] == "mdsite-usage"
    assert h1.select("a.article__heading-anchor") == []


def test_video_syntax_inside_indented_code_is_literal(
    renderer: HtmlContentRenderer,
) -> None:
    soup = _soup(renderer.render("Intro\n\n    @[youtube](dQw4w9WgXcQ)\n"))
    assert soup.find("iframe") is None
    block = soup.find("pre")
    assert block is not None
    assert "@[youtube](dQw4w9WgXcQ)" in block.get_text()


def test_soft_line_break_keeps_words_apart(renderer: HtmlContentRenderer) -> None:
    html = renderer.render("Some *emph*\n**bold** text\n")
    assert "<em>emph</em> <strong>bold</strong> text" in html


def test_paragraph_before_list_keeps_end_tag(renderer: HtmlContentRenderer) -> None:
    html = renderer.render("Intro text\n\n- one\n")
    assert "Intro text</p><ul class=article__list>" in html
