"""Minimal HTML5 serialization of rendered Markdown.

The serializer works on the HTML string produced by Python-Markdown and
applies three deterministic rewrites:

* a line break between two tags is removed when either tag is block-level
  and becomes a single space between inline tags, except inside ``<pre>``
  blocks;
* start tags are re-emitted with ``class`` first and attribute values left
  unquoted wherever HTML5 allows it;
* optional end tags are dropped according to :data:`END_TAG_OMISSIONS` and
  :data:`END_TAG_PARENTS`.

Example
-------
>>> HtmlSerializer().serialize('<ul class="a">\\n<li>one</li>\\n<li>two</li>\\n</ul>')
'<ul class=a><li>one<li>two</li></ul>'
"""

from __future__ import annotations

import re

TAG_PATTERN = re.compile(
    r"<(?P<closing>/?)(?P<name>[A-Za-z][A-Za-z0-9-]*)"
    r"(?P<attrs>(?:\s+[^\s\"'>/=]+(?:\s*=\s*(?:\"[^\"]*\"|'[^']*'|[^\s\"'=<>`]+))?)*)"
    r"\s*/?>"
)
TAG_NAME_PATTERN = re.compile(r"</?([A-Za-z][A-Za-z0-9-]*)")
ATTRIBUTE_PATTERN = re.compile(
    r"(?P<name>[^\s\"'>/=]+)"
    r"(?:\s*=\s*(?:\"(?P<dq>[^\"]*)\"|'(?P<sq>[^']*)'|(?P<bare>[^\s\"'=<>`]+)))?"
)
PRE_BLOCK_PATTERN = re.compile(r"<pre\b.*?</pre>", re.DOTALL | re.IGNORECASE)
PRE_PLACEHOLDER_PATTERN = re.compile("<\x00(\\d+)\x00>")
INTER_TAG_BREAK_PATTERN = re.compile(r"(?<=>)\s*\n\s*(?=<)")
BR_TRAILING_SPACE_PATTERN = re.compile(r"(<br\s*/?>)\s+", re.IGNORECASE)
TEMPLATE_EXPRESSION_PATTERN = re.compile(r"\{\{.*?\}\}")
UNQUOTED_VALUE_PATTERN = re.compile(r"[A-Za-z0-9/_.:-]+")

BLOCK_TAGS = frozenset(
    {
        "address", "article", "aside", "blockquote", "body", "caption",
        "dd", "details", "div", "dl", "dt", "fieldset", "figcaption",
        "figure", "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6",
        "head", "header", "hr", "html", "li", "main", "nav", "ol", "p",
        "pre", "section", "summary", "table", "tbody", "td", "tfoot", "th",
        "thead", "tr", "ul",
    }
)
VOID_TAGS = frozenset(
    {
        "area", "base", "br", "col", "embed", "hr", "img", "input", "link",
        "meta", "source", "track", "wbr",
    }
)

# End tag -> following tags (``/name`` for end tags) that make it optional.
END_TAG_OMISSIONS: dict[str, frozenset[str]] = {
    "li": frozenset({"li"}),
    "p": frozenset({"/li", "ul", "ol"}),
    "dt": frozenset({"dt", "dd"}),
    "dd": frozenset({"dt", "dd"}),
    "thead": frozenset({"tbody", "/table"}),
    "tbody": frozenset({"/table"}),
    "tr": frozenset({"tr", "/thead", "/tbody"}),
    "th": frozenset({"th", "td", "/tr"}),
    "td": frozenset({"th", "td", "/tr"}),
}
# End tag -> parent elements it may be omitted in.
END_TAG_PARENTS: dict[str, frozenset[str]] = {
    "p": frozenset({"li"}),
}


def format_attribute(name: str, value: str | None) -> str:
    """Return ``name=value`` with quotes only where HTML5 requires them.

    >>> format_attribute("class", "article__link")
    'class=article__link'
    >>> format_attribute("class", "article__list article__list_ordered")
    'class="article__list article__list_ordered"'
    >>> format_attribute("allowfullscreen", None)
    'allowfullscreen'
    """
    if value is None:
        return name
    masked = TEMPLATE_EXPRESSION_PATTERN.sub("x", value)
    if value and UNQUOTED_VALUE_PATTERN.fullmatch(masked):
        return f"{name}={value}"
    escaped = value.replace('"', "&quot;")
    return f'{name}="{escaped}"'


def parse_attributes(source: str) -> list[tuple[str, str | None]]:
    """Split the attribute section of a start tag into ``(name, value)`` pairs."""
    pairs: list[tuple[str, str | None]] = []
    for match in ATTRIBUTE_PATTERN.finditer(source):
        if match.group("dq") is not None:
            value: str | None = match.group("dq")
        elif match.group("sq") is not None:
            value = match.group("sq")
        else:
            value = match.group("bare")
        pairs.append((match.group("name"), value))
    return pairs


def _is_block_boundary(tag: re.Match[str] | None) -> bool:
    # Stashed <pre> placeholders carry no tag name.
    return tag is None or tag.group(1).lower() in BLOCK_TAGS


def _inter_tag_whitespace(match: re.Match[str]) -> str:
    html = match.string
    start = html.rfind("<", 0, match.start())
    before = TAG_NAME_PATTERN.match(html, start) if start >= 0 else None
    after = TAG_NAME_PATTERN.match(html, match.end())
    if _is_block_boundary(before) or _is_block_boundary(after):
        return ""
    return " "


def _close_element(open_elements: list[str], name: str) -> None:
    if name not in open_elements:
        return
    while open_elements.pop() != name:
        pass


class HtmlSerializer:
    """Serialize rendered HTML into its minimal HTML5 form."""

    def serialize(self, html: str) -> str:
        """Return ``html`` with whitespace, attributes and end tags minimized."""
        collapsed = self._collapse_whitespace(html)
        tags = list(TAG_PATTERN.finditer(collapsed))
        parts: list[str] = []
        open_elements: list[str] = []
        cursor = 0
        for index, match in enumerate(tags):
            parts.append(collapsed[cursor : match.start()])
            cursor = match.end()
            name = match.group("name").lower()
            if match.group("closing"):
                _close_element(open_elements, name)
                parent = open_elements[-1] if open_elements else None
                if not self._end_tag_optional(name, parent, collapsed, tags, index):
                    parts.append(f"</{name}>")
                continue
            if name not in VOID_TAGS:
                open_elements.append(name)
            parts.append(self._format_start_tag(name, match.group("attrs")))
        parts.append(collapsed[cursor:])
        return "".join(parts)

    @staticmethod
    def _collapse_whitespace(html: str) -> str:
        blocks: list[str] = []

        def _stash(match: re.Match[str]) -> str:
            blocks.append(match.group(0))
            return f"<\x00{len(blocks) - 1}\x00>"

        masked = PRE_BLOCK_PATTERN.sub(_stash, html)
        masked = INTER_TAG_BREAK_PATTERN.sub(_inter_tag_whitespace, masked)
        masked = BR_TRAILING_SPACE_PATTERN.sub(r"\1", masked)
        return PRE_PLACEHOLDER_PATTERN.sub(
            lambda match: blocks[int(match.group(1))], masked
        )

    @staticmethod
    def _format_start_tag(name: str, attrs_source: str) -> str:
        attributes = parse_attributes(attrs_source)
        ordered = [pair for pair in attributes if pair[0] == "class"]
        ordered.extend(pair for pair in attributes if pair[0] != "class")
        if not ordered:
            return f"<{name}>"
        rendered = " ".join(format_attribute(key, value) for key, value in ordered)
        return f"<{name} {rendered}>"

    @staticmethod
    def _end_tag_optional(
        name: str,
        parent: str | None,
        html: str,
        tags: list[re.Match[str]],
        index: int,
    ) -> bool:
        followers = END_TAG_OMISSIONS.get(name)
        if not followers or index + 1 >= len(tags):
            return False
        parents = END_TAG_PARENTS.get(name)
        if parents is not None and parent not in parents:
            return False
        current, following = tags[index], tags[index + 1]
        if html[current.end() : following.start()].strip():
            return False
        key = following.group("name").lower()
        if following.group("closing"):
            key = f"/{key}"
        return key in followers


__all__ = [
    "END_TAG_OMISSIONS",
    "END_TAG_PARENTS",
    "HtmlSerializer",
    "format_attribute",
    "parse_attributes",
]
