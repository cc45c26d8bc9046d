"""Common literal values used across mdsite.

These constants keep URL placeholders, class names, and file-extension rules
centralized so the renderer, the build driver, and tests import the same
values without drifting. Intended for internal use within the mdsite package.

Examples
--------
>>> from mdsite import _constants
>>> _constants.HEADING_CLASS_TEMPLATE.format(level=2)
'article__heading article__heading_level_2'
>>> ".php" in _constants.DISALLOWED_LINK_EXTENSIONS
True
"""

STANDALONE_URL = "__current__"
STANDALONE_SOURCE = "<standalone>"
PAGE_TEMPLATE = "page.jinja"
INDEX_FILENAME = "index.html"

EXTERNAL_SCHEMES = ("http://", "https://", "mailto:")
DISALLOWED_LINK_EXTENSIONS = (".html", ".php", ".asp", ".jsp")
MARKDOWN_EXTENSION = ".md"

HEADING_CLASS_TEMPLATE = "article__heading article__heading_level_{level}"
HEADING_ANCHOR_CLASS = "article__heading-anchor"
CODE_CLASS = "article__code"
CODE_COPY_CLASS = "article__code-copy"

YOUTUBE_EMBED_URL = "https://www.youtube.com/embed/{video_id}?rel=0&modestbranding=1"
