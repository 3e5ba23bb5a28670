"""HTML escaping and sanitized content kinds.

Executed into a sandbox context after ``strings.py``; not imported.
Strict autoescaping templates return ``SanitizedContent`` instead of ``str``.
"""

import html as _html
from urllib.parse import quote as _quote

_ESCAPE_TABLE = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#39;",
    }
)

_SAFE_URI_SCHEMES = ("http:", "https:", "mailto:", "ftp:")


class ContentKind:
    HTML = "html"
    ATTRIBUTES = "attributes"
    URI = "uri"
    TEXT = "text"
    CSS = "css"
    JS = "js"


class SanitizedContent:
    """Text already known to be safe in the context named by ``content_kind``."""

    content_kind = None

    def __init__(self, content=""):
        self.content = content

    def __str__(self):
        return self.content

    def __repr__(self):
        return f"{type(self).__name__}({self.content!r})"

    def __eq__(self, other):
        if isinstance(other, SanitizedContent):
            return (self.content_kind, self.content) == (other.content_kind, other.content)
        return NotImplemented

    def __hash__(self):
        return hash((self.content_kind, self.content))


class SanitizedHtml(SanitizedContent):
    content_kind = ContentKind.HTML


class SanitizedHtmlAttribute(SanitizedContent):
    content_kind = ContentKind.ATTRIBUTES


class SanitizedUri(SanitizedContent):
    content_kind = ContentKind.URI


class SanitizedText(SanitizedContent):
    content_kind = ContentKind.TEXT


_KINDS = {
    ContentKind.HTML: SanitizedHtml,
    ContentKind.ATTRIBUTES: SanitizedHtmlAttribute,
    ContentKind.URI: SanitizedUri,
    ContentKind.TEXT: SanitizedText,
}


def ordain_content(content, kind=ContentKind.HTML):
    """Mark ``content`` as safe for ``kind`` without escaping it."""
    return _KINDS.get(kind, SanitizedHtml)(str(content))


def escape_html(value):
    if value is None:
        return ""
    if isinstance(value, SanitizedHtml):
        return value.content
    return str(value).translate(_ESCAPE_TABLE)


def unescape_html(value):
    return _html.unescape(str(value))


def escape_uri(value):
    return _quote(str(value), safe="")


def filter_normalize_uri(value):
    """Allow only well-known schemes or relative URIs; neutralize the rest."""
    if isinstance(value, SanitizedUri):
        return value.content
    text = str(value)
    scheme, sep, _ = text.partition(":")
    if sep and "/" not in scheme and not text.lower().startswith(_SAFE_URI_SCHEMES):
        return "about:invalid#zSoyz"
    return _quote(text, safe="/:?#[]@!$&'()*+,;=%-._~")
