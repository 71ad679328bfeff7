"""
Text formatting for values leaving the web service.

Projection functions never escape or sanitise text themselves; they hand
every user-authored string to a TextFormatter together with the context it
belongs to.
"""

import html
import re
from abc import ABC, abstractmethod
from html.parser import HTMLParser
from typing import List, Optional

from somapi_backend.model.access import Context
from somapi_backend.model.question import (
    FORMAT_HTML,
    FORMAT_MARKDOWN,
    FORMAT_MOODLE,
    FORMAT_PLAIN,
)


class TextFormatter(ABC):

    @abstractmethod
    def format_string(self, text: Optional[str], context: Optional[Context]) -> str:
        """Format a short single-line string (names, answer summaries) as plain text."""

    @abstractmethod
    def format_text(self, text: Optional[str], text_format: int, context: Optional[Context]) -> str:
        """Format a rich text field stored in ``text_format`` to safe HTML."""


TAG_RE = re.compile(r"<[^>]*>")
WHITESPACE_RE = re.compile(r"\s+")
PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")

# Browsers ignore whitespace and control characters inside a URL scheme
URL_IGNORED_CHARS_RE = re.compile(r"[\x00-\x20\x7f]+")
URL_SCHEME_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*):")

ALLOWED_TAGS = {
    "a", "abbr", "b", "blockquote", "br", "caption", "code", "div", "em",
    "h1", "h2", "h3", "h4", "h5", "h6", "hr", "i", "img", "li", "ol", "p",
    "pre", "span", "strong", "sub", "sup", "table", "tbody", "td", "tfoot",
    "th", "thead", "tr", "u", "ul",
}
VOID_TAGS = {"br", "hr", "img"}
# Removed together with everything inside them
DROP_CONTENT_TAGS = {"script", "style", "iframe", "object", "embed", "template", "noscript"}

ALLOWED_ATTRIBUTES = {
    "*": {"class", "title", "lang", "dir"},
    "a": {"href", "target"},
    "img": {"src", "alt", "width", "height"},
    "ol": {"start"},
    "td": {"colspan", "rowspan"},
    "th": {"colspan", "rowspan", "scope"},
}
URL_ATTRIBUTES = {"href", "src"}
SAFE_URL_SCHEMES = {"http", "https", "mailto"}


def is_safe_url(value: str) -> bool:
    """Relative URLs and http(s)/mailto URLs are safe; ``value`` must be entity-decoded."""
    match = URL_SCHEME_RE.match(URL_IGNORED_CHARS_RE.sub("", value))
    return match is None or match.group(1).lower() in SAFE_URL_SCHEMES


class HtmlCleaner(HTMLParser):
    """
    Rebuild HTML from allow-listed tags and attributes only.

    Comments, declarations and processing instructions are dropped because
    HTMLParser's default handlers ignore them. Attribute values arrive
    entity-decoded, so URL schemes are checked on what the browser will see.
    """

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.parts: List[str] = []
        self.dropping: List[str] = []

    def handle_starttag(self, tag, attrs):
        self._start(tag, attrs, closed=False)

    def handle_startendtag(self, tag, attrs):
        self._start(tag, attrs, closed=True)

    def _start(self, tag, attrs, closed):
        if tag in DROP_CONTENT_TAGS:
            if not closed:
                self.dropping.append(tag)
            return
        if self.dropping or tag not in ALLOWED_TAGS:
            return

        self.parts.append(f"<{tag}{self._attributes(tag, attrs)}>")
        if closed and tag not in VOID_TAGS:
            self.parts.append(f"</{tag}>")

    def handle_endtag(self, tag):
        if self.dropping:
            if tag == self.dropping[-1]:
                self.dropping.pop()
            return
        if tag in ALLOWED_TAGS and tag not in VOID_TAGS:
            self.parts.append(f"</{tag}>")

    def handle_data(self, data):
        if not self.dropping:
            self.parts.append(html.escape(data, quote=False))

    @staticmethod
    def _attributes(tag, attrs) -> str:
        allowed = ALLOWED_ATTRIBUTES["*"] | ALLOWED_ATTRIBUTES.get(tag, set())
        rendered = []
        for name, value in attrs:
            if name not in allowed:
                continue
            if value is None:
                rendered.append(f" {name}")
                continue
            if name in URL_ATTRIBUTES and not is_safe_url(value):
                continue
            rendered.append(f' {name}="{html.escape(value, quote=True)}"')
        return "".join(rendered)

    def clean(self, text: str) -> str:
        self.feed(text)
        self.close()
        return "".join(self.parts)


class HtmlTextFormatter(TextFormatter):
    """Formatter based on the standard library ``html`` module."""

    def format_string(self, text: Optional[str], context: Optional[Context] = None) -> str:
        if not text:
            return ""
        stripped = TAG_RE.sub(" ", text)
        stripped = html.unescape(stripped)
        return WHITESPACE_RE.sub(" ", stripped).strip()

    def format_text(self, text: Optional[str], text_format: int, context: Optional[Context] = None) -> str:
        if not text:
            return ""

        if text_format == FORMAT_HTML:
            return self.clean_html(text)
        if text_format == FORMAT_MARKDOWN:
            return self.paragraphs_to_html(text)
        if text_format in (FORMAT_PLAIN, FORMAT_MOODLE):
            return self.plain_to_html(text)

        # Unknown formats are treated as untrusted plain text
        return self.plain_to_html(text)

    @staticmethod
    def clean_html(text: str) -> str:
        """Keep allow-listed markup; drop scripts, handler attributes and unsafe URLs."""
        return HtmlCleaner().clean(text).strip()

    @staticmethod
    def plain_to_html(text: str) -> str:
        escaped = html.escape(text.strip(), quote=True)
        return escaped.replace("\r\n", "\n").replace("\n", "<br />")

    @staticmethod
    def paragraphs_to_html(text: str) -> str:
        paragraphs = [p.strip() for p in PARAGRAPH_SPLIT_RE.split(text.replace("\r\n", "\n")) if p.strip()]
        return "".join(
            f"<p>{html.escape(' '.join(p.split()), quote=True)}</p>" for p in paragraphs
        )
