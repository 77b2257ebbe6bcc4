"""
Change log HTML sanitizer

Allowlist filter applied to change log descriptions on write and again
before they are returned for display, since stored rows may predate the
current rule set.
"""

import html
import re
from html.parser import HTMLParser
from typing import List, Optional, Tuple

from app.core.logging import logger

ALLOWED_TAGS = frozenset({
    "a", "p", "br", "strong", "b", "em", "i", "u",
    "ul", "ol", "li", "code", "pre",
    "h1", "h2", "h3", "blockquote", "div", "span",
})
VOID_TAGS = frozenset({"br"})
SAFE_HREF = re.compile(r"^(https?:|mailto:|#)", re.IGNORECASE)


class _AllowlistSanitizer(HTMLParser):
    """
    Streams allowed markup to `out`.

    Disallowed elements are unwrapped: their tags vanish and their
    children are emitted in place. Open allowed elements are tracked so
    the output is always balanced.
    """

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.out: List[str] = []
        self.stack: List[str] = []

    def _open(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        href = None
        if tag == "a":
            for name, value in attrs:
                if name == "href" and value is not None and SAFE_HREF.match(value.strip()):
                    href = value.strip()
                    break

        if href is not None:
            self.out.append(f'<a href="{html.escape(href, quote=True)}">')
        else:
            self.out.append(f"<{tag}>")

    def handle_starttag(self, tag, attrs):
        if tag not in ALLOWED_TAGS:
            return
        self._open(tag, attrs)
        if tag not in VOID_TAGS:
            self.stack.append(tag)

    def handle_startendtag(self, tag, attrs):
        if tag not in ALLOWED_TAGS:
            return
        self._open(tag, attrs)
        if tag not in VOID_TAGS:
            self.out.append(f"</{tag}>")

    def handle_endtag(self, tag):
        if tag not in ALLOWED_TAGS or tag in VOID_TAGS or tag not in self.stack:
            return
        while self.stack:
            open_tag = self.stack.pop()
            self.out.append(f"</{open_tag}>")
            if open_tag == tag:
                break

    def handle_data(self, data):
        self.out.append(html.escape(data, quote=False))

    def close(self):
        super().close()
        while self.stack:
            self.out.append(f"</{self.stack.pop()}>")


class _TextCollector(HTMLParser):
    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.parts: List[str] = []

    def handle_data(self, data):
        self.parts.append(data)


def sanitize_html(markup: Optional[str]) -> str:
    """
    Restrict an HTML fragment to the allowlist.

    Only `href` on anchors survives, and only for http(s):, mailto: and
    same-page fragments. An anchor with a rejected href is kept without
    the attribute.

    Args:
        markup: Untrusted HTML fragment

    Returns:
        Sanitized HTML; "" for empty or unparseable input
    """
    if not markup or not isinstance(markup, str):
        return ""

    try:
        parser = _AllowlistSanitizer()
        parser.feed(markup)
        parser.close()
        return "".join(parser.out)
    except Exception as e:
        logger.warning(f"[SANITIZER] Discarding unparseable HTML: {e}")
        return ""


def html_to_plain_text(markup: Optional[str]) -> str:
    """
    Visible text of an HTML fragment.

    Args:
        markup: HTML fragment, sanitized or not

    Returns:
        Concatenated text content
    """
    if not markup or not isinstance(markup, str):
        return ""

    try:
        collector = _TextCollector()
        collector.feed(markup)
        collector.close()
        return "".join(collector.parts)
    except Exception as e:
        logger.warning(f"[SANITIZER] Failed to extract text: {e}")
        return ""


def has_visible_text(markup: Optional[str]) -> bool:
    """True when the fragment renders some non-blank text."""
    text = html_to_plain_text(markup).replace("\u200b", "")
    return bool(text.strip())
