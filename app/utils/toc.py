"""
Table of Contents

Derives heading anchors from a block tree and reconciles them with
rendered heading markup produced by the block viewer.
"""

import html
from html.parser import HTMLParser
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from app.models.document import TocItem
from app.utils.text_processing import slugify_anchor

MIN_LEVEL = 1
MAX_LEVEL = 3
HEADING_TAGS = ("h1", "h2", "h3")


def _flatten_text(content: Any) -> str:
    """Concatenate the text of a block's inline content."""
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""

    parts = []
    for item in content:
        if isinstance(item, str):
            parts.append(item)
        elif isinstance(item, dict):
            text = item.get("text")
            if isinstance(text, str):
                parts.append(text)
            elif "content" in item:
                # links and other inline containers
                parts.append(_flatten_text(item["content"]))
    return "".join(parts)


def _heading_level(node: Dict[str, Any]) -> Optional[int]:
    props = node.get("props")
    if not isinstance(props, dict) or not props.get("level"):
        return None
    try:
        level = int(props["level"])
    except (TypeError, ValueError):
        return None
    return level if MIN_LEVEL <= level <= MAX_LEVEL else None


def extract_headings(blocks: Optional[Iterable[Any]]) -> List[TocItem]:
    """
    Build the table of contents for a block tree.

    Walks the tree depth-first (a block before its children, children
    before the next sibling) and keeps heading blocks of level 1-3.

    The first heading with a given base anchor keeps it; later ones get
    -2, -3, ... in order of appearance. Ids never repeat within a call.

    Args:
        blocks: Block list as produced by the editor, or None

    Returns:
        Ordered TOC items
    """
    if not isinstance(blocks, list):
        return []

    result: List[TocItem] = []
    occurrences: Dict[str, int] = {}
    issued: Set[str] = set()

    def walk(nodes: List[Any]) -> None:
        for node in nodes:
            if not isinstance(node, dict):
                continue

            if node.get("type") == "heading":
                level = _heading_level(node)
                if level is not None:
                    text = _flatten_text(node.get("content"))
                    base = slugify_anchor(text) or "section"

                    count = occurrences.get(base, 0) + 1
                    anchor = base if count == 1 else f"{base}-{count}"
                    while anchor in issued:
                        count += 1
                        anchor = f"{base}-{count}"
                    occurrences[base] = count
                    issued.add(anchor)

                    result.append(TocItem(
                        id=anchor,
                        text=text or f"Heading {len(result) + 1}",
                        level=level,
                    ))

            children = node.get("children")
            if isinstance(children, list) and children:
                walk(children)

    walk(blocks)
    return result


class HeadingAnchorReconciler:
    """
    Keeps rendered heading elements carrying the ids from the TOC.

    The viewer owns the markup and may re-mount nodes at any time, so
    `reconcile` is meant to run after every render and on every
    structural change notification. Elements are matched by position:
    the i-th rendered h1/h2/h3 gets the i-th TOC id.
    """

    def __init__(self, toc: Sequence[TocItem]):
        self.toc = list(toc)

    def reconcile(self, elements: Iterable[Any]) -> int:
        """
        Assign ids to rendered heading elements.

        Args:
            elements: Rendered h1/h2/h3 elements in document order, each
                exposing a writable `id` attribute

        Returns:
            Number of elements whose id changed
        """
        changed = 0
        for item, element in zip(self.toc, elements):
            if getattr(element, "id", None) != item.id:
                element.id = item.id
                changed += 1
        return changed

    def on_mutation(self, elements: Iterable[Any]) -> int:
        """Structural change notification from the rendering layer."""
        return self.reconcile(elements)


class _HeadingIdRewriter(HTMLParser):
    """Re-emits markup, overwriting the id of the first N headings."""

    def __init__(self, ids: List[str]):
        super().__init__(convert_charrefs=False)
        self.ids = ids
        self.index = 0
        self.out: List[str] = []

    def _render_tag(self, tag: str, attrs, close: bool) -> str:
        if tag in HEADING_TAGS and self.index < len(self.ids):
            attrs = [(k, v) for k, v in attrs if k != "id"] + [("id", self.ids[self.index])]
            self.index += 1
        rendered = "".join(
            f" {k}" if v is None else f' {k}="{html.escape(v, quote=True)}"'
            for k, v in attrs
        )
        return f"<{tag}{rendered}{' /' if close else ''}>"

    def handle_starttag(self, tag, attrs):
        self.out.append(self._render_tag(tag, attrs, close=False))

    def handle_startendtag(self, tag, attrs):
        self.out.append(self._render_tag(tag, attrs, close=True))

    def handle_endtag(self, tag):
        self.out.append(f"</{tag}>")

    def handle_data(self, data):
        self.out.append(data)

    def handle_entityref(self, name):
        self.out.append(f"&{name};")

    def handle_charref(self, name):
        self.out.append(f"&#{name};")

    def handle_comment(self, data):
        self.out.append(f"<!--{data}-->")

    def handle_decl(self, decl):
        self.out.append(f"<!{decl}>")


def assign_heading_ids(markup: str, toc: Sequence[TocItem]) -> str:
    """
    Post-render reconciliation pass over rendered HTML.

    Args:
        markup: HTML rendered from the document body
        toc: Items from `extract_headings` for the same body

    Returns:
        The markup with the first N h1/h2/h3 carrying the TOC ids
    """
    if not markup or not toc:
        return markup or ""

    rewriter = _HeadingIdRewriter([item.id for item in toc])
    rewriter.feed(markup)
    rewriter.close()
    return "".join(rewriter.out)
