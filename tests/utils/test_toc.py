"""
Tests for heading extraction and anchor reconciliation
"""

from app.models.document import TocItem
from app.utils.toc import HeadingAnchorReconciler, assign_heading_ids, extract_headings


def _heading(text, level=1, children=None):
    block = {"type": "heading", "props": {"level": level}, "content": [{"type": "text", "text": text}]}
    if children:
        block["children"] = children
    return block


def test_getting_started_scenario(sample_blocks):
    """Duplicate titles get a numeric suffix, nested headings follow their parent"""
    toc = extract_headings(sample_blocks)

    assert [(item.id, item.text, item.level) for item in toc] == [
        ("getting-started", "Getting Started", 1),
        ("getting-started-2", "Getting Started", 2),
        ("install", "Install", 3),
    ]


def test_extract_headings_empty_input():
    assert extract_headings(None) == []
    assert extract_headings([]) == []
    assert extract_headings("not a list") == []


def test_duplicate_suffixes_increase():
    toc = extract_headings([_heading("Setup"), _heading("Setup"), _heading("Setup")])

    assert [item.id for item in toc] == ["setup", "setup-2", "setup-3"]


def test_suffix_collision_with_literal_heading():
    """A heading literally named "a-2" must not collide with the second "a" """
    toc = extract_headings([_heading("A"), _heading("A 2"), _heading("A")])

    ids = [item.id for item in toc]
    assert ids[0] == "a"
    assert ids[1] == "a-2"
    assert ids[2] not in ("a", "a-2")
    assert len(set(ids)) == len(ids)


def test_nested_headings_in_document_order():
    blocks = [
        {"type": "paragraph", "children": [_heading("Deep", 2, children=[_heading("Deeper", 3)])]},
        _heading("After", 1),
    ]

    assert [item.text for item in extract_headings(blocks)] == ["Deep", "Deeper", "After"]


def test_levels_outside_range_are_ignored():
    blocks = [
        {"type": "heading", "props": {"level": 4}, "content": "Too deep"},
        {"type": "heading", "props": {}, "content": "No level"},
        {"type": "heading", "props": {"level": "2"}, "content": "String level"},
    ]

    toc = extract_headings(blocks)
    assert len(toc) == 1
    assert toc[0].level == 2


def test_empty_heading_gets_placeholder():
    toc = extract_headings([_heading("Intro"), {"type": "heading", "props": {"level": 2}, "content": []}])

    assert toc[1].id == "section"
    assert toc[1].text == "Heading 2"


def test_inline_links_contribute_text():
    block = {
        "type": "heading",
        "props": {"level": 1},
        "content": [
            {"type": "text", "text": "See "},
            {"type": "link", "href": "https://example.com", "content": [{"type": "text", "text": "the docs"}]},
        ],
    }

    assert extract_headings([block])[0].id == "see-the-docs"


class _Element:
    def __init__(self, id=None):
        self.id = id


def test_reconciler_assigns_ids_by_position():
    toc = [TocItem(id="one", text="One", level=1), TocItem(id="two", text="Two", level=2)]
    elements = [_Element(), _Element("two")]

    reconciler = HeadingAnchorReconciler(toc)

    assert reconciler.reconcile(elements) == 1
    assert [e.id for e in elements] == ["one", "two"]
    # re-mounted node loses its id
    elements[0] = _Element()
    assert reconciler.on_mutation(elements) == 1
    assert elements[0].id == "one"


def test_assign_heading_ids_rewrites_markup():
    toc = extract_headings([_heading("Intro"), _heading("Intro", 2)])
    markup = '<h1 id="old">Intro</h1><p>x &amp; y</p><h2 class="t">Intro</h2>'

    result = assign_heading_ids(markup, toc)

    assert '<h1 id="intro">' in result
    assert '<h2 class="t" id="intro-2">' in result
    assert "x &amp; y" in result


def test_assign_heading_ids_without_toc_returns_markup():
    assert assign_heading_ids("<h1>A</h1>", []) == "<h1>A</h1>"
    assert assign_heading_ids("", []) == ""
