"""
Tests for the change log HTML sanitizer
"""

import pytest
from app.utils.html_sanitizer import has_visible_text, html_to_plain_text, sanitize_html


@pytest.mark.parametrize("markup", [
    '<p>Fixed <strong>bold</strong> &amp; <a href="https://example.com/a?b=1&c=2">link</a></p>',
    '<ul><li>one<li>two</ul><script>alert(1)</script>',
    '<a href="javascript:alert(1)" onclick="x()">bad</a> 1 < 2',
    '<div><span style="color:red">x</span><table><tr><td>cell</td></tr></table>',
    '<p><b>unclosed',
])
def test_sanitize_is_idempotent(markup):
    once = sanitize_html(markup)
    assert sanitize_html(once) == once


def test_unsafe_href_is_stripped_but_anchor_kept():
    result = sanitize_html('<a href="javascript:alert(1)">click</a>')
    assert result == "<a>click</a>"


@pytest.mark.parametrize("href", ["https://example.com", "http://x.io/p", "mailto:a@b.c", "#install"])
def test_safe_hrefs_survive(href):
    assert sanitize_html(f'<a href="{href}">x</a>') == f'<a href="{href}">x</a>'


def test_attributes_other_than_href_are_dropped():
    result = sanitize_html('<p class="lead" style="x" onclick="evil()">Hi</p>')
    assert result == "<p>Hi</p>"


def test_disallowed_tags_are_unwrapped():
    result = sanitize_html("<section><p>Keep <img src=x onerror=alert(1)>me</p></section>")
    assert result == "<p>Keep me</p>"


def test_script_markup_never_survives():
    result = sanitize_html("<script>alert('x')</script><p>ok</p>")
    assert "<script" not in result
    assert "<p>ok</p>" in result


def test_output_is_balanced():
    assert sanitize_html("<p><em>open") == "<p><em>open</em></p>"
    assert sanitize_html("<p>a</em></p>") == "<p>a</p>"


def test_empty_or_non_string_input():
    assert sanitize_html(None) == ""
    assert sanitize_html("") == ""
    assert sanitize_html(42) == ""


def test_plain_text_and_visibility():
    assert html_to_plain_text("<p>Hello <b>world</b></p>") == "Hello world"
    assert has_visible_text("<p>Fix</p>")
    assert not has_visible_text("<p> </p>")
    assert not has_visible_text("<p>\u200b</p>")
    assert not has_visible_text(None)
