import asyncio
from dataclasses import replace

import pytest

from pagecraft_core.analysis import PageAnalyzer, PageSnapshot, SuggestionKind, find_main_content, reading_time_minutes
from pagecraft_core.bridge.html import HtmlDocumentBridge
from pagecraft_core.config import config
from pagecraft_core.transform import TransformationEngine, make_rule, renumber

from pages import body_html, words


def analyze(html: str, settings=None):
    bridge = HtmlDocumentBridge(html, url="https://example.com/")
    return asyncio.run(PageAnalyzer(settings).analyze_page(bridge))


def nav_page(link_count: int) -> str:
    links = "".join(f'<a href="/p{i}">Page {i}</a>' for i in range(1, link_count + 1))
    return body_html(f"<nav>{links}</nav><main><p>Hello world</p></main>")


def test_counts_for_article(article_bridge):
    result = asyncio.run(PageAnalyzer().analyze_page(article_bridge))
    assert result.element_count == 20
    assert result.image_count == 1
    assert result.link_count == 4
    assert result.navigation_link_count == 3
    assert result.form_count == 0
    assert result.section_count == 2
    assert result.title == "Sample Article"
    assert [h["level"] for h in result.headings] == [1, 2]
    kinds = result.suggestion_kinds
    assert SuggestionKind.OVERCROWDED_NAVIGATION not in kinds
    assert SuggestionKind.ACCESSIBILITY not in kinds
    assert SuggestionKind.HEADING_HIERARCHY not in kinds


@pytest.mark.parametrize("count,minutes", [(400, 2), (150, 1), (0, 1), (401, 3)])
def test_reading_time(count, minutes):
    result = analyze(body_html(f"<p>{words(count)}</p>"))
    assert result.word_count == count
    assert result.reading_time_minutes == minutes


def test_reading_time_helper_guards_wpm():
    assert reading_time_minutes(400, 200) == 2
    assert reading_time_minutes(400, 0) == 2


def test_overcrowded_navigation_clears_after_removing_links():
    bridge = HtmlDocumentBridge(nav_page(15), url="https://example.com/")
    analyzer = PageAnalyzer()
    result = asyncio.run(analyzer.analyze_page(bridge))
    assert result.navigation_link_count == 15
    assert SuggestionKind.OVERCROWDED_NAVIGATION in result.suggestion_kinds

    # last links first so earlier locators stay valid
    rules = renumber(make_rule("remove", f"/html[1]/body[1]/nav[1]/a[{i}]") for i in range(15, 9, -1))
    report = asyncio.run(TransformationEngine(bridge).apply_all(rules))
    assert report.applied == 6

    result = asyncio.run(analyzer.analyze_page(bridge))
    assert result.navigation_link_count == 9
    assert SuggestionKind.OVERCROWDED_NAVIGATION not in result.suggestion_kinds


def test_role_navigation_counts_as_nav():
    links = "".join(f'<a href="/{i}">{i}</a>' for i in range(11))
    result = analyze(body_html(f'<div role="navigation">{links}</div>'))
    assert SuggestionKind.OVERCROWDED_NAVIGATION in result.suggestion_kinds


def test_threshold_is_configurable():
    settings = replace(config, nav_link_threshold=20)
    result = analyze(nav_page(15), settings)
    assert SuggestionKind.OVERCROWDED_NAVIGATION not in result.suggestion_kinds


def test_missing_alt_yields_exactly_one_accessibility_suggestion():
    result = analyze(body_html(
        '<img src="a.png"><img src="b.png" alt=" "><img src="c.png">'
        '<img src="d.png" alt="" role="presentation"><img src="e.png" aria-label="Logo">'
    ))
    found = [s for s in result.suggestions if s.kind == SuggestionKind.ACCESSIBILITY]
    assert len(found) == 1
    assert "3 image(s)" in found[0].message


def test_small_text():
    result = analyze(body_html('<p style="font-size: 10px">tiny print</p><p>normal</p>'))
    assert SuggestionKind.SMALL_TEXT in result.suggestion_kinds
    result = analyze(body_html('<p>normal</p>'))
    assert SuggestionKind.SMALL_TEXT not in result.suggestion_kinds


def test_hidden_small_text_is_ignored():
    result = analyze(body_html('<p style="font-size: 10px; display: none">tiny</p><p>normal</p>'))
    assert SuggestionKind.SMALL_TEXT not in result.suggestion_kinds


def test_heading_skip():
    result = analyze(body_html("<h1>Title</h1><h3>Skipped</h3>"))
    assert SuggestionKind.HEADING_HIERARCHY in result.suggestion_kinds
    result = analyze(body_html("<h1>Title</h1><h2>Sub</h2><h3>Subsub</h3><h2>Back up</h2>"))
    assert SuggestionKind.HEADING_HIERARCHY not in result.suggestion_kinds


def test_long_page_without_headings():
    result = analyze(body_html(f"<p>{words(200)}</p>"))
    suggestion = result.suggestion("heading_hierarchy")
    assert suggestion is not None
    assert suggestion.severity == "info"
    assert analyze(body_html(f"<p>{words(100)}</p>")).suggestion("heading_hierarchy") is None


def test_whitespace():
    cramped = analyze(body_html("<div>a</div><div>b</div><div>c</div>"))
    assert SuggestionKind.WHITESPACE in cramped.suggestion_kinds
    airy = analyze(body_html("<p>a</p><p>b</p><p>c</p>"))
    assert SuggestionKind.WHITESPACE not in airy.suggestion_kinds


def test_background_images_count_as_images():
    result = analyze(body_html('<div style="background-image: url(bg.png)"></div><img src="x.png" alt="x">'))
    assert result.image_count == 2


def test_to_dict_uses_camel_case(article_bridge):
    data = asyncio.run(PageAnalyzer().analyze_page(article_bridge)).to_dict()
    assert data["readingTimeMinutes"] == 1
    assert data["elementCount"] == 20
    assert all(set(s) == {"kind", "message", "severity"} for s in data["suggestions"])


def test_main_content_detection(article_bridge):
    snap = PageSnapshot.from_dict(asyncio.run(article_bridge.snapshot()))
    assert find_main_content(snap).locator == "/html[1]/body[1]/main[1]/article[1]"


def test_main_content_none_without_text():
    bridge = HtmlDocumentBridge(body_html('<div><img src="x.png" alt="x"></div>'))
    snap = PageSnapshot.from_dict(asyncio.run(bridge.snapshot()))
    assert find_main_content(snap) is None


def test_whitespace_counts_margins_not_padding():
    padded = analyze(body_html('<div style="padding: 20px">a</div><div style="padding: 20px">b</div>'))
    assert SuggestionKind.WHITESPACE in padded.suggestion_kinds
    spaced = analyze(body_html('<div style="margin-bottom: 12px">a</div><div>b</div>'))
    assert SuggestionKind.WHITESPACE not in spaced.suggestion_kinds


def test_deeply_nested_page_analyzes():
    depth = 1200
    result = analyze(body_html("<div>" * depth + "deep" + "</div>" * depth))
    # html, head, title, body plus the divs
    assert result.element_count == depth + 4
    assert result.word_count == 1
