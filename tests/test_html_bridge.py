import asyncio

import pytest

from pagecraft_core.analysis import PageSnapshot
from pagecraft_core.bridge.html import HtmlDocumentBridge, merge_style, parse_style, serialize_style
from pagecraft_core.exceptions import DocumentGone
from pagecraft_core.transform import TransformationEngine, make_rule

from pages import body_html


def snapshot_of(html: str) -> PageSnapshot:
    bridge = HtmlDocumentBridge(html, url="https://example.com/")
    return PageSnapshot.from_dict(asyncio.run(bridge.snapshot()))


def test_parse_and_serialize_style():
    styles = parse_style("color: red; ; margin:0 auto;bad; Font-Size : 12px")
    assert styles == {"color": "red", "margin": "0 auto", "font-size": "12px"}
    assert serialize_style(styles) == "color: red; margin: 0 auto; font-size: 12px"


def test_style_values_may_contain_semicolons():
    styles = parse_style('content: "a;b"; background: url("x;y.png") no-repeat; color: red')
    assert styles == {
        "content": '"a;b"',
        "background": 'url("x;y.png") no-repeat',
        "color": "red",
    }


def test_style_rule_keeps_data_uri_background(make_bridge):
    data_uri = "url(data:image/png;base64,iVBORw0KGgo=)"
    bridge = make_bridge(f'<div style="background-image: {data_uri}">x</div>')
    rule = make_rule("style", "/html[1]/body[1]/div[1]", styles={"color": "red"})
    assert asyncio.run(TransformationEngine(bridge).apply(rule)).applied
    assert parse_style(bridge.root.find("div")["style"]) == {"background-image": data_uri, "color": "red"}


def test_merge_style_overrides_in_place(article_bridge):
    footer = article_bridge.root.find("footer")
    merge_style(footer, {"color": "red"})
    merge_style(footer, {"color": "blue", "margin-top": 0})
    assert footer["style"] == "color: blue; margin-top: 0"


def test_document_info(article_bridge):
    info = asyncio.run(article_bridge.document_info())
    assert info == {"url": "https://example.com/article", "title": "Sample Article"}


def test_snapshot_font_sizes_inherit():
    snap = snapshot_of(body_html(
        '<div style="font-size: 20px"><p>a</p><h1>b</h1><p style="font-size: 0.5em">c</p></div>'
        '<p style="font-size: small">d</p><h6>e</h6>'
    ))
    sizes = {n.locator: n.font_size for n in snap.walk()}
    assert sizes["/html[1]/body[1]/div[1]/p[1]"] == 20
    assert sizes["/html[1]/body[1]/div[1]/h1[1]"] == 40
    assert sizes["/html[1]/body[1]/div[1]/p[2]"] == 10
    assert sizes["/html[1]/body[1]/p[1]"] == 13
    assert sizes["/html[1]/body[1]/h6[1]"] < 12


def test_snapshot_box_model_defaults_and_shorthand():
    snap = snapshot_of(body_html('<p>a</p><div style="margin: 10px 5px; padding-top: 2em">b</div>'))
    p = snap.find("/html[1]/body[1]/p[1]")
    assert p.px("marginTop") == 16 and p.px("marginBottom") == 16
    div = snap.find("/html[1]/body[1]/div[1]")
    assert div.px("marginTop") == 10 and div.px("marginLeft") == 5
    assert div.px("paddingTop") == 32
    assert snap.body.px("marginTop") == 8


def test_snapshot_visibility():
    snap = snapshot_of(body_html(
        '<div hidden><p>a</p></div><div style="visibility: hidden">b</div>'
        '<div style="display:none"><span>c</span></div><script>var x = 1;</script><p>shown</p>'
    ))
    visible = {n.locator: n.visible for n in snap.walk()}
    assert visible["/html[1]/body[1]/div[1]/p[1]"] is False
    assert visible["/html[1]/body[1]/div[2]"] is False
    assert visible["/html[1]/body[1]/div[3]/span[1]"] is False
    assert visible["/html[1]/body[1]/script[1]"] is False
    assert visible["/html[1]/body[1]/p[1]"] is True
    assert snap.find("/html[1]/body[1]/script[1]").text == ""


def test_snapshot_background_image_and_position():
    snap = snapshot_of(body_html(
        '<div style="background: #fff url(hero.png) no-repeat; position: sticky"></div>'
    ))
    div = snap.find("/html[1]/body[1]/div[1]")
    assert div.has_background_image
    assert div.position == "sticky"


def test_stray_top_level_tags_move_into_body():
    bridge = HtmlDocumentBridge("<html><head></head><body><p>a</p></body></html><p>b</p>")
    body = bridge.root.find("body")
    assert [p.get_text() for p in body.find_all("p")] == ["a", "b"]


def test_reload_discards_mutations(article_bridge):
    article_bridge.root.find("aside").decompose()
    asyncio.run(article_bridge.reload())
    assert article_bridge.root.find("aside") is not None
    assert article_bridge.generation == 1


def test_navigate_replaces_document(article_bridge):
    article_bridge.navigate(body_html("<p>next</p>", title="Next"), "https://example.com/next")
    info = asyncio.run(article_bridge.document_info())
    assert info == {"url": "https://example.com/next", "title": "Next"}


def test_closed_document_is_gone(article_bridge):
    article_bridge.close()
    with pytest.raises(DocumentGone):
        asyncio.run(article_bridge.snapshot())


def test_save_and_from_file(tmp_path, article_bridge):
    out = article_bridge.save(tmp_path / "page.html")
    reopened = HtmlDocumentBridge.from_file(out)
    assert reopened.url.startswith("file://")
    assert reopened.root.find("article") is not None


def test_from_file_detects_legacy_encoding(tmp_path):
    path = tmp_path / "latin1.html"
    path.write_bytes(
        '<html><head><meta charset="iso-8859-1"><title>Café</title></head>'
        '<body><p>Crème brûlée</p></body></html>'.encode("latin-1")
    )
    bridge = HtmlDocumentBridge.from_file(path)
    assert asyncio.run(bridge.document_info())["title"] == "Café"
    assert bridge.root.find("p").get_text() == "Crème brûlée"


def test_table_rows_get_implied_tbody():
    bridge = HtmlDocumentBridge(body_html(
        "<table><thead><tr><th>h</th></tr></thead><tr><td>a</td></tr>\n<tr><td>b</td></tr></table>"
    ))
    table = bridge.root.find("table")
    assert [c.name for c in table.find_all(recursive=False)] == ["thead", "tbody"]
    cell = bridge.root.find_all("td")[1]
    locator = asyncio.run(bridge.compute_locator(cell))
    assert locator == "/html[1]/body[1]/table[1]/tbody[1]/tr[2]/td[1]"
    assert asyncio.run(bridge.resolve(locator)) is cell


def test_deeply_nested_document_snapshots():
    depth = 1200
    bridge = HtmlDocumentBridge(body_html("<div>" * depth + "deep" + "</div>" * depth))
    snap = PageSnapshot.from_dict(asyncio.run(bridge.snapshot()))
    deepest = list(snap.walk())[-1]
    assert deepest.text == "deep"
    assert deepest.locator.count("/div[1]") == depth
