import json

import pytest
from playwright.async_api import Error as PlaywrightError

from pagecraft_core.bridge import browser
from pagecraft_core.cli import build_parser, main

from pages import ARTICLE_HTML, ARTICLE_URL


@pytest.fixture
def article_file(tmp_path):
    path = tmp_path / "article.html"
    path.write_text(ARTICLE_HTML, encoding="utf-8")
    return path


@pytest.fixture
def workspace(tmp_path):
    return str(tmp_path / "ws")


def test_parser_requires_template_action():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["templates"])


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "usage: pagecraft" in capsys.readouterr().out


def test_presets(capsys):
    assert main(["presets"]) == 0
    assert capsys.readouterr().out.split() == ["simplify", "clean", "focus", "readability", "mobile"]


def test_analyze_text(article_file, capsys):
    assert main(["analyze", str(article_file), "--page-url", ARTICLE_URL]) == 0
    out = capsys.readouterr().out
    assert f"URL: {ARTICLE_URL}" in out
    assert "Title: Sample Article" in out
    assert "Links: 4 (3 in navigation)" in out


def test_analyze_json(article_file, capsys):
    assert main(["--json", "analyze", str(article_file)]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["elementCount"] == 20
    assert data["url"].startswith("file://")


def test_preset_to_stdout(article_file, capsys):
    assert main(["preset", "simplify", str(article_file)]) == 0
    out = capsys.readouterr().out
    assert "<aside" not in out
    assert "<main>" in out


def test_preset_save_and_replay(article_file, workspace, tmp_path, capsys):
    out_file = tmp_path / "clean.html"
    assert main([
        "--workspace", workspace, "preset", "simplify", str(article_file),
        "--page-url", ARTICLE_URL, "-o", str(out_file), "--save-as", "No clutter",
    ]) == 0
    assert "applied=2 skipped=0 failed=0" in capsys.readouterr().out
    assert "<aside" not in out_file.read_text(encoding="utf-8")

    assert main(["--workspace", workspace, "--json", "templates", "list", "--url", ARTICLE_URL]) == 0
    templates = json.loads(capsys.readouterr().out)
    assert [t["name"] for t in templates] == ["No clutter"]
    template_id = templates[0]["id"]

    assert main(["--workspace", workspace, "apply-template", template_id, str(article_file)]) == 0
    assert "<aside" not in capsys.readouterr().out

    assert main(["--workspace", workspace, "templates", "default", template_id]) == 0
    assert "is now the default" in capsys.readouterr().out
    assert main(["--workspace", workspace, "templates", "delete", template_id]) == 0
    assert main(["--workspace", workspace, "templates", "delete", template_id]) == 1


def test_export_import(article_file, workspace, tmp_path, capsys):
    main(["--workspace", workspace, "preset", "simplify", str(article_file), "--page-url", ARTICLE_URL,
          "-o", str(tmp_path / "out.html"), "--save-as", "No clutter"])
    export_file = tmp_path / "export.json"
    assert main(["--workspace", workspace, "templates", "export", "-o", str(export_file)]) == 0

    other = str(tmp_path / "other")
    assert main(["--workspace", other, "templates", "import", str(export_file)]) == 0
    assert "Imported 1 template(s)" in capsys.readouterr().out
    assert main(["--workspace", other, "templates", "list"]) == 0
    assert "No clutter" in capsys.readouterr().out


def test_import_rejects_bad_json(workspace, tmp_path, capsys):
    bad = tmp_path / "bad.json"
    bad.write_text("{nope", encoding="utf-8")
    assert main(["--workspace", workspace, "templates", "import", str(bad)]) == 1
    assert "invalid parameters" in capsys.readouterr().err


def test_missing_template(workspace, capsys):
    assert main(["--workspace", workspace, "templates", "show", "missing"]) == 1
    assert "Template not found" in capsys.readouterr().err


def test_unknown_preset_json_error(article_file, capsys):
    assert main(["--json", "preset", "sparkle", str(article_file)]) == 1
    data = json.loads(capsys.readouterr().out)
    assert data["success"] is False
    assert data["error"]["category"] == "rule"
    assert data["error"]["context"] == "preset"


def test_document_is_required(capsys):
    assert main(["analyze"]) == 1
    assert "FILE or --url" in capsys.readouterr().err


def test_missing_file(tmp_path, capsys):
    assert main(["analyze", str(tmp_path / "nope.html")]) == 1
    assert "File not found" in capsys.readouterr().err


def test_config(capsys):
    assert main(["config"]) == 0
    assert capsys.readouterr().out.startswith("=== Configuration ===")


def test_analyze_latin1_file(tmp_path, capsys):
    path = tmp_path / "legacy.html"
    path.write_bytes(
        '<html><head><meta charset="iso-8859-1"><title>Café</title></head>'
        "<body><p>Crème brûlée</p></body></html>".encode("latin-1")
    )
    assert main(["analyze", str(path)]) == 0
    assert "Title: Café" in capsys.readouterr().out


def test_missing_browser_is_reported(monkeypatch, capsys):
    def no_browser(url, **kwargs):
        raise PlaywrightError("BrowserType.launch: Executable doesn't exist at /x/chrome")

    monkeypatch.setattr(browser, "open_page", no_browser)
    assert main(["analyze", "--url", "https://example.com"]) == 1
    assert "playwright install chromium" in capsys.readouterr().err


def test_unreachable_page_is_reported(monkeypatch, capsys):
    def unreachable(url, **kwargs):
        raise PlaywrightError(f"Page.goto: net::ERR_NAME_NOT_RESOLVED at {url}")

    monkeypatch.setattr(browser, "open_page", unreachable)
    assert main(["--json", "analyze", "--url", "https://nowhere.invalid"]) == 1
    data = json.loads(capsys.readouterr().out)
    assert data["error"]["message"] == "The page could not be loaded"
    assert data["error"]["can_retry"] is True
