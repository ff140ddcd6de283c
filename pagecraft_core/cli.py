#!/usr/bin/env python3
import argparse
import asyncio
import json
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Optional

from playwright.async_api import Error as PlaywrightError

from .analysis.analyzer import AnalysisResult
from .bridge.html import HtmlDocumentBridge
from .config import config
from .config_logger import format_config_for_cli, log_all_config
from .diagnostics import get_logger
from .engine import PageCustomizationEngine
from .error_handler import create_error_response, format_error_for_logging
from .exceptions import PagecraftError, RuleValidationError
from .presets import list_presets
from .templates import JsonFileStorage, TemplateStore

logger = get_logger(__name__)


def _store(args: argparse.Namespace) -> TemplateStore:
    base = Path(args.workspace) / "storage" if args.workspace else None
    return TemplateStore(JsonFileStorage(base))


@asynccontextmanager
async def _open_document(args: argparse.Namespace):
    """Yield a bridge for FILE, or for a live page when --url is given."""
    if getattr(args, "url", None):
        from .bridge.browser import open_page
        async with open_page(args.url, headless=config.headless, timeout_ms=config.action_timeout_ms) as bridge:
            yield bridge
        return
    if not args.file:
        raise PagecraftError("Give an HTML FILE or --url")
    bridge = HtmlDocumentBridge.from_file(args.file, url=getattr(args, "page_url", None))
    try:
        yield bridge
    finally:
        bridge.close()


def _emit(data, as_json: bool) -> None:
    if as_json:
        print(json.dumps(data, ensure_ascii=False, indent=2))
    elif isinstance(data, list):
        for line in data:
            print(line)
    else:
        print(data)


def _write_output(bridge, args: argparse.Namespace) -> None:
    if not isinstance(bridge, HtmlDocumentBridge):
        return
    if args.output:
        bridge.save(args.output)
        print(f"Saved {args.output}", file=sys.stderr)
    else:
        sys.stdout.write(bridge.to_html())


def format_analysis(result: AnalysisResult) -> List[str]:
    lines = [
        f"URL: {result.url}",
        f"Title: {result.title}",
        f"Elements: {result.element_count}",
        f"Images: {result.image_count}",
        f"Links: {result.link_count} ({result.navigation_link_count} in navigation)",
        f"Forms: {result.form_count}",
        f"Sections: {result.section_count}",
        f"Words: {result.word_count}",
        f"Reading time: {result.reading_time_minutes} min",
    ]
    if result.suggestions:
        lines.append("Suggestions:")
        lines += [f"  [{s.severity}] {s.kind.value}: {s.message}" for s in result.suggestions]
    else:
        lines.append("Suggestions: none")
    return lines


def _report_lines(report) -> List[str]:
    lines = [f"applied={report.applied} skipped={report.skipped} failed={report.failed}"
             + (" (abandoned)" if report.abandoned else "")]
    for o in report.outcomes:
        if not o.applied:
            lines.append(f"  {o.status.value}: {o.rule_type} {o.locator} ({o.reason})")
    return lines


# =========================================================================
# COMMANDS
# =========================================================================

async def cmd_analyze(args: argparse.Namespace) -> int:
    async with _open_document(args) as bridge:
        engine = PageCustomizationEngine(bridge)
        result = await engine.analyze()
        advice = await engine.request_advice() if args.advice else None
    if args.json:
        data = result.to_dict()
        if advice is not None:
            data["advice"] = advice
        _emit(data, True)
    else:
        _emit(format_analysis(result), False)
        if advice:
            _emit(["Advice:"] + [f"  - {a}" for a in advice], False)
    return 0


async def cmd_preset(args: argparse.Namespace) -> int:
    async with _open_document(args) as bridge:
        engine = PageCustomizationEngine(bridge, _store(args) if args.save_as else None)
        report = await engine.apply_preset(args.name)
        if args.save_as:
            template = await engine.save_template(args.save_as)
            print(f"Saved template {template.id}", file=sys.stderr)
        _write_output(bridge, args)
    if args.json or not isinstance(bridge, HtmlDocumentBridge) or args.output:
        _emit(report.to_dict() if args.json else _report_lines(report), args.json)
    return 0


async def cmd_apply_template(args: argparse.Namespace) -> int:
    async with _open_document(args) as bridge:
        engine = PageCustomizationEngine(bridge, _store(args))
        report = await engine.apply_template(args.template_id)
        _write_output(bridge, args)
    if args.json or not isinstance(bridge, HtmlDocumentBridge) or args.output:
        _emit(report.to_dict() if args.json else _report_lines(report), args.json)
    return 0


def cmd_presets(args: argparse.Namespace) -> int:
    _emit(list_presets(), args.json)
    return 0


def cmd_templates(args: argparse.Namespace) -> int:
    store = _store(args)
    action = args.action

    if action == "list":
        templates = store.match(args.url) if args.url else store.list()
        if args.json:
            _emit([t.to_dict() for t in templates], True)
        else:
            for t in templates:
                flag = " [default]" if t.is_default else ""
                print(f"{t.id}  {t.name}{flag}  {t.url_pattern}  ({len(t.transformations)} rules)")
        return 0

    if action == "show":
        _emit(store.get(args.template_id).to_dict(), True)
        return 0

    if action == "delete":
        if store.delete(args.template_id):
            print(f"Deleted {args.template_id}")
            return 0
        print(f"Template {args.template_id} not found", file=sys.stderr)
        return 1

    if action == "default":
        t = store.set_default(args.template_id)
        print(f"{t.id} is now the default for {t.url_pattern}")
        return 0

    if action == "export":
        payload = json.dumps(store.export_templates(), ensure_ascii=False, indent=2)
        if args.output:
            Path(args.output).write_text(payload, encoding="utf-8")
            print(f"Exported to {args.output}", file=sys.stderr)
        else:
            print(payload)
        return 0

    if action == "import":
        try:
            records = json.loads(Path(args.input).read_text(encoding="utf-8"))
        except ValueError as e:
            raise RuleValidationError(f"{args.input} is not valid JSON: {e}") from e
        imported = store.import_templates(records)
        print(f"Imported {len(imported)} template(s)")
        return 0

    raise PagecraftError(f"Unknown templates action: {action}")


def cmd_config(args: argparse.Namespace) -> int:
    _emit(format_config_for_cli(), False)
    return 0


# =========================================================================
# PARSER
# =========================================================================

def _add_document_args(p: argparse.ArgumentParser, output: bool = True) -> None:
    p.add_argument("file", nargs="?", help="Saved HTML file")
    p.add_argument("--url", help="Open a live page with Playwright instead of FILE")
    p.add_argument("--page-url", dest="page_url", help="Address to report for FILE (default: file URI)")
    if output:
        p.add_argument("-o", "--output", help="Write the transformed HTML here (default: stdout)")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="pagecraft", description="pagecraft - analyze and restructure web pages")
    p.add_argument("--workspace", help="Workspace directory (default: PAGECRAFT_WORKSPACE)")
    p.add_argument("--json", action="store_true", help="JSON output")
    sub = p.add_subparsers(dest="sub")

    p_an = sub.add_parser("analyze", help="Page metrics and suggestions")
    _add_document_args(p_an, output=False)
    p_an.add_argument("--advice", action="store_true", help="Also ask Ollama for restructuring advice")
    p_an.set_defaults(func=cmd_analyze)

    p_pr = sub.add_parser("preset", help="Apply a restructuring preset")
    p_pr.add_argument("name", help="simplify | clean | focus | readability | mobile")
    _add_document_args(p_pr)
    p_pr.add_argument("--save-as", dest="save_as", help="Save the applied rules as a template")
    p_pr.set_defaults(func=cmd_preset)

    p_ps = sub.add_parser("presets", help="List presets")
    p_ps.set_defaults(func=cmd_presets)

    p_ap = sub.add_parser("apply-template", help="Replay a saved template")
    p_ap.add_argument("template_id")
    _add_document_args(p_ap)
    p_ap.set_defaults(func=cmd_apply_template)

    p_t = sub.add_parser("templates", help="Manage saved templates")
    t_sub = p_t.add_subparsers(dest="action", required=True)
    t_list = t_sub.add_parser("list", help="List templates")
    t_list.add_argument("--url", help="Only templates matching this address")
    for name, help_text in (("show", "Print a template"), ("delete", "Delete a template"),
                            ("default", "Make a template the default for its address")):
        t = t_sub.add_parser(name, help=help_text)
        t.add_argument("template_id")
    t_exp = t_sub.add_parser("export", help="Export all templates as JSON")
    t_exp.add_argument("-o", "--output")
    t_imp = t_sub.add_parser("import", help="Import templates from a JSON file")
    t_imp.add_argument("input")
    p_t.set_defaults(func=cmd_templates)

    p_cfg = sub.add_parser("config", help="Show configuration")
    p_cfg.set_defaults(func=cmd_config)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 0
    log_all_config(logger)
    try:
        result = args.func(args)
        if asyncio.iscoroutine(result):
            result = asyncio.run(result)
        return int(result or 0)
    except (PagecraftError, PlaywrightError, OSError) as e:
        logger.debug(f"Command {args.sub} failed", exc_info=True)
        if args.json:
            print(json.dumps(create_error_response(e, context=args.sub), ensure_ascii=False, indent=2))
        else:
            print(format_error_for_logging(e, context=args.sub), file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
