"""
HTML document bridge - offline documents parsed with BeautifulSoup.

Implements the same contract as the browser bridge for a saved page: locators,
snapshot and mutations behave like the in-page agent. Computed style is
approximated from inline `style` attributes plus the user-agent defaults that
matter for analysis (heading sizes, paragraph and list margins).
"""

import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from ..diagnostics import get_logger
from ..exceptions import DocumentGone, NodeDetached
from ..targeting.locator import format_locator, parse_locator
from .base import PageBridge

logger = get_logger(__name__)

ROOT_FONT_PX = 16.0

INVISIBLE_TAGS = {"head", "script", "style", "noscript", "template", "meta", "link", "title", "base"}
HEAD_TAGS = {"title", "meta", "link", "base"}

BLOCK_TAGS = {
    "html", "body", "address", "article", "aside", "blockquote", "details", "dialog", "dd", "div",
    "dl", "dt", "fieldset", "figcaption", "figure", "footer", "form", "h1", "h2", "h3", "h4", "h5",
    "h6", "header", "hgroup", "hr", "main", "nav", "ol", "p", "pre", "section", "table", "ul",
    "center", "summary",
}

# Font size relative to the parent element
FONT_SCALE = {"h1": 2.0, "h2": 1.5, "h3": 1.17, "h4": 1.0, "h5": 0.83, "h6": 0.67, "small": 0.8333}

FONT_KEYWORDS = {
    "xx-small": 9.0, "x-small": 10.0, "small": 13.0, "medium": 16.0,
    "large": 18.0, "x-large": 24.0, "xx-large": 32.0, "xxx-large": 48.0,
}

# Default vertical margins, in em of the element's own font size
DEFAULT_MARGIN_EM = {
    "p": 1.0, "ul": 1.0, "ol": 1.0, "dl": 1.0, "blockquote": 1.0, "figure": 1.0, "pre": 1.0,
    "h1": 0.67, "h2": 0.83, "h3": 1.0, "h4": 1.33, "h5": 1.67, "h6": 2.33,
}

SIDES = ("top", "right", "bottom", "left")

_LENGTH_RE = re.compile(r"^(-?[0-9]*\.?[0-9]+)(px|em|rem|pt|%)?$")
_URL_RE = re.compile(r"url\([^)]*\)", re.IGNORECASE)


# =========================================================================
# INLINE STYLE HELPERS
# =========================================================================

def split_declarations(value: str) -> List[str]:
    """Split on top-level `;`, leaving `url(a;b)` and quoted strings intact."""
    decls = []
    depth = 0
    quote = None
    start = 0
    i = 0
    while i < len(value):
        ch = value[i]
        if quote:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")" and depth:
            depth -= 1
        elif ch == ";" and not depth:
            decls.append(value[start:i])
            start = i + 1
        i += 1
    decls.append(value[start:])
    return decls


def parse_style(value: Optional[str]) -> Dict[str, str]:
    """Parse an inline style attribute into an ordered property map."""
    styles: Dict[str, str] = {}
    for decl in split_declarations(value or ""):
        prop, sep, val = decl.partition(":")
        prop = prop.strip().lower()
        val = val.strip()
        if sep and prop and val:
            styles[prop] = val
    return styles


def serialize_style(styles: Dict[str, str]) -> str:
    return "; ".join(f"{prop}: {value}" for prop, value in styles.items())


def merge_style(node: Tag, updates: Dict[str, Any]) -> None:
    current = parse_style(node.get("style"))
    for prop, value in updates.items():
        current[prop] = str(value)
    node["style"] = serialize_style(current)


def _length_px(value: str, font_px: float, percent_base: Optional[float] = None) -> Optional[float]:
    value = value.lower().replace("!important", "").strip()
    if value in ("0", "auto", "none", "normal"):
        return 0.0 if value == "0" else None
    m = _LENGTH_RE.match(value)
    if not m:
        return None
    number = float(m.group(1))
    unit = m.group(2) or "px"
    if unit == "px":
        return number
    if unit == "em":
        return number * font_px
    if unit == "rem":
        return number * ROOT_FONT_PX
    if unit == "pt":
        return number * 4.0 / 3.0
    if percent_base is not None:
        return number / 100.0 * percent_base
    return None


def _expand_box(shorthand: str) -> Dict[str, str]:
    parts = shorthand.replace("!important", "").split()
    if not parts:
        return {}
    if len(parts) == 1:
        values = parts * 4
    elif len(parts) == 2:
        values = [parts[0], parts[1], parts[0], parts[1]]
    elif len(parts) == 3:
        values = [parts[0], parts[1], parts[2], parts[1]]
    else:
        values = parts[:4]
    return dict(zip(SIDES, values))


# =========================================================================
# LOCATORS
# =========================================================================

def _is_element(node: Any) -> bool:
    return isinstance(node, Tag) and not isinstance(node, BeautifulSoup)


def compute_locator(node: Any, root: BeautifulSoup) -> str:
    """Locator of `node` within the document `root`. Raises NodeDetached."""
    if not _is_element(node):
        raise NodeDetached(f"Not an element node: {type(node).__name__}")
    steps: List[Tuple[str, int]] = []
    cur = node
    while _is_element(cur):
        parent = cur.parent
        if parent is None:
            raise NodeDetached(f"<{node.name}> is not attached to the document")
        name = cur.name.lower()
        index = 1
        for sib in cur.previous_siblings:
            if isinstance(sib, Tag) and sib.name.lower() == name:
                index += 1
        steps.append((name, index))
        cur = parent
    if cur is not root:
        raise NodeDetached(f"<{node.name}> belongs to another document")
    steps.reverse()
    return format_locator(steps)


def resolve_locator(locator: str, root: BeautifulSoup) -> Optional[Tag]:
    """Walk `locator` from `root`; None when any step no longer matches."""
    try:
        steps = parse_locator(locator)
    except ValueError:
        return None
    node: Tag = root
    for tag, index in steps:
        seen = 0
        found = None
        for child in node.children:
            if isinstance(child, Tag) and child.name.lower() == tag:
                seen += 1
                if seen == index:
                    found = child
                    break
        if found is None:
            return None
        node = found
    return node


def ensure_document_element(soup: BeautifulSoup) -> Tag:
    """Give fragments the html/head/body skeleton a browser would build."""
    html = soup.find("html", recursive=False)
    strays: List[Tag] = []
    if html is None:
        html = soup.new_tag("html")
        for child in list(soup.contents):
            if isinstance(child, PreformattedString):
                continue
            html.append(child.extract())
        soup.append(html)
    else:
        strays = [c for c in soup.contents if isinstance(c, Tag) and c is not html]

    head = html.find("head", recursive=False)
    if head is None:
        head = soup.new_tag("head")
        html.insert(0, head)
    body = html.find("body", recursive=False)
    if body is None:
        body = soup.new_tag("body")
        for child in list(html.contents):
            if child is head:
                continue
            if isinstance(child, Tag) and child.name in HEAD_TAGS:
                head.append(child.extract())
            else:
                body.append(child.extract())
        html.append(body)
    for stray in strays:
        body.append(stray.extract())
    return html


def wrap_table_rows(soup: BeautifulSoup) -> None:
    """Put `tr` elements that sit directly in a `table` into an implied `tbody`, as browsers do."""
    for table in soup.find_all("table"):
        run: Optional[Tag] = None
        for child in list(table.children):
            if not isinstance(child, Tag):
                continue
            if child.name.lower() != "tr":
                run = None
                continue
            if run is None:
                run = soup.new_tag("tbody")
                child.insert_before(run)
            run.append(child.extract())


# =========================================================================
# SNAPSHOT
# =========================================================================

def _own_text(node: Tag) -> str:
    parts = [
        str(child) for child in node.children
        if isinstance(child, NavigableString) and not isinstance(child, PreformattedString)
    ]
    return " ".join(" ".join(parts).split())


def _font_size(tag: str, inline: Dict[str, str], parent_px: float) -> float:
    raw = inline.get("font-size")
    if raw:
        raw = raw.lower().replace("!important", "").strip()
        if raw in FONT_KEYWORDS:
            return FONT_KEYWORDS[raw]
        if raw == "smaller":
            return parent_px / 1.2
        if raw == "larger":
            return parent_px * 1.2
        px = _length_px(raw, parent_px, percent_base=parent_px)
        if px is not None and px >= 0:
            return px
    return parent_px * FONT_SCALE.get(tag, 1.0)


def _box(tag: str, inline: Dict[str, str], kind: str, font_px: float) -> Dict[str, float]:
    defaults = {side: 0.0 for side in SIDES}
    if kind == "margin":
        if tag in DEFAULT_MARGIN_EM:
            defaults["top"] = defaults["bottom"] = DEFAULT_MARGIN_EM[tag] * font_px
        if tag in ("blockquote", "figure"):
            defaults["left"] = defaults["right"] = 40.0
        if tag == "body":
            defaults = {side: 8.0 for side in SIDES}
    elif tag in ("ul", "ol"):
        defaults["left"] = 40.0

    declared = _expand_box(inline.get(kind, ""))
    box = {}
    for side in SIDES:
        raw = inline.get(f"{kind}-{side}", declared.get(side))
        px = _length_px(raw, font_px) if raw else None
        box[side] = defaults[side] if px is None else px
    return box


def _background_image(inline: Dict[str, str]) -> str:
    value = inline.get("background-image") or ""
    if "url(" not in value.lower():
        m = _URL_RE.search(inline.get("background", ""))
        value = m.group(0) if m else ""
    return value or "none"


def _line_height(inline: Dict[str, str], font_px: float) -> Optional[float]:
    raw = inline.get("line-height")
    if not raw:
        return None
    raw = raw.lower().replace("!important", "").strip()
    try:
        return float(raw) * font_px
    except ValueError:
        return _length_px(raw, font_px, percent_base=font_px)


def _snapshot_entry(node: Tag, locator: str, parent_font_px: float, parent_visible: bool) -> Dict[str, Any]:
    """Snapshot record for one element, without its children."""
    tag = node.name.lower()
    inline = parse_style(node.get("style"))
    font_px = _font_size(tag, inline, parent_font_px)
    display = inline.get("display", "").replace("!important", "").strip().lower()
    if not display:
        display = "list-item" if tag == "li" else ("block" if tag in BLOCK_TAGS else "inline")
    if tag in INVISIBLE_TAGS:
        display = "none"
    visible = (
        parent_visible
        and tag not in INVISIBLE_TAGS
        and display != "none"
        and not node.has_attr("hidden")
        and inline.get("visibility", "").replace("!important", "").strip().lower() != "hidden"
    )
    margin = _box(tag, inline, "margin", font_px)
    padding = _box(tag, inline, "padding", font_px)

    attrs = {}
    for name, value in node.attrs.items():
        if isinstance(value, (list, tuple)):
            value = " ".join(value)
        attrs[name] = str(value)[:300]

    out: Dict[str, Any] = {
        "locator": locator,
        "tag": tag,
        "attrs": attrs,
        "text": "" if tag in INVISIBLE_TAGS else _own_text(node),
        "visible": visible,
        "style": {
            "fontSize": font_px,
            "lineHeight": _line_height(inline, font_px),
            "position": inline.get("position", "static").replace("!important", "").strip().lower(),
            "display": display,
            "backgroundImage": _background_image(inline),
            "marginTop": margin["top"],
            "marginRight": margin["right"],
            "marginBottom": margin["bottom"],
            "marginLeft": margin["left"],
            "paddingTop": padding["top"],
            "paddingRight": padding["right"],
            "paddingBottom": padding["bottom"],
            "paddingLeft": padding["left"],
        },
        "children": [],
    }
    return out


def snapshot_node(node: Tag, locator: str, parent_font_px: float, parent_visible: bool) -> Dict[str, Any]:
    """Snapshot of `node` and its subtree, built without recursion."""
    root = _snapshot_entry(node, locator, parent_font_px, parent_visible)
    stack = [(node, root)]
    while stack:
        element, out = stack.pop()
        counts: Dict[str, int] = {}
        for child in element.children:
            if not isinstance(child, Tag):
                continue
            name = child.name.lower()
            counts[name] = counts.get(name, 0) + 1
            entry = _snapshot_entry(
                child,
                f"{out['locator']}/{name}[{counts[name]}]",
                out["style"]["fontSize"],
                out["visible"],
            )
            out["children"].append(entry)
            stack.append((child, entry))
    return root


# =========================================================================
# MUTATIONS
# =========================================================================

def apply_rule(root: BeautifulSoup, rule: Dict[str, Any]) -> Dict[str, Any]:
    """Resolve and apply one serialized rule against `root`."""
    node = resolve_locator(rule.get("locator", ""), root)
    if node is None:
        return {"status": "not_found"}
    params = rule.get("parameters") or {}
    rule_type = rule.get("type")

    if rule_type == "hide":
        merge_style(node, {"display": "none !important"})
    elif rule_type == "remove":
        node.decompose()
    elif rule_type == "highlight":
        merge_style(node, {
            "outline": f"3px solid {params['color']}",
            "outline-offset": "2px",
            "background-color": f"color-mix(in srgb, {params['color']} 15%, transparent)",
        })
        node["data-pagecraft-highlight"] = "true"
    elif rule_type == "style":
        merge_style(node, params["styles"])
    elif rule_type == "replace":
        node.clear()
        if params["mode"] == "html":
            fragment = BeautifulSoup(params["content"], "html.parser")
            for child in list(fragment.contents):
                node.append(child.extract())
        elif params["content"]:
            node.append(NavigableString(params["content"]))
    elif rule_type == "move":
        target = resolve_locator(params["target"], root)
        if target is None:
            return {"status": "target_not_found"}
        if target is node or any(parent is node for parent in target.parents):
            return {"status": "invalid_move"}
        node.extract()
        if params["position"] == "before":
            target.insert_before(node)
        elif params["position"] == "after":
            target.insert_after(node)
        else:
            target.append(node)
    else:
        return {"status": "unsupported", "type": rule_type}
    return {"status": "applied"}


class HtmlDocumentBridge(PageBridge):
    """
    Bridge over an in-memory HTML document.

    Usage:
        bridge = HtmlDocumentBridge.from_file("saved.html")
        engine = PageCustomizationEngine(bridge, store)
        await engine.apply_preset("readability")
        bridge.save("readable.html")
    """

    def __init__(self, html: Union[str, bytes], url: str = "about:blank", parser: str = "html.parser"):
        self.source = html
        self.url = url
        self.parser = parser
        self.closed = False
        self.generation = 0
        self.soup = self._parse()

    @classmethod
    def from_file(cls, path: Union[str, Path], url: Optional[str] = None) -> "HtmlDocumentBridge":
        """Open a saved page; BeautifulSoup detects the encoding from the raw bytes."""
        p = Path(path)
        return cls(p.read_bytes(), url=url or p.resolve().as_uri())

    def _parse(self) -> BeautifulSoup:
        soup = BeautifulSoup(self.source, self.parser)
        ensure_document_element(soup)
        wrap_table_rows(soup)
        return soup

    def _check_open(self) -> None:
        if self.closed:
            raise DocumentGone("Document has been closed")

    @property
    def root(self) -> BeautifulSoup:
        return self.soup

    def close(self) -> None:
        self.closed = True

    def navigate(self, html: str, url: str) -> None:
        """Replace the document, as a navigation would."""
        self.source = html
        self.url = url
        self.closed = False
        self.generation += 1
        self.soup = self._parse()

    def to_html(self) -> str:
        return str(self.soup)

    def save(self, path: Union[str, Path]) -> Path:
        p = Path(path)
        p.write_text(self.to_html(), encoding="utf-8")
        return p

    async def document_info(self) -> Dict[str, str]:
        self._check_open()
        title = self.soup.title.get_text(strip=True) if self.soup.title else ""
        return {"url": self.url, "title": title}

    async def compute_locator(self, node: Any) -> str:
        self._check_open()
        return compute_locator(node, self.soup)

    async def resolve(self, locator: str) -> Optional[Tag]:
        self._check_open()
        return resolve_locator(locator, self.soup)

    async def snapshot(self) -> Dict[str, Any]:
        self._check_open()
        html = self.soup.find("html", recursive=False)
        info = await self.document_info()
        return {**info, "root": snapshot_node(html, "/html[1]", ROOT_FONT_PX, True)}

    async def mutate(self, rule: Dict[str, Any]) -> Dict[str, Any]:
        self._check_open()
        return apply_rule(self.soup, rule)

    async def reload(self) -> None:
        self._check_open()
        self.generation += 1
        self.soup = self._parse()
        logger.debug(f"Reloaded {self.url} (generation {self.generation})")
