"""
Restructuring presets - pure functions from a snapshot to a rule batch.

Presets never touch the document. Structural rules (remove) are emitted after
all style rules and in reverse document order: removing a node only shifts
the locators of nodes that come after it, so every locator in the batch still
points at the node it was computed for when its turn comes.
"""

import re
from typing import Callable, Dict, List, Optional, Set

from ..analysis.content import find_main_content
from ..analysis.snapshot import MARGIN_PROPERTIES, PADDING_PROPERTIES, PageSnapshot, SnapshotNode
from ..config import config
from ..exceptions import UnknownPreset
from ..transform.rules import RuleType, TransformationRule, renumber

PROTECTED_TAGS = {"html", "head", "body", "main"}

CLUTTER_WORDS = {
    "ad", "ads", "adsense", "advert", "adverts", "advertisement", "advertising",
    "dfp", "promo", "promoted", "sidebar", "sponsor", "sponsored",
}
DECORATIVE_WORDS = {"decorative", "decoration", "ornament", "divider", "spacer", "separator"}
ALWAYS_DECORATIVE_TAGS = {"marquee", "blink"}
EMPTY_WRAPPER_TAGS = {"div", "span", "p", "font", "center"}
CONTENT_BEARING_TAGS = {
    "img", "svg", "video", "audio", "canvas", "iframe", "picture", "object", "embed",
    "input", "button", "select", "textarea",
}
INTERACTIVE_TAGS = {"button", "select", "textarea"}
MEDIA_TAGS = {"img", "video", "iframe"}
FIXED_POSITIONS = {"fixed", "sticky"}
NAVIGATION_ROLES = {"navigation", "banner", "dialog", "alertdialog"}

FIXED_DECORATIVE_MAX_CHARS = 80

_WORD_SPLIT_RE = re.compile(r"[-_\s]+")

Preset = Callable[..., List[TransformationRule]]


def _words(node: SnapshotNode) -> Set[str]:
    tokens = node.classes + node.attrs.get("id", "").split()
    words: Set[str] = set()
    for token in tokens:
        words.update(w for w in _WORD_SPLIT_RE.split(token.lower()) if w)
    return words


def _in_body(snapshot: PageSnapshot):
    body = snapshot.body
    return list(body.walk())[1:] if body is not None else []


def _px(value: float) -> str:
    return f"{value:g}px"


def _removals(snapshot: PageSnapshot, locators: List[str]) -> List[TransformationRule]:
    order = snapshot.document_order()
    ordered = sorted(set(locators), key=lambda loc: order.get(loc, 0), reverse=True)
    return [TransformationRule(RuleType.REMOVE, loc) for loc in ordered]


def _outside(targets: List[str], node: SnapshotNode) -> bool:
    return not any(node.locator == t or node.locator.startswith(t + "/") for t in targets)


# =========================================================================
# SIMPLIFY
# =========================================================================

def is_clutter(node: SnapshotNode) -> bool:
    if node.tag in PROTECTED_TAGS:
        return False
    if node.tag == "aside" or node.role == "complementary":
        return True
    if _words(node) & CLUTTER_WORDS:
        return True
    if node.position in FIXED_POSITIONS and node.visible:
        if node.tag in ("nav", "header") or node.role in NAVIGATION_ROLES:
            return False
        return len(node.subtree_text()) <= FIXED_DECORATIVE_MAX_CHARS
    return False


def simplify(snapshot: PageSnapshot, settings=None) -> List[TransformationRule]:
    """Remove ancillary blocks, ads, sidebars and fixed decorative overlays."""
    targets: List[str] = []
    for node in _in_body(snapshot):
        if _outside(targets, node) and is_clutter(node):
            targets.append(node.locator)
    return renumber(_removals(snapshot, targets))


# =========================================================================
# CLEAN
# =========================================================================

def _is_empty(node: SnapshotNode) -> bool:
    for n in node.walk():
        if n.text.strip() or n.tag in CONTENT_BEARING_TAGS or n.has_background_image:
            return False
    return True


def is_empty_decoration(node: SnapshotNode) -> bool:
    if node.tag in PROTECTED_TAGS:
        return False
    if node.tag in ALWAYS_DECORATIVE_TAGS:
        return True
    if not _is_empty(node):
        return False
    if _words(node) & DECORATIVE_WORDS:
        return True
    return node.tag in EMPTY_WRAPPER_TAGS and not node.children and "id" not in node.attrs


def clean(snapshot: PageSnapshot, settings=None) -> List[TransformationRule]:
    """Shrink excessive spacing and drop empty decorative nodes."""
    settings = settings or config
    removals: List[str] = []
    for node in _in_body(snapshot):
        if _outside(removals, node) and is_empty_decoration(node):
            removals.append(node.locator)

    styles: List[TransformationRule] = []
    for node in _in_body(snapshot):
        if not node.visible or not _outside(removals, node):
            continue
        shrink: Dict[str, str] = {}
        for key, prop in {**MARGIN_PROPERTIES, **PADDING_PROPERTIES}.items():
            if node.px(key) > settings.spacing_threshold_px:
                shrink[prop] = _px(settings.spacing_reduced_px)
        if shrink:
            styles.append(TransformationRule(RuleType.STYLE, node.locator, {"styles": shrink}))

    return renumber(styles + _removals(snapshot, removals))


# =========================================================================
# FOCUS / READABILITY / MOBILE
# =========================================================================

def focus(snapshot: PageSnapshot, settings=None) -> List[TransformationRule]:
    """Highlight the main content block and dim its siblings."""
    settings = settings or config
    main = find_main_content(snapshot)
    if main is None:
        return []
    rules = [TransformationRule(RuleType.HIGHLIGHT, main.locator, {"color": settings.highlight_color})]
    if main.parent is not None:
        for sibling in main.parent.element_children(visible_only=True):
            if sibling is main:
                continue
            rules.append(TransformationRule(
                RuleType.STYLE, sibling.locator, {"styles": {"opacity": f"{settings.dim_opacity:g}"}}
            ))
    return renumber(rules)


def _content_root(snapshot: PageSnapshot) -> Optional[SnapshotNode]:
    return find_main_content(snapshot) or snapshot.body


def readability(snapshot: PageSnapshot, settings=None) -> List[TransformationRule]:
    """Raise base font size and line height on the content root."""
    settings = settings or config
    root = _content_root(snapshot)
    if root is None:
        return []
    font_px = max(root.font_size, settings.readability_font_px)
    styles = {
        "font-size": _px(font_px),
        "line-height": f"{settings.readability_line_height:g}",
    }
    return renumber([TransformationRule(RuleType.STYLE, root.locator, {"styles": styles})])


def _is_interactive(node: SnapshotNode) -> bool:
    if node.tag == "a":
        return "href" in node.attrs
    if node.tag == "input":
        return node.attrs.get("type", "text").lower() != "hidden"
    return node.tag in INTERACTIVE_TAGS or node.role == "button"


def mobile(snapshot: PageSnapshot, settings=None) -> List[TransformationRule]:
    """Constrain width, unpin fixed blocks, enlarge touch targets, fit media."""
    settings = settings or config
    root = _content_root(snapshot)
    if root is None:
        return []
    target = _px(settings.touch_target_px)
    rules = [TransformationRule(RuleType.STYLE, root.locator, {"styles": {
        "max-width": "100%",
        "box-sizing": "border-box",
        "overflow-x": "hidden",
    }})]
    for node in _in_body(snapshot):
        if not node.visible:
            continue
        if node.position == "fixed":
            rules.append(TransformationRule(RuleType.STYLE, node.locator, {"styles": {"position": "static"}}))
        if _is_interactive(node):
            rules.append(TransformationRule(RuleType.STYLE, node.locator, {"styles": {
                "min-height": target,
                "min-width": target,
            }}))
        elif node.tag in MEDIA_TAGS:
            rules.append(TransformationRule(RuleType.STYLE, node.locator, {"styles": {
                "max-width": "100%",
                "height": "auto",
            }}))
    return renumber(rules)


# =========================================================================
# REGISTRY
# =========================================================================

PRESETS: Dict[str, Preset] = {
    "simplify": simplify,
    "clean": clean,
    "focus": focus,
    "readability": readability,
    "mobile": mobile,
}

PRESET_ALIASES = {
    "mobile_friendly": "mobile",
    "mobilefriendly": "mobile",
    "mobile-friendly": "mobile",
}


def list_presets() -> List[str]:
    return list(PRESETS)


def get_preset(name: str) -> Preset:
    key = (name or "").strip().lower()
    key = PRESET_ALIASES.get(key, key)
    if key not in PRESETS:
        raise UnknownPreset(f"Unknown preset {name!r}; available: {', '.join(PRESETS)}")
    return PRESETS[key]


def generate(name: str, snapshot: PageSnapshot, settings=None) -> List[TransformationRule]:
    return get_preset(name)(snapshot, settings)
