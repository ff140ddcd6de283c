"""
Suggestion heuristics - independent checks over collected page metrics.

Each check yields at most one Suggestion; the analyzer keys results by kind.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from .snapshot import PageSnapshot

HEADING_TAGS = {"h1": 1, "h2": 2, "h3": 3, "h4": 4, "h5": 5, "h6": 6}
BLOCK_DISPLAYS = {"block", "flex", "grid", "list-item", "table", "flow-root"}
DECORATIVE_IMAGE_ROLES = {"presentation", "none"}


class SuggestionKind(str, Enum):
    OVERCROWDED_NAVIGATION = "overcrowded_navigation"
    SMALL_TEXT = "small_text"
    HEADING_HIERARCHY = "heading_hierarchy"
    WHITESPACE = "whitespace"
    ACCESSIBILITY = "accessibility"


@dataclass(frozen=True)
class Suggestion:
    kind: SuggestionKind
    message: str
    severity: str = "info"

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind.value, "message": self.message, "severity": self.severity}


@dataclass
class PageMetrics:
    """Everything the heuristics need, gathered in one walk."""
    element_count: int = 0
    image_count: int = 0
    link_count: int = 0
    form_count: int = 0
    section_count: int = 0
    word_count: int = 0
    navigation_link_count: int = 0
    small_text: List[str] = field(default_factory=list)
    headings: List[Tuple[int, str, str]] = field(default_factory=list)
    block_gaps: List[float] = field(default_factory=list)
    images_missing_alt: List[str] = field(default_factory=list)


def _missing_alt(node) -> bool:
    if node.role in DECORATIVE_IMAGE_ROLES or node.attrs.get("aria-hidden", "").lower() == "true":
        return False
    alt = node.attrs.get("alt", "").strip()
    label = node.attrs.get("aria-label", "").strip()
    return not alt and not label


def _block_gap(upper, lower) -> float:
    return upper.px("marginBottom") + lower.px("marginTop")


def collect_metrics(snapshot: PageSnapshot, small_font_px: float) -> PageMetrics:
    m = PageMetrics()
    in_nav: Dict[int, bool] = {}
    in_body: Dict[int, bool] = {}

    for node in snapshot.walk():
        parent_id = id(node.parent) if node.parent is not None else None
        nav = in_nav.get(parent_id, False) or node.tag == "nav" or node.role == "navigation"
        body = in_body.get(parent_id, False) or node.tag == "body"
        in_nav[id(node)] = nav
        in_body[id(node)] = body

        m.element_count += 1
        if node.tag == "img" or node.has_background_image:
            m.image_count += 1
        if node.tag == "img" and _missing_alt(node):
            m.images_missing_alt.append(node.locator)
        if node.tag in ("a", "area") and "href" in node.attrs:
            m.link_count += 1
            if nav:
                m.navigation_link_count += 1
        if node.tag == "form":
            m.form_count += 1
        if node.tag in ("main", "section", "article"):
            m.section_count += 1

        if not (body and node.visible):
            continue
        if node.text:
            m.word_count += len(node.text.split())
            if 0 < node.font_size < small_font_px:
                m.small_text.append(node.locator)
        if node.tag in HEADING_TAGS:
            m.headings.append((HEADING_TAGS[node.tag], node.subtree_text()[:100], node.locator))

        blocks = [c for c in node.children if c.visible and c.display in BLOCK_DISPLAYS]
        for upper, lower in zip(blocks, blocks[1:]):
            m.block_gaps.append(_block_gap(upper, lower))
    return m


# =========================================================================
# HEURISTICS
# =========================================================================

def check_navigation(m: PageMetrics, settings) -> Optional[Suggestion]:
    if m.navigation_link_count > settings.nav_link_threshold:
        return Suggestion(
            SuggestionKind.OVERCROWDED_NAVIGATION,
            f"Navigation has {m.navigation_link_count} links. Consider grouping them into categories.",
            "warning",
        )
    return None


def check_small_text(m: PageMetrics, settings) -> Optional[Suggestion]:
    if m.small_text:
        return Suggestion(
            SuggestionKind.SMALL_TEXT,
            f"{len(m.small_text)} text element(s) are smaller than {settings.small_font_px:g}px. "
            "Consider increasing the font size for better readability.",
            "warning",
        )
    return None


def check_headings(m: PageMetrics, settings) -> Optional[Suggestion]:
    previous = None
    for level, text, _locator in m.headings:
        if previous is not None and level > previous + 1:
            return Suggestion(
                SuggestionKind.HEADING_HIERARCHY,
                f"Heading levels skip from H{previous} to H{level}"
                f"{' at ' + repr(text) if text else ''}. Use consecutive heading levels.",
                "warning",
            )
        previous = level
    if not m.headings and m.word_count > settings.headingless_word_threshold:
        return Suggestion(
            SuggestionKind.HEADING_HIERARCHY,
            "Page lacks heading structure. Add H1, H2, H3 headings for better navigation and accessibility.",
            "info",
        )
    return None


def check_whitespace(m: PageMetrics, settings) -> Optional[Suggestion]:
    if not m.block_gaps:
        return None
    mean_gap = sum(m.block_gaps) / len(m.block_gaps)
    if mean_gap < settings.whitespace_min_px:
        return Suggestion(
            SuggestionKind.WHITESPACE,
            f"Blocks are only {mean_gap:.1f}px apart on average. "
            "Add padding or margin for a clearer visual hierarchy.",
            "info",
        )
    return None


def check_accessibility(m: PageMetrics, settings) -> Optional[Suggestion]:
    if m.images_missing_alt:
        return Suggestion(
            SuggestionKind.ACCESSIBILITY,
            f"{len(m.images_missing_alt)} image(s) are missing alt text. Add it for accessibility.",
            "warning",
        )
    return None


HEURISTICS: List[Callable[[PageMetrics, Any], Optional[Suggestion]]] = [
    check_navigation,
    check_small_text,
    check_headings,
    check_whitespace,
    check_accessibility,
]
