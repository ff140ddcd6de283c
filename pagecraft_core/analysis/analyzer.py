"""
Page Analyzer - structural metrics and improvement suggestions.

Works on a PageSnapshot, so analysis is one bridge call followed by pure
Python; the live document is never touched.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..bridge.base import PageBridge
from ..config import config
from ..diagnostics import get_logger
from .heuristics import HEURISTICS, Suggestion, SuggestionKind, collect_metrics
from .snapshot import PageSnapshot

logger = get_logger(__name__)


@dataclass
class AnalysisResult:
    element_count: int
    image_count: int
    link_count: int
    form_count: int
    section_count: int
    reading_time_minutes: int
    suggestions: List[Suggestion] = field(default_factory=list)
    word_count: int = 0
    navigation_link_count: int = 0
    headings: List[Dict[str, Any]] = field(default_factory=list)
    url: str = ""
    title: str = ""

    @property
    def suggestion_kinds(self) -> set:
        return {s.kind for s in self.suggestions}

    def suggestion(self, kind) -> Optional[Suggestion]:
        kind = SuggestionKind(kind)
        for s in self.suggestions:
            if s.kind == kind:
                return s
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "elementCount": self.element_count,
            "imageCount": self.image_count,
            "linkCount": self.link_count,
            "formCount": self.form_count,
            "sectionCount": self.section_count,
            "readingTimeMinutes": self.reading_time_minutes,
            "wordCount": self.word_count,
            "navigationLinkCount": self.navigation_link_count,
            "headings": self.headings,
            "suggestions": [s.to_dict() for s in self.suggestions],
        }


def reading_time_minutes(word_count: int, words_per_minute: int) -> int:
    """ceil(words / wpm), never less than one minute."""
    wpm = words_per_minute if words_per_minute > 0 else 200
    return max(1, math.ceil(word_count / wpm))


class PageAnalyzer:
    def __init__(self, settings=None):
        self.settings = settings or config

    def analyze(self, snapshot: PageSnapshot) -> AnalysisResult:
        metrics = collect_metrics(snapshot, self.settings.small_font_px)

        suggestions: Dict[SuggestionKind, Suggestion] = {}
        for check in HEURISTICS:
            suggestion = check(metrics, self.settings)
            if suggestion is not None and suggestion.kind not in suggestions:
                suggestions[suggestion.kind] = suggestion

        result = AnalysisResult(
            element_count=metrics.element_count,
            image_count=metrics.image_count,
            link_count=metrics.link_count,
            form_count=metrics.form_count,
            section_count=metrics.section_count,
            reading_time_minutes=reading_time_minutes(metrics.word_count, self.settings.words_per_minute),
            suggestions=list(suggestions.values()),
            word_count=metrics.word_count,
            navigation_link_count=metrics.navigation_link_count,
            headings=[{"level": level, "text": text} for level, text, _ in metrics.headings],
            url=snapshot.url,
            title=snapshot.title,
        )
        logger.debug(
            f"Analyzed {snapshot.url}: {result.element_count} elements, "
            f"{len(result.suggestions)} suggestion(s)"
        )
        return result

    async def analyze_page(self, bridge: PageBridge) -> AnalysisResult:
        snapshot = PageSnapshot.from_dict(await bridge.snapshot())
        return self.analyze(snapshot)
