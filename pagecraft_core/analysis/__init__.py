"""
Page analysis - metrics and heuristic suggestions from a document snapshot.
"""

from .snapshot import PageSnapshot, SnapshotNode
from .heuristics import PageMetrics, Suggestion, SuggestionKind, collect_metrics
from .analyzer import AnalysisResult, PageAnalyzer, reading_time_minutes
from .content import find_main_content

__all__ = [
    'PageSnapshot',
    'SnapshotNode',
    'PageMetrics',
    'Suggestion',
    'SuggestionKind',
    'collect_metrics',
    'AnalysisResult',
    'PageAnalyzer',
    'reading_time_minutes',
    'find_main_content',
]
