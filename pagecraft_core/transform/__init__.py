"""
Transformation rules and the engine that applies them.
"""

from .rules import (
    DEFAULT_HIGHLIGHT_COLOR,
    MovePosition,
    ReplaceMode,
    RuleType,
    TransformationRule,
    make_rule,
    renumber,
)
from .engine import BatchReport, RuleOutcome, RuleStatus, TransformationEngine

__all__ = [
    'DEFAULT_HIGHLIGHT_COLOR',
    'MovePosition',
    'ReplaceMode',
    'RuleType',
    'TransformationRule',
    'make_rule',
    'renumber',
    'BatchReport',
    'RuleOutcome',
    'RuleStatus',
    'TransformationEngine',
]
