"""
Targeting - locators, hover and selection.
"""

from .locator import (
    format_locator,
    is_ancestor,
    is_valid_locator,
    parent_locator,
    parse_locator,
    tag_of,
)
from .inspector import (
    SELECTION_MODES,
    CustomizationMode,
    HoverSignal,
    SelectionSet,
    TargetingEngine,
)

__all__ = [
    'format_locator',
    'is_ancestor',
    'is_valid_locator',
    'parent_locator',
    'parse_locator',
    'tag_of',
    'SELECTION_MODES',
    'CustomizationMode',
    'HoverSignal',
    'SelectionSet',
    'TargetingEngine',
]
