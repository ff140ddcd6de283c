"""
Restructuring presets - named rule batches generated from a snapshot.
"""

from .generator import (
    PRESETS,
    clean,
    focus,
    generate,
    get_preset,
    list_presets,
    mobile,
    readability,
    simplify,
)

__all__ = [
    'PRESETS',
    'clean',
    'focus',
    'generate',
    'get_preset',
    'list_presets',
    'mobile',
    'readability',
    'simplify',
]
