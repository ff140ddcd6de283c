"""
Template persistence and URL matching.
"""

from .matchers import ExactUrlMatcher, UrlMatcher
from .storage import JsonFileStorage, KeyValueStorage, MemoryStorage
from .store import NAMESPACE_KEY, Template, TemplateStore, now_ms

__all__ = [
    'ExactUrlMatcher',
    'UrlMatcher',
    'JsonFileStorage',
    'KeyValueStorage',
    'MemoryStorage',
    'NAMESPACE_KEY',
    'Template',
    'TemplateStore',
    'now_ms',
]
