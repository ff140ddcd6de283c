"""
URL matchers deciding which templates belong to a page.
"""

from abc import ABC, abstractmethod


class UrlMatcher(ABC):
    @abstractmethod
    def matches(self, url_pattern: str, url: str) -> bool:
        ...


class ExactUrlMatcher(UrlMatcher):
    """A template matches only the exact address it was saved for."""

    def matches(self, url_pattern: str, url: str) -> bool:
        return bool(url_pattern) and url_pattern == url
