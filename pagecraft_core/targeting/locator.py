"""
Locators - snapshot-scoped node paths

A locator is the root-to-node chain of tag name and 1-based same-tag sibling
index, written as an absolute XPath-style path::

    /html[1]/body[1]/div[2]/p[1]

The same format is produced by the in-page agent (JavaScript) and by the
offline HTML backend. The offline backend adds the implied `tbody` a browser
inserts into tables, so locators carry across for well-formed markup. Pages
whose markup the browser repairs differently from `html.parser` (misnested
or unclosed tags, or scripts that rewrite the DOM) can still yield different
paths for the same node.
"""

import re
from typing import List, Optional, Tuple

Step = Tuple[str, int]

_STEP_RE = re.compile(r"^([a-z_][a-z0-9._:-]*)\[([1-9][0-9]*)\]$")


def format_locator(steps: List[Step]) -> str:
    return "".join(f"/{tag}[{index}]" for tag, index in steps)


def parse_locator(locator: str) -> List[Step]:
    """Split a locator into (tag, index) steps.

    Raises ValueError for anything that is not a well-formed locator.
    """
    if not isinstance(locator, str) or not locator.startswith("/"):
        raise ValueError(f"Invalid locator: {locator!r}")
    steps: List[Step] = []
    for part in locator[1:].split("/"):
        m = _STEP_RE.match(part)
        if not m:
            raise ValueError(f"Invalid locator step {part!r} in {locator!r}")
        steps.append((m.group(1), int(m.group(2))))
    return steps


def is_valid_locator(locator: str) -> bool:
    try:
        parse_locator(locator)
    except ValueError:
        return False
    return True


def parent_locator(locator: str) -> Optional[str]:
    steps = parse_locator(locator)
    if len(steps) <= 1:
        return None
    return format_locator(steps[:-1])


def is_ancestor(ancestor: str, locator: str) -> bool:
    """True when `ancestor` is a strict ancestor of `locator`."""
    return locator.startswith(ancestor + "/")


def tag_of(locator: str) -> str:
    return parse_locator(locator)[-1][0]
