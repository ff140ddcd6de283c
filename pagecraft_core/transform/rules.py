"""
Transformation rules - typed, ordered mutation instructions.

A rule is validated once, at construction. Anything malformed raises
RuleValidationError, so an invalid rule can never reach a batch or a template.
"""

import re
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from ..exceptions import RuleValidationError
from ..targeting.locator import is_ancestor, is_valid_locator

DEFAULT_HIGHLIGHT_COLOR = "#f59e0b"


class RuleType(str, Enum):
    HIDE = "hide"
    REMOVE = "remove"
    HIGHLIGHT = "highlight"
    REPLACE = "replace"
    STYLE = "style"
    MOVE = "move"


class ReplaceMode(str, Enum):
    TEXT = "text"
    HTML = "html"


class MovePosition(str, Enum):
    BEFORE = "before"
    AFTER = "after"
    APPEND = "append"


ALLOWED_PARAMETERS = {
    RuleType.HIDE: set(),
    RuleType.REMOVE: set(),
    RuleType.HIGHLIGHT: {"color"},
    RuleType.STYLE: {"styles"},
    RuleType.REPLACE: {"content", "mode"},
    RuleType.MOVE: {"target", "position"},
}

_PROPERTY_RE = re.compile(r"^(--[a-zA-Z0-9_-]+|-?[a-z][a-z0-9-]*)$")
_FORBIDDEN_VALUE_CHARS = (";", "{", "}")


def normalize_property(name: str) -> str:
    """fontSize -> font-size; custom properties (--x) are kept verbatim."""
    if name.startswith("--"):
        return name
    return re.sub(r"([A-Z])", lambda m: "-" + m.group(1).lower(), name).lower()


def _css_value(value: Any, what: str) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise RuleValidationError(f"{what} must be a string or number, got {type(value).__name__}")
    text = str(value).strip()
    if not text:
        raise RuleValidationError(f"{what} must not be empty")
    if any(ch in text for ch in _FORBIDDEN_VALUE_CHARS):
        raise RuleValidationError(f"{what} contains a forbidden character: {text!r}")
    return text


def _validate_parameters(rule_type: RuleType, locator: str, params: Mapping[str, Any]) -> Dict[str, Any]:
    unknown = set(params) - ALLOWED_PARAMETERS[rule_type]
    if unknown:
        raise RuleValidationError(
            f"Unexpected parameters for {rule_type.value}: {', '.join(sorted(unknown))}"
        )

    if rule_type == RuleType.HIGHLIGHT:
        return {"color": _css_value(params.get("color", DEFAULT_HIGHLIGHT_COLOR), "Highlight color")}

    if rule_type == RuleType.STYLE:
        styles = params.get("styles")
        if not isinstance(styles, Mapping) or not styles:
            raise RuleValidationError("Style rule needs a non-empty 'styles' mapping")
        normalized = {}
        for name, value in styles.items():
            if not isinstance(name, str):
                raise RuleValidationError(f"Style property must be a string, got {name!r}")
            prop = normalize_property(name.strip())
            if not _PROPERTY_RE.match(prop):
                raise RuleValidationError(f"Invalid style property: {name!r}")
            normalized[prop] = _css_value(value, f"Value of {prop}")
        return {"styles": MappingProxyType(normalized)}

    if rule_type == RuleType.REPLACE:
        content = params.get("content")
        if not isinstance(content, str):
            raise RuleValidationError("Replace rule needs string 'content'")
        try:
            mode = ReplaceMode(params.get("mode"))
        except ValueError:
            raise RuleValidationError(
                f"Replace rule needs 'mode' of 'text' or 'html', got {params.get('mode')!r}"
            )
        return {"content": content, "mode": mode.value}

    if rule_type == RuleType.MOVE:
        target = params.get("target")
        if not isinstance(target, str) or not is_valid_locator(target):
            raise RuleValidationError(f"Move rule needs a valid 'target' locator, got {target!r}")
        if target == locator or is_ancestor(locator, target):
            raise RuleValidationError("Move target must not be the node itself or inside it")
        try:
            position = MovePosition(params.get("position", MovePosition.APPEND.value))
        except ValueError:
            raise RuleValidationError(
                f"Move position must be before, after or append, got {params.get('position')!r}"
            )
        return {"target": target, "position": position.value}

    return {}


@dataclass(frozen=True)
class TransformationRule:
    """
    One typed, ordered mutation of a single node.

    Attributes:
        type: hide | remove | highlight | replace | style | move
        locator: node path (see targeting.locator)
        parameters: type-specific, validated and normalized
        order_index: position within its batch or template
        id: unique rule id
    """
    type: RuleType
    locator: str
    parameters: Mapping[str, Any] = field(default_factory=dict)
    order_index: int = 0
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        try:
            rule_type = RuleType(self.type)
        except ValueError:
            raise RuleValidationError(f"Unknown rule type: {self.type!r}")
        if not isinstance(self.locator, str) or not is_valid_locator(self.locator):
            raise RuleValidationError(f"Invalid locator: {self.locator!r}")
        if isinstance(self.order_index, bool) or not isinstance(self.order_index, int) or self.order_index < 0:
            raise RuleValidationError(f"order_index must be a non-negative integer, got {self.order_index!r}")
        if not isinstance(self.id, str) or not self.id.strip():
            raise RuleValidationError("Rule id must be a non-empty string")
        if not isinstance(self.parameters, Mapping):
            raise RuleValidationError("Rule parameters must be a mapping")

        params = _validate_parameters(rule_type, self.locator, self.parameters)
        object.__setattr__(self, "type", rule_type)
        object.__setattr__(self, "parameters", MappingProxyType(params))

    def with_order(self, order_index: int) -> "TransformationRule":
        return replace(self, order_index=order_index)

    def to_dict(self) -> Dict[str, Any]:
        params = {
            key: dict(value) if isinstance(value, Mapping) else value
            for key, value in self.parameters.items()
        }
        return {
            "id": self.id,
            "type": self.type.value,
            "locator": self.locator,
            "parameters": params,
            "orderIndex": self.order_index,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TransformationRule":
        if not isinstance(data, Mapping):
            raise RuleValidationError(f"Rule record must be an object, got {type(data).__name__}")
        kwargs = {
            "type": data.get("type"),
            "locator": data.get("locator"),
            "parameters": data.get("parameters") or {},
            "order_index": data.get("orderIndex", 0),
        }
        if data.get("id"):
            kwargs["id"] = data["id"]
        return cls(**kwargs)

    def describe(self) -> str:
        return f"{self.type.value} {self.locator}"


def make_rule(rule_type, locator: str, order_index: int = 0, rule_id: Optional[str] = None,
              **parameters) -> TransformationRule:
    """Shorthand: make_rule("style", loc, styles={"color": "red"})."""
    if rule_id:
        return TransformationRule(rule_type, locator, parameters, order_index, rule_id)
    return TransformationRule(rule_type, locator, parameters, order_index)


def renumber(rules) -> list:
    """Return rules with order_index 0..n-1 in their current order."""
    return [rule.with_order(i) for i, rule in enumerate(rules)]
