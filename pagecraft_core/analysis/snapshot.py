"""
Page snapshot - read model of a document captured in one bridge call.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

_STYLE_DEFAULTS = {
    "fontSize": 16.0,
    "lineHeight": None,
    "position": "static",
    "display": "inline",
    "backgroundImage": "none",
    "marginTop": 0.0,
    "marginRight": 0.0,
    "marginBottom": 0.0,
    "marginLeft": 0.0,
    "paddingTop": 0.0,
    "paddingRight": 0.0,
    "paddingBottom": 0.0,
    "paddingLeft": 0.0,
}

MARGIN_PROPERTIES = {
    "marginTop": "margin-top",
    "marginRight": "margin-right",
    "marginBottom": "margin-bottom",
    "marginLeft": "margin-left",
}
PADDING_PROPERTIES = {
    "paddingTop": "padding-top",
    "paddingRight": "padding-right",
    "paddingBottom": "padding-bottom",
    "paddingLeft": "padding-left",
}


@dataclass
class SnapshotNode:
    locator: str
    tag: str
    attrs: Dict[str, str] = field(default_factory=dict)
    text: str = ""
    visible: bool = True
    style: Dict[str, Any] = field(default_factory=dict)
    children: List["SnapshotNode"] = field(default_factory=list)
    parent: Optional["SnapshotNode"] = field(default=None, repr=False, compare=False)

    @classmethod
    def _single(cls, data: Dict[str, Any], parent: Optional["SnapshotNode"]) -> "SnapshotNode":
        style = dict(_STYLE_DEFAULTS)
        style.update(data.get("style") or {})
        return cls(
            locator=data["locator"],
            tag=str(data.get("tag", "")).lower(),
            attrs={str(k): str(v) for k, v in (data.get("attrs") or {}).items()},
            text=data.get("text") or "",
            visible=bool(data.get("visible", True)),
            style=style,
            parent=parent,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any], parent: Optional["SnapshotNode"] = None) -> "SnapshotNode":
        """Build the tree with an explicit stack, like walk()."""
        root = cls._single(data, parent)
        stack = [(root, data)]
        while stack:
            node, raw = stack.pop()
            for child_data in raw.get("children") or []:
                child = cls._single(child_data, node)
                node.children.append(child)
                stack.append((child, child_data))
        return root

    def walk(self) -> Iterator["SnapshotNode"]:
        """Pre-order (document order) traversal including self."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def ancestors(self) -> Iterator["SnapshotNode"]:
        cur = self.parent
        while cur is not None:
            yield cur
            cur = cur.parent

    @property
    def classes(self) -> List[str]:
        return self.attrs.get("class", "").split()

    @property
    def role(self) -> str:
        return self.attrs.get("role", "").strip().lower()

    @property
    def font_size(self) -> float:
        return float(self.style.get("fontSize") or 0.0)

    @property
    def position(self) -> str:
        return str(self.style.get("position") or "static").lower()

    @property
    def display(self) -> str:
        return str(self.style.get("display") or "inline").lower()

    @property
    def has_background_image(self) -> bool:
        return "url(" in str(self.style.get("backgroundImage") or "").lower()

    def px(self, prop: str) -> float:
        try:
            return float(self.style.get(prop) or 0.0)
        except (TypeError, ValueError):
            return 0.0

    def subtree_text(self, visible_only: bool = True) -> str:
        parts = [n.text for n in self.walk() if n.text and (n.visible or not visible_only)]
        return " ".join(parts)

    def element_children(self, visible_only: bool = False) -> List["SnapshotNode"]:
        if visible_only:
            return [c for c in self.children if c.visible]
        return list(self.children)


@dataclass
class PageSnapshot:
    url: str
    title: str
    root: SnapshotNode

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PageSnapshot":
        return cls(
            url=str(data.get("url") or ""),
            title=str(data.get("title") or ""),
            root=SnapshotNode.from_dict(data["root"]),
        )

    def walk(self) -> Iterator[SnapshotNode]:
        return self.root.walk()

    @property
    def body(self) -> Optional[SnapshotNode]:
        for child in self.root.children:
            if child.tag == "body":
                return child
        return None

    def find(self, locator: str) -> Optional[SnapshotNode]:
        for node in self.walk():
            if node.locator == locator:
                return node
        return None

    def document_order(self) -> Dict[str, int]:
        return {node.locator: i for i, node in enumerate(self.walk())}
