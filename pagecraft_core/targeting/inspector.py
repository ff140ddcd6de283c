"""
Targeting & inspection - locators, hover and selection state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional

from ..bridge.base import PageBridge
from ..diagnostics import get_logger

logger = get_logger(__name__)


class CustomizationMode(str, Enum):
    OFF = "off"
    INSPECT = "inspect"
    SELECT = "select"
    STYLE = "style"
    RESTRUCTURE = "restructure"


SELECTION_MODES = frozenset({CustomizationMode.SELECT, CustomizationMode.STYLE})


@dataclass(frozen=True)
class HoverSignal:
    locator: str
    tag: Optional[str] = None


HoverListener = Callable[[HoverSignal], Any]


class SelectionSet:
    """Insertion-ordered set of locators. Never persisted."""

    def __init__(self):
        # dict keeps insertion order
        self._items: Dict[str, None] = {}

    def toggle(self, locator: str) -> bool:
        """Remove if present, append if absent. Returns True when now selected."""
        if locator in self._items:
            del self._items[locator]
            return False
        self._items[locator] = None
        return True

    def add(self, locator: str) -> None:
        self._items.setdefault(locator, None)

    def discard(self, locator: str) -> None:
        self._items.pop(locator, None)

    def clear(self) -> None:
        self._items.clear()

    def as_list(self) -> List[str]:
        return list(self._items)

    def __contains__(self, locator: object) -> bool:
        return locator in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)


class TargetingEngine:
    """
    Mode-driven pointer handling plus locator computation/resolution.

    Pointer events arrive with the locator already computed in-page, so
    handling them is constant time and never touches the document.
    """

    def __init__(self, bridge: PageBridge):
        self.bridge = bridge
        self.mode = CustomizationMode.OFF
        self.selection = SelectionSet()
        self.hover_locator: Optional[str] = None
        self._listeners: List[HoverListener] = []

    async def compute_locator(self, node: Any) -> str:
        return await self.bridge.compute_locator(node)

    async def resolve(self, locator: str) -> Optional[Any]:
        return await self.bridge.resolve(locator)

    def set_mode(self, mode) -> CustomizationMode:
        new_mode = CustomizationMode(mode)
        old_mode = self.mode
        if old_mode in SELECTION_MODES and new_mode not in SELECTION_MODES:
            self.selection.clear()
        if new_mode in SELECTION_MODES and old_mode not in SELECTION_MODES:
            self.selection = SelectionSet()
        if new_mode != CustomizationMode.INSPECT:
            self.hover_locator = None
        self.mode = new_mode
        logger.debug(f"Mode {old_mode.value} -> {new_mode.value}")
        return new_mode

    def add_listener(self, listener: HoverListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: HoverListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def on_pointer_move(self, locator: Optional[str], tag: Optional[str] = None) -> Optional[HoverSignal]:
        """Emit a hover signal when the hovered node changes (inspect mode only)."""
        if self.mode != CustomizationMode.INSPECT or not locator:
            return None
        if locator == self.hover_locator:
            return None
        self.hover_locator = locator
        signal = HoverSignal(locator, tag)
        for listener in list(self._listeners):
            listener(signal)
        return signal

    def on_pointer_down(self, locator: Optional[str]) -> Optional[bool]:
        """Toggle selection membership (selection modes only)."""
        if self.mode not in SELECTION_MODES or not locator:
            return None
        return self.selection.toggle(locator)

    def reset(self) -> None:
        """Drop transient state after navigation or reload."""
        self.selection.clear()
        self.hover_locator = None
