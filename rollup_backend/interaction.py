"""
Interaction surface - clicks on drawn nodes and the state choice menu.

The browser reports clicks to the API; this module holds the server-side
half: which handler a click goes to, and the transient menu that lets the
user pick a node state.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from rollup_core import NodeState, MenuNotOpenError
from rollup_core.models import normalize_state

logger = logging.getLogger(__name__)


MENU_ITEMS = [
    {"label": "Include", "value": NodeState.INCLUDED.value},
    {"label": "Invert", "value": NodeState.INVERTED.value},
    {"label": "Exclude", "value": NodeState.EXCLUDED.value},
]


@dataclass
class MenuState:
    """Where the menu is shown, and for which node."""
    visible: bool = False
    x: float = 0.0
    y: float = 0.0
    node_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "visible": self.visible,
            "x": self.x,
            "y": self.y,
            "node_id": self.node_id,
            "items": MENU_ITEMS,
        }


class ChoiceMenu:
    """
    A menu offering the three node states at a screen position.

    Choosing a value calls the callback given to show() and hides the
    menu; any click outside the menu should call hide().
    """

    def __init__(self):
        self._state = MenuState()
        self._on_choose: Optional[Callable[[NodeState], None]] = None

    @property
    def state(self) -> MenuState:
        return self._state

    @property
    def visible(self) -> bool:
        return self._state.visible

    def show(self, x: float, y: float, on_choose: Callable[[NodeState], None],
             node_id: Optional[str] = None):
        self._state = MenuState(visible=True, x=x, y=y, node_id=node_id)
        self._on_choose = on_choose

    def hide(self):
        self._state = MenuState()
        self._on_choose = None

    def choose(self, value: NodeState | str) -> NodeState:
        if not self._state.visible or self._on_choose is None:
            raise MenuNotOpenError("No menu is open")
        state = NodeState(normalize_state(value))
        callback = self._on_choose
        self.hide()
        callback(state)
        return state


class InteractionSurface:
    """
    Relays clicks on drawn nodes to handlers.

    Handlers receive (node, pointer event). The renderer owns the handler
    lists; this class wires the default gestures and owns the menu.
    """

    def __init__(self, renderer):
        self.renderer = renderer
        self.menu = ChoiceMenu()

    def on_primary_click(self, handler):
        self.renderer.on_primary_click(handler)

    def on_secondary_click(self, handler):
        self.renderer.on_secondary_click(handler)

    def primary_click(self, node_id: str):
        # Any click outside the menu closes it
        self.menu.hide()
        self.renderer.primary_click(node_id)

    def secondary_click(self, node_id: str, x: float, y: float):
        self.renderer.secondary_click(node_id, x, y)

    def outside_click(self):
        self.menu.hide()
