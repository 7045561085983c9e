"""
Tree Manager - Core logic for tree state, rendering and user commands.

This module implements:
- Single tree state management (one tree loaded at a time)
- User commands (set state, toggle, expand/collapse all) as direct calls
- Re-projection and re-rendering after every mutation
- Default click wiring: primary click toggles, secondary click opens the
  state menu
- Change callbacks for real-time sync
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

from rollup_core import (
    AggregationEngine, NodeState, Node, NotCollapsibleError,
    TreeDiffRenderer, Transition, VisibleNode, project, summarize_tree,
)
from rollup_core.renderer import PointerEvent

from .interaction import InteractionSurface
from .settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class TreeManager:
    """
    Manages a single tree's state and its drawn representation.

    Every mutation follows the same path: the engine mutates and
    recomputes, the visible tree is projected, the renderer starts a
    transition, and change callbacks are told about it.
    """

    def __init__(self, settings: Optional[Settings] = None,
                 clock: Optional[Callable[[], float]] = None):
        self.settings = settings or default_settings
        renderer_kwargs = {}
        if clock is not None:
            renderer_kwargs["clock"] = clock
        self.renderer = TreeDiffRenderer(
            width=self.settings.width,
            height=self.settings.height,
            duration=self.settings.transition_seconds,
            **renderer_kwargs,
        )
        self.interaction = InteractionSurface(self.renderer)
        self._engine: Optional[AggregationEngine] = None
        self._on_change_callbacks: list[Callable[[Transition], None]] = []

        self.interaction.on_primary_click(self._on_primary_click)
        self.interaction.on_secondary_click(self._on_secondary_click)

    # --- Properties ---

    @property
    def engine(self) -> Optional[AggregationEngine]:
        return self._engine

    @property
    def is_loaded(self) -> bool:
        return self._engine is not None

    def _require_engine(self) -> AggregationEngine:
        if self._engine is None:
            raise ValueError("No tree loaded")
        return self._engine

    # --- Change Callbacks ---

    def on_change(self, callback: Callable[[Transition], None]):
        """Register a callback for tree changes."""
        self._on_change_callbacks.append(callback)

    def _notify_change(self, transition: Transition):
        """Notify all registered callbacks of a change."""
        for callback in self._on_change_callbacks:
            callback(transition)

    # --- Loading ---

    def load(self, input_tree: Any) -> Node:
        """
        Replace the tree with one built from `input_tree`.

        On MalformedInputError the current tree stays loaded.
        """
        engine = AggregationEngine.from_input(input_tree)
        self._engine = engine
        self.interaction.menu.hide()
        # Ids restart with every build, so the drawn layout cannot be reused
        self.renderer.reset()
        logger.info("Loaded tree '%s' with %d nodes", engine.get_root().name, len(engine))
        self._refresh()
        return engine.get_root()

    def load_file(self, file_path: str | Path) -> Node:
        """Load a tree from a JSON file."""
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Tree file not found: {path}")
        with open(path, 'r') as f:
            data = json.load(f)
        return self.load(data)

    # --- Rendering ---

    def visible_tree(self) -> Optional[VisibleNode]:
        if self._engine is None:
            return None
        return project(self._engine.get_root())

    def _refresh(self) -> Transition:
        transition = self.renderer.render(self.visible_tree())
        self._notify_change(transition)
        return transition

    # --- Commands ---

    def set_state(self, node_id: str, state: NodeState | str) -> Node:
        node = self._require_engine().set_state(node_id, state)
        self._refresh()
        return node

    def toggle_collapse(self, node_id: str) -> Node:
        node = self._require_engine().toggle_collapse(node_id)
        self._refresh()
        return node

    def expand_all(self) -> int:
        changed = self._require_engine().expand_all()
        self._refresh()
        return changed

    def collapse_all(self) -> int:
        changed = self._require_engine().collapse_all()
        self._refresh()
        return changed

    def get_node(self, node_id: str) -> Node:
        return self._require_engine().get_node(node_id)

    # --- Gestures ---

    def _on_primary_click(self, node: Node, event: PointerEvent):
        try:
            self.toggle_collapse(node.id)
        except NotCollapsibleError:
            # Clicking a leaf does nothing
            logger.debug("Ignored click on leaf %s", node.id)

    def _on_secondary_click(self, node: Node, event: PointerEvent):
        node_id = node.id
        self.interaction.menu.show(
            event.x, event.y,
            lambda state: self.set_state(node_id, state),
            node_id=node_id,
        )

    # --- Views ---

    def get_state(self) -> dict:
        """The full tree, for API responses."""
        if self._engine is None:
            return {"tree": None}
        return {"tree": self._engine.get_root().to_json_dict()}

    def get_visible_state(self) -> dict:
        """The visible tree, collapsed subtrees pruned."""
        visible = self.visible_tree()
        if visible is None:
            return {"tree": None}

        def fields(v: VisibleNode) -> dict:
            return {
                "id": v.id,
                "name": v.name,
                "state": v.state.value,
                "aggregate_value": v.aggregate_value,
                "collapsed": v.collapsed,
                "has_hidden_children": v.has_hidden_children,
                "children": [],
            }

        tree = fields(visible)
        stack = [(visible, tree)]
        while stack:
            v, data = stack.pop()
            for child in v.children:
                child_data = fields(child)
                data["children"].append(child_data)
                stack.append((child, child_data))
        return {"tree": tree}

    def summary(self) -> dict:
        return summarize_tree(self._require_engine().get_root()).to_dict()
