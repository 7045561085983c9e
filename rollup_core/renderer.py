"""
Tree-diff renderer - maps a new visible tree onto the last drawn layout.

Each render:
1. Asks the layout engine for a position per visible node
2. Classifies nodes and edges (keyed by child id) into enter/update/exit
3. Starts a timed transition from the currently drawn positions

Frames are sampled from the active transition with `frame()`; a drawing
surface (SVG export, browser client) paints them. A render that arrives
mid-transition starts from the interpolated positions, so nothing snaps.
"""

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .diff import Motion, Phase, TreeDiff, diff, plan_transition
from .errors import NodeNotFoundError
from .layout import LayoutNode, tree_layout
from .models import NodeState, Point, normalize_state

logger = logging.getLogger(__name__)


DEFAULT_DURATION = 0.75  # seconds

STATE_COLORS = {
    NodeState.INCLUDED: "#4c6ef5",
    NodeState.INVERTED: "#ff6b6b",
    NodeState.EXCLUDED: "#868e96",
}

GLYPH_COLLAPSED = "►"
GLYPH_EXPANDED = "▼"


# --- Visual encoding ---

def node_color(state: NodeState) -> str:
    return STATE_COLORS[state]


def text_decoration(state: NodeState) -> str:
    return "line-through" if state == NodeState.EXCLUDED else "none"


def format_label(name: str, value: float) -> str:
    """`name: value` with the value rounded to one decimal."""
    rounded = round(value, 1) or 0.0  # no "-0.0"
    return f"{name}: {rounded:.1f}"


def toggle_glyph(has_children: bool, collapsed: bool) -> Optional[str]:
    if not has_children:
        return None
    return GLYPH_COLLAPSED if collapsed else GLYPH_EXPANDED


def link_path(source: Point, target: Point, orientation: str = "horizontal") -> str:
    """SVG path for a smooth curve from parent to child."""
    sx, sy = source
    tx, ty = target
    if orientation == "horizontal":
        mx = (sx + tx) / 2
        return f"M{sx:.2f},{sy:.2f}C{mx:.2f},{sy:.2f} {mx:.2f},{ty:.2f} {tx:.2f},{ty:.2f}"
    my = (sy + ty) / 2
    return f"M{sx:.2f},{sy:.2f}C{sx:.2f},{my:.2f} {tx:.2f},{my:.2f} {tx:.2f},{ty:.2f}"


def ease_cubic_in_out(t: float) -> float:
    t = min(max(t, 0.0), 1.0) * 2
    if t <= 1:
        return t * t * t / 2
    t -= 2
    return (t * t * t + 2) / 2


def lerp(a: Point, b: Point, t: float) -> Point:
    return Point(a.x + (b.x - a.x) * t, a.y + (b.y - a.y) * t)


# --- Reading visible nodes ---

def _get(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _as_state(value: Any) -> NodeState:
    try:
        return NodeState(normalize_state(value))
    except ValueError:
        return NodeState.INCLUDED


def _as_number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


@dataclass
class NodeSnapshot:
    """What was drawn for one node: its place in the tree and its look."""
    key: str
    parent_key: Optional[str]
    depth: int
    name: str
    state: NodeState
    value: float
    has_children: bool
    collapsed: bool
    data: Any = None
    child_keys: list[str] = field(default_factory=list)

    @property
    def label(self) -> str:
        return format_label(self.name, self.value)

    @property
    def color(self) -> str:
        return node_color(self.state)

    @property
    def decoration(self) -> str:
        return text_decoration(self.state)

    @property
    def glyph(self) -> Optional[str]:
        return toggle_glyph(self.has_children, self.collapsed)


def snapshot_tree(root: Any) -> list[NodeSnapshot]:
    """
    Flatten a visible tree into snapshots, parent-first.

    Tolerates partial nodes: a missing id is derived from the parent's key
    and the child index, a missing value counts as 0, missing children as
    none. Accepts VisibleNode, Node, mappings, or anything with matching
    attributes.
    """
    if root is None:
        return []
    snapshots: list[NodeSnapshot] = []
    seen: set[str] = set()
    stack: list[tuple[Any, Optional[NodeSnapshot], int]] = [(root, None, 0)]
    while stack:
        obj, parent, index = stack.pop()
        key = _get(obj, "id")
        if key is None or key in seen:
            base = parent.key if parent is not None else "root"
            key = f"{base}/{index}"
        key = str(key)
        seen.add(key)

        children = _get(obj, "children") or []
        hidden = bool(_get(obj, "has_hidden_children", False))
        has_children = _get(obj, "has_children")
        if has_children is None:
            has_children = bool(children) or hidden

        snapshot = NodeSnapshot(
            key=key,
            parent_key=parent.key if parent is not None else None,
            depth=parent.depth + 1 if parent is not None else 0,
            name=str(_get(obj, "name", "") or ""),
            state=_as_state(_get(obj, "state")),
            value=_as_number(_get(obj, "aggregate_value")),
            has_children=bool(has_children),
            collapsed=bool(_get(obj, "collapsed", False)) or hidden,
            data=_get(obj, "node", obj),
        )
        if parent is not None:
            parent.child_keys.append(key)
        snapshots.append(snapshot)
        for i in range(len(children) - 1, -1, -1):
            stack.append((children[i], snapshot, i))
    return snapshots


# --- Frames ---

@dataclass
class FrameNode:
    """One node as drawn in a frame."""
    id: str
    x: float
    y: float
    phase: Phase
    opacity: float
    color: str
    label: str
    text_decoration: str
    glyph: Optional[str]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "phase": self.phase.value,
            "opacity": self.opacity,
            "color": self.color,
            "label": self.label,
            "text_decoration": self.text_decoration,
            "glyph": self.glyph,
        }


@dataclass
class FrameLink:
    """One parent-child connector, keyed by the child's id."""
    id: str
    source: Point
    target: Point
    phase: Phase
    opacity: float
    path: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source": list(self.source),
            "target": list(self.target),
            "phase": self.phase.value,
            "opacity": self.opacity,
            "path": self.path,
        }


@dataclass
class Frame:
    """Everything a surface needs to paint at one instant."""
    width: float
    height: float
    progress: float
    done: bool
    links: list[FrameLink] = field(default_factory=list)
    nodes: list[FrameNode] = field(default_factory=list)

    def node(self, key: str) -> Optional[FrameNode]:
        for n in self.nodes:
            if n.id == key:
                return n
        return None

    def to_dict(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "progress": self.progress,
            "done": self.done,
            "links": [link.to_dict() for link in self.links],
            "nodes": [n.to_dict() for n in self.nodes],
        }


class Transition:
    """
    A timed move from the previously drawn layout to a new one.

    Holds the motion of every node being drawn (entering, updating and
    exiting), the snapshot to draw it with, and its start/end opacity.
    """

    def __init__(
        self,
        started_at: float,
        duration: float,
        nodes: TreeDiff,
        edges: TreeDiff,
        motions: dict[str, Motion],
        snapshots: dict[str, NodeSnapshot],
        opacities: dict[str, tuple[float, float]],
        order: list[str],
    ):
        self.started_at = started_at
        self.duration = duration
        self.nodes = nodes
        self.edges = edges
        self.motions = motions
        self.snapshots = snapshots
        self.opacities = opacities
        self.order = order

    def progress(self, now: float) -> float:
        if self.duration <= 0:
            return 1.0
        return min(max((now - self.started_at) / self.duration, 0.0), 1.0)

    def is_finished(self, now: float) -> bool:
        return self.progress(now) >= 1.0

    def target_positions(self) -> dict[str, Point]:
        """End positions of everything that stays drawn."""
        return {
            key: m.end for key, m in self.motions.items()
            if m.phase != Phase.EXIT
        }

    def target_parents(self) -> dict[str, Optional[str]]:
        return {
            key: self.snapshots[key].parent_key for key, m in self.motions.items()
            if m.phase != Phase.EXIT
        }

    def positions_at(self, now: float) -> dict[str, Point]:
        """Drawn position per key; exiting keys are dropped once finished."""
        if self.is_finished(now):
            return self.target_positions()
        t = ease_cubic_in_out(self.progress(now))
        return {key: lerp(m.start, m.end, t) for key, m in self.motions.items()}

    def parents_at(self, now: float) -> dict[str, Optional[str]]:
        if self.is_finished(now):
            return self.target_parents()
        return {key: self.snapshots[key].parent_key for key in self.motions}

    def opacities_at(self, now: float) -> dict[str, float]:
        if self.is_finished(now):
            return {key: 1.0 for key in self.target_positions()}
        t = ease_cubic_in_out(self.progress(now))
        return {key: a + (b - a) * t for key, (a, b) in self.opacities.items()}

    def snapshot_for(self, key: str) -> Optional[NodeSnapshot]:
        return self.snapshots.get(key)

    def frame_at(self, now: float, width: float, height: float,
                 orientation: str = "horizontal") -> Frame:
        progress = self.progress(now)
        done = progress >= 1.0
        positions = self.positions_at(now)
        opacities = self.opacities_at(now)
        frame = Frame(width=width, height=height, progress=progress, done=done)

        for key in self.order:
            if key not in positions:
                continue
            snap = self.snapshots[key]
            motion = self.motions[key]
            pos = positions[key]
            phase = Phase.UPDATE if done else motion.phase
            opacity = opacities.get(key, 1.0)

            if snap.parent_key is not None:
                source = positions.get(snap.parent_key, pos)
                frame.links.append(FrameLink(
                    id=key,
                    source=source,
                    target=pos,
                    phase=phase,
                    opacity=opacity,
                    path=link_path(source, pos, orientation),
                ))
            frame.nodes.append(FrameNode(
                id=key,
                x=pos.x,
                y=pos.y,
                phase=phase,
                opacity=opacity,
                color=snap.color,
                label=snap.label,
                text_decoration=snap.decoration,
                glyph=snap.glyph,
            ))
        return frame


NodeHandler = Callable[[Any, "PointerEvent"], None]


@dataclass
class PointerEvent:
    """A click relayed from the drawing surface."""
    button: str  # "primary" or "secondary"
    node_id: str
    x: Optional[float] = None
    y: Optional[float] = None


class TreeDiffRenderer:
    """
    Keeps the last drawn layout and turns new visible trees into transitions.

    The renderer is the only component that decides what is on the
    drawing surface. Clicks on drawn nodes are relayed to registered
    handlers with the node's data.
    """

    def __init__(
        self,
        width: float,
        height: float,
        duration: float = DEFAULT_DURATION,
        orientation: str = "horizontal",
        layout: Callable[..., dict[str, Point]] = tree_layout,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.width = width
        self.height = height
        self.duration = duration
        self.orientation = orientation
        self._layout = layout
        self._clock = clock
        self._transition: Optional[Transition] = None
        self._previous_positions: dict[str, Point] = {}
        self._previous_parents: dict[str, Optional[str]] = {}
        self._render_count = 0
        self._primary_handlers: list[NodeHandler] = []
        self._secondary_handlers: list[NodeHandler] = []

    # --- State ---

    @property
    def transition(self) -> Optional[Transition]:
        return self._transition

    @property
    def render_count(self) -> int:
        return self._render_count

    @property
    def previous_layout(self) -> dict[str, Point]:
        """The layout stored by the last completed transition."""
        self._commit_if_finished(self._clock())
        return dict(self._previous_positions)

    def is_animating(self, now: Optional[float] = None) -> bool:
        if self._transition is None:
            return False
        now = self._clock() if now is None else now
        return not self._transition.is_finished(now)

    def reset(self):
        """Forget the drawn layout, so the next render draws from scratch."""
        self._transition = None
        self._previous_positions = {}
        self._previous_parents = {}

    def _commit_if_finished(self, now: float):
        if self._transition is not None and self._transition.is_finished(now):
            self._previous_positions = self._transition.target_positions()
            self._previous_parents = self._transition.target_parents()

    def current_positions(self, now: Optional[float] = None) -> dict[str, Point]:
        """Positions as drawn right now, mid-transition included."""
        now = self._clock() if now is None else now
        if self._transition is None:
            return dict(self._previous_positions)
        self._commit_if_finished(now)
        return self._transition.positions_at(now)

    # --- Rendering ---

    def render(self, visible_tree: Any) -> Transition:
        """
        Start a transition from what is drawn now to `visible_tree`.

        A `None` tree exits everything that is drawn.
        """
        now = self._clock()
        self._commit_if_finished(now)

        if self._transition is not None and not self._transition.is_finished(now):
            old_positions = self._transition.positions_at(now)
            old_parents = self._transition.parents_at(now)
            old_opacities = self._transition.opacities_at(now)
            old_snapshots = self._transition.snapshots
        else:
            old_positions = dict(self._previous_positions)
            old_parents = dict(self._previous_parents)
            old_opacities = {key: 1.0 for key in old_positions}
            old_snapshots = self._transition.snapshots if self._transition else {}

        snapshots = snapshot_tree(visible_tree)
        new_positions = self._layout(
            [LayoutNode(s.key, s.parent_key, s.depth, s.child_keys) for s in snapshots],
            self.width,
            self.height,
            orientation=self.orientation,
        )
        new_parents = {s.key: s.parent_key for s in snapshots}
        root_key = snapshots[0].key if snapshots else None

        nodes, motions = plan_transition(
            old_positions, old_parents, new_positions, new_parents, root_key
        )
        edges = diff(
            {k: p for k, p in old_positions.items() if old_parents.get(k) is not None},
            {k: p for k, p in new_positions.items() if new_parents.get(k) is not None},
        )

        first_render = not old_positions
        by_key = {s.key: s for s in snapshots}
        opacities: dict[str, tuple[float, float]] = {}
        for key in nodes.entering:
            opacities[key] = (1.0 if first_render else 0.0, 1.0)
        for key in nodes.updating:
            opacities[key] = (old_opacities.get(key, 1.0), 1.0)
        for key in nodes.exiting:
            opacities[key] = (old_opacities.get(key, 1.0), 0.0)
            if key in old_snapshots:
                by_key[key] = old_snapshots[key]
            else:
                by_key[key] = NodeSnapshot(
                    key=key, parent_key=old_parents.get(key), depth=0, name="",
                    state=NodeState.INCLUDED, value=0.0, has_children=False,
                    collapsed=False,
                )

        self._transition = Transition(
            started_at=now,
            duration=0.0 if first_render else self.duration,
            nodes=nodes,
            edges=edges,
            motions=motions,
            snapshots=by_key,
            opacities=opacities,
            order=[s.key for s in snapshots] + list(nodes.exiting),
        )
        self._render_count += 1
        if self._transition.is_finished(now):
            self._commit_if_finished(now)

        logger.debug(
            "Render %d: %d entering, %d updating, %d exiting",
            self._render_count, len(nodes.entering),
            len(nodes.updating), len(nodes.exiting),
        )
        return self._transition

    def frame(self, now: Optional[float] = None) -> Frame:
        """Sample what should be on the surface at `now`."""
        now = self._clock() if now is None else now
        if self._transition is None:
            return Frame(width=self.width, height=self.height, progress=1.0, done=True)
        self._commit_if_finished(now)
        return self._transition.frame_at(now, self.width, self.height, self.orientation)

    # --- Click relay ---

    def on_primary_click(self, handler: NodeHandler):
        """Register a handler for primary clicks on drawn nodes."""
        self._primary_handlers.append(handler)

    def on_secondary_click(self, handler: NodeHandler):
        """Register a handler for secondary (context) clicks on drawn nodes."""
        self._secondary_handlers.append(handler)

    def _drawn_snapshot(self, node_id: str) -> NodeSnapshot:
        snap = None
        if self._transition is not None and node_id in self.current_positions():
            snap = self._transition.snapshot_for(node_id)
        if snap is None:
            raise NodeNotFoundError(node_id)
        return snap

    def primary_click(self, node_id: str):
        snap = self._drawn_snapshot(node_id)
        event = PointerEvent(button="primary", node_id=node_id)
        for handler in list(self._primary_handlers):
            handler(snap.data, event)

    def secondary_click(self, node_id: str, x: float, y: float):
        snap = self._drawn_snapshot(node_id)
        event = PointerEvent(button="secondary", node_id=node_id, x=x, y=y)
        for handler in list(self._secondary_handlers):
            handler(snap.data, event)
