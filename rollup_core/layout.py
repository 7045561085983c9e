"""
Tree layout for the visible tree.

Assigns every node a position along a depth axis and a sibling-order
axis, scaled to the drawing area:
- Leaves take consecutive slots in render order
- Siblings are one slot apart, cousins two (as d3.tree separates them)
- Each parent is centered over its first and last child

Orientation "horizontal" grows the tree left-to-right (depth on x);
"vertical" grows it top-to-bottom (depth on y).
"""

from dataclasses import dataclass, field
from typing import Optional

from .models import Point


# Default drawing-area margins (room for labels on the right)
DEFAULT_MARGIN_LEFT = 40
DEFAULT_MARGIN_TOP = 20
DEFAULT_MARGIN_RIGHT = 120
DEFAULT_MARGIN_BOTTOM = 20


@dataclass
class LayoutNode:
    """The shape of one visible node, as the layout sees it."""
    key: str
    parent_key: Optional[str] = None
    depth: int = 0
    children: list[str] = field(default_factory=list)


def tree_layout(
    nodes: list[LayoutNode],
    width: float,
    height: float,
    orientation: str = "horizontal",
    margin_left: float = DEFAULT_MARGIN_LEFT,
    margin_top: float = DEFAULT_MARGIN_TOP,
    margin_right: float = DEFAULT_MARGIN_RIGHT,
    margin_bottom: float = DEFAULT_MARGIN_BOTTOM,
) -> dict[str, Point]:
    """
    Arrange a tree within a width x height drawing area.

    Args:
        nodes: Visible nodes in pre-order (root first)
        width: Drawing area width in pixels
        height: Drawing area height in pixels
        orientation: "horizontal" (left-to-right) or "vertical" (top-to-bottom)
        margin_*: Space kept free on each side of the area

    Returns:
        Mapping from node key to its position
    """
    if not nodes:
        return {}
    if orientation not in ("horizontal", "vertical"):
        raise ValueError(f"Unknown orientation: {orientation}")

    by_key = {n.key: n for n in nodes}

    # Leaf slots, in pre-order so the order matches render order
    breadth: dict[str, float] = {}
    previous_leaf: Optional[LayoutNode] = None
    cursor = 0.0
    for node in nodes:
        if node.children:
            continue
        if previous_leaf is not None:
            cursor += 1.0 if previous_leaf.parent_key == node.parent_key else 2.0
        breadth[node.key] = cursor
        previous_leaf = node

    # Parents centered over their children, deepest first
    for node in reversed(nodes):
        if node.children:
            first = breadth[node.children[0]]
            last = breadth[node.children[-1]]
            breadth[node.key] = (first + last) / 2

    max_depth = max(n.depth for n in nodes)
    low = min(breadth.values())
    high = max(breadth.values())

    if orientation == "horizontal":
        depth_size = width - margin_left - margin_right
        breadth_size = height - margin_top - margin_bottom
    else:
        depth_size = height - margin_top - margin_bottom
        breadth_size = width - margin_left - margin_right
    depth_size = max(depth_size, 0.0)
    breadth_size = max(breadth_size, 0.0)

    positions: dict[str, Point] = {}
    for key, node in by_key.items():
        if high > low:
            b = (breadth[key] - low) / (high - low) * breadth_size
        else:
            b = breadth_size / 2
        d = node.depth / max_depth * depth_size if max_depth else 0.0

        if orientation == "horizontal":
            positions[key] = Point(margin_left + d, margin_top + b)
        else:
            positions[key] = Point(margin_left + b, margin_top + d)

    return positions
