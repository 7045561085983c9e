"""
Visibility projection - the part of the tree that gets laid out and drawn.

The projection wraps the same Node objects as the full tree; it never
copies, mutates or recomputes them. Children of collapsed nodes are
pruned, and the collapsed node itself stays visible with a marker.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from .models import Node, NodeState


@dataclass(eq=False)
class VisibleNode:
    """A node of the visible tree, pointing at the underlying Node."""
    node: Node
    children: list["VisibleNode"] = field(default_factory=list)
    has_hidden_children: bool = False

    @property
    def id(self) -> str:
        return self.node.id

    @property
    def name(self) -> str:
        return self.node.name

    @property
    def state(self) -> NodeState:
        return self.node.state

    @property
    def aggregate_value(self) -> float:
        return self.node.aggregate_value

    @property
    def collapsed(self) -> bool:
        return self.node.collapsed

    @property
    def has_children(self) -> bool:
        """True if the underlying node has children, visible or not."""
        return bool(self.node.children)

    def structure(self) -> tuple:
        """(id, hidden marker, child structures), for comparisons."""
        return (
            self.id,
            self.has_hidden_children,
            tuple(c.structure() for c in self.children),
        )


def project(root: Union[Node, VisibleNode, None]) -> Optional[VisibleNode]:
    """
    Derive the visible tree from `root`.

    Accepts either the full tree or a previously projected one, so
    projecting twice gives the same structure as projecting once.
    """
    if root is None:
        return None

    def source(item):
        # (underlying node, children to consider)
        if isinstance(item, VisibleNode):
            return item.node, item.children
        return item, item.children

    node, children = source(root)
    visible_root = VisibleNode(node=node)
    stack = [(visible_root, children)]
    while stack:
        visible, children = stack.pop()
        if visible.node.collapsed and visible.node.children:
            visible.has_hidden_children = True
            continue
        for child in children:
            child_node, grandchildren = source(child)
            child_visible = VisibleNode(node=child_node)
            visible.children.append(child_visible)
            stack.append((child_visible, grandchildren))
    return visible_root


def iter_visible(root: Optional[VisibleNode]):
    """Yield (visible node, parent id, depth), parent-first."""
    if root is None:
        return
    stack = [(root, None, 0)]
    while stack:
        visible, parent_id, depth = stack.pop()
        yield visible, parent_id, depth
        for child in reversed(visible.children):
            stack.append((child, visible.id, depth + 1))
