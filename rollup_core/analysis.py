"""
Tree analysis - Summaries of a built tree.

Provides summary functions used by the backend and CLI to describe a
tree without walking it on the client side.
"""

from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .aggregation import iter_preorder

if TYPE_CHECKING:
    from .models import Node


@dataclass
class NodeTotal:
    """A node and its aggregate, for top-N listings."""
    node_id: str
    name: str
    value: float


@dataclass
class TreeSummary:
    """Complete summary of a tree's structure and totals."""
    root_name: str
    total: float
    total_nodes: int
    leaf_count: int
    max_depth: int
    nodes_by_state: dict[str, int]
    collapsed_count: int
    largest_leaves: list[NodeTotal]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "root_name": self.root_name,
            "total": self.total,
            "total_nodes": self.total_nodes,
            "leaf_count": self.leaf_count,
            "max_depth": self.max_depth,
            "nodes_by_state": self.nodes_by_state,
            "collapsed_count": self.collapsed_count,
            "largest_leaves": [
                {"id": n.node_id, "name": n.name, "value": n.value}
                for n in self.largest_leaves
            ],
        }


def tree_depth(root: "Node") -> int:
    """Number of edges on the longest root-to-leaf path."""
    deepest = 0
    stack = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        deepest = max(deepest, depth)
        stack.extend((child, depth + 1) for child in node.children)
    return deepest


def summarize_tree(root: "Node", top: int = 5) -> TreeSummary:
    """
    Summarize a tree.

    Args:
        root: Root of a built tree
        top: How many leaves to list by absolute contribution

    Returns:
        TreeSummary
    """
    states: Counter = Counter()
    leaves: list["Node"] = []
    total_nodes = 0
    collapsed = 0

    for node in iter_preorder(root):
        total_nodes += 1
        states[node.state.value] += 1
        if node.children:
            if node.collapsed:
                collapsed += 1
        else:
            leaves.append(node)

    largest = sorted(leaves, key=lambda n: abs(n.aggregate_value), reverse=True)[:top]

    return TreeSummary(
        root_name=root.name,
        total=root.aggregate_value,
        total_nodes=total_nodes,
        leaf_count=len(leaves),
        max_depth=tree_depth(root),
        nodes_by_state=dict(states),
        collapsed_count=collapsed,
        largest_leaves=[NodeTotal(n.id, n.name, n.aggregate_value) for n in largest],
    )
