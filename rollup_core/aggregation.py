"""
Aggregation engine - tree construction and aggregate recomputation.

This module implements:
- Building a Node tree from an untyped input tree (ids, parent links, states)
- O(1) node lookups via an id index
- Upward-only recomputation of aggregates after a state change
- Collapse / expand flags (which never affect aggregates)

All walks use explicit stacks so arbitrarily deep trees do not hit the
interpreter's recursion limit.
"""

import logging
from collections.abc import Mapping
from typing import Any, Iterator, Optional

from pydantic import ValidationError

from .errors import MalformedInputError, NodeNotFoundError, NotCollapsibleError
from .identity import IdAllocator
from .models import Node, NodeState, InputNode, normalize_state

logger = logging.getLogger(__name__)

_ENTER = 0
_EXIT = 1


def iter_preorder(root: Optional[Node]) -> Iterator[Node]:
    """Yield nodes parent-first, children in order."""
    if root is None:
        return
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def iter_postorder(root: Optional[Node]) -> Iterator[Node]:
    """Yield nodes children-first, children in order."""
    if root is None:
        return
    stack: list[tuple[Node, bool]] = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        if expanded or not node.children:
            yield node
            continue
        stack.append((node, True))
        for child in reversed(node.children):
            stack.append((child, False))


def compute_aggregate(node: Node) -> float:
    """
    Aggregate of a node from its children's cached aggregates.

    A leaf contributes its raw value transformed by its state; an internal
    node is the plain sum of its children, whatever its own state.
    """
    if not node.children:
        return node.effective_contribution()
    return sum(child.aggregate_value for child in node.children)


def _parse_fields(raw: Any, path: str) -> InputNode:
    if not isinstance(raw, Mapping):
        raise MalformedInputError(
            f"expected a mapping, got {type(raw).__name__}", path
        )
    try:
        return InputNode.model_validate(dict(raw))
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'node'}: {err['msg']}"
            for err in e.errors()
        )
        raise MalformedInputError(details, path) from e


def _raw_children(raw: Mapping, path: str) -> list:
    children = raw.get("children")
    if children is None:
        return []
    if not isinstance(children, (list, tuple)):
        raise MalformedInputError("children must be a list", path)
    return list(children)


def build(input_tree: Any) -> Node:
    """
    Build a Node tree from a nested mapping.

    Each mapping has `name`, optional `value`, optional `state` and
    optional `children`. Ids are assigned from a counter scoped to this
    call. Raises MalformedInputError for invalid values or a mapping that
    is its own ancestor; nothing built so far is returned in that case.
    """
    ids = IdAllocator()
    on_path: set[int] = set()
    root: Optional[Node] = None

    # (kind, raw, parent, path) for enter; (kind, node, raw) for exit
    stack: list[tuple] = [(_ENTER, input_tree, None, "$")]
    while stack:
        entry = stack.pop()
        if entry[0] == _EXIT:
            _, node, raw = entry
            on_path.discard(id(raw))
            node.aggregate_value = compute_aggregate(node)
            continue

        _, raw, parent, path = entry
        if id(raw) in on_path:
            raise MalformedInputError("cyclic reference detected", path)

        fields = _parse_fields(raw, path)
        children = _raw_children(raw, path)

        node = Node(
            id=ids.next_id(),
            name=fields.name,
            raw_value=fields.value,
            state=fields.state,
            parent_id=parent.id if parent is not None else None,
        )
        if parent is None:
            root = node
        else:
            parent.children.append(node)

        on_path.add(id(raw))
        stack.append((_EXIT, node, raw))
        for i in range(len(children) - 1, -1, -1):
            stack.append((_ENTER, children[i], node, f"{path}.children[{i}]"))

    logger.debug("Built tree with %d nodes", len(ids))
    return root


class AggregationEngine:
    """
    Owns a built tree and every mutation of it.

    Features:
    - O(1) node lookups via an id index
    - set_state recomputes the node and its ancestors only
    - collapse flags are independent of aggregation

    Callers get read access through get_root/get_node; nodes returned
    must not be mutated directly.
    """

    def __init__(self, root: Node):
        self._root = root
        self._node_index: dict[str, Node] = {}
        self._rebuild_index()

    @classmethod
    def from_input(cls, input_tree: Any) -> "AggregationEngine":
        """Build a tree from an input mapping and wrap it."""
        return cls(build(input_tree))

    # --- Index Management ---

    def _rebuild_index(self):
        """Rebuild the id index from the current tree."""
        self._node_index.clear()
        for node in iter_preorder(self._root):
            if node.id in self._node_index:
                raise MalformedInputError(f"duplicate node id {node.id}")
            self._node_index[node.id] = node

    def _require(self, node_id: str) -> Node:
        node = self._node_index.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    # --- Read Access ---

    def get_root(self) -> Node:
        """Get the tree root."""
        return self._root

    def get_node(self, node_id: str) -> Node:
        """Get a node by id (O(1) lookup)."""
        return self._require(node_id)

    def get_parent(self, node: Node) -> Optional[Node]:
        if node.parent_id is None:
            return None
        return self._node_index.get(node.parent_id)

    def iter_nodes(self) -> Iterator[Node]:
        return iter_preorder(self._root)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._node_index

    def __len__(self) -> int:
        return len(self._node_index)

    # --- Mutations ---

    def set_state(self, node_id: str, new_state: NodeState | str) -> Node:
        """
        Set a node's state and recompute it and its ancestors.

        Sibling subtrees are not touched: each ancestor is recomputed from
        its children's cached aggregates.
        """
        node = self._require(node_id)
        state = NodeState(normalize_state(new_state))

        node.state = state
        node.aggregate_value = compute_aggregate(node)

        current = self.get_parent(node)
        while current is not None:
            current.aggregate_value = compute_aggregate(current)
            current = self.get_parent(current)

        logger.debug("Node %s set to %s; root total %s",
                     node_id, state.value, self._root.aggregate_value)
        return node

    def toggle_collapse(self, node_id: str) -> Node:
        """Flip the collapsed flag of a node with children."""
        node = self._require(node_id)
        if not node.children:
            raise NotCollapsibleError(node_id)
        node.collapsed = not node.collapsed
        logger.debug("Node %s %s", node_id,
                     "collapsed" if node.collapsed else "expanded")
        return node

    def expand_all(self) -> int:
        """Expand every node with children. Returns how many changed."""
        return self._set_collapsed_everywhere(False)

    def collapse_all(self) -> int:
        """Collapse every node with children. Returns how many changed."""
        return self._set_collapsed_everywhere(True)

    def _set_collapsed_everywhere(self, collapsed: bool) -> int:
        changed = 0
        for node in iter_preorder(self._root):
            if node.children and node.collapsed != collapsed:
                node.collapsed = collapsed
                changed += 1
        return changed
