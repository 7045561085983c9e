"""
Error taxonomy for roll-up trees.

All errors are raised synchronously to the caller of the failing
operation; nothing is deferred.
"""


class RollupTreeError(Exception):
    """Base class for all tree errors."""


class MalformedInputError(RollupTreeError, ValueError):
    """The input tree has an invalid value, field or a cyclic reference."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        if path:
            message = f"{message} (at {path})"
        super().__init__(message)


class NodeNotFoundError(RollupTreeError, KeyError):
    """An operation referenced an id that is not in the tree."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(node_id)

    def __str__(self) -> str:
        return f"Node not found: {self.node_id}"


class NotCollapsibleError(RollupTreeError, ValueError):
    """Collapse was requested on a leaf."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node {node_id} has no children to collapse")


class MenuNotOpenError(RollupTreeError, RuntimeError):
    """A choice was made while the choice menu was hidden."""
