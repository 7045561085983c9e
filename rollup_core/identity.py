"""Node identifiers, allocated per tree build."""

import itertools


class IdAllocator:
    """
    Hands out `n1`, `n2`, ... for a single build.

    Ids are never reused within an allocator; each build gets its own
    allocator so no state is shared between trees.
    """

    def __init__(self, prefix: str = "n"):
        self._prefix = prefix
        self._counter = itertools.count(1)
        self._issued: set[str] = set()

    def next_id(self) -> str:
        node_id = f"{self._prefix}{next(self._counter)}"
        self._issued.add(node_id)
        return node_id

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._issued

    def __len__(self) -> int:
        return len(self._issued)
