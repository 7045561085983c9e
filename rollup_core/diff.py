"""
Tree diffing - enter/update/exit classification between two layouts.

Everything here is a pure function over id-keyed maps; nothing touches a
drawing surface. The renderer turns the resulting motions into frames.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from .models import Point


class Phase(str, Enum):
    """Which set an element falls into between two renders."""
    ENTER = "enter"
    UPDATE = "update"
    EXIT = "exit"


@dataclass(frozen=True)
class TreeDiff:
    """Keys classified into the three sets, each in a stable order."""
    entering: tuple[str, ...] = ()
    updating: tuple[str, ...] = ()
    exiting: tuple[str, ...] = ()

    def phase_of(self, key: str) -> Optional[Phase]:
        if key in self.entering:
            return Phase.ENTER
        if key in self.updating:
            return Phase.UPDATE
        if key in self.exiting:
            return Phase.EXIT
        return None

    def to_dict(self) -> dict:
        return {
            "entering": list(self.entering),
            "updating": list(self.updating),
            "exiting": list(self.exiting),
        }


@dataclass(frozen=True)
class Motion:
    """Where an element starts and ends during one transition."""
    key: str
    phase: Phase
    start: Point
    end: Point

    @property
    def is_still(self) -> bool:
        return self.start == self.end


def diff(old: Mapping[str, object], new: Mapping[str, object]) -> TreeDiff:
    """
    Classify keys of two keyed maps.

    Entering and updating keys keep the order of `new`; exiting keys keep
    the order of `old`.
    """
    return TreeDiff(
        entering=tuple(k for k in new if k not in old),
        updating=tuple(k for k in new if k in old),
        exiting=tuple(k for k in old if k not in new),
    )


def _nearest_ancestor_in(
    key: str,
    parents: Mapping[str, Optional[str]],
    positions: Mapping[str, Point],
) -> Optional[str]:
    """Walk up `parents` from `key` until an ancestor in `positions` is found."""
    seen = {key}
    current = parents.get(key)
    while current is not None and current not in seen:
        if current in positions:
            return current
        seen.add(current)
        current = parents.get(current)
    return None


def plan_transition(
    old_positions: Mapping[str, Point],
    old_parents: Mapping[str, Optional[str]],
    new_positions: Mapping[str, Point],
    new_parents: Mapping[str, Optional[str]],
    root_key: Optional[str] = None,
) -> tuple[TreeDiff, dict[str, Motion]]:
    """
    Classify nodes and pick start/end points for each.

    - Entering nodes start where their nearest previously drawn ancestor
      was (normally the parent), or at their own new position if none was
      drawn, e.g. on the first render.
    - Updating nodes move from their previous to their new position.
    - Exiting nodes move to the new position of their nearest ancestor
      still drawn (normally the parent), else to the root's new position.

    Args:
        old_positions: Last drawn position per key (possibly mid-transition)
        old_parents: Parent key per key in the previous layout
        new_positions: Layout position per key for the new visible tree
        new_parents: Parent key per key in the new visible tree
        root_key: Key of the new root, fallback anchor for exits

    Returns:
        (diff, motions by key)
    """
    result = diff(old_positions, new_positions)
    motions: dict[str, Motion] = {}

    for key in result.entering:
        anchor = _nearest_ancestor_in(key, new_parents, old_positions)
        start = old_positions[anchor] if anchor is not None else new_positions[key]
        motions[key] = Motion(key, Phase.ENTER, start, new_positions[key])

    for key in result.updating:
        motions[key] = Motion(key, Phase.UPDATE, old_positions[key], new_positions[key])

    for key in result.exiting:
        anchor = _nearest_ancestor_in(key, old_parents, new_positions)
        if anchor is None and root_key is not None and root_key in new_positions:
            anchor = root_key
        end = new_positions[anchor] if anchor is not None else old_positions[key]
        motions[key] = Motion(key, Phase.EXIT, old_positions[key], end)

    return result, motions
