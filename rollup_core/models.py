"""
Core data models for roll-up trees.

These models define the canonical schema for a tree:
- Nodes with a stable id, label, raw value, state and collapse flag
- Input nodes as they arrive from JSON (no ids, nested children)
- Planar points used by layout and rendering

State Naming Convention:
- States are `included`, `inverted` and `excluded`
- For backward compatibility, the older `normal`/`skipped` names are
  accepted on input and converted
"""

import math
from enum import Enum
from typing import Optional, Any, NamedTuple
from pydantic import BaseModel, Field, field_validator, model_validator


class NodeState(str, Enum):
    """How a node contributes to its ancestors' totals."""
    INCLUDED = "included"
    INVERTED = "inverted"
    EXCLUDED = "excluded"


# Names used by the first version of the input format
LEGACY_STATES = {
    "normal": NodeState.INCLUDED.value,
    "skipped": NodeState.EXCLUDED.value,
}


def normalize_state(value: Any) -> Any:
    """Map a legacy state name onto its current equivalent."""
    if isinstance(value, str):
        return LEGACY_STATES.get(value, value)
    return value


class Point(NamedTuple):
    """A position on the drawing surface, in pixels."""
    x: float
    y: float


class Node(BaseModel):
    """
    A node in the tree.

    `parent_id` is a back reference for upward walks only; the tree is
    owned top-down through `children`. `aggregate_value` is maintained by
    the AggregationEngine and must not be assigned by callers.
    """
    id: str
    name: str
    raw_value: Optional[float] = None
    state: NodeState = NodeState.INCLUDED
    children: list["Node"] = Field(default_factory=list)
    parent_id: Optional[str] = None
    aggregate_value: float = 0.0
    collapsed: bool = False

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def effective_contribution(self) -> float:
        """The raw value transformed by the node's state (leaves only)."""
        value = self.raw_value or 0.0
        if self.state == NodeState.EXCLUDED:
            return 0.0
        if self.state == NodeState.INVERTED:
            return -value
        return value

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict, subtree included."""
        def fields(node: "Node") -> dict:
            return {
                "id": node.id,
                "name": node.name,
                "value": node.raw_value,
                "state": node.state.value,
                "parent_id": node.parent_id,
                "aggregate_value": node.aggregate_value,
                "collapsed": node.collapsed,
                "children": [],
            }

        result = fields(self)
        stack = [(self, result)]
        while stack:
            node, data = stack.pop()
            for child in node.children:
                child_data = fields(child)
                data["children"].append(child_data)
                stack.append((child, child_data))
        return result


class InputNode(BaseModel):
    """
    The fields of one node of an input tree, children excluded.

    Children are walked separately by the builder so that cycles can be
    detected before they are followed.
    """
    name: str
    value: Optional[float] = None
    state: NodeState = NodeState.INCLUDED

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Convert legacy state names and the `label` alias for `name`."""
        if isinstance(data, dict):
            data = {k: v for k, v in data.items() if k != "children"}
            if 'label' in data and 'name' not in data:
                data['name'] = data.pop('label')
            if 'state' in data:
                if data['state'] is None:
                    data.pop('state')
                else:
                    data['state'] = normalize_state(data['state'])
        return data

    @field_validator('value', mode='before')
    @classmethod
    def reject_non_numbers(cls, value: Any) -> Any:
        # bool is an int subclass, and numeric strings would otherwise coerce
        if isinstance(value, (bool, str)):
            raise ValueError("value must be a number")
        return value

    @field_validator('value')
    @classmethod
    def check_finite_non_negative(cls, value: Optional[float]) -> Optional[float]:
        if value is None:
            return value
        if math.isnan(value) or math.isinf(value):
            raise ValueError("value must be a finite number")
        if value < 0:
            raise ValueError("value must not be negative")
        return value


# --- API Request/Response Models ---

class SetStateRequest(BaseModel):
    """Request to change a node's state."""
    state: NodeState

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        if isinstance(data, dict) and 'state' in data:
            data = dict(data, state=normalize_state(data['state']))
        return data


class ContextMenuRequest(BaseModel):
    """Secondary click on a node, in screen coordinates."""
    x: float
    y: float


class ChooseRequest(BaseModel):
    """A value picked from the open choice menu."""
    state: NodeState

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        if isinstance(data, dict) and 'state' in data:
            data = dict(data, state=normalize_state(data['state']))
        return data
