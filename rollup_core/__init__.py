"""
Roll-up Tree Core - Shared models, aggregation, projection, layout and rendering.

This module provides the core functionality used by both the backend API
and the CLI, ensuring a single source of truth for all tree logic.
"""

from .models import (
    # Enums
    NodeState,
    # Core models
    Node,
    InputNode,
    Point,
    # Request models (for API)
    SetStateRequest,
    ContextMenuRequest,
    ChooseRequest,
)

from .errors import (
    RollupTreeError,
    MalformedInputError,
    NodeNotFoundError,
    NotCollapsibleError,
    MenuNotOpenError,
)
from .aggregation import AggregationEngine, build
from .visibility import VisibleNode, project
from .layout import tree_layout
from .diff import diff, plan_transition, TreeDiff, Phase
from .renderer import TreeDiffRenderer, Transition, Frame, PointerEvent
from .validation import validate_input_tree, ValidationIssue, IssueSeverity
from .analysis import summarize_tree

__all__ = [
    # Enums
    "NodeState",
    # Models
    "Node",
    "InputNode",
    "Point",
    # Request models
    "SetStateRequest",
    "ContextMenuRequest",
    "ChooseRequest",
    # Errors
    "RollupTreeError",
    "MalformedInputError",
    "NodeNotFoundError",
    "NotCollapsibleError",
    "MenuNotOpenError",
    # Aggregation
    "AggregationEngine",
    "build",
    # Visibility
    "VisibleNode",
    "project",
    # Layout
    "tree_layout",
    # Diff & rendering
    "diff",
    "plan_transition",
    "TreeDiff",
    "Phase",
    "TreeDiffRenderer",
    "Transition",
    "Frame",
    "PointerEvent",
    # Validation
    "validate_input_tree",
    "ValidationIssue",
    "IssueSeverity",
    # Analysis
    "summarize_tree",
]
