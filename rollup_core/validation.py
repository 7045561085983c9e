"""
Input tree validation - Check input trees for non-fatal issues.

`build()` rejects input that cannot be turned into a tree. This module
reports the things it accepts but that are probably mistakes, so the
backend and CLI can show them before loading.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .aggregation import build
from .errors import MalformedInputError
from .models import LEGACY_STATES


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # build() will refuse this tree
    WARNING = "warning"  # Accepted, but probably not intended
    INFO = "info"        # Informational, may be intentional


@dataclass
class ValidationIssue:
    """A single validation issue found in an input tree."""
    severity: IssueSeverity
    message: str
    path: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "type": self.severity.value,
            "message": self.message
        }
        if self.path:
            result["path"] = self.path
        return result


def validate_input_tree(input_tree: Any) -> list[ValidationIssue]:
    """
    Validate an input tree and return a list of issues.

    Checks for:
    - Anything build() rejects (bad values, cycles) - ERROR
    - Values on nodes with children (ignored by aggregation) - WARNING
    - Leaves without a value (count as 0) - INFO
    - Empty names - WARNING
    - Legacy state names - INFO
    - Duplicate sibling names - WARNING

    Args:
        input_tree: The nested mapping that would be passed to build()

    Returns:
        List of ValidationIssue objects
    """
    try:
        build(input_tree)
    except MalformedInputError as e:
        return [ValidationIssue(
            severity=IssueSeverity.ERROR,
            message=str(e),
            path=e.path
        )]

    issues: list[ValidationIssue] = []

    # build() succeeded, so the walk below is acyclic and well-typed
    stack: list[tuple[Mapping, str]] = [(input_tree, "$")]
    while stack:
        raw, path = stack.pop()
        children = list(raw.get("children") or [])
        name = raw.get("name", raw.get("label"))

        if not str(name).strip():
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message="Node has an empty name",
                path=path
            ))

        if children and raw.get("value") is not None:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message=f"Value on '{name}' is ignored because it has children",
                path=path
            ))

        if not children and raw.get("value") is None:
            issues.append(ValidationIssue(
                severity=IssueSeverity.INFO,
                message=f"Leaf '{name}' has no value and counts as 0",
                path=path
            ))

        if raw.get("state") in LEGACY_STATES:
            issues.append(ValidationIssue(
                severity=IssueSeverity.INFO,
                message=f"Legacy state '{raw['state']}' converted to "
                        f"'{LEGACY_STATES[raw['state']]}'",
                path=path
            ))

        seen_names: set[str] = set()
        for child in children:
            child_name = child.get("name", child.get("label"))
            if child_name in seen_names:
                issues.append(ValidationIssue(
                    severity=IssueSeverity.WARNING,
                    message=f"Duplicate child name '{child_name}' under '{name}'",
                    path=path
                ))
            else:
                seen_names.add(child_name)

        for i in range(len(children) - 1, -1, -1):
            stack.append((children[i], f"{path}.children[{i}]"))

    return issues


def validation_summary(issues: list[ValidationIssue]) -> dict:
    """
    Create a summary of validation issues.

    Args:
        issues: List of validation issues

    Returns:
        Dictionary with counts by severity
    """
    return {
        "total": len(issues),
        "errors": len([i for i in issues if i.severity == IssueSeverity.ERROR]),
        "warnings": len([i for i in issues if i.severity == IssueSeverity.WARNING]),
        "info": len([i for i in issues if i.severity == IssueSeverity.INFO]),
        "valid": len([i for i in issues if i.severity == IssueSeverity.ERROR]) == 0
    }
