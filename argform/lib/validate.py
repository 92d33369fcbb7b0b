"""Validation of form state against its schema.

Checks required-ness, occurrence bounds, group exclusivity and value
constraints along the active subcommand chain. Inactive branches are not
looked at. Violations accumulate instead of stopping at the first one so
the user sees every problem at once.

Order of the report, per node:
    1. required / occurrence checks, in argument declaration order
    2. group checks, in group declaration order
    3. pattern / range checks, in argument declaration order, then
       positional values ahead of the active subcommand that look like
       options (no "--" can protect them there)
    4. missing required subcommand
then the same for the active child.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from argform.lib.form import (
    ArgumentValue,
    CountValue,
    FormNode,
    MultiValue,
    PathValue,
    TextValue,
)
from argform.lib.schema import ArgumentDescriptor, GroupRule, ValueConstraint, looks_like_option

logger = logging.getLogger(__name__)

__all__ = [
    "ViolationReason",
    "Violation",
    "ValidationResult",
    "validate",
    "check_constraint",
]


class ViolationReason(str, Enum):
    """Reason codes for validation violations."""

    REQUIRED = "required"
    TOO_FEW_VALUES = "too_few_values"
    TOO_MANY_VALUES = "too_many_values"
    EMPTY_VALUE = "empty_value"
    GROUP_CONFLICT = "group_conflict"
    GROUP_REQUIRED = "group_required"
    PATTERN_MISMATCH = "pattern_mismatch"
    NOT_A_NUMBER = "not_a_number"
    OUT_OF_RANGE = "out_of_range"
    OPTION_LIKE_VALUE = "option_like_value"
    SUBCOMMAND_REQUIRED = "subcommand_required"
    EMPTY_ENV_KEY = "empty_env_key"


@dataclass(frozen=True)
class Violation:
    """A single unmet rule.

    Attributes:
        command_path: Command names from the root to the offending node
        target: Offending argument or group name
        reason: Reason code
        message: Human readable explanation
    """

    command_path: Tuple[str, ...]
    target: str
    reason: ViolationReason
    message: str

    def __str__(self) -> str:
        where = " ".join(self.command_path)
        return f"[{where}] {self.target}: {self.message}"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validate(): accepted when there are no violations."""

    violations: Tuple[Violation, ...] = ()

    @property
    def accepted(self) -> bool:
        return not self.violations

    def __bool__(self) -> bool:
        return self.accepted

    def for_target(self, target: str) -> List[Violation]:
        """Violations naming the given argument or group."""
        return [v for v in self.violations if v.target == target]

    def targets(self) -> List[str]:
        return [v.target for v in self.violations]


def _values_of(value: ArgumentValue) -> List[str]:
    """Text payloads that value constraints apply to."""
    if isinstance(value, TextValue):
        return [value.text] if value.is_set else []
    if isinstance(value, PathValue):
        return [value.path] if value.is_set else []
    if isinstance(value, MultiValue):
        return [item for item in value.items if item != ""]
    return []


def _occurrences(value: ArgumentValue) -> int:
    if isinstance(value, MultiValue):
        return len(value.items)
    if isinstance(value, CountValue):
        return value.count
    return 1 if value.is_set else 0


def check_constraint(constraint: ValueConstraint, text: str) -> Optional[Tuple[ViolationReason, str]]:
    """Check one value against a constraint.

    Returns:
        None if the value satisfies the constraint, else (reason, message)
    """
    if constraint.pattern is not None and not re.fullmatch(constraint.pattern, text):
        return (
            ViolationReason.PATTERN_MISMATCH,
            f"{text!r} does not match pattern {constraint.pattern!r}",
        )

    if constraint.is_numeric:
        try:
            number = int(text) if constraint.numeric == "int" else float(text)
        except ValueError:
            expected = "an integer" if constraint.numeric == "int" else "a number"
            return ViolationReason.NOT_A_NUMBER, f"{text!r} is not {expected}"

        if constraint.minimum is not None and number < constraint.minimum:
            return (
                ViolationReason.OUT_OF_RANGE,
                f"{text} is below the minimum {constraint.minimum:g}",
            )
        if constraint.maximum is not None and number > constraint.maximum:
            return (
                ViolationReason.OUT_OF_RANGE,
                f"{text} is above the maximum {constraint.maximum:g}",
            )

    return None


def _check_occurrences(
    path: Tuple[str, ...], arg: ArgumentDescriptor, value: ArgumentValue
) -> List[Violation]:
    found: List[Violation] = []
    count = _occurrences(value)

    if arg.required and not value.is_set:
        found.append(Violation(path, arg.name, ViolationReason.REQUIRED, f"{arg.label} is required"))
    elif count < arg.min_occurs:
        found.append(
            Violation(
                path,
                arg.name,
                ViolationReason.TOO_FEW_VALUES,
                f"{arg.label} needs at least {arg.min_occurs} value(s), got {count}",
            )
        )

    if arg.max_occurs is not None and count > arg.max_occurs:
        found.append(
            Violation(
                path,
                arg.name,
                ViolationReason.TOO_MANY_VALUES,
                f"{arg.label} takes at most {arg.max_occurs} value(s), got {count}",
            )
        )

    if isinstance(value, MultiValue) and "" in value.items:
        found.append(
            Violation(
                path,
                arg.name,
                ViolationReason.EMPTY_VALUE,
                f"{arg.label} has an empty entry",
            )
        )

    return found


def _validate_node(node: FormNode, path: Tuple[str, ...]) -> List[Violation]:
    schema = node.schema
    found: List[Violation] = []

    for arg in schema.arguments:
        found.extend(_check_occurrences(path, arg, node.values[arg.name]))

    for group in schema.groups:
        set_members = [m for m in group.members if node.values[m].is_set]
        if len(set_members) > 1:
            found.append(
                Violation(
                    path,
                    group.name,
                    ViolationReason.GROUP_CONFLICT,
                    f"Only one of {', '.join(group.members)} may be set "
                    f"(got {', '.join(set_members)})",
                )
            )
        elif group.rule == GroupRule.REQUIRED_ONE_OF and not set_members:
            found.append(
                Violation(
                    path,
                    group.name,
                    ViolationReason.GROUP_REQUIRED,
                    f"One of {', '.join(group.members)} is required",
                )
            )

    for arg in schema.arguments:
        if arg.constraint is None:
            continue
        for text in _values_of(node.values[arg.name]):
            problem = check_constraint(arg.constraint, text)
            if problem is not None:
                reason, message = problem
                found.append(Violation(path, arg.name, reason, f"{arg.label}: {message}"))

    if node.active is not None:
        for arg in schema.positionals():
            for text in _values_of(node.values[arg.name]):
                if looks_like_option(text):
                    found.append(
                        Violation(
                            path,
                            arg.name,
                            ViolationReason.OPTION_LIKE_VALUE,
                            f"{arg.label}: {text!r} would be read as an option "
                            f"before subcommand {node.active.schema.name!r}",
                        )
                    )

    if schema.subcommand_required and node.active is None:
        choices = ", ".join(sub.name for sub in schema.subcommands)
        found.append(
            Violation(
                path,
                schema.name,
                ViolationReason.SUBCOMMAND_REQUIRED,
                f"A subcommand is required ({choices})",
            )
        )

    return found


def validate(form: FormNode) -> ValidationResult:
    """Validate a form node and its active subcommand chain.

    Args:
        form: Root (or any) form node

    Returns:
        ValidationResult listing every violation, node before active child
    """
    violations: List[Violation] = []
    path: Tuple[str, ...] = ()

    for node in form.active_chain():
        path = path + (node.schema.name,)
        violations.extend(_validate_node(node, path))

    if violations:
        logger.debug("Validation found %d violation(s)", len(violations))

    return ValidationResult(tuple(violations))
