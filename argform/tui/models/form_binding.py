"""Conversions between widget contents and form values.

Kept free of textual imports so the mapping can be tested without a
terminal.
"""

from __future__ import annotations

from collections import defaultdict

from argform.lib.form import (
    ArgumentValue,
    CountValue,
    PathValue,
    TextValue,
)
from argform.lib.runner import ExitKind, ExitStatus, StdinSource
from argform.lib.schema import ArgKind, ArgumentDescriptor, PathHint, display_name
from argform.lib.settings import Localization
from argform.lib.validate import ValidationResult, ViolationReason

__all__ = [
    "ErrorKey",
    "value_from_text",
    "text_of",
    "choice_options",
    "field_label",
    "placeholder_for",
    "errors_by_target",
    "status_text",
    "picker_title",
    "stdin_source",
    "STDIN_TEXT",
    "STDIN_FILE",
]

STDIN_TEXT = "text"
STDIN_FILE = "file"

# (command path, argument or group name)
ErrorKey = tuple[tuple[str, ...], str]


def value_from_text(descriptor: ArgumentDescriptor, text: str) -> ArgumentValue:
    """Value for a text box bound to a SINGLE or PATH argument."""
    if descriptor.kind == ArgKind.PATH:
        return PathValue(text)
    if descriptor.kind == ArgKind.SINGLE:
        return TextValue(text)
    raise ValueError(f"{descriptor.name} is a {descriptor.kind.value} argument, not text")


def text_of(value: ArgumentValue) -> str:
    """What a text box shows for a value."""
    if isinstance(value, TextValue):
        return value.text
    if isinstance(value, PathValue):
        return value.path
    if isinstance(value, CountValue):
        return str(value.count)
    return ""


def choice_options(descriptor: ArgumentDescriptor) -> list[tuple[str, int]]:
    """(label, index) pairs for a choice dropdown, in declaration order."""
    return [(choice, index) for index, choice in enumerate(descriptor.choices)]


def field_label(descriptor: ArgumentDescriptor, localization: Localization) -> str:
    """Label line: sentence-cased name, call name, and an optional marker.

    Example:
        >>> field_label(ArgumentDescriptor("output_dir", flag="--out"), Localization())
        'Output dir (--out) (Optional)'
    """
    parts = [descriptor.label]
    if descriptor.flag:
        parts.append(f"({descriptor.flag})")
    if not descriptor.required and descriptor.kind not in (ArgKind.FLAG, ArgKind.COUNT):
        parts.append(localization.optional)
    return " ".join(parts)


def placeholder_for(descriptor: ArgumentDescriptor) -> str:
    if descriptor.metavar:
        return descriptor.metavar
    if descriptor.constraint is not None and descriptor.constraint.is_numeric:
        return "integer" if descriptor.constraint.numeric == "int" else "number"
    return descriptor.name.upper()


def picker_title(descriptor: ArgumentDescriptor, localization: Localization) -> str:
    if descriptor.path_hint == PathHint.DIR:
        return localization.select_directory
    return localization.select_file


def errors_by_target(
    result: ValidationResult,
    localization: Localization | None = None,
) -> dict[ErrorKey, list[str]]:
    """Group violation messages by the field (or group) they belong to.

    REQUIRED messages use the localized wording when a Localization is given.
    """
    grouped: dict[ErrorKey, list[str]] = defaultdict(list)
    for violation in result.violations:
        message = violation.message
        if localization is not None and violation.reason == ViolationReason.REQUIRED:
            message = localization.is_required(display_name(violation.target))
        grouped[(violation.command_path, violation.target)].append(message)
    return dict(grouped)


def status_text(
    status: ExitStatus | None,
    running: bool,
    localization: Localization,
) -> str:
    """One-line run status for the button bar."""
    if running:
        return f"{localization.running}..."
    if status is None:
        return ""
    if status.kind == ExitKind.SUCCESS:
        return "[green]✓ exited successfully[/green]"
    if status.kind == ExitKind.CANCELLED:
        return "[yellow]cancelled[/yellow]"
    return f"[red]✗ {status}[/red]"


def stdin_source(mode: str, text: str, path: str) -> StdinSource | None:
    """Stdin for the next run from the Input tab; None when left empty."""
    if mode == STDIN_FILE:
        return StdinSource.from_file(path) if path.strip() else None
    if mode == STDIN_TEXT:
        return StdinSource.from_text(text) if text else None
    raise ValueError(f"Unknown stdin mode: {mode!r}")
