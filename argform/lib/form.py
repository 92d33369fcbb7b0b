"""Mutable form state mirroring a CommandSchema.

One FormNode exists per command on the active path. Each node holds the
current value of every argument of its command plus the currently
selected subcommand, which it owns outright. Switching subcommands drops
the old subtree; nothing is reused, so stale values never leak into a
newly selected branch.

Values are small frozen variants tagged with the ArgKind they belong to.
A write whose variant does not match the descriptor kind is rejected
with KindMismatchError and leaves the node untouched.

Example:
    >>> form = initialize(schema)
    >>> form.set_value("name", TextValue("alice"))
    >>> form.select_subcommand("push")
    >>> form.active.set_value("force", FlagValue(True))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import ClassVar, Dict, Iterator, List, Optional, Tuple, Union

from argform.lib.errors import KindMismatchError
from argform.lib.schema import ArgKind, ArgumentDescriptor, CommandSchema

logger = logging.getLogger(__name__)

__all__ = [
    "ArgumentValue",
    "FlagValue",
    "CountValue",
    "TextValue",
    "MultiValue",
    "ChoiceValue",
    "PathValue",
    "FormNode",
    "initialize",
    "value_for",
]


@dataclass(frozen=True)
class FlagValue:
    """Boolean switch: set means the flag token is emitted."""

    kind: ClassVar[ArgKind] = ArgKind.FLAG
    enabled: bool = False

    @property
    def is_set(self) -> bool:
        return self.enabled


@dataclass(frozen=True)
class CountValue:
    """Number of times a counting flag is repeated."""

    kind: ClassVar[ArgKind] = ArgKind.COUNT
    count: int = 0

    @property
    def is_set(self) -> bool:
        return self.count > 0


@dataclass(frozen=True)
class TextValue:
    """Single free-text value; empty text means unset."""

    kind: ClassVar[ArgKind] = ArgKind.SINGLE
    text: str = ""

    @property
    def is_set(self) -> bool:
        return self.text != ""


@dataclass(frozen=True)
class MultiValue:
    """Ordered sequence of values, kept in the order the user entered them."""

    kind: ClassVar[ArgKind] = ArgKind.MULTI
    items: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))

    @property
    def is_set(self) -> bool:
        return len(self.items) > 0

    def appended(self, item: str = "") -> "MultiValue":
        """Copy with one more item (the "new value" button)."""
        return MultiValue(self.items + (item,))

    def removed(self, index: int) -> "MultiValue":
        """Copy without the item at index."""
        return MultiValue(self.items[:index] + self.items[index + 1:])

    def replaced(self, index: int, item: str) -> "MultiValue":
        """Copy with the item at index replaced."""
        items = list(self.items)
        items[index] = item
        return MultiValue(tuple(items))


@dataclass(frozen=True)
class ChoiceValue:
    """Index into the descriptor's choices; None means nothing selected."""

    kind: ClassVar[ArgKind] = ArgKind.CHOICE
    index: Optional[int] = None

    @property
    def is_set(self) -> bool:
        return self.index is not None


@dataclass(frozen=True)
class PathValue:
    """Filesystem path as entered or picked; empty means unset."""

    kind: ClassVar[ArgKind] = ArgKind.PATH
    path: str = ""

    @property
    def is_set(self) -> bool:
        return self.path != ""


ArgumentValue = Union[FlagValue, CountValue, TextValue, MultiValue, ChoiceValue, PathValue]

_VARIANTS = {
    ArgKind.FLAG: FlagValue,
    ArgKind.COUNT: CountValue,
    ArgKind.SINGLE: TextValue,
    ArgKind.MULTI: MultiValue,
    ArgKind.CHOICE: ChoiceValue,
    ArgKind.PATH: PathValue,
}


def value_for(descriptor: ArgumentDescriptor, raw: object) -> ArgumentValue:
    """Wrap a raw python value in the variant matching the descriptor kind."""
    variant = _VARIANTS[descriptor.kind]
    return variant(raw)  # type: ignore[arg-type]


def _initial_value(descriptor: ArgumentDescriptor) -> ArgumentValue:
    return value_for(descriptor, descriptor.initial_value())


class FormNode:
    """Runtime mirror of one CommandSchema.

    Attributes:
        schema: The command this node mirrors
        values: Current value per argument name, in declaration order
        active: The selected subcommand node, if any
    """

    def __init__(self, schema: CommandSchema) -> None:
        self.schema = schema
        self.values: Dict[str, ArgumentValue] = {
            arg.name: _initial_value(arg) for arg in schema.arguments
        }
        self.active: Optional[FormNode] = None

    def __repr__(self) -> str:
        active = self.active.schema.name if self.active else None
        return f"FormNode({self.schema.name!r}, active={active!r})"

    @property
    def name(self) -> str:
        return self.schema.name

    def get_value(self, name: str) -> ArgumentValue:
        """Current value of an argument (KeyError if unknown)."""
        self.schema.argument(name)
        return self.values[name]

    def is_set(self, name: str) -> bool:
        return self.get_value(name).is_set

    def set_value(self, name: str, value: ArgumentValue) -> None:
        """Replace an argument value.

        Raises:
            KeyError: Unknown argument name
            KindMismatchError: The variant does not match the descriptor kind,
                or its payload is out of bounds for the descriptor
        """
        descriptor = self.schema.argument(name)
        expected = descriptor.kind
        actual = getattr(type(value), "kind", None)

        if actual != expected:
            raise KindMismatchError(
                f"Cannot store a {type(value).__name__} in a {expected.value} argument",
                argument=name,
                expected=expected.value,
                actual=getattr(actual, "value", type(value).__name__),
            )

        if isinstance(value, ChoiceValue) and value.index is not None:
            if not 0 <= value.index < len(descriptor.choices):
                raise KindMismatchError(
                    f"Choice index {value.index} out of range",
                    argument=name,
                    expected=f"0..{len(descriptor.choices) - 1}",
                    actual=str(value.index),
                )

        if isinstance(value, CountValue) and value.count < 0:
            raise KindMismatchError(
                "Occurrence count must not be negative",
                argument=name,
                actual=str(value.count),
            )

        self.values[name] = value

    def reset_value(self, name: str) -> None:
        """Restore an argument to its schema default."""
        self.values[name] = _initial_value(self.schema.argument(name))

    def select_subcommand(self, name: Optional[str]) -> Optional["FormNode"]:
        """Select a subcommand by name, or clear the selection with None.

        The previously active subtree is always dropped; the new child is
        built fresh from its schema defaults.

        Returns:
            The new active child, or None
        """
        if self.active is not None:
            logger.debug(
                "Dropping subcommand %s of %s", self.active.schema.name, self.schema.name
            )
        self.active = None

        if name is None:
            return None

        self.active = FormNode(self.schema.subcommand(name))
        return self.active

    def active_chain(self) -> Iterator["FormNode"]:
        """Yield this node, then its active child, and so on."""
        node: Optional[FormNode] = self
        while node is not None:
            yield node
            node = node.active

    def command_path(self) -> List[str]:
        """Names of the commands from this node down the active chain."""
        return [node.schema.name for node in self.active_chain()]

    def snapshot(self) -> Dict[str, object]:
        """Plain nested dict of values, handy for comparisons and debugging."""
        result: Dict[str, object] = {
            name: _raw(value) for name, value in self.values.items()
        }
        if self.active is not None:
            result["__subcommand__"] = (self.active.schema.name, self.active.snapshot())
        return result


def _raw(value: ArgumentValue) -> object:
    if isinstance(value, FlagValue):
        return value.enabled
    if isinstance(value, CountValue):
        return value.count
    if isinstance(value, MultiValue):
        return value.items
    if isinstance(value, ChoiceValue):
        return value.index
    if isinstance(value, PathValue):
        return value.path
    return value.text


def initialize(schema_root: CommandSchema) -> FormNode:
    """Build the root form node with every value seeded from defaults.

    Child nodes are created lazily when a subcommand is selected.
    """
    return FormNode(schema_root)
