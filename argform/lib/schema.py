"""Immutable argument schema model.

A CommandSchema describes one command: its arguments, argument groups
and nested subcommands. It is built once from an external declaration
(an argparse parser, a YAML document, or by hand) and only ever read
afterwards. Malformed input is rejected at construction with SchemaError.

Example:
    >>> schema = CommandSchema(
    ...     name="greet",
    ...     arguments=(
    ...         ArgumentDescriptor("name", flag="--name", required=True),
    ...         ArgumentDescriptor("verbose", flag="--verbose", kind=ArgKind.FLAG),
    ...     ),
    ... )
    >>> schema.argument("name").kind
    <ArgKind.SINGLE: 'single'>
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional, Tuple, Union

from argform.lib.errors import SchemaError

__all__ = [
    "ArgKind",
    "PathHint",
    "GroupRule",
    "ValueConstraint",
    "ArgumentDescriptor",
    "GroupDescriptor",
    "CommandSchema",
    "display_name",
    "looks_like_option",
]

# Flags look like -v, --verbose, --dry-run
FLAG_PATTERN = re.compile(r"^--?[^\W\d_-][\w-]*$")


class ArgKind(str, Enum):
    """Closed set of argument kinds a CLI schema can express."""

    FLAG = "flag"  # Presence-only switch
    COUNT = "count"  # Repeatable switch counted by occurrence (-vvv)
    SINGLE = "single"  # One free-text value
    MULTI = "multi"  # Ordered, repeatable values
    CHOICE = "choice"  # One of a fixed set of tokens
    PATH = "path"  # Filesystem path (file picker friendly)


class PathHint(str, Enum):
    """What kind of filesystem entry a PATH argument expects."""

    ANY = "any"
    FILE = "file"
    DIR = "dir"
    EXECUTABLE = "executable"


class GroupRule(str, Enum):
    """How the members of an argument group constrain each other."""

    EXCLUSIVE = "exclusive"  # At most one member set
    REQUIRED_ONE_OF = "required_one_of"  # Exactly one member set


@dataclass(frozen=True)
class ValueConstraint:
    """Free-form value constraint: a regex pattern and/or a numeric range.

    Attributes:
        pattern: Regex the whole value must match (re.fullmatch)
        minimum: Inclusive lower bound, implies a numeric value
        maximum: Inclusive upper bound, implies a numeric value
        numeric: "int" or "float" when the value must parse as a number
    """

    pattern: Optional[str] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    numeric: Optional[str] = None

    def __post_init__(self) -> None:
        if self.pattern is not None:
            try:
                re.compile(self.pattern)
            except re.error as e:
                raise SchemaError(
                    f"Invalid value pattern {self.pattern!r}: {e}"
                ) from e
        if self.numeric not in (None, "int", "float"):
            raise SchemaError(
                f"Numeric type must be 'int' or 'float', got {self.numeric!r}"
            )
        if (
            self.minimum is not None
            and self.maximum is not None
            and self.minimum > self.maximum
        ):
            raise SchemaError(
                f"Range minimum {self.minimum} is greater than maximum {self.maximum}"
            )

    @property
    def is_numeric(self) -> bool:
        """Whether values must parse as numbers."""
        return (
            self.numeric is not None
            or self.minimum is not None
            or self.maximum is not None
        )


@dataclass(frozen=True)
class ArgumentDescriptor:
    """Description of a single argument.

    Attributes:
        name: Unique identifier within its command (argparse "dest")
        flag: Call name such as "--output" or "-o"; None for positionals
        kind: Argument kind, see ArgKind
        default: Default value (bool, int, str, tuple of str or a choice token)
        required: Whether a value must be supplied
        min_occurs: Minimum number of values (defaults to 1 if required)
        max_occurs: Maximum number of values, None for unbounded
        constraint: Optional pattern/range constraint on each value
        choices: Canonical tokens for CHOICE arguments
        path_hint: Expected filesystem entry for PATH arguments
        help: Help text shown as a tooltip/help line
        metavar: Placeholder shown in empty inputs
    """

    name: str
    flag: Optional[str] = None
    kind: ArgKind = ArgKind.SINGLE
    default: Any = None
    required: bool = False
    min_occurs: Optional[int] = None
    max_occurs: Optional[int] = None
    constraint: Optional[ValueConstraint] = None
    choices: Tuple[str, ...] = ()
    path_hint: PathHint = PathHint.ANY
    help: str = ""
    metavar: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise SchemaError("Argument name must not be empty")

        # Normalize loosely-typed input so the rest of the code can rely on it
        object.__setattr__(self, "kind", ArgKind(self.kind))
        object.__setattr__(self, "path_hint", PathHint(self.path_hint))
        object.__setattr__(self, "choices", tuple(str(c) for c in self.choices))

        if self.flag is not None and not FLAG_PATTERN.match(self.flag):
            raise SchemaError(
                f"Invalid flag {self.flag!r}",
                argument=self.name,
                suggestion="Flags look like -v or --verbose",
            )

        if self.flag is None and self.kind in (ArgKind.FLAG, ArgKind.COUNT):
            raise SchemaError(
                f"{self.kind.value} argument needs a flag",
                argument=self.name,
            )

        if self.kind == ArgKind.CHOICE:
            if not self.choices:
                raise SchemaError("Choice argument has no choices", argument=self.name)
            if len(set(self.choices)) != len(self.choices):
                raise SchemaError("Duplicate choices", argument=self.name)
            if self.default is not None and str(self.default) not in self.choices:
                raise SchemaError(
                    f"Default {self.default!r} is not one of the choices",
                    argument=self.name,
                    details={"choices": ", ".join(self.choices)},
                )
        elif self.choices:
            raise SchemaError(
                f"Only choice arguments take choices, not {self.kind.value}",
                argument=self.name,
            )

        if self.min_occurs is None:
            object.__setattr__(self, "min_occurs", 1 if self.required else 0)
        if self.min_occurs < 0:
            raise SchemaError("min_occurs must not be negative", argument=self.name)
        if self.max_occurs is not None and self.max_occurs < max(self.min_occurs, 1):
            raise SchemaError(
                f"max_occurs {self.max_occurs} is below min_occurs {self.min_occurs}",
                argument=self.name,
            )

    @property
    def is_positional(self) -> bool:
        """Positional arguments are emitted without a flag token."""
        return self.flag is None

    @property
    def label(self) -> str:
        """Human readable label for form widgets."""
        return display_name(self.name)

    def zero_value(self) -> Any:
        """Raw value of this kind when nothing is set."""
        if self.kind == ArgKind.FLAG:
            return False
        if self.kind == ArgKind.COUNT:
            return 0
        if self.kind == ArgKind.MULTI:
            return ()
        if self.kind == ArgKind.CHOICE:
            return None
        return ""

    def initial_value(self) -> Any:
        """Default converted to the raw shape of this kind."""
        if self.default is None:
            return self.zero_value()
        if self.kind == ArgKind.FLAG:
            return bool(self.default)
        if self.kind == ArgKind.COUNT:
            return int(self.default)
        if self.kind == ArgKind.MULTI:
            if isinstance(self.default, (list, tuple)):
                return tuple(str(v) for v in self.default)
            return (str(self.default),)
        if self.kind == ArgKind.CHOICE:
            return self.choices.index(str(self.default))
        return str(self.default)


@dataclass(frozen=True)
class GroupDescriptor:
    """A set of arguments constrained by an exclusivity rule."""

    name: str
    members: Tuple[str, ...]
    rule: GroupRule = GroupRule.EXCLUSIVE

    def __post_init__(self) -> None:
        object.__setattr__(self, "members", tuple(self.members))
        object.__setattr__(self, "rule", GroupRule(self.rule))
        if len(self.members) < 2 and self.rule == GroupRule.EXCLUSIVE:
            raise SchemaError(
                f"Exclusive group {self.name!r} needs at least two members"
            )
        if len(set(self.members)) != len(self.members):
            raise SchemaError(f"Group {self.name!r} lists a member twice")


@dataclass(frozen=True)
class CommandSchema:
    """One command (or subcommand) and everything it accepts.

    Attributes:
        name: Command name; for subcommands this is the token on the command line
        help: Description shown at the top of the form
        arguments: Arguments in declaration order
        groups: Argument groups in declaration order
        subcommands: Child commands, at most one active at runtime
        subcommand_required: Whether one of the subcommands must be selected
        env_vars: Environment variable names offered for override
    """

    name: str
    help: str = ""
    arguments: Tuple[ArgumentDescriptor, ...] = ()
    groups: Tuple[GroupDescriptor, ...] = ()
    subcommands: Tuple["CommandSchema", ...] = ()
    subcommand_required: bool = False
    env_vars: Tuple[str, ...] = ()
    _by_name: dict = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "arguments", tuple(self.arguments))
        object.__setattr__(self, "groups", tuple(self.groups))
        object.__setattr__(self, "subcommands", tuple(self.subcommands))
        object.__setattr__(self, "env_vars", tuple(self.env_vars))

        by_name: dict = {}
        flags: set = set()
        for arg in self.arguments:
            if arg.name in by_name:
                raise SchemaError(
                    "Duplicate argument name", command=self.name, argument=arg.name
                )
            if arg.flag is not None:
                if arg.flag in flags:
                    raise SchemaError(
                        f"Duplicate flag {arg.flag!r}",
                        command=self.name,
                        argument=arg.name,
                    )
                flags.add(arg.flag)
            by_name[arg.name] = arg
        object.__setattr__(self, "_by_name", by_name)

        for group in self.groups:
            for member in group.members:
                if member not in by_name:
                    raise SchemaError(
                        f"Group {group.name!r} references unknown argument",
                        command=self.name,
                        argument=member,
                    )

        seen: set = set()
        for sub in self.subcommands:
            if sub.name in seen:
                raise SchemaError(
                    f"Duplicate subcommand {sub.name!r}", command=self.name
                )
            seen.add(sub.name)

        if self.subcommand_required and not self.subcommands:
            raise SchemaError(
                "Subcommand required but none declared", command=self.name
            )

    def __iter__(self) -> Iterator[ArgumentDescriptor]:
        return iter(self.arguments)

    def argument(self, name: str) -> ArgumentDescriptor:
        """Look up an argument descriptor by name (KeyError if unknown)."""
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"{self.name}: no argument named {name!r}") from None

    def has_argument(self, name: str) -> bool:
        return name in self._by_name

    def subcommand(self, name: str) -> "CommandSchema":
        """Look up a child command by name (KeyError if unknown)."""
        for sub in self.subcommands:
            if sub.name == name:
                return sub
        raise KeyError(f"{self.name}: no subcommand named {name!r}")

    def by_flag(self, flag: str) -> Optional[ArgumentDescriptor]:
        """Find the argument called with the given flag, if any."""
        for arg in self.arguments:
            if arg.flag == flag:
                return arg
        return None

    def positionals(self) -> Tuple[ArgumentDescriptor, ...]:
        return tuple(a for a in self.arguments if a.is_positional)

    def walk(self) -> Iterator["CommandSchema"]:
        """Yield this command and every nested subcommand, depth first."""
        yield self
        for sub in self.subcommands:
            yield from sub.walk()


def display_name(identifier: Union[str, Any]) -> str:
    """Turn an identifier into sentence case for labels.

    Splits on non-alphanumerics and camelCase boundaries.

    Example:
        >>> display_name("output_dir")
        'Output dir'
        >>> display_name("maxRetries")
        'Max retries'
    """
    text = str(identifier).strip("-_ ")
    text = re.sub(r"(?<=[a-z])(?=[A-Z])", " ", text)
    words = [w for w in re.split(r"[^0-9A-Za-z]+", text) if w]
    if not words:
        return str(identifier)
    first, rest = words[0], words[1:]
    return " ".join([first[:1].upper() + first[1:].lower()] + [w.lower() for w in rest])


def looks_like_option(token: str) -> bool:
    """True if a command line parser would read the token as an option.

    Negative numbers and a lone "-" are values.
    """
    if len(token) < 2 or not token.startswith("-"):
        return False
    return not token[1].isdigit() and token[1] != "."
