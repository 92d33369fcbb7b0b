"""Turn form state into an argument vector, and back.

Formatting policy (fixed for the whole system, the target's parser must
accept it):
    - a flag and its value are two separate argv tokens: ["--out", "x"]
    - "--flag=value" is never produced
    - multi values repeat the flag token per value:
      ["-I", "a", "-I", "b"]
    - counting flags repeat the flag token: ["-v", "-v", "-v"]
    - positional values are emitted bare, in declaration order relative
      to the flagged arguments; when the innermost command has a
      positional value that looks like an option, its options come first,
      then "--", then its positional values
    - the active subcommand's name follows the parent's arguments, then
      the subcommand's own vector

parse_argv() is the inverse for vectors in this shape and for the usual
"--flag=value" spelling; it exists to pre-fill forms from a command line
and to check the round trip.
"""

from __future__ import annotations

import logging
import shlex
from typing import Dict, Iterable, List, Sequence, Tuple

from argform.lib.errors import ReconstructionError
from argform.lib.form import (
    ArgumentValue,
    ChoiceValue,
    CountValue,
    FlagValue,
    FormNode,
    MultiValue,
    PathValue,
    TextValue,
    value_for,
)
from argform.lib.schema import ArgKind, ArgumentDescriptor, CommandSchema, looks_like_option

logger = logging.getLogger(__name__)

__all__ = [
    "END_OF_OPTIONS",
    "reconstruct",
    "reconstruct_env",
    "format_command",
    "parse_argv",
]

END_OF_OPTIONS = "--"


def _emit(arg: ArgumentDescriptor, value: ArgumentValue) -> List[str]:
    """Tokens for a single argument."""
    if not value.is_set:
        if arg.required:
            raise ReconstructionError(
                "Required argument is unset; validate the form first",
                argument=arg.name,
            )
        return []

    flag = arg.flag
    prefix = [] if flag is None else [flag]

    if isinstance(value, FlagValue):
        return [flag]  # type: ignore[list-item]
    if isinstance(value, CountValue):
        return [flag] * value.count  # type: ignore[list-item]
    if isinstance(value, MultiValue):
        tokens: List[str] = []
        for item in value.items:
            tokens.extend(prefix + [item])
        return tokens
    if isinstance(value, ChoiceValue):
        return prefix + [arg.choices[value.index]]  # type: ignore[index]
    if isinstance(value, PathValue):
        return prefix + [value.path]
    return prefix + [value.text]


def reconstruct(form: FormNode) -> List[str]:
    """Build the argument vector for a validated form.

    Deterministic: the same form state always yields the same tokens.

    Args:
        form: Root form node (validate() should have accepted it)

    Returns:
        Argument vector without the program name

    Raises:
        ReconstructionError: A required value is missing
    """
    schema = form.schema
    positional_tokens = [
        token for arg in schema.positionals() for token in _emit(arg, form.values[arg.name])
    ]
    if form.active is None and any(looks_like_option(t) for t in positional_tokens):
        options = [
            token
            for arg in schema.arguments
            if not arg.is_positional
            for token in _emit(arg, form.values[arg.name])
        ]
        return options + [END_OF_OPTIONS] + positional_tokens

    argv: List[str] = []
    for arg in schema.arguments:
        argv.extend(_emit(arg, form.values[arg.name]))

    if form.active is not None:
        argv.append(form.active.schema.name)
        argv.extend(reconstruct(form.active))

    return argv


def reconstruct_env(
    pairs: Iterable[Tuple[str, str]],
    declared: Iterable[str] = (),
) -> Dict[str, str]:
    """Build the environment override map.

    Declared variables left empty are not overridden; free-form pairs are
    passed through as entered. Later pairs win over earlier ones.

    Raises:
        ReconstructionError: A pair has an empty key
    """
    declared_names = set(declared)
    env: Dict[str, str] = {}
    for key, value in pairs:
        if not key:
            raise ReconstructionError("Environment variable name must not be empty")
        if key in declared_names and value == "":
            continue
        env[key] = value
    return env


def format_command(argv: Sequence[str]) -> str:
    """Shell-quoted preview of a command line."""
    return shlex.join(list(argv))


def _blank(node: FormNode) -> None:
    for arg in node.schema.arguments:
        node.values[arg.name] = value_for(arg, arg.zero_value())


def _choice_index(arg: ArgumentDescriptor, token: str) -> int:
    if token in arg.choices:
        return arg.choices.index(token)
    lowered = [c.lower() for c in arg.choices]
    if token.lower() in lowered:
        return lowered.index(token.lower())
    raise ReconstructionError(
        f"{token!r} is not a valid choice",
        argument=arg.name,
        token=token,
        details={"choices": ", ".join(arg.choices)},
    )


def _store(node: FormNode, arg: ArgumentDescriptor, token: str) -> None:
    current = node.values[arg.name]
    if arg.kind == ArgKind.MULTI:
        node.set_value(arg.name, current.appended(token))  # type: ignore[union-attr]
    elif arg.kind == ArgKind.CHOICE:
        node.set_value(arg.name, ChoiceValue(_choice_index(arg, token)))
    elif arg.kind == ArgKind.PATH:
        node.set_value(arg.name, PathValue(token))
    else:
        node.set_value(arg.name, TextValue(token))


def _min_tokens(arg: ArgumentDescriptor) -> int:
    if arg.kind == ArgKind.MULTI:
        return arg.min_occurs  # type: ignore[return-value]
    return 1 if arg.required else 0


def _assign_positionals(node: FormNode, tokens: Sequence[str]) -> None:
    """Hand loose tokens to positionals the way argparse matches them.

    Each positional first gets what it needs; a multi positional takes
    whatever is not needed by the positionals after it.
    """
    positionals = node.schema.positionals()
    needs = [_min_tokens(arg) for arg in positionals]
    i = 0
    for index, arg in enumerate(positionals):
        available = len(tokens) - i
        reserved = sum(needs[index + 1:])
        if arg.kind == ArgKind.MULTI:
            take = max(available - reserved, 0)
            if arg.max_occurs is not None:
                take = min(take, arg.max_occurs)
        elif available > reserved or (arg.required and available > 0):
            take = 1
        else:
            take = 0
        for token in tokens[i:i + take]:
            _store(node, arg, token)
        i += take

    if i < len(tokens):
        raise ReconstructionError(
            f"Unexpected argument for command {node.schema.name!r}", token=tokens[i]
        )


def _parse_into(node: FormNode, argv: Sequence[str]) -> None:
    schema = node.schema
    sub_names = {sub.name for sub in schema.subcommands}
    needed = sum(_min_tokens(arg) for arg in schema.positionals())
    loose: List[str] = []
    only_positionals = False
    i = 0

    while i < len(argv):
        token = argv[i]
        i += 1

        if token == END_OF_OPTIONS and not only_positionals:
            only_positionals = True
            continue

        if not only_positionals and looks_like_option(token):
            flag, inline = token, None
            if token.startswith("--") and "=" in token:
                flag, inline = token.split("=", 1)

            arg = schema.by_flag(flag)
            if arg is None:
                raise ReconstructionError(
                    f"Unknown option for command {schema.name!r}", token=token
                )

            if arg.kind == ArgKind.FLAG:
                if inline is not None:
                    raise ReconstructionError(
                        "Flag does not take a value", argument=arg.name, token=token
                    )
                node.set_value(arg.name, FlagValue(True))
            elif arg.kind == ArgKind.COUNT:
                current = node.values[arg.name]
                node.set_value(arg.name, CountValue(current.count + 1))  # type: ignore[union-attr]
            else:
                if inline is None:
                    if i >= len(argv):
                        raise ReconstructionError(
                            "Option expects a value", argument=arg.name, token=token
                        )
                    inline = argv[i]
                    i += 1
                _store(node, arg, inline)
            continue

        # A subcommand name only counts once the required positionals have theirs
        if not only_positionals and token in sub_names and len(loose) >= needed:
            _assign_positionals(node, loose)
            child = node.select_subcommand(token)
            _blank(child)  # type: ignore[arg-type]
            _parse_into(child, argv[i:])  # type: ignore[arg-type]
            return

        loose.append(token)

    _assign_positionals(node, loose)


def parse_argv(
    schema: CommandSchema,
    argv: Sequence[str],
    *,
    defaults: bool = False,
) -> FormNode:
    """Parse an argument vector back into a form.

    Args:
        schema: Root command schema
        argv: Tokens without the program name
        defaults: Seed unmentioned arguments with schema defaults instead of
            zero values (useful to pre-fill a form; the round trip of
            reconstruct() needs zero values)

    Returns:
        New root form node

    Raises:
        ReconstructionError: Unknown option, missing value or bad choice
    """
    form = FormNode(schema)
    _blank(form)
    _parse_into(form, list(argv))
    if defaults:
        # Parsed values start from zero so multi values never extend a default
        for node in form.active_chain():
            for arg in node.schema.arguments:
                if not node.values[arg.name].is_set:
                    node.reset_value(arg.name)
    logger.debug("Parsed %d token(s) for %s", len(argv), schema.name)
    return form
