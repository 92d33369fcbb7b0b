"""Build a CommandSchema from an argparse.ArgumentParser.

Mapping:
    store_true / store_false / store_const  -> FLAG
    BooleanOptionalAction                   -> FLAG on the option that
                                               differs from the default
    count                                   -> COUNT
    append / extend                         -> MULTI
    positional with nargs "*", "+" or N > 1 -> MULTI
    choices                                 -> CHOICE (MULTI gets a pattern)
    type=pathlib.Path / argparse.FileType   -> PATH
    type=int / float                        -> numeric constraint
    mutually exclusive group                -> EXCLUSIVE (REQUIRED_ONE_OF
                                               when the group is required)
    subparsers                              -> subcommands, recursively

Help and version actions, and anything with help=SUPPRESS, are skipped.

An option that takes several values after one flag under plain "store"
(nargs "*", "+" or N > 1) cannot be rebuilt under the repeat-the-flag
policy (argparse keeps only the last occurrence), so it is rejected with
SchemaError; declare it with action="extend" instead.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import pathlib
import re
from collections import Counter
from typing import Any, Dict, List, Optional, Sequence

from argform.lib.errors import SchemaError
from argform.lib.schema import (
    ArgKind,
    ArgumentDescriptor,
    CommandSchema,
    GroupDescriptor,
    GroupRule,
    PathHint,
    ValueConstraint,
)

logger = logging.getLogger(__name__)

__all__ = ["from_parser"]

_SKIPPED = (argparse._HelpAction, argparse._VersionAction)
_FLAG_ACTIONS = (
    argparse._StoreTrueAction,
    argparse._StoreFalseAction,
    argparse._StoreConstAction,
    argparse._AppendConstAction,
)


def _call_name(action: argparse.Action) -> Optional[str]:
    """Preferred flag: the longest option string (--long over -l)."""
    if not action.option_strings:
        return None
    return max(action.option_strings, key=len)


def _path_hint(action: argparse.Action) -> Optional[PathHint]:
    kind = action.type
    if isinstance(kind, argparse.FileType):
        return PathHint.FILE
    if isinstance(kind, type) and issubclass(kind, pathlib.PurePath):
        return PathHint.ANY
    return None


def _constraint(action: argparse.Action) -> Optional[ValueConstraint]:
    if action.type is int:
        return ValueConstraint(numeric="int")
    if action.type is float:
        return ValueConstraint(numeric="float")
    return None


def _default(action: argparse.Action) -> Any:
    default = action.default
    if default is None or default is argparse.SUPPRESS:
        return None
    if isinstance(default, argparse.FileType):
        return None
    return default


def _is_multi_nargs(nargs: Any) -> bool:
    return nargs in ("*", "+", argparse.REMAINDER) or (isinstance(nargs, int) and nargs > 1)


def _descriptor(action: argparse.Action, name: str) -> ArgumentDescriptor:
    flag = _call_name(action)
    help_text = action.help or ""
    metavar = action.metavar if isinstance(action.metavar, str) else None
    required = bool(action.required)

    if isinstance(action, argparse.BooleanOptionalAction):
        # Show the option that changes the outcome relative to the default
        positive = [s for s in action.option_strings if not s.startswith("--no-")]
        negative = [s for s in action.option_strings if s.startswith("--no-")]
        chosen = negative if action.default else positive
        return ArgumentDescriptor(
            name=name,
            flag=max(chosen or action.option_strings, key=len),
            kind=ArgKind.FLAG,
            help=help_text,
            required=required,
        )

    if isinstance(action, _FLAG_ACTIONS):
        # Checked means "pass the flag", whatever value it stores
        return ArgumentDescriptor(
            name=name, flag=flag, kind=ArgKind.FLAG, help=help_text, required=required
        )

    if isinstance(action, argparse._CountAction):
        return ArgumentDescriptor(
            name=name,
            flag=flag,
            kind=ArgKind.COUNT,
            help=help_text,
            required=required,
        )

    constraint = _constraint(action)
    hint = _path_hint(action)
    choices = tuple(str(c) for c in action.choices) if action.choices else ()
    default = _default(action)

    is_append = isinstance(action, (argparse._AppendAction, argparse._ExtendAction))
    multi = is_append or (flag is None and _is_multi_nargs(action.nargs))

    if not multi and flag is not None and _is_multi_nargs(action.nargs):
        raise SchemaError(
            f"Option {flag} takes several values per flag",
            argument=name,
            suggestion='Use action="extend" (or "append") so repeated flags accumulate.',
        )

    if multi:
        min_occurs: Optional[int] = None
        max_occurs: Optional[int] = None
        if action.nargs == "+" and flag is None:
            min_occurs = 1
        elif isinstance(action.nargs, int) and flag is None:
            min_occurs = max_occurs = action.nargs
        if required and not min_occurs:
            min_occurs = 1
        if choices:
            pattern = "|".join(re.escape(c) for c in choices)
            constraint = ValueConstraint(pattern=f"(?:{pattern})")
        if is_append:
            # argparse appends to the default, so repeating it would duplicate it
            default = None
        elif default is not None and not isinstance(default, (list, tuple)):
            default = [default]
        return ArgumentDescriptor(
            name=name,
            flag=flag,
            kind=ArgKind.MULTI,
            default=tuple(str(v) for v in default) if default else None,
            required=required and (min_occurs or 0) > 0,
            min_occurs=min_occurs,
            max_occurs=max_occurs,
            constraint=constraint,
            help=help_text,
            metavar=metavar,
        )

    if choices:
        return ArgumentDescriptor(
            name=name,
            flag=flag,
            kind=ArgKind.CHOICE,
            choices=choices,
            default=str(default) if default is not None and str(default) in choices else None,
            required=required,
            help=help_text,
            metavar=metavar,
        )

    return ArgumentDescriptor(
        name=name,
        flag=flag,
        kind=ArgKind.PATH if hint is not None else ArgKind.SINGLE,
        path_hint=hint or PathHint.ANY,
        default=str(default) if default is not None else None,
        required=required,
        constraint=constraint,
        help=help_text,
        metavar=metavar,
    )


def _without_default(descriptor: ArgumentDescriptor) -> ArgumentDescriptor:
    """Group member that starts unset, its argparse default kept as a hint.

    argparse fills in the defaults of the members nobody passed, so a
    pre-filled member would collide with whichever one the user picks.
    """
    if descriptor.default is None:
        return descriptor
    default = descriptor.default
    shown = ", ".join(default) if isinstance(default, tuple) else str(default)
    return dataclasses.replace(
        descriptor, default=None, metavar=descriptor.metavar or f"default: {shown}"
    )


def _unique_name(action: argparse.Action, taken: Dict[str, Any], shared: bool) -> str:
    name = action.dest
    if name not in taken and not shared:
        return name
    # Options sharing a dest (store_const pairs) are named by flag
    flag = _call_name(action) or name
    candidate = flag.lstrip("-").replace("-", "_")
    suffix = 2
    unique = candidate
    while unique in taken:
        unique = f"{candidate}_{suffix}"
        suffix += 1
    return unique


def from_parser(
    parser: argparse.ArgumentParser,
    *,
    name: Optional[str] = None,
    env_vars: Sequence[str] = (),
) -> CommandSchema:
    """Convert an argparse parser (and its subparsers) into a schema.

    Args:
        parser: Fully configured parser
        name: Command name (defaults to parser.prog)
        env_vars: Environment variable names the form should offer

    Raises:
        SchemaError: The parser uses something the form cannot represent
    """
    arguments: List[ArgumentDescriptor] = []
    names: Dict[str, argparse.Action] = {}
    action_names: Dict[int, str] = {}
    subcommands: List[CommandSchema] = []
    subcommand_required = False
    dest_counts = Counter(a.dest for a in parser._actions if a.option_strings)

    for action in parser._actions:
        if isinstance(action, _SKIPPED) or action.help == argparse.SUPPRESS:
            continue

        if isinstance(action, argparse._SubParsersAction):
            subcommand_required = bool(action.required)
            helps = {a.dest: a.help or "" for a in action._choices_actions}
            seen: List[argparse.ArgumentParser] = []
            for sub_name, sub_parser in action.choices.items():
                # Aliases map to the same parser object
                if any(sub_parser is s for s in seen):
                    continue
                seen.append(sub_parser)
                child = from_parser(sub_parser, name=sub_name)
                if not child.help and helps.get(sub_name):
                    child = CommandSchema(
                        name=child.name,
                        help=helps[sub_name],
                        arguments=child.arguments,
                        groups=child.groups,
                        subcommands=child.subcommands,
                        subcommand_required=child.subcommand_required,
                        env_vars=child.env_vars,
                    )
                subcommands.append(child)
            continue

        arg_name = _unique_name(action, names, dest_counts[action.dest] > 1)
        names[arg_name] = action
        action_names[id(action)] = arg_name
        arguments.append(_descriptor(action, arg_name))

    groups: List[GroupDescriptor] = []
    for group in parser._mutually_exclusive_groups:
        members = [
            action_names[id(a)] for a in group._group_actions if id(a) in action_names
        ]
        if not members or (len(members) < 2 and not group.required):
            continue
        groups.append(
            GroupDescriptor(
                name="|".join(members),
                members=tuple(members),
                rule=GroupRule.REQUIRED_ONE_OF if group.required else GroupRule.EXCLUSIVE,
            )
        )

    grouped = {member for group in groups for member in group.members}
    arguments = [_without_default(a) if a.name in grouped else a for a in arguments]

    schema = CommandSchema(
        name=name or parser.prog,
        help=parser.description or "",
        arguments=tuple(arguments),
        groups=tuple(groups),
        subcommands=tuple(subcommands),
        subcommand_required=subcommand_required,
        env_vars=tuple(env_vars),
    )
    logger.debug(
        "Built schema %s: %d argument(s), %d subcommand(s)",
        schema.name,
        len(arguments),
        len(subcommands),
    )
    return schema
