"""Load a CommandSchema from a YAML (or already parsed) document.

For programs that are not written with argparse: describe the command
line in YAML and point argform at the executable.

Example YAML:
    name: backup
    help: Copy files somewhere safe
    env_vars: [BACKUP_TOKEN]
    arguments:
      - name: source
        kind: path
        path_hint: dir
        required: true
      - name: level
        flag: --level
        numeric: int
        minimum: 0
        maximum: 9
      - name: verbose
        flag: -v
        kind: count
    groups:
      - name: format
        members: [json, xml]
        rule: exclusive
    subcommands:
      - name: restore
        arguments: [...]

Structural checks (field types, unknown keys) are done by pydantic;
semantic checks (duplicate names, bad groups) by the schema model itself.
Either failure surfaces as SchemaError.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pydantic
import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

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

__all__ = [
    "ArgumentModel",
    "GroupModel",
    "CommandModel",
    "schema_from_dict",
    "load_schema",
]


class ArgumentModel(BaseModel):
    """One argument entry of a schema document."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, description="Identifier, unique per command")
    flag: Optional[str] = Field(default=None, description="Call name; omit for positionals")
    kind: ArgKind = Field(default=ArgKind.SINGLE, description="Argument kind")
    default: Any = Field(default=None, description="Default value")
    required: bool = False
    min_occurs: Optional[int] = Field(default=None, ge=0)
    max_occurs: Optional[int] = Field(default=None, ge=1)
    pattern: Optional[str] = Field(default=None, description="Full-match regex per value")
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    numeric: Optional[str] = Field(default=None, description="'int' or 'float'")
    choices: List[str] = Field(default_factory=list)
    path_hint: PathHint = PathHint.ANY
    help: str = ""
    metavar: Optional[str] = None

    @field_validator("kind", "path_hint", mode="before")
    @classmethod
    def lower_enum(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    @field_validator("choices", mode="before")
    @classmethod
    def stringify_choices(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return [str(item) for item in v]
        return v

    def to_descriptor(self) -> ArgumentDescriptor:
        constraint = None
        if (
            self.pattern is not None
            or self.numeric is not None
            or self.minimum is not None
            or self.maximum is not None
        ):
            numeric = self.numeric
            if numeric is None and (self.minimum is not None or self.maximum is not None):
                numeric = "float"
            constraint = ValueConstraint(
                pattern=self.pattern,
                minimum=self.minimum,
                maximum=self.maximum,
                numeric=numeric,
            )
        return ArgumentDescriptor(
            name=self.name,
            flag=self.flag,
            kind=self.kind,
            default=self.default,
            required=self.required,
            min_occurs=self.min_occurs,
            max_occurs=self.max_occurs,
            constraint=constraint,
            choices=tuple(self.choices),
            path_hint=self.path_hint,
            help=self.help,
            metavar=self.metavar,
        )


class GroupModel(BaseModel):
    """An argument group entry."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    members: List[str] = Field(..., min_length=1)
    rule: GroupRule = GroupRule.EXCLUSIVE

    @field_validator("rule", mode="before")
    @classmethod
    def lower_rule(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v


class CommandModel(BaseModel):
    """A command (root or subcommand) of a schema document."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    help: str = ""
    arguments: List[ArgumentModel] = Field(default_factory=list)
    groups: List[GroupModel] = Field(default_factory=list)
    subcommands: List["CommandModel"] = Field(default_factory=list)
    subcommand_required: bool = False
    env_vars: List[str] = Field(default_factory=list)

    def to_schema(self) -> CommandSchema:
        return CommandSchema(
            name=self.name,
            help=self.help,
            arguments=tuple(arg.to_descriptor() for arg in self.arguments),
            groups=tuple(
                GroupDescriptor(name=g.name, members=tuple(g.members), rule=g.rule)
                for g in self.groups
            ),
            subcommands=tuple(sub.to_schema() for sub in self.subcommands),
            subcommand_required=self.subcommand_required,
            env_vars=tuple(self.env_vars),
        )


CommandModel.model_rebuild()


def _describe(error: pydantic.ValidationError) -> Dict[str, Any]:
    details: Dict[str, Any] = {}
    for issue in error.errors():
        location = ".".join(str(part) for part in issue["loc"]) or "(root)"
        details[location] = issue["msg"]
    return details


def schema_from_dict(data: Dict[str, Any]) -> CommandSchema:
    """Validate a parsed document and build the schema.

    Raises:
        SchemaError: The document is structurally or semantically invalid
    """
    if not isinstance(data, dict):
        raise SchemaError(
            f"Schema document must be a mapping, not {type(data).__name__}"
        )
    try:
        model = CommandModel.model_validate(data)
    except pydantic.ValidationError as e:
        raise SchemaError(
            "Invalid schema document",
            command=data.get("name") if isinstance(data.get("name"), str) else None,
            details=_describe(e),
        ) from e
    return model.to_schema()


def load_schema(path: Union[str, Path]) -> CommandSchema:
    """Load a schema from a YAML file.

    Raises:
        SchemaError: The file is missing, not YAML, or not a valid schema
    """
    schema_path = Path(path)
    if not schema_path.exists():
        raise SchemaError(
            f"Schema file not found: {schema_path}",
            suggestion="Check the --schema path.",
        )

    with open(schema_path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise SchemaError(f"Invalid YAML syntax: {e}") from e

    if not data:
        raise SchemaError(f"Empty schema file: {schema_path}")

    schema = schema_from_dict(data)
    logger.debug("Loaded schema %s from %s", schema.name, schema_path)
    return schema
