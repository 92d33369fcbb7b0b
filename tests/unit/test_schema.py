"""Tests for argform/lib/schema.py - the immutable schema model."""

from __future__ import annotations

import pytest

from argform.lib.errors import SchemaError
from argform.lib.schema import (
    ArgKind,
    ArgumentDescriptor,
    CommandSchema,
    GroupDescriptor,
    GroupRule,
    PathHint,
    ValueConstraint,
    display_name,
)


class TestArgumentDescriptor:
    """Tests for argument descriptor construction."""

    def test_defaults(self) -> None:
        """A bare descriptor is an optional single value positional."""
        arg = ArgumentDescriptor("target")
        assert arg.kind == ArgKind.SINGLE
        assert arg.is_positional
        assert arg.required is False
        assert arg.min_occurs == 0
        assert arg.max_occurs is None

    def test_required_sets_min_occurs(self) -> None:
        """Required arguments need at least one value."""
        arg = ArgumentDescriptor("target", required=True)
        assert arg.min_occurs == 1

    def test_kind_accepts_strings(self) -> None:
        """Loosely typed kinds and hints are normalized to enums."""
        arg = ArgumentDescriptor("out", flag="--out", kind="path", path_hint="dir")
        assert arg.kind is ArgKind.PATH
        assert arg.path_hint is PathHint.DIR

    def test_empty_name_rejected(self) -> None:
        """Names must not be blank."""
        with pytest.raises(SchemaError):
            ArgumentDescriptor("  ")

    @pytest.mark.parametrize("flag", ["verbose", "---x", "--", "-1"])
    def test_invalid_flag_rejected(self, flag: str) -> None:
        """Flags must look like -x or --long-name."""
        with pytest.raises(SchemaError, match="Invalid flag"):
            ArgumentDescriptor("x", flag=flag)

    def test_flag_kind_needs_flag(self) -> None:
        """A switch without a call name cannot be emitted."""
        with pytest.raises(SchemaError, match="needs a flag"):
            ArgumentDescriptor("verbose", kind=ArgKind.FLAG)

    def test_choice_without_choices_rejected(self) -> None:
        with pytest.raises(SchemaError, match="no choices"):
            ArgumentDescriptor("mode", flag="--mode", kind=ArgKind.CHOICE)

    def test_duplicate_choices_rejected(self) -> None:
        with pytest.raises(SchemaError, match="Duplicate choices"):
            ArgumentDescriptor("mode", flag="--mode", kind=ArgKind.CHOICE, choices=("a", "a"))

    def test_choice_default_must_be_a_choice(self) -> None:
        """A default outside the choice list is a schema error."""
        with pytest.raises(SchemaError, match="not one of the choices"):
            ArgumentDescriptor(
                "mode", flag="--mode", kind=ArgKind.CHOICE, choices=("a", "b"), default="c"
            )

    def test_choices_only_for_choice_kind(self) -> None:
        with pytest.raises(SchemaError, match="Only choice arguments"):
            ArgumentDescriptor("name", flag="--name", choices=("a",))

    def test_max_below_min_rejected(self) -> None:
        with pytest.raises(SchemaError, match="max_occurs"):
            ArgumentDescriptor("files", kind=ArgKind.MULTI, min_occurs=3, max_occurs=2)

    def test_initial_value_per_kind(self) -> None:
        """Defaults are converted to the raw shape of each kind."""
        assert ArgumentDescriptor("f", flag="-f", kind=ArgKind.FLAG, default=1).initial_value() is True
        assert ArgumentDescriptor("v", flag="-v", kind=ArgKind.COUNT, default="2").initial_value() == 2
        assert ArgumentDescriptor("i", kind=ArgKind.MULTI, default="x").initial_value() == ("x",)
        assert ArgumentDescriptor("i", kind=ArgKind.MULTI, default=[1, 2]).initial_value() == ("1", "2")
        choice = ArgumentDescriptor("m", flag="-m", kind=ArgKind.CHOICE, choices=("a", "b"), default="b")
        assert choice.initial_value() == 1
        assert ArgumentDescriptor("n", default=5).initial_value() == "5"

    def test_zero_value_per_kind(self) -> None:
        assert ArgumentDescriptor("f", flag="-f", kind=ArgKind.FLAG).zero_value() is False
        assert ArgumentDescriptor("v", flag="-v", kind=ArgKind.COUNT).zero_value() == 0
        assert ArgumentDescriptor("i", kind=ArgKind.MULTI).zero_value() == ()
        assert ArgumentDescriptor("p", kind=ArgKind.PATH).zero_value() == ""

    def test_label(self) -> None:
        assert ArgumentDescriptor("output_dir").label == "Output dir"


class TestValueConstraint:
    """Tests for pattern and range constraints."""

    def test_bad_pattern_rejected(self) -> None:
        with pytest.raises(SchemaError, match="Invalid value pattern"):
            ValueConstraint(pattern="[unclosed")

    def test_bad_numeric_type_rejected(self) -> None:
        with pytest.raises(SchemaError, match="Numeric type"):
            ValueConstraint(numeric="decimal")

    def test_inverted_range_rejected(self) -> None:
        with pytest.raises(SchemaError, match="greater than maximum"):
            ValueConstraint(minimum=10, maximum=1)

    def test_range_implies_numeric(self) -> None:
        assert ValueConstraint(minimum=0).is_numeric
        assert not ValueConstraint(pattern="a+").is_numeric


class TestGroupDescriptor:
    """Tests for argument groups."""

    def test_exclusive_needs_two_members(self) -> None:
        with pytest.raises(SchemaError, match="at least two members"):
            GroupDescriptor("solo", ("a",))

    def test_required_one_of_single_member_allowed(self) -> None:
        """A required group of one is just a required argument."""
        group = GroupDescriptor("need", ("a",), GroupRule.REQUIRED_ONE_OF)
        assert group.members == ("a",)

    def test_duplicate_member_rejected(self) -> None:
        with pytest.raises(SchemaError, match="twice"):
            GroupDescriptor("g", ("a", "a"))


class TestCommandSchema:
    """Tests for command schema construction and lookups."""

    def test_duplicate_argument_name(self) -> None:
        with pytest.raises(SchemaError, match="Duplicate argument name"):
            CommandSchema(
                name="c",
                arguments=(ArgumentDescriptor("a", flag="-a"), ArgumentDescriptor("a", flag="-b")),
            )

    def test_duplicate_flag(self) -> None:
        with pytest.raises(SchemaError, match="Duplicate flag"):
            CommandSchema(
                name="c",
                arguments=(ArgumentDescriptor("a", flag="-x"), ArgumentDescriptor("b", flag="-x")),
            )

    def test_group_with_unknown_member(self) -> None:
        with pytest.raises(SchemaError, match="unknown argument"):
            CommandSchema(
                name="c",
                arguments=(ArgumentDescriptor("a", flag="-a"),),
                groups=(GroupDescriptor("g", ("a", "b")),),
            )

    def test_duplicate_subcommand(self) -> None:
        with pytest.raises(SchemaError, match="Duplicate subcommand"):
            CommandSchema(name="c", subcommands=(CommandSchema("x"), CommandSchema("x")))

    def test_required_subcommand_without_subcommands(self) -> None:
        with pytest.raises(SchemaError, match="none declared"):
            CommandSchema(name="c", subcommand_required=True)

    def test_lookups(self, vcs_schema: CommandSchema) -> None:
        """Arguments and subcommands are found by name, flags by call name."""
        push = vcs_schema.subcommand("push")
        assert push.argument("force").flag == "--force"
        assert push.by_flag("--force").name == "force"
        assert push.by_flag("--nope") is None
        assert [a.name for a in push.positionals()] == ["remote"]
        assert vcs_schema.has_argument("quiet")

    def test_unknown_lookups_raise_key_error(self, vcs_schema: CommandSchema) -> None:
        with pytest.raises(KeyError):
            vcs_schema.argument("missing")
        with pytest.raises(KeyError):
            vcs_schema.subcommand("missing")

    def test_walk_is_depth_first(self, vcs_schema: CommandSchema) -> None:
        assert [c.name for c in vcs_schema.walk()] == ["vcs", "push", "commit"]

    def test_iterates_arguments_in_order(self, full_schema: CommandSchema) -> None:
        assert [a.name for a in full_schema][:3] == ["source", "verbose", "dry_run"]


class TestDisplayName:
    """Tests for label formatting."""

    @pytest.mark.parametrize(
        "identifier,expected",
        [
            ("output_dir", "Output dir"),
            ("maxRetries", "Max retries"),
            ("--dry-run", "Dry run"),
            ("NAME", "Name"),
        ],
    )
    def test_sentence_case(self, identifier: str, expected: str) -> None:
        assert display_name(identifier) == expected
