"""Tests for argform/lib/validate.py - form validation."""

from __future__ import annotations

import pytest

from argform.lib.form import CountValue, FlagValue, MultiValue, PathValue, TextValue, initialize
from argform.lib.schema import (
    ArgKind,
    ArgumentDescriptor,
    CommandSchema,
    GroupDescriptor,
    GroupRule,
    ValueConstraint,
)
from argform.lib.validate import ViolationReason, check_constraint, validate


class TestRequired:
    """Tests for required-ness and occurrence bounds."""

    def test_missing_required_value(self, greet_schema: CommandSchema) -> None:
        """An empty form reports exactly the missing --name."""
        result = validate(initialize(greet_schema))
        assert not result.accepted
        assert len(result.violations) == 1
        violation = result.violations[0]
        assert violation.target == "name"
        assert violation.reason == ViolationReason.REQUIRED
        assert violation.command_path == ("greet",)

    def test_filled_form_accepted(self, greet_schema: CommandSchema) -> None:
        form = initialize(greet_schema)
        form.set_value("name", TextValue("alice"))
        result = validate(form)
        assert result.accepted
        assert bool(result) is True

    def test_too_few_values(self) -> None:
        schema = CommandSchema(
            name="c",
            arguments=(ArgumentDescriptor("pair", kind=ArgKind.MULTI, min_occurs=2, max_occurs=2),),
        )
        form = initialize(schema)
        form.set_value("pair", MultiValue(("a",)))
        assert validate(form).violations[0].reason == ViolationReason.TOO_FEW_VALUES

    def test_too_many_values(self) -> None:
        schema = CommandSchema(
            name="c",
            arguments=(ArgumentDescriptor("tag", flag="-t", kind=ArgKind.MULTI, max_occurs=2),),
        )
        form = initialize(schema)
        form.set_value("tag", MultiValue(("a", "b", "c")))
        assert validate(form).violations[0].reason == ViolationReason.TOO_MANY_VALUES

    def test_too_many_counts(self) -> None:
        schema = CommandSchema(
            name="c",
            arguments=(ArgumentDescriptor("v", flag="-v", kind=ArgKind.COUNT, max_occurs=3),),
        )
        form = initialize(schema)
        form.set_value("v", CountValue(4))
        assert validate(form).targets() == ["v"]

    def test_empty_multi_entry(self, full_schema: CommandSchema) -> None:
        form = initialize(full_schema)
        form.set_value("source", PathValue("in.txt"))
        form.set_value("include", MultiValue(("a", "")))
        result = validate(form)
        assert [v.reason for v in result.violations] == [ViolationReason.EMPTY_VALUE]


class TestGroups:
    """Tests for exclusive and required-one-of groups."""

    def test_exclusive_conflict(self, format_schema: CommandSchema) -> None:
        """Setting both --json and --xml is one group violation."""
        form = initialize(format_schema)
        form.set_value("json", FlagValue(True))
        form.set_value("xml", FlagValue(True))
        result = validate(form)
        assert len(result.violations) == 1
        assert result.violations[0].target == "format"
        assert result.violations[0].reason == ViolationReason.GROUP_CONFLICT

    def test_exclusive_allows_none(self, format_schema: CommandSchema) -> None:
        assert validate(initialize(format_schema)).accepted

    def test_required_one_of(self) -> None:
        schema = CommandSchema(
            name="c",
            arguments=(
                ArgumentDescriptor("a", flag="-a", kind=ArgKind.FLAG),
                ArgumentDescriptor("b", flag="-b", kind=ArgKind.FLAG),
            ),
            groups=(GroupDescriptor("ab", ("a", "b"), GroupRule.REQUIRED_ONE_OF),),
        )
        form = initialize(schema)
        assert validate(form).violations[0].reason == ViolationReason.GROUP_REQUIRED
        form.set_value("b", FlagValue(True))
        assert validate(form).accepted


class TestConstraints:
    """Tests for pattern and numeric range checks."""

    @pytest.mark.parametrize(
        "text,reason",
        [
            ("5", None),
            ("0", None),
            ("10", ViolationReason.OUT_OF_RANGE),
            ("-1", ViolationReason.OUT_OF_RANGE),
            ("2.5", ViolationReason.NOT_A_NUMBER),
            ("five", ViolationReason.NOT_A_NUMBER),
        ],
    )
    def test_int_range(self, text: str, reason: ViolationReason) -> None:
        constraint = ValueConstraint(minimum=0, maximum=9, numeric="int")
        problem = check_constraint(constraint, text)
        assert (problem[0] if problem else None) == reason

    def test_pattern_is_full_match(self) -> None:
        constraint = ValueConstraint(pattern=r"[a-z]+")
        assert check_constraint(constraint, "abc") is None
        assert check_constraint(constraint, "abc1")[0] == ViolationReason.PATTERN_MISMATCH

    def test_float_range(self) -> None:
        constraint = ValueConstraint(maximum=1.0)
        assert check_constraint(constraint, "0.5") is None
        assert check_constraint(constraint, "1.5")[0] == ViolationReason.OUT_OF_RANGE

    def test_constraint_checked_per_multi_item(self) -> None:
        schema = CommandSchema(
            name="c",
            arguments=(
                ArgumentDescriptor(
                    "port",
                    flag="-p",
                    kind=ArgKind.MULTI,
                    constraint=ValueConstraint(numeric="int"),
                ),
            ),
        )
        form = initialize(schema)
        form.set_value("port", MultiValue(("80", "http", "443", "x")))
        result = validate(form)
        assert [v.reason for v in result.violations] == [ViolationReason.NOT_A_NUMBER] * 2

    def test_unset_optional_not_checked(self, full_schema: CommandSchema) -> None:
        form = initialize(full_schema)
        form.set_value("source", PathValue("in.txt"))
        form.set_value("level", TextValue(""))
        assert validate(form).accepted


class TestSubcommandValidation:
    """Tests for the active chain."""

    def test_subcommand_required(self, vcs_schema: CommandSchema) -> None:
        result = validate(initialize(vcs_schema))
        assert len(result.violations) == 1
        violation = result.violations[0]
        assert violation.reason == ViolationReason.SUBCOMMAND_REQUIRED
        assert violation.target == "vcs"
        assert violation.command_path == ("vcs",)

    def test_child_violations_carry_path(self, vcs_schema: CommandSchema) -> None:
        form = initialize(vcs_schema)
        form.select_subcommand("push")
        result = validate(form)
        assert [(v.command_path, v.target) for v in result.violations] == [
            (("vcs", "push"), "remote")
        ]

    def test_inactive_branch_ignored(self, vcs_schema: CommandSchema) -> None:
        """Only the selected subcommand is validated."""
        form = initialize(vcs_schema)
        form.select_subcommand("commit").set_value("message", TextValue("wip"))
        assert validate(form).accepted

    def test_option_like_positional_before_subcommand(self) -> None:
        run_cmd = CommandSchema(name="run", arguments=(ArgumentDescriptor("task", required=True),))
        schema = CommandSchema(
            name="proj",
            arguments=(ArgumentDescriptor("root"),),
            subcommands=(run_cmd,),
        )
        form = initialize(schema)
        form.set_value("root", TextValue("-src"))
        form.select_subcommand("run").set_value("task", TextValue("-build"))

        result = validate(form)

        assert [(v.command_path, v.target, v.reason) for v in result.violations] == [
            (("proj",), "root", ViolationReason.OPTION_LIKE_VALUE)
        ]
        form.set_value("root", TextValue("-1"))
        assert validate(form).accepted

    def test_report_order(self) -> None:
        """Required checks come before group checks, then constraints."""
        schema = CommandSchema(
            name="c",
            arguments=(
                ArgumentDescriptor("n", flag="-n", constraint=ValueConstraint(numeric="int")),
                ArgumentDescriptor("a", flag="-a", kind=ArgKind.FLAG),
                ArgumentDescriptor("b", flag="-b", kind=ArgKind.FLAG),
                ArgumentDescriptor("req", flag="--req", required=True),
            ),
            groups=(GroupDescriptor("ab", ("a", "b")),),
        )
        form = initialize(schema)
        form.set_value("n", TextValue("x"))
        form.set_value("a", FlagValue(True))
        form.set_value("b", FlagValue(True))
        assert validate(form).targets() == ["req", "ab", "n"]

    def test_for_target(self, greet_schema: CommandSchema) -> None:
        result = validate(initialize(greet_schema))
        assert len(result.for_target("name")) == 1
        assert result.for_target("verbose") == []
