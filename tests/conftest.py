"""Pytest configuration and shared schemas."""

from __future__ import annotations

import argparse
import sys

import pytest

from argform.lib.schema import (
    ArgKind,
    ArgumentDescriptor,
    CommandSchema,
    GroupDescriptor,
    GroupRule,
    PathHint,
    ValueConstraint,
)


@pytest.fixture
def greet_schema() -> CommandSchema:
    """Required --name plus an optional --verbose switch."""
    return CommandSchema(
        name="greet",
        arguments=(
            ArgumentDescriptor("name", flag="--name", required=True),
            ArgumentDescriptor("verbose", flag="--verbose", kind=ArgKind.FLAG),
        ),
    )


@pytest.fixture
def format_schema() -> CommandSchema:
    """--json and --xml in an exclusive group."""
    return CommandSchema(
        name="export",
        arguments=(
            ArgumentDescriptor("json", flag="--json", kind=ArgKind.FLAG),
            ArgumentDescriptor("xml", flag="--xml", kind=ArgKind.FLAG),
        ),
        groups=(GroupDescriptor("format", ("json", "xml"), GroupRule.EXCLUSIVE),),
    )


@pytest.fixture
def full_schema() -> CommandSchema:
    """One argument of every kind."""
    return CommandSchema(
        name="tool",
        help="Does tool things",
        arguments=(
            ArgumentDescriptor("source", kind=ArgKind.PATH, required=True, path_hint=PathHint.FILE),
            ArgumentDescriptor("verbose", flag="-v", kind=ArgKind.COUNT),
            ArgumentDescriptor("dry_run", flag="--dry-run", kind=ArgKind.FLAG),
            ArgumentDescriptor(
                "level",
                flag="--level",
                default="3",
                constraint=ValueConstraint(minimum=0, maximum=9, numeric="int"),
            ),
            ArgumentDescriptor(
                "mode", flag="--mode", kind=ArgKind.CHOICE, choices=("fast", "safe"), default="safe"
            ),
            ArgumentDescriptor("include", flag="-I", kind=ArgKind.MULTI),
            ArgumentDescriptor("out_dir", flag="--out", kind=ArgKind.PATH, path_hint=PathHint.DIR),
        ),
    )


@pytest.fixture
def vcs_schema() -> CommandSchema:
    """Root with a global switch and two subcommands, one of them required."""
    push = CommandSchema(
        name="push",
        help="Send commits",
        arguments=(
            ArgumentDescriptor("remote", required=True),
            ArgumentDescriptor("force", flag="--force", kind=ArgKind.FLAG),
        ),
    )
    commit = CommandSchema(
        name="commit",
        arguments=(
            ArgumentDescriptor("message", flag="-m", required=True),
            ArgumentDescriptor("all", flag="--all", kind=ArgKind.FLAG),
        ),
    )
    return CommandSchema(
        name="vcs",
        arguments=(ArgumentDescriptor("quiet", flag="--quiet", kind=ArgKind.FLAG),),
        subcommands=(push, commit),
        subcommand_required=True,
        env_vars=("VCS_TOKEN",),
    )


@pytest.fixture
def greet_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="greet", description="Say hello")
    parser.add_argument("--name", required=True, help="Who to greet")
    parser.add_argument("--verbose", action="store_true")
    return parser


@pytest.fixture
def python_program() -> list:
    """Command prefix running inline Python in the current interpreter."""
    return [sys.executable, "-c"]
