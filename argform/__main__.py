"""CLI entry point: open the form window for an existing program.

Usage:
    argform --schema backup.yaml -- ./backup.sh
    argform --parser mytool.cli:build_parser
    argform --parser mytool.cli:parser -- python -m mytool --verbose

The schema comes either from a YAML file or from an argparse parser
imported as module:attribute (a parser object, or a function returning
one). Everything after the options is the command the form's arguments
are appended to; with --parser it defaults to `python -m module`.
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from argform.lib.argparse_schema import from_parser
from argform.lib.errors import ArgformError
from argform.lib.observability import configure_from_settings, setup_logging
from argform.lib.schema import CommandSchema
from argform.lib.schema_file import load_schema
from argform.lib.session import Session
from argform.lib.settings import Settings

logger = logging.getLogger(__name__)


def load_parser(reference: str) -> argparse.ArgumentParser:
    """Import a parser given as "module:attribute".

    Raises:
        ArgformError: The module or attribute is missing, or is not a parser
    """
    module_name, sep, attr = reference.partition(":")
    if not sep or not module_name or not attr:
        raise ArgformError(
            f"Invalid parser reference: {reference}",
            suggestion="Use module:attribute, e.g. mytool.cli:build_parser",
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ArgformError(
            f"Cannot import {module_name}",
            details={"error": str(e)},
            suggestion="Check that the module is on PYTHONPATH.",
        ) from e

    try:
        target = getattr(module, attr)
    except AttributeError as e:
        raise ArgformError(f"{module_name} has no attribute {attr}") from e

    if not isinstance(target, argparse.ArgumentParser) and callable(target):
        target = target()
    if not isinstance(target, argparse.ArgumentParser):
        raise ArgformError(
            f"{reference} is not an argparse.ArgumentParser",
            details={"type": type(target).__name__},
        )
    return target


def build_schema(args: argparse.Namespace) -> CommandSchema:
    if args.schema:
        return load_schema(args.schema)
    parser = load_parser(args.parser)
    return from_parser(parser, env_vars=args.env_var or ())


def default_program(args: argparse.Namespace) -> List[str]:
    """Command prefix for the form's arguments."""
    if args.program:
        return list(args.program)
    if args.parser:
        return [sys.executable, "-m", args.parser.partition(":")[0]]
    raise ArgformError(
        "No program given",
        suggestion="Put the command to run after the options, e.g. argform --schema s.yaml -- ./tool",
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="argform",
        description="Fill in a program's command line in a terminal form and run it",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Form from a YAML schema
    argform --schema backup.yaml -- ./backup.sh

    # Form from an argparse parser, running python -m mytool.cli
    argform --parser mytool.cli:build_parser
        """,
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--schema", help="YAML file describing the command line")
    source.add_argument("--parser", help="argparse parser as module:attribute")
    parser.add_argument(
        "--env-var",
        action="append",
        help="Environment variable offered in the env tab (with --parser; repeatable)",
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        help="Directory holding .argform.yaml (default: current directory)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--json-log",
        action="store_true",
        help="Output logs in JSON format",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to a file in addition to stderr",
    )
    parser.add_argument(
        "program",
        nargs=argparse.REMAINDER,
        help="Command to run; prefix with -- to separate it from these options",
    )

    args = parser.parse_args(argv)
    if args.program and args.program[0] == "--":
        args.program = args.program[1:]

    if args.verbose or args.json_log or args.log_file:
        setup_logging(verbose=args.verbose, json_format=args.json_log, log_file=args.log_file)
    else:
        configure_from_settings()

    try:
        schema = build_schema(args)
        program = default_program(args)
        settings = Settings.load(args.project_root)
    except ArgformError as e:
        logger.debug("Startup failed: %s", e.to_dict())
        print(f"Error: {e}", file=sys.stderr)
        return 1

    from argform.tui.app import run_tui

    run_tui(Session(schema, program, settings))
    return 0


if __name__ == "__main__":
    sys.exit(main())
