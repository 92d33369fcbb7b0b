"""Wrap an argparse program so that running it opens the form window.

Example:
    import argparse
    from argform.app import run_app

    def main(args: argparse.Namespace) -> None:
        print(f"Hello {args.name}")

    parser = argparse.ArgumentParser(prog="hello")
    parser.add_argument("--name", required=True)

    if __name__ == "__main__":
        run_app(parser, main)

Running the script shows the form; pressing Run starts the same script
again with CHILD_APP_ENV_VAR set, and that child calls main() with the
parsed arguments.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Any, Callable, List, Optional, Sequence

from argform.lib.argparse_schema import from_parser
from argform.lib.errors import ReconstructionError
from argform.lib.reconstruct import parse_argv
from argform.lib.session import Session
from argform.lib.settings import Settings, get_settings

logger = logging.getLogger(__name__)

__all__ = ["run_app", "build_session", "CHILD_APP_ENV_VAR"]

CHILD_APP_ENV_VAR = "ARGFORM_CHILD_APP"


def _script_command() -> List[str]:
    """Interpreter plus the running script, as used to re-launch it."""
    return [sys.executable, os.path.abspath(sys.argv[0])]


def build_session(
    parser: argparse.ArgumentParser,
    *,
    settings: Optional[Settings] = None,
    env_vars: Sequence[str] = (),
    program: Optional[Sequence[str]] = None,
    argv: Sequence[str] = (),
) -> Session:
    """Session whose runs re-launch the current script as the child app.

    Args:
        parser: Parser of the wrapped program
        settings: UI settings (from .argform.yaml if None)
        env_vars: Environment variables offered in the env tab
        program: Command prefix, defaults to this interpreter and script
        argv: Arguments used to pre-fill the form

    Raises:
        SchemaError: The parser cannot be shown as a form
    """
    schema = from_parser(parser, env_vars=env_vars)
    session = Session(
        schema,
        program if program is not None else _script_command(),
        settings if settings is not None else get_settings(),
        fixed_env={CHILD_APP_ENV_VAR: "1"},
    )
    if argv:
        try:
            session.form = parse_argv(schema, argv, defaults=True)
        except ReconstructionError as e:
            logger.warning("Ignoring command line arguments: %s", e.message)
    return session


def run_app(
    parser: argparse.ArgumentParser,
    main: Callable[[argparse.Namespace], Any],
    settings: Optional[Settings] = None,
    *,
    env_vars: Sequence[str] = (),
) -> Any:
    """Show the form for parser, or run main() when started from the form.

    Returns:
        main()'s return value in the child; None after the window closes
    """
    if os.environ.pop(CHILD_APP_ENV_VAR, None) is not None:
        return main(parser.parse_args())

    from argform.tui.app import run_tui

    session = build_session(parser, settings=settings, env_vars=env_vars, argv=sys.argv[1:])
    run_tui(session)
    return None
