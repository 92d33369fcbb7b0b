"""Terminal forms for argparse programs.

argform turns a command-line schema (read from an argparse parser or a
YAML file) into a textual form, validates what the user enters, rebuilds
the argument vector and runs the program with its output shown live.

Usage:
    argform --parser mytool.cli:build_parser
    argform --schema backup.yaml -- ./backup.sh

or from the program itself:
    from argform import run_app
    run_app(parser, main)
"""

from argform.app import run_app
from argform.lib.schema import ArgKind, ArgumentDescriptor, CommandSchema
from argform.lib.session import Session
from argform.lib.settings import Localization, Settings

__version__ = "0.1.0"

__all__ = [
    "run_app",
    "ArgKind",
    "ArgumentDescriptor",
    "CommandSchema",
    "Session",
    "Localization",
    "Settings",
]
