"""argform core library.

Schema model and adapters, form state, validation, argument vector
reconstruction, process execution and output rendering. Nothing in here
depends on a UI toolkit.
"""

from argform.lib.argparse_schema import from_parser
from argform.lib.errors import (
    ArgformError,
    KindMismatchError,
    LaunchError,
    ReconstructionError,
    SchemaError,
    StreamReadError,
    ValidationError,
)
from argform.lib.form import (
    ArgumentValue,
    ChoiceValue,
    CountValue,
    FlagValue,
    FormNode,
    MultiValue,
    PathValue,
    TextValue,
    initialize,
    value_for,
)
from argform.lib.reconstruct import format_command, parse_argv, reconstruct, reconstruct_env
from argform.lib.render import RenderedLine, StyledRun, find_links, render, render_plain, to_text
from argform.lib.runner import (
    CapturedOutput,
    ExitKind,
    ExitStatus,
    OutputChunk,
    OutputStream,
    RunHandle,
    StdinSource,
    run,
)
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
from argform.lib.schema_file import load_schema, schema_from_dict
from argform.lib.session import Session
from argform.lib.settings import Localization, Settings, get_settings
from argform.lib.validate import ValidationResult, Violation, ViolationReason, validate

__all__ = [
    # Schema
    "ArgKind",
    "ArgumentDescriptor",
    "CommandSchema",
    "GroupDescriptor",
    "GroupRule",
    "PathHint",
    "ValueConstraint",
    "display_name",
    "from_parser",
    "load_schema",
    "schema_from_dict",
    # Form
    "ArgumentValue",
    "ChoiceValue",
    "CountValue",
    "FlagValue",
    "FormNode",
    "MultiValue",
    "PathValue",
    "TextValue",
    "initialize",
    "value_for",
    # Validation
    "ValidationResult",
    "Violation",
    "ViolationReason",
    "validate",
    # Reconstruction
    "format_command",
    "parse_argv",
    "reconstruct",
    "reconstruct_env",
    # Execution
    "CapturedOutput",
    "ExitKind",
    "ExitStatus",
    "OutputChunk",
    "OutputStream",
    "RunHandle",
    "StdinSource",
    "run",
    # Rendering
    "RenderedLine",
    "StyledRun",
    "find_links",
    "render",
    "render_plain",
    "to_text",
    # Session and settings
    "Localization",
    "Session",
    "Settings",
    "get_settings",
    # Errors
    "ArgformError",
    "KindMismatchError",
    "LaunchError",
    "ReconstructionError",
    "SchemaError",
    "StreamReadError",
    "ValidationError",
]
