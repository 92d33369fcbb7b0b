"""Everything one form window needs between edits and runs.

A Session owns the form tree, the environment rows, the stdin source,
the working directory and the current run. The UI reads and writes
these attributes directly and calls start_run()/kill()/poll_output();
all of it happens on the foreground thread.

Example:
    >>> session = Session(schema, [sys.executable, "tool.py"])
    >>> session.form.set_value("name", TextValue("alice"))
    >>> handle = session.start_run()
    >>> while session.is_running:
    ...     for chunk in session.poll_output():
    ...         print(chunk.text, end="")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

from argform.lib.env import merge_env_pairs, read_env_file, seed_env_pairs
from argform.lib.errors import ArgformError, ReconstructionError, ValidationError
from argform.lib.form import FormNode, initialize
from argform.lib.reconstruct import format_command, reconstruct, reconstruct_env
from argform.lib.render import RenderedLine, render
from argform.lib.runner import ExitStatus, OutputChunk, RunHandle, StdinSource, run
from argform.lib.schema import CommandSchema
from argform.lib.settings import Settings
from argform.lib.validate import ValidationResult, Violation, ViolationReason, validate

logger = logging.getLogger(__name__)

__all__ = ["Session", "ENV_TARGET"]

# Violation target used for problems in the environment rows
ENV_TARGET = "env"


class Session:
    """Form state plus run state for one target program.

    Attributes:
        schema: Root command schema
        program: Command prefix the argument vector is appended to,
            e.g. ["/usr/bin/python3", "tool.py"]
        settings: UI settings (localization is used for messages)
        form: Root form node
        env: Editable [key, value] rows
        stdin: Input for the next run, None for no input
        working_dir: Directory for the next run, "" for the current one
        handle: The current (or last) run
        fixed_env: Variables always passed to the child, not shown in the form
    """

    def __init__(
        self,
        schema: CommandSchema,
        program: Sequence[str],
        settings: Optional[Settings] = None,
        fixed_env: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.schema = schema
        self.program = [str(p) for p in program]
        self.settings = settings or Settings()
        self.fixed_env: Dict[str, str] = dict(fixed_env or {})
        self.form: FormNode = initialize(schema)
        self.env: List[List[str]] = [list(pair) for pair in seed_env_pairs(schema.env_vars)]
        self.stdin: Optional[StdinSource] = None
        self.working_dir: str = ""
        self.handle: Optional[RunHandle] = None
        self.last_result: Optional[ValidationResult] = None

    def __repr__(self) -> str:
        return f"Session({self.schema.name!r}, running={self.is_running})"

    # Form

    def reset_form(self) -> None:
        """Start over with a fresh form seeded from defaults."""
        self.form = initialize(self.schema)
        self.last_result = None

    def check(self) -> ValidationResult:
        """Validate the form and the environment rows without running."""
        result = validate(self.form)
        violations = list(result.violations)
        message = self.settings.localization.error_env_var_cant_be_empty
        for index, (key, _value) in enumerate(self.env):
            if not key:
                violations.append(
                    Violation(
                        (self.schema.name,),
                        ENV_TARGET,
                        ViolationReason.EMPTY_ENV_KEY,
                        f"{message} (row {index + 1})",
                    )
                )
        self.last_result = ValidationResult(tuple(violations))
        return self.last_result

    def build_argv(self) -> List[str]:
        """Full command line for the current form.

        Raises:
            ValidationError: The form or the environment rows are invalid
        """
        result = validate(self.form)
        if not result.accepted:
            self.last_result = result
            logger.info("Run refused: %d violation(s)", len(result.violations))
            raise ValidationError("The form is not valid", violations=result.violations)

        env_result = self.check()
        if not env_result.accepted:
            logger.info("Run refused: empty environment variable name")
            raise ValidationError(
                self.settings.localization.error_env_var_cant_be_empty,
                violations=env_result.violations,
            )

        return self.program + reconstruct(self.form)

    def command_preview(self) -> Optional[str]:
        """Shell-quoted command line, or None while required values are missing."""
        try:
            return format_command(self.program + reconstruct(self.form))
        except ReconstructionError:
            return None

    # Environment

    def env_overrides(self) -> Dict[str, str]:
        """Variables passed to the child on top of the current environment."""
        return reconstruct_env(
            [(key, value) for key, value in self.env], declared=self.schema.env_vars
        )

    def load_env_file(self, path: Union[str, Path]) -> int:
        """Merge the entries of a .env file into the environment rows.

        Returns:
            Number of entries read
        """
        pairs = read_env_file(path)
        merged = merge_env_pairs([(k, v) for k, v in self.env], pairs)
        self.env = [list(pair) for pair in merged]
        logger.info("Loaded %d variable(s) from %s", len(pairs), path)
        return len(pairs)

    # Runs

    def start_run(self) -> RunHandle:
        """Validate, build the command line and launch it.

        The previous run's output is discarded.

        Raises:
            ValidationError: The form or the environment rows are invalid
            LaunchError: The program could not be started
            ArgformError: A run is still in progress
        """
        if self.is_running:
            raise ArgformError(
                "A run is already in progress",
                suggestion="Kill the running program first.",
            )

        argv = self.build_argv()
        env = self.env_overrides()
        env.update(self.fixed_env)
        # A failed launch must not leave the previous run on show
        self.handle = None
        self.handle = run(
            argv,
            env=env,
            cwd=self.working_dir or None,
            stdin=self.stdin,
        )
        return self.handle

    def kill(self) -> None:
        """Cancel the current run, if any."""
        if self.handle is not None and not self.handle.finished:
            self.handle.cancel()

    @property
    def is_running(self) -> bool:
        return self.handle is not None and self.handle.is_running

    @property
    def exit_status(self) -> Optional[ExitStatus]:
        return self.handle.poll() if self.handle is not None else None

    def poll_output(self) -> List[OutputChunk]:
        """New output since the last call (empty without a run)."""
        if self.handle is None:
            return []
        return self.handle.drain()

    def rendered_output(self) -> List[RenderedLine]:
        """The whole captured output of the current run, rendered."""
        if self.handle is None:
            return []
        return render(self.handle.output)
