"""Structured exception hierarchy for argform.

Provides specific exception types for each failure mode of the
schema -> form -> argv -> process pipeline, with context for
debugging and for display in the UI.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from argform.lib.validate import Violation

__all__ = [
    "ArgformError",
    "SchemaError",
    "KindMismatchError",
    "ValidationError",
    "ReconstructionError",
    "LaunchError",
    "StreamReadError",
]


class ArgformError(Exception):
    """Base exception for all argform errors.

    Provides structured error information for debugging.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        self.suggestion = suggestion

        parts = [message]

        if details:
            detail_lines = [f"  {k}: {v}" for k, v in details.items()]
            parts.append("\nDetails:")
            parts.extend(detail_lines)

        if suggestion:
            parts.append(f"\nSuggestion: {suggestion}")

        super().__init__("\n".join(parts) if len(parts) > 1 else message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "suggestion": self.suggestion,
        }


class SchemaError(ArgformError):
    """Malformed or self-contradictory argument schema.

    Raised at construction time (duplicate names, a group naming an
    unknown argument, ...). Fatal: the form cannot be built.
    """

    def __init__(
        self,
        message: str,
        *,
        command: Optional[str] = None,
        argument: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        self.command = command
        self.argument = argument

        details = kwargs.pop("details", {})
        if command:
            details["command"] = command
        if argument:
            details["argument"] = argument

        super().__init__(message, details=details, **kwargs)


class KindMismatchError(ArgformError, TypeError):
    """An argument value write does not match the descriptor's kind.

    Indicates a bug in the widget layer; the form node is left unchanged.
    """

    def __init__(
        self,
        message: str,
        *,
        argument: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        self.argument = argument
        self.expected = expected
        self.actual = actual

        details = kwargs.pop("details", {})
        if argument:
            details["argument"] = argument
        if expected:
            details["expected"] = expected
        if actual:
            details["actual"] = actual

        super().__init__(message, details=details, **kwargs)


class ValidationError(ArgformError):
    """The form does not satisfy its schema; running is refused.

    Carries every violation found, not just the first.
    """

    def __init__(
        self,
        message: str,
        *,
        violations: Optional[Sequence["Violation"]] = None,
        **kwargs: Any,
    ) -> None:
        self.violations = list(violations or [])

        details = kwargs.pop("details", {})
        if self.violations:
            details["violation_count"] = len(self.violations)
            issue_lines = "\n".join(f"  - {v}" for v in self.violations)
            message = f"{message}\n\nIssues found:\n{issue_lines}"

        super().__init__(message, details=details, **kwargs)


class ReconstructionError(ArgformError):
    """The form could not be turned into an argument vector (or back)."""

    def __init__(
        self,
        message: str,
        *,
        argument: Optional[str] = None,
        token: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        self.argument = argument
        self.token = token

        details = kwargs.pop("details", {})
        if argument:
            details["argument"] = argument
        if token is not None:
            details["token"] = token

        super().__init__(message, details=details, **kwargs)


class LaunchError(ArgformError):
    """The target program could not be started.

    Distinct from a program that starts and exits with a non-zero code.
    """

    def __init__(
        self,
        message: str,
        *,
        program: Optional[str] = None,
        cause: Optional[Exception] = None,
        **kwargs: Any,
    ) -> None:
        self.program = program
        self.cause = cause

        details = kwargs.pop("details", {})
        if program:
            details["program"] = program
        if cause:
            details["cause"] = str(cause)
            details["cause_type"] = type(cause).__name__

        suggestion = kwargs.pop("suggestion", None)
        if not suggestion:
            suggestion = "Check that the program exists and is executable."

        super().__init__(message, details=details, suggestion=suggestion, **kwargs)


class StreamReadError(ArgformError):
    """I/O failure while capturing a child's output stream.

    Recorded on the run handle; the run itself keeps going.
    """

    def __init__(
        self,
        message: str,
        *,
        stream: Optional[str] = None,
        cause: Optional[Exception] = None,
        **kwargs: Any,
    ) -> None:
        self.stream = stream
        self.cause = cause

        details = kwargs.pop("details", {})
        if stream:
            details["stream"] = stream
        if cause:
            details["cause"] = str(cause)
            details["cause_type"] = type(cause).__name__

        super().__init__(message, details=details, **kwargs)
