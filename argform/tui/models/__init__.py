"""Pure helpers binding form state to widgets."""

from __future__ import annotations

from argform.tui.models.form_binding import (
    STDIN_FILE,
    STDIN_TEXT,
    ErrorKey,
    choice_options,
    errors_by_target,
    field_label,
    picker_title,
    placeholder_for,
    status_text,
    stdin_source,
    text_of,
    value_from_text,
)

__all__ = [
    "ErrorKey",
    "choice_options",
    "errors_by_target",
    "field_label",
    "picker_title",
    "placeholder_for",
    "STDIN_FILE",
    "STDIN_TEXT",
    "status_text",
    "stdin_source",
    "text_of",
    "value_from_text",
]
