"""TUI widget components."""

from __future__ import annotations

from argform.tui.widgets.base import ArgumentWidget
from argform.tui.widgets.validated_input import ValidatedInput
from argform.tui.widgets.enum_select import EnumSelect
from argform.tui.widgets.list_input import ListInput
from argform.tui.widgets.toggle_input import CountInput, FlagInput
from argform.tui.widgets.command_form import CommandForm, widget_for
from argform.tui.widgets.file_browser import FileBrowser, FileBrowserModal
from argform.tui.widgets.env_editor import EnvEditor
from argform.tui.widgets.run_inputs import StdinEditor, WorkingDirInput
from argform.tui.widgets.output_view import OutputView

__all__ = [
    "ArgumentWidget",
    "ValidatedInput",
    "EnumSelect",
    "ListInput",
    "FlagInput",
    "CountInput",
    "CommandForm",
    "widget_for",
    "FileBrowser",
    "FileBrowserModal",
    "EnvEditor",
    "StdinEditor",
    "WorkingDirInput",
    "OutputView",
]
