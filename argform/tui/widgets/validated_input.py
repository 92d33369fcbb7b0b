"""Text input for single-value and path arguments, with live validation."""

from __future__ import annotations

from pathlib import Path

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.widgets import Button, Input

from argform.lib.form import FormNode
from argform.lib.schema import ArgKind, ArgumentDescriptor, PathHint
from argform.lib.settings import Localization
from argform.lib.validate import check_constraint
from argform.tui.models.form_binding import picker_title, placeholder_for, text_of, value_from_text
from argform.tui.widgets.base import ArgumentWidget
from argform.tui.widgets.file_browser import FileBrowserModal


class ValidatedInput(ArgumentWidget):
    """Input field with label, reset button and error display.

    Value constraints (pattern, numeric range) are checked as the user
    types. Required-ness is left to the full validation on Run, so an
    untouched form does not start out covered in errors.

    PATH arguments get a browse button opening the file browser.
    """

    def __init__(
        self,
        node: FormNode,
        descriptor: ArgumentDescriptor,
        localization: Localization,
        *,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        if descriptor.kind not in (ArgKind.SINGLE, ArgKind.PATH):
            raise ValueError(f"ValidatedInput cannot edit a {descriptor.kind.value} argument")
        super().__init__(node, descriptor, localization, id=id, classes=classes)
        self._input = Input(
            value=text_of(self.value),
            placeholder=placeholder_for(descriptor),
        )
        self._browse: Button | None = None
        if descriptor.kind == ArgKind.PATH:
            self._browse = Button("...", classes="browse")
            self._browse.tooltip = picker_title(descriptor, localization)
        self._reset = Button("↺", classes="reset")
        self._reset.tooltip = localization.reset_to_default

    def compose(self) -> ComposeResult:
        yield from self.compose_label()
        with Horizontal(classes="field-row"):
            yield self._input
            if self._browse is not None:
                yield self._browse
            yield self._reset
        yield from self.compose_footer()

    def on_input_changed(self, event: Input.Changed) -> None:
        event.stop()
        self.commit(value_from_text(self.descriptor, event.value))
        self.show_errors(self.live_errors(event.value))

    def live_errors(self, text: str) -> list[str]:
        """Constraint problems with the text as typed."""
        if not text or self.descriptor.constraint is None:
            return []
        problem = check_constraint(self.descriptor.constraint, text)
        return [problem[1]] if problem else []

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button is self._reset:
            self.reset_to_default()
        elif event.button is self._browse:
            current = Path(self._input.value) if self._input.value else None
            start = current.parent if current is not None and not current.is_dir() else current
            self.app.push_screen(
                FileBrowserModal(
                    title=picker_title(self.descriptor, self.localization),
                    start_path=start,
                    select_directory=self.descriptor.path_hint == PathHint.DIR,
                ),
                self._picked,
            )

    def _picked(self, path: Path | None) -> None:
        if path is not None:
            self._input.value = str(path)

    def load_value(self) -> None:
        self._input.value = text_of(self.value)

    def focus_input(self) -> None:
        self._input.focus()
