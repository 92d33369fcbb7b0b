"""Widgets for the Input tab: stdin contents and working directory."""

from __future__ import annotations

from pathlib import Path

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widgets import Button, Input, Label, Select, Static, TextArea

from argform.lib.session import Session
from argform.lib.settings import Localization
from argform.tui.models.form_binding import STDIN_FILE, STDIN_TEXT, stdin_source
from argform.tui.widgets.file_browser import FileBrowserModal


class StdinEditor(Vertical):
    """Stdin for the next run, typed in or read from a file.

    Keeps Session.stdin up to date; an empty text box or path means the
    program gets no input.
    """

    DEFAULT_CSS = """
    StdinEditor {
        height: auto;
        margin-bottom: 1;
    }

    StdinEditor .description {
        color: $text-muted;
        margin-bottom: 1;
    }

    StdinEditor TextArea {
        height: 10;
    }

    StdinEditor .field-row {
        height: auto;
    }

    StdinEditor .field-row Input {
        width: 1fr;
    }

    StdinEditor .hidden {
        display: none;
    }
    """

    class Changed(Message):
        """Posted after the stdin source changed."""

        def __init__(self, stdin_editor: "StdinEditor") -> None:
            super().__init__()
            self.stdin_editor = stdin_editor

    def __init__(
        self,
        session: Session,
        localization: Localization,
        description: str = "",
        *,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(id=id, classes=classes)
        self.session = session
        self.localization = localization
        self.description = description
        self._mode: Select[str] = Select(
            [(localization.text, STDIN_TEXT), (localization.file, STDIN_FILE)],
            value=STDIN_TEXT,
            allow_blank=False,
        )
        self._text = TextArea()
        self._path = Input(placeholder="path/to/input")
        self._browse = Button("...", classes="browse")
        self._browse.tooltip = localization.select_file
        self._file_row = Horizontal(self._path, self._browse, classes="field-row hidden")

    def compose(self) -> ComposeResult:
        yield Label(self.localization.input, classes="field-label")
        if self.description:
            yield Static(self.description, classes="description", markup=False)
        yield self._mode
        yield self._text
        yield self._file_row

    @property
    def mode(self) -> str:
        return str(self._mode.value)

    def _sync(self) -> None:
        self.session.stdin = stdin_source(self.mode, self._text.text, self._path.value)
        self.post_message(self.Changed(self))

    def on_select_changed(self, event: Select.Changed) -> None:
        event.stop()
        file_mode = self.mode == STDIN_FILE
        self._text.set_class(file_mode, "hidden")
        self._file_row.set_class(not file_mode, "hidden")
        self._sync()

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        event.stop()
        self._sync()

    def on_input_changed(self, event: Input.Changed) -> None:
        event.stop()
        self._sync()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button is self._browse:
            self.app.push_screen(
                FileBrowserModal(title=self.localization.select_file), self._picked
            )

    def _picked(self, path: Path | None) -> None:
        if path is not None:
            self._path.value = str(path)


class WorkingDirInput(Vertical):
    """Directory the program is started in; empty for the current one."""

    DEFAULT_CSS = """
    WorkingDirInput {
        height: auto;
    }

    WorkingDirInput .description {
        color: $text-muted;
    }

    WorkingDirInput .field-row {
        height: auto;
    }

    WorkingDirInput .field-row Input {
        width: 1fr;
    }
    """

    def __init__(
        self,
        session: Session,
        localization: Localization,
        description: str = "",
        *,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(id=id, classes=classes)
        self.session = session
        self.localization = localization
        self.description = description
        self._input = Input(value=session.working_dir, placeholder=str(Path.cwd()))
        self._browse = Button("...", classes="browse")
        self._browse.tooltip = localization.select_directory

    def compose(self) -> ComposeResult:
        yield Label(self.localization.working_directory, classes="field-label")
        if self.description:
            yield Static(self.description, classes="description", markup=False)
        with Horizontal(classes="field-row"):
            yield self._input
            yield self._browse

    def on_input_changed(self, event: Input.Changed) -> None:
        event.stop()
        self.session.working_dir = event.value.strip()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button is self._browse:
            start = Path(self._input.value) if self._input.value else None
            self.app.push_screen(
                FileBrowserModal(
                    title=self.localization.select_directory,
                    start_path=start,
                    select_directory=True,
                ),
                self._picked,
            )

    def _picked(self, path: Path | None) -> None:
        if path is not None:
            self._input.value = str(path)
