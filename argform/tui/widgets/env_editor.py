"""Key/value rows for environment variable overrides."""

from __future__ import annotations

from pathlib import Path

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widgets import Button, Input, Static

from argform.lib.errors import ArgformError
from argform.lib.session import Session
from argform.lib.settings import Localization
from argform.tui.widgets.file_browser import FileBrowserModal


class EnvRow(Horizontal):
    """One variable: name, value and a remove button."""

    DEFAULT_CSS = """
    EnvRow {
        height: auto;
    }

    EnvRow .env-key {
        width: 1fr;
    }

    EnvRow .env-value {
        width: 2fr;
    }
    """

    def __init__(self, key: str, value: str) -> None:
        super().__init__()
        self.key_input = Input(value=key, placeholder="NAME", classes="env-key")
        self.value_input = Input(value=value, placeholder="value", classes="env-value")
        self.remove_button = Button("✕", classes="remove")

    def compose(self) -> ComposeResult:
        yield self.key_input
        yield self.value_input
        yield self.remove_button


class EnvEditor(Vertical):
    """Edits Session.env in place.

    Declared variables start as rows with an empty value; an empty value
    for a declared variable means "leave it alone".
    """

    DEFAULT_CSS = """
    EnvEditor {
        height: auto;
    }

    EnvEditor .description {
        color: $text-muted;
        margin-bottom: 1;
    }

    EnvEditor .rows {
        height: auto;
    }

    EnvEditor .button-row {
        height: auto;
        margin-top: 1;
    }

    EnvEditor Button {
        margin-right: 1;
    }

    EnvEditor .error-text {
        color: $error;
        height: auto;
    }
    """

    class Changed(Message):
        """Posted after any row changed."""

        def __init__(self, env_editor: "EnvEditor") -> None:
            super().__init__()
            self.env_editor = env_editor

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
        self.rows: list[EnvRow] = []
        self._rows_box = Vertical(classes="rows")
        self._add = Button(localization.new_value, classes="add")
        self._load = Button("Load .env...", classes="load")
        self._error = Static("", classes="error-text")

    def compose(self) -> ComposeResult:
        if self.description:
            yield Static(self.description, classes="description", markup=False)
        yield self._rows_box
        with Horizontal(classes="button-row"):
            yield self._add
            yield self._load
        yield self._error

    def on_mount(self) -> None:
        self.load_rows()

    def load_rows(self) -> None:
        """Rebuild the rows from the session."""
        self.rows = []
        self._rows_box.remove_children()
        for key, value in self.session.env:
            self._new_row(key, value)

    def _new_row(self, key: str, value: str) -> EnvRow:
        row = EnvRow(key, value)
        self.rows.append(row)
        self._rows_box.mount(row)
        return row

    def _sync(self) -> None:
        self.session.env = [[row.key_input.value, row.value_input.value] for row in self.rows]
        self.show_error(
            self.localization.error_env_var_cant_be_empty
            if any(not key for key, _ in self.session.env)
            else ""
        )
        self.post_message(self.Changed(self))

    def show_error(self, message: str) -> None:
        self._error.update(message)

    def on_input_changed(self, event: Input.Changed) -> None:
        event.stop()
        self._sync()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button is self._add:
            row = self._new_row("", "")
            self.call_after_refresh(row.key_input.focus)
            self._sync()
        elif event.button is self._load:
            self.app.push_screen(FileBrowserModal(title="Load .env file"), self._load_file)
        elif isinstance(event.button.parent, EnvRow):
            row = event.button.parent
            self.rows.remove(row)
            row.remove()
            self._sync()

    def _load_file(self, path: Path | None) -> None:
        if path is None:
            return
        try:
            count = self.session.load_env_file(path)
        except ArgformError as e:
            self.notify(e.message, severity="error")
            return
        self.load_rows()
        self.notify(f"Loaded {count} variable(s) from {path.name}")
        self.post_message(self.Changed(self))
