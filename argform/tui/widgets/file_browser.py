"""In-terminal path picker.

The form never opens a native dialog: PATH arguments, the stdin file,
the working directory and .env loading all go through FileBrowserModal,
which dismisses with the picked Path or None.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Button, Checkbox, Input, Label, ListItem, ListView, Static


@dataclass(frozen=True)
class BrowserEntry:
    """One row of the listing."""

    path: Path
    is_dir: bool
    label: str


def list_directory(
    directory: Path, *, directories_only: bool = False, show_hidden: bool = False
) -> List[BrowserEntry]:
    """Entries of a directory: a parent link, then folders, then files.

    Raises:
        OSError: The directory cannot be listed
    """
    entries: List[BrowserEntry] = []
    if directory.parent != directory:
        entries.append(BrowserEntry(directory.parent, True, ".."))

    children = sorted(directory.iterdir(), key=lambda p: (not p.is_dir(), p.name.lower()))
    for child in children:
        if not show_hidden and child.name.startswith("."):
            continue
        is_dir = child.is_dir()
        if directories_only and not is_dir:
            continue
        entries.append(BrowserEntry(child, is_dir, f"{child.name}/" if is_dir else child.name))
    return entries


def resolve_choice(current: Path, typed: str, select_directory: bool) -> Optional[Path]:
    """Path picked by the typed text, relative to the shown directory.

    An empty text picks the shown directory in directory mode. Returns
    None when the text does not name something of the right type.
    """
    if not typed:
        return current if select_directory else None
    path = Path(typed).expanduser()
    if not path.is_absolute():
        path = current / path
    path = path.resolve()
    if select_directory:
        return path if path.is_dir() else None
    return path if path.is_file() else None


class PathItem(ListItem):
    def __init__(self, entry: BrowserEntry) -> None:
        classes = "entry directory" if entry.is_dir else "entry"
        super().__init__(Static(entry.label, markup=False), classes=classes)
        self.entry = entry


class FileBrowser(Vertical):
    """Directory listing with a path box.

    Enter on a folder opens it, Enter on a file picks it. "Select" picks
    whatever the path box names; in directory mode an empty box picks the
    folder being shown.

    Attributes:
        current_path: Directory being listed
        select_directory: Pick folders instead of files
    """

    DEFAULT_CSS = """
    FileBrowser {
        height: 100%;
    }

    FileBrowser .current-dir {
        background: $surface;
        color: $primary;
        padding: 0 1;
    }

    FileBrowser ListView {
        height: 1fr;
        border: tall $surface;
    }

    FileBrowser .entry.directory {
        color: $primary;
        text-style: bold;
    }

    FileBrowser .listing-error {
        color: $error;
    }

    FileBrowser .button-row {
        height: auto;
        align: right middle;
    }

    FileBrowser Button {
        margin-left: 1;
    }
    """

    current_path: reactive[Path] = reactive(Path.cwd)

    class Picked(Message):
        """Posted with the chosen path."""

        def __init__(self, path: Path) -> None:
            super().__init__()
            self.path = path

    class Cancelled(Message):
        """Posted when the browser is closed without a choice."""

    def __init__(
        self,
        start_path: Path | None = None,
        select_directory: bool = False,
        *,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(id=id, classes=classes)
        self.select_directory = select_directory
        self.show_hidden = False
        start = (start_path or Path.cwd()).expanduser()
        self._start = start.resolve() if start.is_dir() else Path.cwd()
        self._listing = ListView()
        self._path_input = Input(placeholder="Path, absolute or relative to this folder")

    def compose(self) -> ComposeResult:
        yield Static("", classes="current-dir", markup=False)
        yield self._listing
        yield self._path_input
        with Horizontal(classes="button-row"):
            yield Checkbox("Hidden files", value=False)
            yield Button("Cancel", id="btn_cancel")
            yield Button("Select", id="btn_select", variant="primary")

    def on_mount(self) -> None:
        self.current_path = self._start
        self.refresh_listing()

    def watch_current_path(self, path: Path) -> None:
        if self.is_mounted:
            self.refresh_listing()

    def refresh_listing(self) -> None:
        self.query_one(".current-dir", Static).update(str(self.current_path))
        self._listing.clear()
        try:
            entries = list_directory(
                self.current_path,
                directories_only=self.select_directory,
                show_hidden=self.show_hidden,
            )
        except OSError as e:
            self._listing.append(ListItem(Static(str(e), classes="listing-error", markup=False)))
            return
        for entry in entries:
            self._listing.append(PathItem(entry))

    def navigate_up(self) -> None:
        if self.current_path.parent != self.current_path:
            self.current_path = self.current_path.parent

    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        event.stop()
        if isinstance(event.item, PathItem) and not event.item.entry.is_dir:
            self._path_input.value = str(event.item.entry.path)

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        event.stop()
        if not isinstance(event.item, PathItem):
            return
        entry = event.item.entry
        if entry.is_dir:
            self._path_input.value = ""
            self.current_path = entry.path.resolve()
        else:
            self._path_input.value = str(entry.path)
            self.confirm()

    def on_checkbox_changed(self, event: Checkbox.Changed) -> None:
        event.stop()
        self.show_hidden = event.value
        self.refresh_listing()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button.id == "btn_cancel":
            self.post_message(self.Cancelled())
        elif event.button.id == "btn_select":
            self.confirm()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.confirm()

    def confirm(self) -> None:
        """Pick the typed path, or open it when it is a folder in file mode."""
        typed = self._path_input.value.strip()
        path = resolve_choice(self.current_path, typed, self.select_directory)
        if path is not None:
            self.post_message(self.Picked(path))
            return

        folder = resolve_choice(self.current_path, typed, True) if typed else None
        if folder is not None:
            self._path_input.value = ""
            self.current_path = folder
        else:
            self.notify("Nothing to pick at that path", severity="warning")


class FileBrowserModal(ModalScreen[Optional[Path]]):
    """FileBrowser in a dialog."""

    DEFAULT_CSS = """
    FileBrowserModal {
        align: center middle;
    }

    FileBrowserModal > Vertical {
        width: 80%;
        height: 80%;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }

    FileBrowserModal .modal-title {
        text-style: bold;
        width: 100%;
        text-align: center;
    }
    """

    BINDINGS = [("escape", "cancel", "Cancel"), ("ctrl+u", "up", "Parent folder")]

    def __init__(
        self,
        title: str = "Select file...",
        start_path: Path | None = None,
        select_directory: bool = False,
    ) -> None:
        super().__init__()
        self.title_text = title
        self.start_path = start_path
        self.select_directory = select_directory

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Label(self.title_text, classes="modal-title")
            yield FileBrowser(self.start_path, self.select_directory)

    def on_file_browser_picked(self, event: FileBrowser.Picked) -> None:
        self.dismiss(event.path)

    def on_file_browser_cancelled(self, event: FileBrowser.Cancelled) -> None:
        self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)

    def action_up(self) -> None:
        self.query_one(FileBrowser).navigate_up()
