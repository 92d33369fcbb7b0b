"""Scrolling pane showing the output of the current run."""

from __future__ import annotations

from rich.style import Style
from textual.widgets import RichLog

from argform.lib.render import RenderedLine, to_text

ERR_STYLE = Style(color="red")


class OutputView(RichLog):
    """Captured stdout and stderr, interleaved in arrival order.

    ANSI colours are kept, stderr is drawn in red and URLs are clickable.
    The whole record is redrawn on every update because a chunk can end
    in the middle of a line.
    """

    DEFAULT_CSS = """
    OutputView {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }
    """

    def __init__(self, *, id: str | None = None, classes: str | None = None) -> None:
        super().__init__(wrap=True, markup=False, highlight=False, id=id, classes=classes)
        self.shown_lines = 0

    def show(self, lines: list[RenderedLine]) -> None:
        """Replace the pane contents with the given lines."""
        self.clear()
        for line in lines:
            self.write(to_text(line, ERR_STYLE))
        self.shown_lines = len(lines)
