"""Editor for repeatable (multi-value) arguments: one input row per value."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Input, Static

from argform.lib.form import FormNode, MultiValue
from argform.lib.schema import ArgKind, ArgumentDescriptor
from argform.lib.settings import Localization
from argform.lib.validate import check_constraint
from argform.tui.models.form_binding import placeholder_for
from argform.tui.widgets.base import ArgumentWidget


class ValueRow(Horizontal):
    """One value of a ListInput with its remove button."""

    DEFAULT_CSS = """
    ValueRow {
        height: auto;
    }

    ValueRow Input {
        width: 1fr;
    }
    """

    def __init__(self, value: str, placeholder: str) -> None:
        super().__init__()
        self.input = Input(value=value, placeholder=placeholder)
        self.remove_button = Button("✕", classes="remove")

    def compose(self) -> ComposeResult:
        yield self.input
        yield self.remove_button


class ListInput(ArgumentWidget):
    """Ordered list of values, edited row by row.

    Rows keep their order; the argument vector repeats the flag once per
    row. Blank rows are kept (and reported by validation) so the user can
    see where a value is missing.

    Attributes:
        rows: Row widgets in display order
    """

    DEFAULT_CSS = """
    ListInput .rows {
        height: auto;
    }

    ListInput .item-count {
        color: $text-muted;
        text-style: italic;
    }
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
        if descriptor.kind != ArgKind.MULTI:
            raise ValueError(f"ListInput cannot edit a {descriptor.kind.value} argument")
        super().__init__(node, descriptor, localization, id=id, classes=classes)
        self.rows: list[ValueRow] = []
        self._rows_box = Vertical(classes="rows")
        self._count = Static("", classes="item-count")
        self._add = Button(localization.new_value, classes="add")
        self._reset = Button(localization.reset, classes="reset")

    def compose(self) -> ComposeResult:
        yield from self.compose_label()
        yield self._rows_box
        with Horizontal(classes="field-row"):
            yield self._add
            yield self._reset
            yield self._count
        yield from self.compose_footer()

    def on_mount(self) -> None:
        self.load_value()

    @property
    def items(self) -> tuple[str, ...]:
        return tuple(row.input.value for row in self.rows)

    def _new_row(self, value: str) -> ValueRow:
        row = ValueRow(value, placeholder_for(self.descriptor))
        self.rows.append(row)
        self._rows_box.mount(row)
        return row

    def _sync(self) -> None:
        self.commit(MultiValue(self.items))
        self._update_count()
        self.show_errors(self.live_errors())

    def live_errors(self) -> list[str]:
        """Constraint problems in the rows as typed."""
        constraint = self.descriptor.constraint
        if constraint is None:
            return []
        errors = []
        for item in self.items:
            if item:
                problem = check_constraint(constraint, item)
                if problem:
                    errors.append(problem[1])
        return errors

    def _update_count(self) -> None:
        count = len(self.rows)
        if count == 0:
            self._count.update("")
        elif count == 1:
            self._count.update("1 item")
        else:
            self._count.update(f"{count} items")

    def on_input_changed(self, event: Input.Changed) -> None:
        event.stop()
        self._sync()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button is self._add:
            row = self._new_row("")
            self.call_after_refresh(row.input.focus)
            self._sync()
        elif event.button is self._reset:
            self.reset_to_default()
        elif isinstance(event.button.parent, ValueRow):
            row = event.button.parent
            self.rows.remove(row)
            row.remove()
            self._sync()

    def load_value(self) -> None:
        self.rows = []
        self._rows_box.remove_children()
        for item in self.value.items:  # type: ignore[union-attr]
            self._new_row(item)
        self._update_count()
