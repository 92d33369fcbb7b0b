"""Widgets for switch-like arguments: boolean flags and occurrence counters."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.widgets import Button, Checkbox, Static

from argform.lib.form import CountValue, FlagValue, FormNode
from argform.lib.schema import ArgKind, ArgumentDescriptor
from argform.lib.settings import Localization
from argform.tui.models.form_binding import field_label
from argform.tui.widgets.base import ArgumentWidget


class FlagInput(ArgumentWidget):
    """Checkbox for a boolean flag."""

    def __init__(
        self,
        node: FormNode,
        descriptor: ArgumentDescriptor,
        localization: Localization,
        *,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        if descriptor.kind != ArgKind.FLAG:
            raise ValueError(f"FlagInput cannot edit a {descriptor.kind.value} argument")
        super().__init__(node, descriptor, localization, id=id, classes=classes)
        self._checkbox = Checkbox(
            field_label(descriptor, localization),
            value=self.value.enabled,  # type: ignore[union-attr]
        )

    def compose(self) -> ComposeResult:
        yield self._checkbox
        yield from self.compose_footer()

    def on_checkbox_changed(self, event: Checkbox.Changed) -> None:
        event.stop()
        self.commit(FlagValue(event.value))

    def load_value(self) -> None:
        self._checkbox.value = self.value.enabled  # type: ignore[union-attr]


class CountInput(ArgumentWidget):
    """Minus/plus counter for a repeatable switch such as -v."""

    DEFAULT_CSS = """
    CountInput .count {
        width: 6;
        content-align: center middle;
        height: 3;
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
        if descriptor.kind != ArgKind.COUNT:
            raise ValueError(f"CountInput cannot edit a {descriptor.kind.value} argument")
        super().__init__(node, descriptor, localization, id=id, classes=classes)
        self._minus = Button("-", classes="minus")
        self._plus = Button("+", classes="plus")
        self._shown = Static("", classes="count")
        self._reset = Button("↺", classes="reset")
        self._reset.tooltip = localization.reset_to_default

    def compose(self) -> ComposeResult:
        yield from self.compose_label()
        with Horizontal(classes="field-row"):
            yield self._minus
            yield self._shown
            yield self._plus
            yield self._reset
        yield from self.compose_footer()

    def on_mount(self) -> None:
        self.load_value()

    @property
    def count(self) -> int:
        return self.value.count  # type: ignore[union-attr]

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button is self._plus:
            self.commit(CountValue(self.count + 1))
        elif event.button is self._minus and self.count > 0:
            self.commit(CountValue(self.count - 1))
        elif event.button is self._reset:
            self.reset_to_default()
            return
        self.load_value()

    def load_value(self) -> None:
        self._shown.update(str(self.count))
        self._minus.disabled = self.count == 0
