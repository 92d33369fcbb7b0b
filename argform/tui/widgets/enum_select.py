"""Dropdown for choice arguments."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.widgets import Button, Select

from argform.lib.form import ChoiceValue, FormNode
from argform.lib.schema import ArgKind, ArgumentDescriptor
from argform.lib.settings import Localization
from argform.tui.models.form_binding import choice_options
from argform.tui.widgets.base import ArgumentWidget


class EnumSelect(ArgumentWidget):
    """Dropdown listing the canonical choice tokens.

    The blank entry means "not set"; the widget stores the index of the
    picked choice.
    """

    DEFAULT_CSS = """
    EnumSelect .field-row Select {
        width: 1fr;
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
        if descriptor.kind != ArgKind.CHOICE:
            raise ValueError(f"EnumSelect cannot edit a {descriptor.kind.value} argument")
        super().__init__(node, descriptor, localization, id=id, classes=classes)
        index = self.value.index  # type: ignore[union-attr]
        self._select: Select[int] = Select(
            choice_options(descriptor),
            value=index if index is not None else Select.BLANK,
            allow_blank=True,
            prompt=descriptor.metavar or "-- Select --",
        )
        self._reset = Button("↺", classes="reset")
        self._reset.tooltip = localization.reset_to_default

    def compose(self) -> ComposeResult:
        yield from self.compose_label()
        with Horizontal(classes="field-row"):
            yield self._select
            yield self._reset
        yield from self.compose_footer()

    def on_select_changed(self, event: Select.Changed) -> None:
        event.stop()
        index = None if event.value == Select.BLANK else int(event.value)  # type: ignore[arg-type]
        self.commit(ChoiceValue(index))

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button is self._reset:
            self.reset_to_default()

    def load_value(self) -> None:
        index = self.value.index  # type: ignore[union-attr]
        if index is None:
            self._select.clear()
        else:
            self._select.value = index
