"""Common base for widgets bound to one argument of a form node."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.message import Message
from textual.widgets import Label, Static

from argform.lib.form import ArgumentValue, FormNode
from argform.lib.schema import ArgumentDescriptor
from argform.lib.settings import Localization
from argform.tui.models.form_binding import field_label


class ArgumentWidget(Vertical):
    """Labelled editor for a single argument.

    Writes go straight to the bound FormNode; a Changed message is posted
    after every write so the app can refresh the command preview.

    Attributes:
        node: Form node owning the value
        descriptor: Argument being edited
        localization: UI strings
    """

    DEFAULT_CSS = """
    ArgumentWidget {
        height: auto;
        margin-bottom: 1;
    }

    ArgumentWidget .field-label {
        color: $text;
        margin-bottom: 0;
    }

    ArgumentWidget .field-label.required {
        text-style: bold;
    }

    ArgumentWidget .field-row {
        height: auto;
    }

    ArgumentWidget .field-row Input {
        width: 1fr;
    }

    ArgumentWidget .field-row Button {
        min-width: 5;
        margin-left: 1;
    }

    ArgumentWidget.-invalid Input {
        border: tall $error;
    }

    ArgumentWidget .error-text {
        color: $error;
        height: auto;
    }

    ArgumentWidget .help-text {
        color: $text-muted;
        height: auto;
    }
    """

    class Changed(Message):
        """Posted after the bound value was replaced."""

        def __init__(self, argument_widget: "ArgumentWidget", value: ArgumentValue) -> None:
            super().__init__()
            self.argument_widget = argument_widget
            self.value = value

    def __init__(
        self,
        node: FormNode,
        descriptor: ArgumentDescriptor,
        localization: Localization,
        *,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(id=id, classes=classes)
        self.node = node
        self.descriptor = descriptor
        self.localization = localization
        self._error = Static("", classes="error-text")

    @property
    def value(self) -> ArgumentValue:
        return self.node.get_value(self.descriptor.name)

    def compose_label(self) -> ComposeResult:
        label_classes = "field-label required" if self.descriptor.required else "field-label"
        yield Label(field_label(self.descriptor, self.localization), classes=label_classes)

    def compose_footer(self) -> ComposeResult:
        yield self._error
        if self.descriptor.help:
            yield Static(self.descriptor.help, classes="help-text", markup=False)

    def commit(self, value: ArgumentValue) -> None:
        """Store a new value in the form and announce it."""
        if value == self.value:
            return
        self.node.set_value(self.descriptor.name, value)
        self.post_message(self.Changed(self, value))

    def reset_to_default(self) -> None:
        """Restore the schema default and show it."""
        self.node.reset_value(self.descriptor.name)
        self.load_value()
        self.show_errors([])
        self.post_message(self.Changed(self, self.value))

    def load_value(self) -> None:
        """Copy the node's current value into the child widgets."""
        raise NotImplementedError

    def show_errors(self, messages: list[str]) -> None:
        self._error.update("\n".join(messages))
        self.set_class(bool(messages), "-invalid")
