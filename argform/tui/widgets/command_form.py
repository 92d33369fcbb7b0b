"""Form for one command node, nesting the form of its active subcommand."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.message import Message
from textual.widgets import Label, Select, Static

from argform.lib.form import FormNode
from argform.lib.schema import ArgKind, ArgumentDescriptor
from argform.lib.settings import Localization
from argform.tui.models.form_binding import ErrorKey
from argform.tui.widgets.base import ArgumentWidget
from argform.tui.widgets.enum_select import EnumSelect
from argform.tui.widgets.list_input import ListInput
from argform.tui.widgets.toggle_input import CountInput, FlagInput
from argform.tui.widgets.validated_input import ValidatedInput

_WIDGETS: dict[ArgKind, type[ArgumentWidget]] = {
    ArgKind.FLAG: FlagInput,
    ArgKind.COUNT: CountInput,
    ArgKind.SINGLE: ValidatedInput,
    ArgKind.PATH: ValidatedInput,
    ArgKind.CHOICE: EnumSelect,
    ArgKind.MULTI: ListInput,
}


def widget_for(
    node: FormNode, descriptor: ArgumentDescriptor, localization: Localization
) -> ArgumentWidget:
    """Editor widget matching the argument kind."""
    return _WIDGETS[descriptor.kind](node, descriptor, localization)


class CommandForm(Vertical):
    """All editors of one FormNode plus a subcommand picker.

    Picking a different subcommand drops the child form (and its node)
    and builds a fresh one.

    Attributes:
        node: Form node being edited
        path: Command names from the root down to this node
        fields: Argument editors by argument name
        child: Form of the active subcommand, if any
    """

    DEFAULT_CSS = """
    CommandForm {
        height: auto;
    }

    CommandForm .command-help {
        color: $text-muted;
        margin-bottom: 1;
    }

    CommandForm .group-error, CommandForm .subcommand-error {
        color: $error;
        height: auto;
    }

    CommandForm .subcommand-label {
        text-style: bold;
        margin-top: 1;
    }

    CommandForm .subcommand-box {
        height: auto;
        border-left: wide $primary;
        padding-left: 1;
    }
    """

    class SubcommandChanged(Message):
        """Posted after the subcommand selection of a node changed."""

        def __init__(self, command_form: "CommandForm", subcommand: str | None) -> None:
            super().__init__()
            self.command_form = command_form
            self.subcommand = subcommand

    def __init__(
        self,
        node: FormNode,
        localization: Localization,
        *,
        path: tuple[str, ...] | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(id=id, classes=classes)
        self.node = node
        self.localization = localization
        self.path = path if path is not None else (node.name,)
        self.fields: dict[str, ArgumentWidget] = {
            arg.name: widget_for(node, arg, localization) for arg in node.schema.arguments
        }
        self.child: CommandForm | None = None
        if node.active is not None:
            self.child = CommandForm(
                node.active, localization, path=self.path + (node.active.name,)
            )
        self._group_errors = Static("", classes="group-error")
        self._subcommand_error = Static("", classes="subcommand-error")
        self._subcommand_box = Vertical(
            *([self.child] if self.child is not None else []), classes="subcommand-box"
        )
        self._subcommand_select: Select[str] | None = None
        if node.schema.subcommands:
            self._subcommand_select = Select(
                [(sub.name, sub.name) for sub in node.schema.subcommands],
                allow_blank=True,
                prompt=localization.no_subcommand,
                value=node.active.name if node.active is not None else Select.BLANK,
            )

    def compose(self) -> ComposeResult:
        if self.node.schema.help:
            yield Static(self.node.schema.help, classes="command-help", markup=False)
        yield from self.fields.values()
        yield self._group_errors
        if self._subcommand_select is not None:
            yield Label("Subcommand", classes="subcommand-label")
            yield self._subcommand_select
            yield self._subcommand_error
            yield self._subcommand_box

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select is not self._subcommand_select:
            return
        event.stop()
        name = None if event.value == Select.BLANK else str(event.value)
        current = self.node.active.name if self.node.active is not None else None
        if name == current:
            return
        self.select_subcommand(name)

    def select_subcommand(self, name: str | None) -> None:
        """Switch the active subcommand, rebuilding the nested form."""
        child_node = self.node.select_subcommand(name)
        self._subcommand_box.remove_children()
        self.child = None
        if child_node is not None:
            self.child = CommandForm(
                child_node, self.localization, path=self.path + (child_node.name,)
            )
            self._subcommand_box.mount(self.child)
        self._subcommand_error.update("")
        self.post_message(self.SubcommandChanged(self, name))

    def show_errors(self, errors: dict[ErrorKey, list[str]]) -> None:
        """Show validation messages next to the fields they concern.

        Passing an empty mapping clears every message in this subtree.
        """
        for name, widget in self.fields.items():
            widget.show_errors(errors.get((self.path, name), []))

        group_messages = []
        for group in self.node.schema.groups:
            group_messages.extend(errors.get((self.path, group.name), []))
        self._group_errors.update("\n".join(group_messages))

        self._subcommand_error.update(
            "\n".join(errors.get((self.path, self.node.schema.name), []))
        )

        if self.child is not None:
            self.child.show_errors(errors)
