"""Textual application: the form window for one command-line program.

Layout, top to bottom: tabs (arguments, and optionally environment and
input), the Run/Kill bar with the run status, a preview of the command
line and the output pane. Output is pulled from the Session on a timer,
so every widget update happens on the UI thread.
"""

from __future__ import annotations

import logging

from textual.app import App, ComposeResult
from textual.containers import Horizontal, ScrollableContainer, Vertical
from textual.widgets import Button, Footer, Header, Static, TabbedContent, TabPane

from argform.lib.errors import ArgformError, LaunchError, ValidationError
from argform.lib.session import ENV_TARGET, Session
from argform.lib.validate import ValidationResult
from argform.tui.models.form_binding import errors_by_target, status_text
from argform.tui.widgets.base import ArgumentWidget
from argform.tui.widgets.command_form import CommandForm
from argform.tui.widgets.env_editor import EnvEditor
from argform.tui.widgets.output_view import OutputView
from argform.tui.widgets.run_inputs import StdinEditor, WorkingDirInput

logger = logging.getLogger(__name__)

# Seconds between output polls while a program runs
POLL_INTERVAL = 0.1


class ArgformApp(App):
    """Form window bound to a Session."""

    BINDINGS = [
        ("ctrl+r", "run", "Run"),
        ("ctrl+k", "kill", "Kill"),
        ("ctrl+q", "quit", "Quit"),
    ]

    CSS = """
    #form_tabs {
        height: 1fr;
    }

    .tab-content {
        padding: 1;
    }

    .button-row {
        height: auto;
        padding: 0 1;
        border-top: solid $primary;
    }

    .button-row Button {
        margin: 0 1;
    }

    #run_status {
        width: 1fr;
        padding: 1;
    }

    #command_preview {
        height: auto;
        padding: 0 1;
        color: $text-muted;
    }

    #output_panel {
        height: 1fr;
    }
    """

    def __init__(self, session: Session) -> None:
        super().__init__()
        self.session = session
        self.localization = session.settings.localization
        self.form_view = CommandForm(session.form, self.localization, id="command_form")
        self.output_view = OutputView(id="output")
        self.env_editor: EnvEditor | None = None
        self._was_running = False

    def compose(self) -> ComposeResult:
        settings = self.session.settings
        loc = self.localization
        yield Header()

        with TabbedContent(id="form_tabs"):
            with TabPane(loc.arguments, id="arguments-tab"):
                with ScrollableContainer(classes="tab-content"):
                    yield self.form_view

            if settings.enable_env is not None:
                self.env_editor = EnvEditor(self.session, loc, settings.enable_env)
                with TabPane(loc.env_variables, id="env-tab"):
                    with ScrollableContainer(classes="tab-content"):
                        yield self.env_editor

            if settings.enable_stdin is not None or settings.enable_working_dir is not None:
                with TabPane(loc.input, id="input-tab"):
                    with ScrollableContainer(classes="tab-content"):
                        if settings.enable_stdin is not None:
                            yield StdinEditor(self.session, loc, settings.enable_stdin)
                        if settings.enable_working_dir is not None:
                            yield WorkingDirInput(self.session, loc, settings.enable_working_dir)

        with Horizontal(classes="button-row"):
            yield Button(loc.run, id="btn_run", variant="primary")
            yield Button(loc.kill, id="btn_kill", variant="error", disabled=True)
            yield Static("", id="run_status")
        with Vertical(id="output_panel"):
            yield Static("", id="command_preview", markup=False)
            yield self.output_view

        yield Footer()

    def on_mount(self) -> None:
        self.title = self.session.schema.name
        if self.session.schema.help:
            self.sub_title = self.session.schema.help
        self._update_preview()
        self.set_interval(POLL_INTERVAL, self._poll)

    def on_unmount(self) -> None:
        self.session.kill()

    # Form events

    def on_argument_widget_changed(self, event: ArgumentWidget.Changed) -> None:
        self._update_preview()

    def on_command_form_subcommand_changed(self, event: CommandForm.SubcommandChanged) -> None:
        self._update_preview()

    def on_env_editor_changed(self, event: EnvEditor.Changed) -> None:
        self._update_preview()

    def _update_preview(self) -> None:
        preview = self.session.command_preview()
        self.query_one("#command_preview", Static).update(f"$ {preview}" if preview else "")

    # Running

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn_run":
            self.action_run()
        elif event.button.id == "btn_kill":
            self.action_kill()

    def action_run(self) -> None:
        """Validate the form and start the program."""
        self.form_view.show_errors({})
        try:
            handle = self.session.start_run()
        except ValidationError as e:
            self._show_violations(ValidationResult(tuple(e.violations)))
            self.notify(e.message.splitlines()[0], severity="error")
            return
        except LaunchError as e:
            reason = f": {e.cause}" if e.cause is not None else ""
            self.notify(f"{e.message}{reason}", severity="error")
            return
        except ArgformError as e:
            self.notify(e.message, severity="warning")
            return

        logger.info("Started pid %d", handle.pid)
        self.output_view.show([])
        self._set_running(True)

    def action_kill(self) -> None:
        """Stop the running program."""
        handle = self.session.handle
        if handle is not None and not handle.finished:
            self.session.kill()
            self.query_one("#btn_kill", Button).disabled = True

    def _show_violations(self, result: ValidationResult) -> None:
        errors = errors_by_target(result, self.localization)
        self.form_view.show_errors(errors)
        if self.env_editor is not None:
            env_messages = [
                message for (_path, target), messages in errors.items()
                if target == ENV_TARGET
                for message in messages
            ]
            self.env_editor.show_error("\n".join(env_messages))

    def _poll(self) -> None:
        if self.session.poll_output():
            self.output_view.show(self.session.rendered_output())
        handle = self.session.handle
        # Busy until both pipes hit end of stream, not just until exit
        running = handle is not None and not handle.finished
        if running != self._was_running:
            if not running and self.session.poll_output():
                self.output_view.show(self.session.rendered_output())
            self._set_running(running)

    def _set_running(self, running: bool) -> None:
        self._was_running = running
        self.query_one("#btn_run", Button).disabled = running
        self.query_one("#btn_kill", Button).disabled = not running
        self.query_one("#run_status", Static).update(
            status_text(self.session.exit_status, running, self.localization)
        )


def run_tui(session: Session) -> None:
    """Show the form window until the user quits."""
    app = ArgformApp(session)
    app.run()
