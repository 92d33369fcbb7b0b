"""argform test suite.

- unit/: schema, form, validation, reconstruction, runner, rendering,
  session, settings, logging and the entry points
- tui/: widget bindings and headless runs of the form window
"""
