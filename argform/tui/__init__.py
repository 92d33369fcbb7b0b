"""Textual form window for argparse-based programs.

Usage:
    from argform.tui import run_tui
    run_tui(session)
"""

from __future__ import annotations

__all__ = [
    "ArgformApp",
    "run_tui",
]


def __getattr__(name: str):
    """Lazy import of TUI components."""
    if name == "ArgformApp":
        from argform.tui.app import ArgformApp
        return ArgformApp
    if name == "run_tui":
        from argform.tui.app import run_tui
        return run_tui
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
