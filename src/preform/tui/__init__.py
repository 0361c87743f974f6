"""Preform TUI - the interactive commit message form.

Usage:
    from preform.tui import run_form

    state = await run_form(["feat", "fix"])
    if state.status is FormStatus.SUBMITTED:
        print(compose_message(state))

Components:
    FormApp - prompt_toolkit application owning the terminal
    FormState - form fields, focus and lifecycle status
    InputDispatcher - key to FormState operation state machine
    KeymapManager - keybinding management
"""

from .app import FormApp, run_form
from .dispatch import InputDispatcher
from .keymap import Action, KeyBinding, KeymapManager
from .render import RenderConfig, render_form, render_to_ansi
from .state import FormField, FormMode, FormState, FormStatus, TextInput

__all__ = [
    # Main app
    "FormApp",
    "run_form",
    # State
    "FormState",
    "FormField",
    "FormMode",
    "FormStatus",
    "TextInput",
    # Dispatch
    "InputDispatcher",
    "KeymapManager",
    "KeyBinding",
    "Action",
    # Render
    "RenderConfig",
    "render_form",
    "render_to_ansi",
]
