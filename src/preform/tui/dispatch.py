"""Key event dispatch: turns keys into FormState operations."""

from __future__ import annotations

import logging
from collections.abc import Callable

from preform.exceptions import ValidationError
from preform.options import validate_type_name

from .keymap import Action, KeymapManager, is_printable
from .state import FormField, FormMode, FormState

logger = logging.getLogger(__name__)


class InputDispatcher:
    """Applies exactly one FormState operation per key.

    Args:
        state: The form being edited.
        keymap: Key to action mapping; defaults to the standard bindings.
        on_add_type: Persists a new type name and returns the stored name.
            When None, new types only live in memory for this session.
        allow_add_types: Whether ``+`` opens the add-type overlay.
    """

    def __init__(
        self,
        state: FormState,
        keymap: KeymapManager | None = None,
        on_add_type: Callable[[str], str] | None = None,
        allow_add_types: bool = True,
    ) -> None:
        self.state = state
        self.keymap = keymap or KeymapManager()
        self._on_add_type = on_add_type
        self._allow_add_types = allow_add_types
        self._register_handlers()

    def _register_handlers(self) -> None:
        """Register action handlers."""
        state = self.state
        handlers: dict[Action, Callable[[str], None]] = {
            Action.SELECT_PREVIOUS: lambda _key: state.select_previous_type(),
            Action.SELECT_NEXT: lambda _key: state.select_next_type(),
            Action.ADD_TYPE: self._handle_add_type,
            Action.FOCUS_NEXT: lambda _key: state.focus_next_field(),
            Action.FOCUS_PREVIOUS: lambda _key: state.focus_previous_field(),
            Action.INSERT_CHAR: state.insert_char,
            Action.NEWLINE: lambda _key: state.insert_newline(),
            Action.DELETE_BACKWARD: lambda _key: state.delete_before_cursor(),
            Action.DELETE_FORWARD: lambda _key: state.delete_at_cursor(),
            Action.CURSOR_LEFT: lambda _key: state.move_cursor_left(),
            Action.CURSOR_RIGHT: lambda _key: state.move_cursor_right(),
            Action.CURSOR_HOME: lambda _key: state.move_cursor_home(),
            Action.CURSOR_END: lambda _key: state.move_cursor_end(),
            Action.CONFIRM_TYPE: self._handle_confirm_type,
            Action.CLOSE_OVERLAY: lambda _key: state.close_add_type(),
            Action.SUBMIT: self._handle_submit,
            Action.CANCEL: lambda _key: state.cancel(),
        }

        for action, handler in handlers.items():
            self.keymap.register_handler(action, handler)

    @property
    def context(self) -> str:
        """Keymap context for the current state."""
        if self.state.mode == FormMode.ADD_TYPE:
            return "overlay"
        if self.state.focus == FormField.TYPE:
            return "type"
        return "text"

    def dispatch(self, key: str) -> Action | None:
        """Handle one key. Returns the action applied, or None for a no-op.

        Keys arriving after the form has finished are ignored.
        """
        if self.state.is_finished:
            return None

        action = self.keymap.resolve(key, self.context)
        if action is None:
            logger.debug("Ignoring key", extra={"key": repr(key), "context": self.context})
            return None

        handler = self.keymap.get_handler(action)
        if handler is None:
            return None

        self.state.clear_notice()
        handler(key)
        return action

    def paste(self, text: str) -> None:
        """Insert pasted text one character at a time."""
        if self.state.is_finished:
            return
        self.state.clear_notice()
        for char in text.replace("\r\n", "\n").replace("\r", "\n"):
            if self.state.is_finished:
                return
            if char == "\n":
                self.state.insert_newline()
            elif is_printable(char):
                self.state.insert_char(char)

    # =========================================================================
    # Action Handlers
    # =========================================================================

    def _handle_add_type(self, _key: str) -> None:
        if not self._allow_add_types:
            self.state.set_notice("Adding types is disabled")
            return
        self.state.open_add_type()

    def _handle_confirm_type(self, _key: str) -> None:
        raw = self.state.new_type.value
        try:
            if self._on_add_type is not None:
                name = self._on_add_type(raw)
            else:
                name = validate_type_name(raw)
        except ValidationError as e:
            self.state.set_notice(str(e))
            return
        self.state.close_add_type()
        self.state.select_type(name)

    def _handle_submit(self, _key: str) -> None:
        try:
            self.state.submit()
        except ValidationError as e:
            logger.debug("Submit rejected", extra={"reason": e.message})
            self.state.set_notice(str(e))
