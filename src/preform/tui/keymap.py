"""Keybinding definitions for the Preform form."""

import unicodedata
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable

# prompt_toolkit is only needed once bindings are built
if TYPE_CHECKING:
    from prompt_toolkit.key_binding import KeyBindings


class Action(str, Enum):
    """Form actions that can be bound to keys."""

    # Type list
    SELECT_PREVIOUS = "select_previous"
    SELECT_NEXT = "select_next"
    ADD_TYPE = "add_type"

    # Focus
    FOCUS_NEXT = "focus_next"
    FOCUS_PREVIOUS = "focus_previous"

    # Editing
    INSERT_CHAR = "insert_char"
    NEWLINE = "newline"
    DELETE_BACKWARD = "delete_backward"
    DELETE_FORWARD = "delete_forward"
    CURSOR_LEFT = "cursor_left"
    CURSOR_RIGHT = "cursor_right"
    CURSOR_HOME = "cursor_home"
    CURSOR_END = "cursor_end"

    # Add-type overlay
    CONFIRM_TYPE = "confirm_type"
    CLOSE_OVERLAY = "close_overlay"

    # Finish
    SUBMIT = "submit"
    CANCEL = "cancel"


# Contexts a key can arrive in:
#   type    - normal mode, focus on the type list
#   text    - normal mode, focus on subject or body
#   overlay - the add-type overlay is open
CONTEXT_GROUPS: dict[str, frozenset[str]] = {
    "always": frozenset({"type", "text", "overlay"}),
    "form": frozenset({"type", "text"}),
    "edit": frozenset({"text", "overlay"}),
    "type": frozenset({"type"}),
    "text": frozenset({"text"}),
    "overlay": frozenset({"overlay"}),
}


@dataclass
class KeyBinding:
    """A single key binding."""

    keys: tuple[str, ...]
    action: Action
    description: str
    when: str = "always"  # a key of CONTEXT_GROUPS

    def applies_to(self, context: str) -> bool:
        return context in CONTEXT_GROUPS[self.when]


# Default key bindings
DEFAULT_BINDINGS: list[KeyBinding] = [
    # Type list (Up/Down do nothing in the text fields)
    KeyBinding(keys=("up",), action=Action.SELECT_PREVIOUS, description="Previous type", when="type"),
    KeyBinding(keys=("down",), action=Action.SELECT_NEXT, description="Next type", when="type"),
    KeyBinding(keys=("+",), action=Action.ADD_TYPE, description="Add a new type", when="type"),
    # Focus
    KeyBinding(keys=("tab",), action=Action.FOCUS_NEXT, description="Next field", when="form"),
    KeyBinding(keys=("s-tab",), action=Action.FOCUS_PREVIOUS, description="Previous field", when="form"),
    # Editing
    KeyBinding(keys=("left",), action=Action.CURSOR_LEFT, description="Cursor left", when="edit"),
    KeyBinding(keys=("right",), action=Action.CURSOR_RIGHT, description="Cursor right", when="edit"),
    KeyBinding(keys=("home",), action=Action.CURSOR_HOME, description="Start of text", when="edit"),
    KeyBinding(keys=("end",), action=Action.CURSOR_END, description="End of text", when="edit"),
    KeyBinding(
        keys=("backspace",),
        action=Action.DELETE_BACKWARD,
        description="Delete character before cursor",
        when="edit",
    ),
    KeyBinding(
        keys=("delete",),
        action=Action.DELETE_FORWARD,
        description="Delete character under cursor",
        when="edit",
    ),
    KeyBinding(keys=("c-j",), action=Action.NEWLINE, description="New line in body", when="text"),
    # Overlay
    KeyBinding(keys=("enter",), action=Action.CONFIRM_TYPE, description="Save new type", when="overlay"),
    KeyBinding(keys=("escape",), action=Action.CLOSE_OVERLAY, description="Close overlay", when="overlay"),
    KeyBinding(keys=("c-c",), action=Action.CLOSE_OVERLAY, description="Close overlay", when="overlay"),
    # Finish
    KeyBinding(keys=("enter",), action=Action.SUBMIT, description="Write commit message", when="form"),
    KeyBinding(keys=("escape",), action=Action.CANCEL, description="Cancel", when="form"),
    KeyBinding(keys=("c-c",), action=Action.CANCEL, description="Cancel", when="form"),
]


def is_printable(key: str) -> bool:
    """True for a single printable character (what INSERT_CHAR accepts).

    Format characters such as the zero-width joiner count as printable so
    composed emoji survive typing and pasting.
    """
    return len(key) == 1 and (key.isprintable() or unicodedata.category(key) == "Cf")


class KeymapManager:
    """Manages keybindings for the form."""

    def __init__(self, bindings: list[KeyBinding] | None = None) -> None:
        self.bindings = list(DEFAULT_BINDINGS if bindings is None else bindings)
        self._handlers: dict[Action, Callable[[str], None]] = {}

    def register_handler(self, action: Action, handler: Callable[[str], None]) -> None:
        """Register a handler for an action. Handlers receive the key."""
        self._handlers[action] = handler

    def get_handler(self, action: Action) -> Callable[[str], None] | None:
        """Get the handler for an action."""
        return self._handlers.get(action)

    def get_bindings_for_context(self, context: str) -> list[KeyBinding]:
        """Get bindings that apply to a context (type, text, overlay)."""
        return [b for b in self.bindings if b.applies_to(context)]

    def resolve(self, key: str, context: str) -> Action | None:
        """Map a key to the action it triggers in ``context``.

        Bound keys win; otherwise a printable character inserts itself
        wherever text is being edited. Anything else resolves to None.
        """
        for binding in self.bindings:
            if binding.keys == (key,) and binding.applies_to(context):
                return binding.action
        if is_printable(key) and context in CONTEXT_GROUPS["edit"]:
            return Action.INSERT_CHAR
        return None

    def get_shortcut_display(self, action: Action) -> str:
        """Get human-readable shortcut for an action."""
        keys = [self._format_keys(b.keys) for b in self.bindings if b.action == action]
        return "/".join(keys)

    def _format_keys(self, keys: tuple[str, ...]) -> str:
        """Format keys for display."""
        result = []
        for key in keys:
            if key == "s-tab":
                result.append("Shift+Tab")
            elif key == "escape":
                result.append("Esc")
            elif key.startswith("c-"):
                result.append(f"Ctrl+{key[2:].upper()}")
            elif key.startswith("s-"):
                result.append(f"Shift+{key[2:].capitalize()}")
            elif len(key) == 1:
                result.append(key)
            else:
                result.append(key.capitalize())
        return " ".join(result)

    def get_help_text(self, context: str | None = None) -> list[tuple[str, str]]:
        """Get list of (shortcut, description) for help display."""
        seen_actions = set()
        result = []
        bindings = self.bindings if context is None else self.get_bindings_for_context(context)
        for binding in bindings:
            if binding.action in seen_actions:
                continue
            seen_actions.add(binding.action)
            shortcut = "/".join(
                self._format_keys(b.keys)
                for b in bindings
                if b.action == binding.action
            )
            result.append((shortcut, binding.description))
        return result

    def build_prompt_toolkit_bindings(
        self,
        on_key: Callable[[str], None],
        on_paste: Callable[[str], None] | None = None,
    ) -> "KeyBindings":
        """Build prompt_toolkit KeyBindings that feed every key to ``on_key``.

        Bound keys arrive by name ("up", "c-c", ...); any other key arrives
        as the text the terminal sent for it.
        """
        from prompt_toolkit.key_binding import KeyBindings
        from prompt_toolkit.keys import Keys

        kb = KeyBindings()

        for keys in dict.fromkeys(b.keys for b in self.bindings):
            self._add_binding(kb, keys, on_key)

        @kb.add(Keys.Any)
        def handle_any(event) -> None:
            if event.data:
                on_key(event.data)

        # Alt+key arrives as Escape followed by the key: handle the key alone.
        by_key = self._named_keys()

        @kb.add(Keys.Escape, Keys.Any)
        def handle_meta(event) -> None:
            pressed = event.key_sequence[-1]
            name = by_key.get(pressed.key)
            if name is not None:
                on_key(name)
            elif is_printable(pressed.data):
                on_key(pressed.data)

        if on_paste is not None:

            @kb.add(Keys.BracketedPaste)
            def handle_paste(event) -> None:
                on_paste(event.data)

        return kb

    def _add_binding(
        self,
        kb: "KeyBindings",
        keys: tuple[str, ...],
        on_key: Callable[[str], None],
    ) -> None:
        """Add a single binding to the KeyBindings object."""
        pt_keys = self._convert_keys(keys)
        name = " ".join(keys)

        @kb.add(*pt_keys)
        def handler(event, name=name) -> None:
            on_key(name)

    def _named_keys(self) -> dict[str, str]:
        """Map prompt_toolkit keys back to binding names ("c-m" -> "enter")."""
        from prompt_toolkit.keys import Keys

        result: dict[str, str] = {}
        for binding in self.bindings:
            if len(binding.keys) != 1 or len(binding.keys[0]) == 1:
                continue
            (pt_key,) = self._convert_keys(binding.keys)
            result[Keys(pt_key)] = binding.keys[0]
        return result

    def _convert_keys(self, keys: tuple[str, ...]) -> tuple:
        """Convert our key format to prompt_toolkit format."""
        # Import at runtime
        from prompt_toolkit.keys import Keys

        named = {
            "enter": Keys.Enter,
            "escape": Keys.Escape,
            "up": Keys.Up,
            "down": Keys.Down,
            "left": Keys.Left,
            "right": Keys.Right,
            "home": Keys.Home,
            "end": Keys.End,
            "tab": Keys.Tab,
            "s-tab": Keys.BackTab,
            "backspace": Keys.Backspace,
            "delete": Keys.Delete,
        }
        result = []
        for key in keys:
            if key in named:
                result.append(named[key])
            elif key.startswith("c-"):
                # Control key
                result.append(f"c-{key[2:]}")
            else:
                result.append(key)
        return tuple(result)
