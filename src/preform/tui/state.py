"""Form state management for the Preform TUI."""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from preform.exceptions import ValidationError


class FormField(str, Enum):
    """Focusable form fields, in focus order."""

    TYPE = "type"
    SUBJECT = "subject"
    BODY = "body"


FIELD_ORDER: tuple[FormField, ...] = (FormField.TYPE, FormField.SUBJECT, FormField.BODY)


class FormStatus(str, Enum):
    """Lifecycle of a form session."""

    PENDING = "pending"
    SUBMITTED = "submitted"
    CANCELLED = "cancelled"


class FormMode(str, Enum):
    """Current input mode."""

    NORMAL = "normal"
    ADD_TYPE = "add_type"


@dataclass
class TextInput:
    """Single text buffer with a cursor measured in code points."""

    value: str = ""
    cursor: int = 0

    def __post_init__(self) -> None:
        self.cursor = max(0, min(self.cursor, len(self.value)))

    @classmethod
    def from_text(cls, text: str) -> "TextInput":
        """Buffer holding ``text`` with the cursor at the end."""
        return cls(value=text, cursor=len(text))

    def insert_char(self, char: str) -> None:
        self.value = self.value[: self.cursor] + char + self.value[self.cursor :]
        self.cursor += 1

    def backspace(self) -> None:
        if self.cursor == 0:
            return
        self.value = self.value[: self.cursor - 1] + self.value[self.cursor :]
        self.cursor -= 1

    def delete(self) -> None:
        if self.cursor >= len(self.value):
            return
        self.value = self.value[: self.cursor] + self.value[self.cursor + 1 :]

    def move_left(self) -> None:
        if self.cursor > 0:
            self.cursor -= 1

    def move_right(self) -> None:
        if self.cursor < len(self.value):
            self.cursor += 1

    def move_home(self) -> None:
        self.cursor = 0

    def move_end(self) -> None:
        self.cursor = len(self.value)

    def clear(self) -> None:
        self.value = ""
        self.cursor = 0


@dataclass
class FormState:
    """Complete state of one commit message form."""

    # Type selector
    options: list[str] = field(default_factory=list)
    selected_index: int = 0

    # Text fields
    subject: TextInput = field(default_factory=TextInput)
    body: TextInput = field(default_factory=TextInput)

    focus: FormField = FormField.TYPE
    status: FormStatus = FormStatus.PENDING

    # Add-type overlay
    mode: FormMode = FormMode.NORMAL
    new_type: TextInput = field(default_factory=TextInput)

    # Last rejection shown to the user (cleared on the next handled key)
    notice: str | None = None

    # Callbacks
    on_state_change: Callable[[], None] | None = None

    def __post_init__(self) -> None:
        if self.options:
            self.selected_index = max(0, min(self.selected_index, len(self.options) - 1))
        else:
            self.selected_index = 0

    def notify_change(self) -> None:
        """Notify listeners of state change."""
        if self.on_state_change:
            self.on_state_change()

    @property
    def selected_type(self) -> str | None:
        """Currently selected type, or None when there are no options."""
        if not self.options:
            return None
        return self.options[self.selected_index]

    @property
    def is_finished(self) -> bool:
        return self.status != FormStatus.PENDING

    @property
    def focused_input(self) -> TextInput | None:
        """Text buffer that receives editing keys, if any."""
        if self.mode == FormMode.ADD_TYPE:
            return self.new_type
        if self.focus == FormField.SUBJECT:
            return self.subject
        if self.focus == FormField.BODY:
            return self.body
        return None

    # Type selection
    def select_next_type(self) -> None:
        """Select the next type, wrapping to the first."""
        if not self.options:
            return
        self.selected_index = (self.selected_index + 1) % len(self.options)
        self.notify_change()

    def select_previous_type(self) -> None:
        """Select the previous type, wrapping to the last."""
        if not self.options:
            return
        self.selected_index = (self.selected_index - 1) % len(self.options)
        self.notify_change()

    def select_type(self, name: str) -> None:
        """Select ``name``, appending it to the options when it is new."""
        if name in self.options:
            self.selected_index = self.options.index(name)
        else:
            self.options.append(name)
            self.selected_index = len(self.options) - 1
        self.notify_change()

    # Focus
    def focus_next_field(self) -> None:
        index = FIELD_ORDER.index(self.focus)
        self.focus = FIELD_ORDER[(index + 1) % len(FIELD_ORDER)]
        self.notify_change()

    def focus_previous_field(self) -> None:
        index = FIELD_ORDER.index(self.focus)
        self.focus = FIELD_ORDER[(index - 1) % len(FIELD_ORDER)]
        self.notify_change()

    # Editing
    def _edit(self, apply: Callable[[TextInput], None]) -> None:
        target = self.focused_input
        if target is None:
            return
        apply(target)
        self.notify_change()

    def insert_char(self, char: str) -> None:
        """Insert ``char`` at the cursor of the focused text field."""
        self._edit(lambda t: t.insert_char(char))

    def insert_newline(self) -> None:
        """Insert a line break; only the body is multi-line."""
        if self.mode == FormMode.NORMAL and self.focus == FormField.BODY:
            self._edit(lambda t: t.insert_char("\n"))

    def delete_before_cursor(self) -> None:
        self._edit(TextInput.backspace)

    def delete_at_cursor(self) -> None:
        self._edit(TextInput.delete)

    def move_cursor_left(self) -> None:
        self._edit(TextInput.move_left)

    def move_cursor_right(self) -> None:
        self._edit(TextInput.move_right)

    def move_cursor_home(self) -> None:
        self._edit(TextInput.move_home)

    def move_cursor_end(self) -> None:
        self._edit(TextInput.move_end)

    # Add-type overlay
    def open_add_type(self) -> None:
        self.mode = FormMode.ADD_TYPE
        self.new_type.clear()
        self.notify_change()

    def close_add_type(self) -> None:
        self.mode = FormMode.NORMAL
        self.new_type.clear()
        self.notify_change()

    # Notices
    def set_notice(self, message: str) -> None:
        self.notice = message
        self.notify_change()

    def clear_notice(self) -> None:
        if self.notice is not None:
            self.notice = None
            self.notify_change()

    # Completion
    def submit(self) -> None:
        """Finish the form.

        Raises:
            ValidationError: The subject is empty after trimming; the form
                stays pending.
        """
        if not self.subject.value.strip():
            raise ValidationError("Subject must not be empty", field_name="subject")
        self.status = FormStatus.SUBMITTED
        self.notify_change()

    def cancel(self) -> None:
        self.status = FormStatus.CANCELLED
        self.notify_change()
