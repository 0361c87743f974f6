"""Rich rendering helpers for the Preform form."""

import io
from dataclasses import dataclass

from rich.box import ROUNDED
from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from preform.composer import compose_message

from .keymap import KeymapManager
from .state import FormField, FormMode, FormState, FormStatus, TextInput

__all__ = [
    "Theme",
    "RenderConfig",
    "render_to_ansi",
    "render_text_with_cursor",
    "render_type_list",
    "render_text_field",
    "render_add_type_overlay",
    "render_preview",
    "render_help_line",
    "render_form",
]


class Theme:
    """Colors used by the form."""

    PRIMARY = "cyan"
    ACCENT = "magenta"
    ERROR = "red"
    MUTED = "dim"
    BORDER = "bright_black"
    BORDER_ACTIVE = "cyan"


@dataclass
class RenderConfig:
    """Configuration for rendering."""

    width: int | None = None
    highlight_symbol: str = "➡ "
    type_rows: int = 5
    show_preview: bool = True
    show_help: bool = True


def render_to_ansi(
    renderable: RenderableType,
    *,
    width: int | None = None,
    force_terminal: bool = True,
) -> str:
    """
    Render a Rich renderable to ANSI escape codes.

    prompt_toolkit draws the result through its ANSI formatted text.
    """
    console = Console(
        file=io.StringIO(),
        width=width or 80,
        force_terminal=force_terminal,
        color_system="truecolor",
        legacy_windows=False,
    )
    console.print(renderable, end="")
    return console.file.getvalue()


def render_text_with_cursor(text_input: TextInput, show_cursor: bool) -> Text:
    """Render a buffer, drawing the cursor as a reversed cell."""
    value = text_input.value
    if not show_cursor:
        return Text(value)

    cursor = text_input.cursor
    text = Text(value[:cursor])
    under = value[cursor : cursor + 1]
    if under and under != "\n":
        text.append(under, style="reverse")
        text.append(value[cursor + 1 :])
    else:
        text.append(" ", style="reverse")
        text.append(value[cursor:])
    return text


def _visible_window(count: int, selected: int, rows: int) -> range:
    """Rows of the type list to show so the selection stays visible."""
    if count <= rows:
        return range(count)
    start = min(max(0, selected - rows // 2), count - rows)
    return range(start, start + rows)


def render_type_list(
    options: list[str],
    selected_index: int,
    focused: bool,
    config: RenderConfig | None = None,
) -> Panel:
    """Render the type selector."""
    config = config or RenderConfig()
    pad = " " * len(config.highlight_symbol)

    if not options:
        body = Text("(no types found)", style=Theme.MUTED)
    else:
        body = Text()
        window = _visible_window(len(options), selected_index, config.type_rows)
        for row, index in enumerate(window):
            if row:
                body.append("\n")
            if index == selected_index:
                body.append(config.highlight_symbol, style=Theme.PRIMARY)
                body.append(options[index], style="bold")
            else:
                body.append(pad + options[index])
        if len(window) < len(options):
            body.append(f"\n{pad}({selected_index + 1}/{len(options)})", style=Theme.MUTED)

    title = Text("Type  ( + to add )", style="bold" if focused else "")
    return Panel(
        body,
        title=title,
        title_align="left",
        box=ROUNDED,
        border_style=Theme.BORDER_ACTIVE if focused else Theme.BORDER,
    )


def render_text_field(label: str, text_input: TextInput, focused: bool) -> Panel:
    """Render one free-text field."""
    return Panel(
        render_text_with_cursor(text_input, show_cursor=focused),
        title=Text(label, style="bold" if focused else ""),
        title_align="left",
        box=ROUNDED,
        border_style=Theme.BORDER_ACTIVE if focused else Theme.BORDER,
    )


def render_add_type_overlay(text_input: TextInput) -> Panel:
    """Render the add-type input."""
    return Panel(
        render_text_with_cursor(text_input, show_cursor=True),
        title=Text("New Type (Enter to save, Esc to cancel)", style="bold"),
        title_align="left",
        box=ROUNDED,
        border_style=Theme.ACCENT,
    )


def render_preview(state: FormState) -> Panel:
    """Render the message that Enter would write."""
    if state.subject.value.strip():
        body = Text(compose_message(state))
    else:
        body = Text("(enter a subject)", style=Theme.MUTED)
    return Panel(
        body,
        title=Text("Preview", style=Theme.MUTED),
        title_align="left",
        box=ROUNDED,
        border_style=Theme.BORDER,
    )


def render_help_line(help_items: list[tuple[str, str]]) -> Text:
    """Render key help as a single line."""
    text = Text()
    for i, (shortcut, description) in enumerate(help_items):
        if i:
            text.append("  ·  ", style=Theme.MUTED)
        text.append(shortcut, style=f"bold {Theme.PRIMARY}")
        text.append(f" {description}", style=Theme.MUTED)
    return text


def render_form(
    state: FormState,
    keymap: KeymapManager | None = None,
    config: RenderConfig | None = None,
) -> Group:
    """Render the whole form (read-only)."""
    config = config or RenderConfig()
    in_overlay = state.mode == FormMode.ADD_TYPE

    renderables: list[RenderableType] = []
    if in_overlay:
        renderables.append(render_add_type_overlay(state.new_type))

    renderables.append(
        render_type_list(
            state.options,
            state.selected_index,
            focused=not in_overlay and state.focus == FormField.TYPE,
            config=config,
        )
    )
    renderables.append(
        render_text_field(
            "Subject",
            state.subject,
            focused=not in_overlay and state.focus == FormField.SUBJECT,
        )
    )
    renderables.append(
        render_text_field(
            "Body  ( Ctrl+J for new line )",
            state.body,
            focused=not in_overlay and state.focus == FormField.BODY,
        )
    )

    if config.show_preview and state.status == FormStatus.PENDING:
        renderables.append(render_preview(state))

    if state.notice:
        renderables.append(Text(f"✗ {state.notice}", style=f"bold {Theme.ERROR}"))

    if config.show_help:
        keymap = keymap or KeymapManager()
        if in_overlay:
            context = "overlay"
        elif state.focus == FormField.TYPE:
            context = "type"
        else:
            context = "text"
        renderables.append(render_help_line(keymap.get_help_text(context)))

    return Group(*renderables)
