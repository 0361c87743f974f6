"""Main TUI Application for Preform."""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from prompt_toolkit.application import Application
from prompt_toolkit.formatted_text import ANSI
from prompt_toolkit.input import Input
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import Layout
from prompt_toolkit.layout.containers import Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.output import Output

from preform.config import hold_console_logging
from preform.exceptions import FileAccessError

from .dispatch import InputDispatcher
from .keymap import KeymapManager
from .render import RenderConfig, render_form, render_to_ansi
from .state import FormState, FormStatus

logger = logging.getLogger(__name__)

_CANCEL_SIGNALS = ("SIGINT", "SIGTERM", "SIGHUP")


@contextmanager
def cancel_on_signals(
    loop: asyncio.AbstractEventLoop,
    callback: Callable[[], None],
) -> Iterator[None]:
    """Route termination signals to ``callback`` while the form is open.

    The previous handlers are restored on exit.
    """
    installed: list[tuple[signal.Signals, Any]] = []
    for name in _CANCEL_SIGNALS:
        sig = getattr(signal, name, None)
        if sig is None:
            continue
        previous = signal.getsignal(sig)
        try:
            loop.add_signal_handler(sig, callback)
        except (NotImplementedError, RuntimeError, ValueError):
            # Not supported on this platform's loop or outside the main thread.
            continue
        installed.append((sig, previous))
    try:
        yield
    finally:
        for sig, previous in installed:
            loop.remove_signal_handler(sig)
            if previous is not None:
                signal.signal(sig, previous)


@dataclass
class FormApp:
    """
    Full-screen commit message form.

    Integrates:
    - prompt_toolkit for terminal ownership and key input
    - Rich for rendering
    - InputDispatcher for the form state machine
    """

    state: FormState = field(default_factory=FormState)
    keymap: KeymapManager = field(default_factory=KeymapManager)
    render_config: RenderConfig = field(default_factory=RenderConfig)
    on_add_type: Callable[[str], str] | None = None
    allow_add_types: bool = True

    # Terminal overrides (tests drive the form through pipe input)
    input: Input | None = None
    output: Output | None = None
    full_screen: bool = True

    # Internal state
    _app: Application | None = None
    _dispatcher: InputDispatcher | None = None
    _error: FileAccessError | None = None

    def __post_init__(self) -> None:
        """Wire the dispatcher and redraw callback."""
        self._dispatcher = InputDispatcher(
            self.state,
            self.keymap,
            on_add_type=self.on_add_type,
            allow_add_types=self.allow_add_types,
        )
        self.state.on_state_change = self._on_state_change

    @property
    def dispatcher(self) -> InputDispatcher:
        assert self._dispatcher is not None
        return self._dispatcher

    def _on_state_change(self) -> None:
        """Called when state changes."""
        if self._app:
            self._app.invalidate()

    def _exit(self) -> None:
        if self._app and self._app.is_running and not self._app.future.done():
            self._app.exit(result=self.state.status)

    def _handle_key(self, key: str) -> None:
        try:
            self.dispatcher.dispatch(key)
        except FileAccessError as e:
            # Raised again from run() once the terminal is restored.
            self._error = e
            self.state.cancel()
        if self.state.is_finished:
            self._exit()

    def _handle_paste(self, text: str) -> None:
        self.dispatcher.paste(text)

    def _handle_signal(self) -> None:
        logger.info("Signal received, cancelling form")
        self.state.cancel()
        self._exit()

    def _get_content(self) -> ANSI:
        width = None
        if self._app is not None:
            width = self._app.output.get_size().columns
        return ANSI(
            render_to_ansi(
                render_form(self.state, self.keymap, self.render_config),
                width=width or self.render_config.width,
            )
        )

    def _build_layout(self) -> Layout:
        """Build the prompt_toolkit layout."""
        window = Window(
            content=FormattedTextControl(self._get_content, focusable=True, show_cursor=False),
            wrap_lines=False,
        )
        return Layout(window)

    def _build_keybindings(self) -> KeyBindings:
        """Build keybindings for the application."""
        return self.keymap.build_prompt_toolkit_bindings(
            self._handle_key,
            on_paste=self._handle_paste,
        )

    # =========================================================================
    # Main Loop
    # =========================================================================

    async def run(self) -> FormStatus:
        """Run the form until it is submitted or cancelled.

        The terminal is in raw mode only inside ``run_async``; prompt_toolkit
        restores it on every exit path, so callers may print afterwards.
        """
        self._app = Application(
            layout=self._build_layout(),
            key_bindings=self._build_keybindings(),
            full_screen=self.full_screen,
            mouse_support=False,
            erase_when_done=True,
            input=self.input,
            output=self.output,
        )

        loop = asyncio.get_running_loop()
        try:
            with hold_console_logging(), cancel_on_signals(loop, self._handle_signal):
                await self._app.run_async(handle_sigint=False)
        except EOFError:
            # Input closed underneath us (terminal gone).
            logger.info("Input closed, cancelling form")
            self.state.cancel()
        finally:
            self._app = None

        if not self.state.is_finished:
            self.state.cancel()
        if self._error is not None:
            error, self._error = self._error, None
            raise error
        return self.state.status


async def run_form(
    options: list[str],
    *,
    on_add_type: Callable[[str], str] | None = None,
    allow_add_types: bool = True,
    render_config: RenderConfig | None = None,
    input: Input | None = None,
    output: Output | None = None,
) -> FormState:
    """Run the form over ``options`` and return the finished state."""
    app = FormApp(
        state=FormState(options=list(options)),
        render_config=render_config or RenderConfig(),
        on_add_type=on_add_type,
        allow_add_types=allow_add_types,
        input=input,
        output=output,
    )
    status = await app.run()
    logger.debug("Form finished", extra={"status": status.value})
    return app.state
