"""Tests for key bindings and the input dispatcher."""

from __future__ import annotations

import pytest

from preform.exceptions import FileAccessError, ValidationError
from preform.tui.dispatch import InputDispatcher
from preform.tui.keymap import DEFAULT_BINDINGS, Action, KeymapManager
from preform.tui.state import FormField, FormMode, FormState, FormStatus


def _type_keys(dispatcher: InputDispatcher, text: str) -> None:
    for char in text:
        dispatcher.dispatch(char)


class TestKeymap:
    """Tests for KeymapManager resolution and display."""

    def test_default_bindings_cover_actions(self) -> None:
        actions = {b.action for b in DEFAULT_BINDINGS}
        assert Action.SUBMIT in actions
        assert Action.CANCEL in actions
        assert Action.FOCUS_NEXT in actions
        assert Action.SELECT_NEXT in actions

    @pytest.mark.parametrize(
        ("key", "context", "expected"),
        [
            ("up", "type", Action.SELECT_PREVIOUS),
            ("down", "type", Action.SELECT_NEXT),
            ("up", "text", None),
            ("down", "text", None),
            ("tab", "type", Action.FOCUS_NEXT),
            ("s-tab", "text", Action.FOCUS_PREVIOUS),
            ("left", "text", Action.CURSOR_LEFT),
            ("left", "type", None),
            ("backspace", "text", Action.DELETE_BACKWARD),
            ("enter", "type", Action.SUBMIT),
            ("enter", "text", Action.SUBMIT),
            ("escape", "text", Action.CANCEL),
            ("c-c", "type", Action.CANCEL),
            ("x", "text", Action.INSERT_CHAR),
            ("x", "type", None),
            ("+", "type", Action.ADD_TYPE),
            ("+", "text", Action.INSERT_CHAR),
            ("enter", "overlay", Action.CONFIRM_TYPE),
            ("escape", "overlay", Action.CLOSE_OVERLAY),
            ("\x01", "text", None),
        ],
    )
    def test_resolve(self, key: str, context: str, expected: Action | None) -> None:
        assert KeymapManager().resolve(key, context) == expected

    def test_shortcut_display(self) -> None:
        keymap = KeymapManager()
        assert keymap.get_shortcut_display(Action.FOCUS_PREVIOUS) == "Shift+Tab"
        assert keymap.get_shortcut_display(Action.CANCEL) == "Esc/Ctrl+C"
        assert keymap.get_shortcut_display(Action.NEWLINE) == "Ctrl+J"

    def test_help_text_for_context(self) -> None:
        help_items = KeymapManager().get_help_text("type")
        shortcuts = dict((desc, key) for key, desc in help_items)
        assert shortcuts["Previous type"] == "Up"
        assert "Cursor left" not in shortcuts
        for shortcut, desc in help_items:
            assert shortcut
            assert desc

    def test_prompt_toolkit_bindings_build(self) -> None:
        seen: list[str] = []
        kb = KeymapManager().build_prompt_toolkit_bindings(seen.append)
        assert len(kb.bindings) > len({b.keys for b in DEFAULT_BINDINGS})


class TestInputDispatcher:
    """Tests for the key -> state transition machine."""

    def test_full_session(self) -> None:
        state = FormState(options=["feat", "fix"])
        dispatcher = InputDispatcher(state)

        dispatcher.dispatch("down")
        dispatcher.dispatch("tab")
        _type_keys(dispatcher, "add login")
        dispatcher.dispatch("tab")
        _type_keys(dispatcher, "details")
        assert dispatcher.dispatch("enter") == Action.SUBMIT

        assert state.status == FormStatus.SUBMITTED
        assert state.selected_type == "fix"
        assert state.subject.value == "add login"
        assert state.body.value == "details"

    def test_context_follows_focus(self) -> None:
        state = FormState()
        dispatcher = InputDispatcher(state)
        assert dispatcher.context == "type"
        dispatcher.dispatch("tab")
        assert dispatcher.context == "text"
        dispatcher.dispatch("s-tab")
        dispatcher.dispatch("+")
        assert dispatcher.context == "overlay"

    def test_up_down_ignored_in_text_fields(self) -> None:
        state = FormState(options=["a", "b"], focus=FormField.SUBJECT)
        dispatcher = InputDispatcher(state)
        assert dispatcher.dispatch("down") is None
        assert state.selected_index == 0

    def test_printable_ignored_on_type_list(self) -> None:
        state = FormState(options=["a"])
        dispatcher = InputDispatcher(state)
        assert dispatcher.dispatch("q") is None
        assert state.subject.value == ""

    def test_empty_subject_submit_keeps_form_open(self) -> None:
        state = FormState()
        dispatcher = InputDispatcher(state)
        dispatcher.dispatch("tab")
        _type_keys(dispatcher, "   ")
        dispatcher.dispatch("enter")
        assert state.status == FormStatus.PENDING
        assert state.notice == "Subject must not be empty"

    def test_notice_cleared_by_next_key(self) -> None:
        state = FormState()
        dispatcher = InputDispatcher(state)
        dispatcher.dispatch("enter")
        assert state.notice
        dispatcher.dispatch("tab")
        assert state.notice is None

    @pytest.mark.parametrize("key", ["escape", "c-c"])
    def test_cancel_keys(self, key: str) -> None:
        state = FormState(focus=FormField.BODY)
        dispatcher = InputDispatcher(state)
        dispatcher.dispatch(key)
        assert state.status == FormStatus.CANCELLED

    def test_keys_after_finish_are_ignored(self) -> None:
        state = FormState(focus=FormField.SUBJECT)
        dispatcher = InputDispatcher(state)
        dispatcher.dispatch("c-c")
        assert dispatcher.dispatch("x") is None
        assert state.subject.value == ""

    def test_ctrl_j_newline_in_body(self) -> None:
        state = FormState(focus=FormField.BODY)
        dispatcher = InputDispatcher(state)
        _type_keys(dispatcher, "a")
        dispatcher.dispatch("c-j")
        _type_keys(dispatcher, "b")
        assert state.body.value == "a\nb"

    def test_paste_inserts_text(self) -> None:
        state = FormState(focus=FormField.BODY)
        dispatcher = InputDispatcher(state)
        dispatcher.paste("one\r\ntwo")
        assert state.body.value == "one\ntwo"

    def test_paste_into_subject_drops_newlines(self) -> None:
        state = FormState(focus=FormField.SUBJECT)
        dispatcher = InputDispatcher(state)
        dispatcher.paste("one\ntwo")
        assert state.subject.value == "onetwo"


class TestAddType:
    """Tests for adding a type from the form."""

    def test_add_type_in_memory(self) -> None:
        state = FormState(options=["feat"])
        dispatcher = InputDispatcher(state)
        dispatcher.dispatch("+")
        _type_keys(dispatcher, "perf")
        dispatcher.dispatch("enter")
        assert state.mode == FormMode.NORMAL
        assert state.options == ["feat", "perf"]
        assert state.selected_type == "perf"
        assert state.status == FormStatus.PENDING

    def test_add_type_persists_through_callback(self) -> None:
        stored: list[str] = []

        def persist(name: str) -> str:
            stored.append(name.strip())
            return name.strip()

        state = FormState()
        dispatcher = InputDispatcher(state, on_add_type=persist)
        dispatcher.dispatch("+")
        _type_keys(dispatcher, " ci ")
        dispatcher.dispatch("enter")
        assert stored == ["ci"]
        assert state.options == ["ci"]

    def test_invalid_name_keeps_overlay_open(self) -> None:
        state = FormState()
        dispatcher = InputDispatcher(state)
        dispatcher.dispatch("+")
        _type_keys(dispatcher, "a/b")
        dispatcher.dispatch("enter")
        assert state.mode == FormMode.ADD_TYPE
        assert state.notice is not None
        assert state.options == []

    def test_escape_closes_overlay_without_cancelling(self) -> None:
        state = FormState()
        dispatcher = InputDispatcher(state)
        dispatcher.dispatch("+")
        dispatcher.dispatch("escape")
        assert state.mode == FormMode.NORMAL
        assert state.status == FormStatus.PENDING

    def test_disabled(self) -> None:
        state = FormState()
        dispatcher = InputDispatcher(state, allow_add_types=False)
        dispatcher.dispatch("+")
        assert state.mode == FormMode.NORMAL
        assert state.notice == "Adding types is disabled"

    def test_persist_failure_propagates(self) -> None:
        def persist(name: str) -> str:
            raise FileAccessError("disk full", path="/x", operation="write")

        state = FormState()
        dispatcher = InputDispatcher(state, on_add_type=persist)
        dispatcher.dispatch("+")
        _type_keys(dispatcher, "ci")
        with pytest.raises(FileAccessError):
            dispatcher.dispatch("enter")

    def test_validation_error_from_callback(self) -> None:
        def persist(name: str) -> str:
            raise ValidationError("nope", field_name="type")

        state = FormState()
        dispatcher = InputDispatcher(state, on_add_type=persist)
        dispatcher.dispatch("+")
        _type_keys(dispatcher, "ci")
        dispatcher.dispatch("enter")
        assert state.notice == "nope"


class TestPasteText:
    """Tests for bracketed paste handling."""

    def test_zero_width_joiner_is_kept(self) -> None:
        state = FormState(focus=FormField.SUBJECT)
        dispatcher = InputDispatcher(state)
        family = "\U0001F468\u200d\U0001F469"
        dispatcher.paste(f"héllo {family}")
        assert state.subject.value == f"héllo {family}"

    def test_zero_width_joiner_can_be_typed(self) -> None:
        assert KeymapManager().resolve("\u200d", "text") == Action.INSERT_CHAR

    def test_paste_clears_notice(self) -> None:
        state = FormState(focus=FormField.SUBJECT)
        dispatcher = InputDispatcher(state)
        dispatcher.dispatch("enter")
        assert state.notice == "Subject must not be empty"
        dispatcher.paste("fix")
        assert state.notice is None
        assert state.subject.value == "fix"

    def test_paste_after_finish_is_ignored(self) -> None:
        state = FormState(focus=FormField.SUBJECT)
        dispatcher = InputDispatcher(state)
        dispatcher.dispatch("c-c")
        dispatcher.paste("late")
        assert state.subject.value == ""
