"""Commit message serialization."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from preform.tui.state import FormState


def compose_message(state: FormState) -> str:
    """Serialize a finished form into the commit message text.

    Format::

        <type>: <subject>

        <body>

    Subject and body are trimmed. The blank line and body are left out when
    the body is empty, and the ``<type>: `` prefix when no types exist.
    """
    subject = state.subject.value.strip()
    body = state.body.value.strip()

    selected = state.selected_type
    message = f"{selected}: {subject}" if selected is not None else subject
    if body:
        message = f"{message}\n\n{body}"
    return message
