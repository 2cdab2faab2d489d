"""Directive actions emitted by the engine and a queue sink for polling hosts."""
from __future__ import annotations

from models import Directive

SHOW_TITLE = 'show_title'
SHOW_INSTRUCTIONS = 'show_instructions'
SHOW_ITEM = 'show_item'
SHOW_FIXATION = 'show_fixation'
HIDE_FIXATION = 'hide_fixation'
UNMASK_REGION = 'unmask_region'
MASK_REGION = 'mask_region'
HIDE_ITEM = 'hide_item'
SHOW_PROMPT = 'show_prompt'
SHOW_FEEDBACK = 'show_feedback'
CLEAR = 'clear'
END = 'end'


class DirectiveQueue:
    """Collects directives until the host (or a test) drains them."""

    def __init__(self) -> None:
        self._pending: list[Directive] = []

    def send(self, directive: Directive) -> None:
        self._pending.append(directive)

    def drain(self) -> list[Directive]:
        pending, self._pending = self._pending, []
        return pending

    def __len__(self) -> int:
        return len(self._pending)


def emit(sink, action: str, **payload) -> None:
    sink.send(Directive(action, payload))
