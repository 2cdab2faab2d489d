"""Exception taxonomy for the self-paced reading engine."""
from __future__ import annotations


class SprError(Exception):
    """Base class for all engine errors."""


class ValidationError(SprError):
    """The design document is structurally invalid.

    Attributes:
        messages: Every diagnostic collected during validation, in walk order
    """

    def __init__(self, messages: list[str]) -> None:
        self.messages = list(messages)
        summary = '; '.join(self.messages) if self.messages else 'invalid design'
        super().__init__(summary)


class MalformedItemError(SprError):
    """A single item's stimulus string cannot be split into regions."""

    def __init__(self, item_id: str, reason: str) -> None:
        self.item_id = item_id
        self.reason = reason
        super().__init__(f"Item '{item_id}': {reason}")


class NotReadyError(SprError):
    """Lifecycle misuse: start before validation, input outside a run."""
