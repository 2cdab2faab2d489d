"""Screen variants, run-list construction and the single-state screens.

The run-list is a closed set of three variants: TitleScreen,
InstructionsScreen and ItemScreen. `session.controller_for` maps each variant to its
handler and rejects anything else.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

import directives
from models import INPUT_ADVANCE, ExperimentSettings, InputEvent, Item
from sequence_builder import PHASE_EXPERIMENT, PHASE_PRACTICE, SequenceBuilder

CONTINUE = 'continue'
ADVANCE = 'advance'

INSTRUCTION_SECTIONS = (
    'instruction-screens',
    'post-practice-instruction-screens',
    'post-experiment-instruction-screens',
)


@dataclass(eq=False)
class TitleScreen:
    title: str
    primary_investigators: tuple = ()
    other_investigators: tuple = ()
    next_screen: Optional['Screen'] = None


@dataclass(eq=False)
class InstructionsScreen:
    text: str
    section: str = 'instruction-screens'
    next_screen: Optional['Screen'] = None


@dataclass(eq=False)
class ItemScreen:
    item: Item
    phase: str
    sequence_number: int
    option_order: tuple = ()
    next_screen: Optional['Screen'] = None


Screen = Union[TitleScreen, InstructionsScreen, ItemScreen]


def instruction_texts(design: dict, section: str) -> list[str]:
    texts = []
    for entry in design.get(section) or []:
        text = entry if isinstance(entry, str) else entry.get('instruction-screen', '')
        texts.append(text)
    return texts


def build_run_list(
    design: dict,
    settings: ExperimentSettings,
    builder: SequenceBuilder,
) -> list[Screen]:
    """Materialize the full screen sequence for one run.

    Order: title, instructions, practice items, post-practice instructions,
    experiment items, post-experiment instructions. Each screen is linked
    to its successor; the last has none.
    """
    screens: list[Screen] = [TitleScreen(
        title=settings.title,
        primary_investigators=settings.primary_investigators,
        other_investigators=settings.other_investigators,
    )]

    def add_instructions(section: str) -> None:
        for text in instruction_texts(design, section):
            screens.append(InstructionsScreen(text=text, section=section))

    sequence_number = 0

    def add_items(items: list[Item], phase: str) -> None:
        nonlocal sequence_number
        for item in items:
            sequence_number += 1
            screens.append(ItemScreen(
                item=item,
                phase=phase,
                sequence_number=sequence_number,
                option_order=builder.option_order(item),
            ))

    add_instructions('instruction-screens')
    add_items(builder.practice_items(), PHASE_PRACTICE)
    add_instructions('post-practice-instruction-screens')
    add_items(builder.experiment_items(), PHASE_EXPERIMENT)
    add_instructions('post-experiment-instruction-screens')

    for current, following in zip(screens, screens[1:]):
        current.next_screen = following
    return screens


class TitleController:
    """Shows the title; any advance input dismisses it."""

    def __init__(self, screen: TitleScreen, sink) -> None:
        self.screen = screen
        self._sink = sink

    def enter(self, now: float) -> None:
        directives.emit(
            self._sink, directives.SHOW_TITLE,
            title=self.screen.title,
            primary_investigators=', '.join(self.screen.primary_investigators),
            other_investigators=', '.join(self.screen.other_investigators),
        )

    def handle(self, event: InputEvent) -> str:
        if event.kind != INPUT_ADVANCE:
            return CONTINUE
        directives.emit(self._sink, directives.CLEAR)
        return ADVANCE


class InstructionsController:
    """Shows instructions; advance inputs before the minimum visible time are dropped.

    Args:
        min_visible_ms: Minimum time in milliseconds the screen stays up
    """

    def __init__(self, screen: InstructionsScreen, sink, min_visible_ms: float = 0.0) -> None:
        self.screen = screen
        self._sink = sink
        self._min_visible = min_visible_ms / 1000.0
        self._shown_at: Optional[float] = None

    def enter(self, now: float) -> None:
        self._shown_at = now
        directives.emit(
            self._sink, directives.SHOW_INSTRUCTIONS,
            text=self.screen.text, min_visible_ms=self._min_visible * 1000.0,
        )

    def handle(self, event: InputEvent) -> str:
        if event.kind != INPUT_ADVANCE:
            return CONTINUE
        if event.timestamp - self._shown_at < self._min_visible:
            return CONTINUE
        directives.emit(self._sink, directives.CLEAR)
        return ADVANCE
