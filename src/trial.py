"""TrialStateMachine: fixation, region reveal, prompt and feedback for one item.

States:
    FIXATION -> REVEALING(k) -> [AWAITING_PROMPT -> [SHOWING_FEEDBACK]] -> DONE

Inputs that the current state does not recognise are ignored without any
state change. All times in the produced ResponseRecord are milliseconds
since the experiment start instant.
"""
from __future__ import annotations

from typing import Optional

import directives
from models import (
    DISPLAY_MOVING_WINDOW,
    INPUT_ADVANCE,
    INPUT_SELECT,
    ExperimentSettings,
    FeedbackOption,
    InputEvent,
    ResponseOption,
    ResponseRecord,
)
from screens import ADVANCE, CONTINUE, ItemScreen

FIXATION = 'fixation'
REVEALING = 'revealing'
AWAITING_PROMPT = 'awaiting_prompt'
SHOWING_FEEDBACK = 'showing_feedback'
DONE = 'done'


def resolve_feedback(
    option: ResponseOption,
    feedback_options: dict[str, FeedbackOption],
) -> tuple[Optional[str], Optional[str]]:
    """Return (text, color) of the feedback for a chosen option.

    A named feedback option takes precedence over inline feedback when both
    are given; inline feedback is used when no named option resolves.
    """
    if option.feedback_option and option.feedback_option in feedback_options:
        named = feedback_options[option.feedback_option]
        if named.text:
            return named.text, named.color
    if option.feedback:
        return option.feedback, option.feedback_color
    return None, None


class TrialStateMachine:

    def __init__(
        self,
        screen: ItemScreen,
        settings: ExperimentSettings,
        feedback_options: dict[str, FeedbackOption],
        sink,
        start_time: float,
    ) -> None:
        """Initialize a trial for one item screen.

        Args:
            screen: The item screen being presented
            settings: Experiment settings (display mode, mask/fixation chars)
            feedback_options: Named feedback options by name
            sink: Directive sink (object with send())
            start_time: Experiment start instant on the monotonic clock (seconds)
        """
        self.screen = screen
        self.item = screen.item
        self._settings = settings
        self._feedback_options = feedback_options
        self._sink = sink
        self._start_time = start_time

        self.state = FIXATION
        self.k = 0
        self._reveal_times: list[float] = []
        self._end_time: Optional[float] = None
        self._chosen: Optional[int] = None
        self._response_time: Optional[float] = None
        self._feedback: Optional[str] = None
        self._feedback_color: Optional[str] = None
        self.record: Optional[ResponseRecord] = None

    # ------------------------------------------------------------------

    @property
    def is_done(self) -> bool:
        return self.state == DONE

    def _elapsed_ms(self, event: InputEvent) -> float:
        return (event.timestamp - self._start_time) * 1000.0

    def enter(self, now: float) -> None:
        mask_char = self._settings.mask_char
        directives.emit(
            self._sink, directives.SHOW_ITEM,
            item_id=self.item.id,
            regions=[(r.index, r.masked(mask_char), r.line) for r in self.item.regions],
            orientation=self._settings.orientation,
        )
        directives.emit(self._sink, directives.SHOW_FIXATION, text=self._settings.fixation_char)

    def handle(self, event: InputEvent) -> str:
        """Process one input event; returns ADVANCE on the transition to DONE."""
        if self.state == DONE:
            return CONTINUE
        if self.state in (FIXATION, REVEALING):
            if event.kind == INPUT_ADVANCE:
                self._on_advance_while_revealing(event)
        elif self.state == AWAITING_PROMPT:
            if event.kind == INPUT_SELECT and event.option in (0, 1):
                self._on_select(event)
        elif self.state == SHOWING_FEEDBACK:
            if event.kind == INPUT_ADVANCE:
                self._finish()
        return ADVANCE if self.state == DONE else CONTINUE

    # ------------------------------------------------------------------

    def _on_advance_while_revealing(self, event: InputEvent) -> None:
        count = self.item.region_count
        if self.k < count:
            self._reveal_times.append(self._elapsed_ms(event))
            if self.k == 0:
                directives.emit(self._sink, directives.HIDE_FIXATION)
            elif self._settings.display == DISPLAY_MOVING_WINDOW:
                directives.emit(self._sink, directives.MASK_REGION, index=self.k,
                                text=self.item.regions[self.k - 1].masked(self._settings.mask_char))
            self.k += 1
            directives.emit(self._sink, directives.UNMASK_REGION, index=self.k,
                            text=self.item.regions[self.k - 1].text)
            self.state = REVEALING
            return

        self._end_time = self._elapsed_ms(event)
        directives.emit(self._sink, directives.HIDE_ITEM, item_id=self.item.id)
        if self.item.prompt and len(self.item.options) == 2:
            self.state = AWAITING_PROMPT
            order = self.screen.option_order or (0, 1)
            directives.emit(
                self._sink, directives.SHOW_PROMPT,
                prompt=self.item.prompt,
                options=[self.item.options[i].text for i in order],
            )
        else:
            self._finish()

    def _on_select(self, event: InputEvent) -> None:
        order = self.screen.option_order or (0, 1)
        declared = order[event.option]
        self._chosen = declared + 1
        self._response_time = self._elapsed_ms(event)
        text, color = resolve_feedback(self.item.options[declared], self._feedback_options)
        self._feedback, self._feedback_color = text, color
        if text:
            self.state = SHOWING_FEEDBACK
            directives.emit(self._sink, directives.SHOW_FEEDBACK, text=text, color=color)
        else:
            self._finish()

    def _finish(self) -> None:
        self.state = DONE
        directives.emit(self._sink, directives.CLEAR)
        self.record = ResponseRecord(
            item_id=self.item.id,
            phase=self.screen.phase,
            sequence_number=self.screen.sequence_number,
            regions=self.item.regions,
            reveal_times=tuple(self._reveal_times),
            end_time=self._end_time,
            chosen_option=self._chosen,
            response_time=self._response_time,
            feedback=self._feedback,
            feedback_color=self._feedback_color,
            option_order=tuple(i + 1 for i in self.screen.option_order),
            tags=self.item.tags,
            conditions=self.item.conditions,
        )
