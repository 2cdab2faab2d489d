"""ExperimentSession: the screen state machine driving one experiment run.

Lifecycle: NOT_STARTED -> RUNNING -> FINISHED.

All run state (start instant, screen pointer, active controller, response
log) lives on the session object; nothing is module-global. The session
is single-threaded: the host delivers one InputEvent at a time.
"""
from __future__ import annotations

import random
from typing import Optional

from psychopy import core, logging

import directives
from design_validator import DesignValidator, ValidationReport
from directives import DirectiveQueue
from errors import NotReadyError
from models import ExperimentSettings, InputEvent, ResponseLog
from screens import (
    ADVANCE,
    CONTINUE,
    InstructionsController,
    InstructionsScreen,
    ItemScreen,
    Screen,
    TitleController,
    TitleScreen,
    build_run_list,
)
from sequence_builder import SequenceBuilder, build_feedback_options
from trial import TrialStateMachine

NOT_STARTED = 'not_started'
RUNNING = 'running'
FINISHED = 'finished'


class ExperimentSession:
    """Validates a design, builds the run-list and dispatches input to screens.

    Public API:
    - validate(): run the DesignValidator; required before start()
    - start(): capture the time origin, build the run-list, show screen 1
    - handle_input(event): forward to the active screen, advance on completion
    - finish(): idempotent; stop accepting input and return the ResponseLog
    """

    def __init__(
        self,
        design: dict,
        sink=None,
        clock=None,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Initialize a session.

        Args:
            design: Design document (configs/design.json contents)
            sink: Directive sink with send(); defaults to a DirectiveQueue
            clock: Object with getTime() on a monotonic timebase
                   (defaults to PsychoPy's core.monotonicClock)
            rng: Random source for ordering; a fresh OS-seeded one by default
        """
        self.design = design
        self.sink = sink if sink is not None else DirectiveQueue()
        self._clock = clock if clock is not None else core.monotonicClock
        self._rng = rng

        self.state = NOT_STARTED
        self.report: Optional[ValidationReport] = None
        self.settings: Optional[ExperimentSettings] = None
        self.start_time: Optional[float] = None
        self.run_list: tuple = ()
        self.position = -1
        self.log = ResponseLog()
        self._controller = None
        self.feedback_options: dict = {}

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def validate(self) -> ValidationReport:
        self.report = DesignValidator(self.design).validate()
        if self.report.is_valid:
            self.settings = ExperimentSettings.from_design(self.design)
        return self.report

    @property
    def is_ready(self) -> bool:
        return self.report is not None and self.report.is_valid

    @property
    def is_running(self) -> bool:
        return self.state == RUNNING

    @property
    def is_finished(self) -> bool:
        return self.state == FINISHED

    @property
    def current_screen(self) -> Optional[Screen]:
        if self.state != RUNNING:
            return None
        return self.run_list[self.position]

    def start(self, start_time: Optional[float] = None) -> None:
        """Begin the run.

        Args:
            start_time: Time origin on the monotonic clock; read from the
                        clock when omitted

        Raises:
            NotReadyError: validation has not succeeded, or already started
        """
        if not self.is_ready:
            logging.error('Refusing to start: design has not been validated successfully')
            raise NotReadyError('start() requires a successfully validated design')
        if self.state != NOT_STARTED:
            raise NotReadyError(f'start() called while {self.state}')

        self.start_time = self._clock.getTime() if start_time is None else start_time
        rng = self._rng if self._rng is not None else random.Random()
        builder = SequenceBuilder(self.design, rng)
        self.feedback_options = build_feedback_options(self.design)
        self.run_list = tuple(build_run_list(self.design, self.settings, builder))
        self.state = RUNNING
        logging.exp(f'Experiment started with {len(self.run_list)} screens')
        self._activate(0, self.start_time)

    def handle_input(self, event: InputEvent) -> str:
        """Forward one input event to the active screen.

        Returns:
            'advance' when the active screen completed, else 'continue'

        Raises:
            NotReadyError: before start() or after the run has finished
        """
        if self.state != RUNNING:
            raise NotReadyError(f'input delivered while {self.state}')

        result = self._controller.handle(event)
        if result != ADVANCE:
            return CONTINUE

        if isinstance(self._controller, TrialStateMachine):
            record = self._controller.record
            self.log.append(record)
            logging.exp(f'Trial {record.sequence_number} ({record.item_id}) complete')

        next_position = self.position + 1
        if next_position < len(self.run_list):
            self._activate(next_position, event.timestamp)
        else:
            self.finish()
        return ADVANCE

    def finish(self) -> ResponseLog:
        """Stop the run (idempotent) and return the response log.

        Raises:
            NotReadyError: if the session was never started
        """
        if self.state == NOT_STARTED:
            raise NotReadyError('finish() called before start()')
        if self.state == RUNNING:
            self.state = FINISHED
            self._controller = None
            directives.emit(self.sink, directives.END)
            logging.exp(f'Experiment finished with {len(self.log)} responses')
        return self.log

    # =========================================================================
    # SCREEN DISPATCH
    # =========================================================================

    def _activate(self, position: int, now: float) -> None:
        self.position = position
        self._controller = controller_for(self.run_list[position], self)
        self._controller.enter(now)
        logging.exp(f'Screen {position + 1}/{len(self.run_list)}: '
                    f'{type(self.run_list[position]).__name__}')


def controller_for(screen: Screen, session: ExperimentSession):
    """Return the handler for one screen variant."""
    if isinstance(screen, TitleScreen):
        return TitleController(screen, session.sink)
    if isinstance(screen, InstructionsScreen):
        return InstructionsController(
            screen, session.sink, session.settings.min_instruction_time
        )
    if isinstance(screen, ItemScreen):
        return TrialStateMachine(
            screen, session.settings, session.feedback_options,
            session.sink, session.start_time,
        )
    raise TypeError(f'unknown screen type: {type(screen).__name__}')
