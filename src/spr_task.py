"""Self-paced Reading Task - Core Module

This module implements the complete self-paced reading flow with:
- Title, instruction, practice and experiment screens
- Region-by-region reveal (moving window or cumulative)
- Optional comprehension prompts with feedback
- Results persistence

Architecture:
    - create_window(): Context manager for the PsychoPy window
    - SprTask: Main experiment class (validate -> run -> save)
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Optional

from psychopy import core, logging, visual

from errors import ValidationError
from models import ExperimentSettings, ResponseLog
from results_writer import ResultsWriter
from session import ExperimentSession
from session_runner import SessionRunner
from spr_types import DesignDocument, LayoutConfig, ParticipantInfo
from ui.renderer import Renderer


@contextmanager
def create_window(debug_mode: bool, layout: LayoutConfig, settings: ExperimentSettings):
    """Context manager to create and clean up a PsychoPy window.

    Args:
        debug_mode: When True, creates a windowed mode for faster debugging.
                    When False, creates a fullscreen window for experiments.

    Yields:
        visual.Window: The created PsychoPy window.
    """
    units = layout.get('units', 'norm')
    if debug_mode:
        win = visual.Window(
            size=tuple(layout.get('window_size', (1280, 800))),
            color=settings.background_color,
            units=units,
        )
    else:
        win = visual.Window(fullscr=True, color=settings.background_color, units=units)
    try:
        yield win
    finally:
        win.close()


class SprTask:
    """Self-paced reading experiment controller.

    Manages the complete experiment lifecycle:
    1. Design validation (refuses to construct with an invalid design)
    2. Window creation (debug: windowed, normal: fullscreen)
    3. Screen sequence driven by ExperimentSession
    4. Results persistence (CSV + JSON metadata)
    5. Window cleanup
    """

    def __init__(
        self,
        design: DesignDocument,
        layout: LayoutConfig,
        participant_info: Optional[ParticipantInfo] = None,
    ) -> None:
        """Initialize and validate.

        Raises:
            ValidationError: the design document is invalid
        """
        self.design = design
        self.layout = layout
        self.participant_info: ParticipantInfo = participant_info or {}
        pid = str(self.participant_info.get('participant_id', '')).strip()
        self.debug_mode = bool(self.layout.get('debug_mode', False) or pid == '0')

        report = ExperimentSession(design).validate()
        if not report.is_valid:
            logging.error(f'Design invalid: {len(report.messages)} problem(s)')
            raise ValidationError(report.messages)
        self.settings = ExperimentSettings.from_design(design)
        self.log: Optional[ResponseLog] = None
        self.completed = False

    def run(self) -> None:
        """Create window -> run session -> save -> cleanup."""
        with create_window(self.debug_mode, self.layout, self.settings) as win:
            renderer = Renderer(win, self.layout, self.settings)
            session = ExperimentSession(self.design, sink=renderer, clock=core.monotonicClock)
            session.validate()
            session.start()
            self.completed = SessionRunner(win, renderer, self.layout).run(session)
            self.log = session.finish()
            self.save_results()

    def save_results(self) -> tuple[str, str]:
        """Delegates to ResultsWriter; callable after an aborted run too."""
        return ResultsWriter().save(self.participant_info, self.log or ResponseLog(), self.settings)
