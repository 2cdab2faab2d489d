"""SessionRunner: drives an ExperimentSession from PsychoPy keyboard input.

Responsibilities:
- Polls timestamped key presses every frame
- Classifies keys into InputEvents (advance / select option 0 or 1)
- Forwards events to the session one at a time, in arrival order
- Redraws the renderer's current screen
"""
from __future__ import annotations

from typing import Any, Optional

from psychopy import event, logging

from errors import NotReadyError
from models import InputEvent
from spr_types import LayoutConfig


def classify_key(key: str, timestamp: float, layout: LayoutConfig) -> Optional[InputEvent]:
    """Map a key name to an InputEvent, or None for keys the engine ignores."""
    if key == layout['advance_key']:
        return InputEvent.advance(timestamp)
    option_keys = list(layout['option_keys'])
    if key in option_keys[:2]:
        return InputEvent.select(option_keys.index(key), timestamp)
    return None


def classify_keys(keys: list, layout: LayoutConfig) -> list[InputEvent]:
    """Classify [(key, timestamp), ...] as returned by event.getKeys(timeStamped=True)."""
    events = []
    for key, timestamp in keys:
        classified = classify_key(key, timestamp, layout)
        if classified is not None:
            events.append(classified)
    return events


class SessionRunner:

    def __init__(self, win: Any, renderer: Any, layout: LayoutConfig) -> None:
        """Initialize session runner.

        Args:
            win: PsychoPy window instance
            renderer: Renderer instance (also the session's directive sink)
            layout: Layout configuration dictionary
        """
        self.win = win
        self.renderer = renderer
        self.layout = layout

    def key_list(self) -> list[str]:
        keys = [self.layout['advance_key']] + list(self.layout['option_keys'])
        if self.layout.get('quit_key'):
            keys.append(self.layout['quit_key'])
        return keys

    def run(self, session) -> bool:
        """Run the session until it finishes or the quit key is pressed.

        Returns:
            True if the run completed, False if it was aborted
        """
        key_list = self.key_list()
        quit_key = self.layout.get('quit_key')
        event.clearEvents()

        while session.is_running:
            self.renderer.draw()
            self.win.flip()

            keys = event.getKeys(keyList=key_list, timeStamped=True)
            if quit_key and any(key == quit_key for key, _ in keys):
                logging.warning('Run aborted by quit key')
                session.finish()
                return False

            for input_event in classify_keys(keys, self.layout):
                if not session.is_running:
                    break
                try:
                    session.handle_input(input_event)
                except NotReadyError:
                    logging.error('Input delivered outside a running session')
                    raise
        return True
