"""Self-paced Reading - Entry Point

This module is the application entry for the self-paced reading task. It is responsible for:
- Configuring PsychoPy logging (console at WARNING, log file in data/ at INFO)
- Loading the design (configs/design.json) and layout (configs/layout.json)
- Collecting participant information via a PsychoPy dialog
- Reporting every design problem in one dialog and refusing to start if invalid
- Delegating the experiment flow to `spr_task.SprTask`

Debug mode:
- Enable by setting `"debug_mode": true` in `configs/layout.json`, or by entering participant_id `0`.
- The window runs in a 1280x800 window instead of fullscreen.

Usage: python run_spr.py [path/to/design.json]
Dependencies: PsychoPy.
"""
import os
import sys

from psychopy import gui, logging

from config_loader import get_output_dir, load_design, load_layout
from errors import ValidationError
from spr_task import SprTask


def get_participant_info():
    """Collect participant information via PsychoPy dialog.

    Returns:
        dict | None: Participant info dict if valid, None if cancelled
    """
    default = {
        'participant_id': '',
        'age': '',
        'gender': '',
        'session': 'S1',
        'notes': ''
    }
    while True:
        dlg = gui.DlgFromDict(default, title='Participant', order=['participant_id', 'age', 'gender', 'session', 'notes'])
        if not dlg.OK:
            return None
        pid = (default.get('participant_id') or '').strip()
        if pid:
            return default
        gui.Dlg(title='Notice', labelButtonOK='OK').addText('A participant_id is required').show()


def show_errors(messages):
    """Alert the operator with every validation diagnostic."""
    dlg = gui.Dlg(title='Invalid design', labelButtonOK='OK')
    for message in messages:
        dlg.addText(message)
    dlg.show()


def main(argv=None):
    """Main entry point for the self-paced reading task."""
    argv = sys.argv[1:] if argv is None else argv
    output_dir = get_output_dir()
    os.makedirs(output_dir, exist_ok=True)
    logging.console.setLevel(logging.WARNING)
    logging.LogFile(os.path.join(output_dir, 'spr.log'), level=logging.INFO)

    layout = load_layout()
    try:
        design = load_design(argv[0] if argv else None)
    except ValidationError as e:
        show_errors(e.messages)
        return 1

    info = get_participant_info()
    if info is None:
        return 0

    try:
        task = SprTask(design, layout, participant_info=info)
    except ValidationError as e:
        show_errors(e.messages)
        return 1

    try:
        task.run()
    finally:
        logging.flush()
    return 0


if __name__ == '__main__':
    sys.exit(main())
