"""Typed structures for the raw JSON documents.

Defines TypedDict schemas for:
- ItemSpec / OptionSpec: one stimulus item and its response options
- GroupSpec / StimuliSetSpec / ExperimentStimuliSpec: the stimuli tree
- FeedbackOptionSpec: named feedback definitions
- DesignDocument: the whole experiment design (configs/design.json)
- LayoutConfig: renderer and keyboard parameters (configs/layout.json)
- ParticipantInfo: demographic information from the start dialog

Keys in the design document are hyphenated, so the TypedDicts use the
functional syntax where needed.
"""
from __future__ import annotations

from typing import TypedDict

OptionSpec = TypedDict('OptionSpec', {
    'text': str,
    'feedback-option': str,
    'feedback': str,
    'feedback-color': str,
}, total=False)

StringSpec = TypedDict('StringSpec', {'string': str}, total=False)

ItemSpec = TypedDict('ItemSpec', {
    'id': str,
    'string': str,
    'strings': list,
    'prompt': str,
    'options': list,
    'option-order': str,
    'tags': list,
}, total=False)

class GroupSpec(TypedDict, total=False):
    name: str
    order: str
    merge: bool
    items: list

StimuliSetSpec = TypedDict('StimuliSetSpec', {
    'name': str,
    'order': str,
    'merge': bool,
    'groups': list,
}, total=False)

ExperimentStimuliSpec = TypedDict('ExperimentStimuliSpec', {
    'order': str,
    'merge': bool,
    'stimuli-sets': list,
}, total=False)

class FeedbackOptionSpec(TypedDict, total=False):
    name: str
    text: str
    color: str

DesignDocument = TypedDict('DesignDocument', {
    'title': str,
    'primary-investigators': list,
    'other-investigators': list,
    'font-name': str,
    'font-size': str,
    'text-color': str,
    'background-color': str,
    'display': str,
    'orientation': str,
    'fixation-character': str,
    'masking-character': str,
    'min-instruction-time': int,
    'feedback-options': list,
    'instruction-screens': list,
    'practice-stimuli': GroupSpec,
    'post-practice-instruction-screens': list,
    'experiment-stimuli': ExperimentStimuliSpec,
    'post-experiment-instruction-screens': list,
}, total=False)

class ParticipantInfo(TypedDict, total=False):
    participant_id: str
    age: str
    gender: str
    session: str
    notes: str

class LayoutConfig(TypedDict, total=False):
    # Window
    window_size: list
    units: str
    # Text (scaled by the design font-size)
    text_height: float
    # Title screen
    title_y: float
    title_height: float
    investigators_y: float
    # Instruction screen
    instruction_wrap_width: float
    # Stimulus
    stimulus_y: float
    line_spacing: float
    region_gap: float
    char_width: float
    # Prompt / options / feedback
    prompt_y: float
    option_y: float
    option_dx: float
    feedback_y: float
    # Keys
    advance_key: str
    option_keys: list
    quit_key: str
    # Misc
    debug_mode: bool
