"""Data models for the self-paced reading engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional

from utils import first_char, mask_text, normalize_choice

DISPLAY_MOVING_WINDOW = 'moving window'
DISPLAY_CUMULATIVE = 'cumulative'
DISPLAY_MODES = (DISPLAY_MOVING_WINDOW, DISPLAY_CUMULATIVE)

ORIENTATION_HORIZONTAL = 'horizontal'
ORIENTATION_VERTICAL = 'vertical'
ORIENTATIONS = (ORIENTATION_HORIZONTAL, ORIENTATION_VERTICAL)

INPUT_ADVANCE = 'advance'
INPUT_SELECT = 'select'


@dataclass(frozen=True)
class Region:
    """One reveal increment of an item's stimulus text.

    Attributes:
        index: 1-based position within the item
        text: Display text (ROI braces removed)
        location: Offset from the ROI (0 = ROI), None when the item has no ROI
        line: 0-based string number, used for vertical layout
    """
    index: int
    text: str
    location: Optional[int]
    line: int = 0

    @property
    def is_roi(self) -> bool:
        return self.location == 0

    def masked(self, mask_char: str) -> str:
        return mask_text(self.text, mask_char)


@dataclass(frozen=True)
class FeedbackOption:
    name: str
    text: str
    color: Optional[str] = None


@dataclass(frozen=True)
class ResponseOption:
    text: str
    feedback_option: Optional[str] = None
    feedback: Optional[str] = None
    feedback_color: Optional[str] = None


@dataclass(frozen=True)
class Item:
    """A parsed stimulus item, ready to be wrapped into an item screen."""
    id: str
    raw: str
    regions: tuple
    roi_index: Optional[int] = None
    prompt: Optional[str] = None
    options: tuple = ()
    option_order: str = 'fixed'
    tags: tuple = ()
    conditions: tuple = ()

    @property
    def region_count(self) -> int:
        return len(self.regions)


@dataclass(frozen=True)
class InputEvent:
    """A classified input event.

    Attributes:
        kind: 'advance' or 'select'
        timestamp: Monotonic time in seconds (PsychoPy clock)
        option: 0 or 1 for 'select' events
    """
    kind: str
    timestamp: float
    option: Optional[int] = None

    @classmethod
    def advance(cls, timestamp: float) -> 'InputEvent':
        return cls(INPUT_ADVANCE, timestamp)

    @classmethod
    def select(cls, option: int, timestamp: float) -> 'InputEvent':
        return cls(INPUT_SELECT, timestamp, option)


@dataclass(frozen=True)
class Directive:
    """A rendering instruction for the display collaborator.

    `payload` holds action specific values (region index, texts, colors).
    """
    action: str
    payload: dict = field(default_factory=dict)

    def get(self, key, default=None):
        return self.payload.get(key, default)


@dataclass(frozen=True)
class ResponseRecord:
    """Result of one completed item screen. Times are ms since experiment start."""
    item_id: str
    phase: str
    sequence_number: int
    regions: tuple
    reveal_times: tuple
    end_time: Optional[float] = None
    chosen_option: Optional[int] = None
    response_time: Optional[float] = None
    feedback: Optional[str] = None
    feedback_color: Optional[str] = None
    option_order: tuple = ()
    tags: tuple = ()
    conditions: tuple = ()

    def reading_times(self) -> list[Optional[float]]:
        """Per-region reading time: next reveal (or end_time) minus this reveal."""
        times: list[Optional[float]] = []
        stops = list(self.reveal_times[1:]) + [self.end_time]
        for start, stop in zip(self.reveal_times, stops):
            times.append(None if stop is None else stop - start)
        return times


class ResponseLog:
    """Append-only, completion-ordered sequence of ResponseRecord values."""

    def __init__(self) -> None:
        self._records: list[ResponseRecord] = []

    def append(self, record: ResponseRecord) -> None:
        if not isinstance(record, ResponseRecord):
            raise TypeError(f"expected ResponseRecord, got {type(record).__name__}")
        self._records.append(record)

    @property
    def records(self) -> tuple:
        return tuple(self._records)

    def __iter__(self) -> Iterator[ResponseRecord]:
        return iter(tuple(self._records))

    def __len__(self) -> int:
        return len(self._records)

    def __getitem__(self, index: int) -> ResponseRecord:
        return self._records[index]


@dataclass(frozen=True)
class ExperimentSettings:
    """Concrete experiment-wide settings read from the design document.

    Font and colors are opaque pass-through values for the renderer.
    """
    title: str = 'A Self-paced Reading Experiment'
    primary_investigators: tuple = ()
    other_investigators: tuple = ()
    font_name: str = 'Courier New'
    font_size: str = '12'
    text_color: str = 'black'
    background_color: str = 'white'
    display: str = DISPLAY_MOVING_WINDOW
    orientation: str = ORIENTATION_HORIZONTAL
    fixation_char: str = '+'
    mask_char: str = '_'
    min_instruction_time: float = 0.0

    @property
    def font_scale(self) -> float:
        """Text size relative to the 12pt default; 1.0 when font_size is unusable."""
        try:
            size = float(self.font_size)
        except ValueError:
            return 1.0
        return size / 12.0 if size > 0 else 1.0

    @classmethod
    def from_design(cls, design: dict) -> 'ExperimentSettings':
        defaults = cls()

        def text(key: str, default: str) -> str:
            value = design.get(key)
            if value is None:
                return default
            value = str(value).strip()
            return value or default

        def names(key: str) -> tuple:
            value = design.get(key) or ()
            if isinstance(value, str):
                value = [value]
            return tuple(str(n).strip() for n in value if str(n).strip())

        try:
            min_time = float(design.get('min-instruction-time', 0) or 0)
        except (TypeError, ValueError):
            min_time = 0.0

        return cls(
            title=text('title', defaults.title),
            primary_investigators=names('primary-investigators'),
            other_investigators=names('other-investigators'),
            font_name=text('font-name', defaults.font_name),
            font_size=text('font-size', defaults.font_size),
            text_color=text('text-color', defaults.text_color),
            background_color=text('background-color', defaults.background_color),
            display=normalize_choice(design.get('display'), DISPLAY_MODES, defaults.display),
            orientation=normalize_choice(
                design.get('orientation'), ORIENTATIONS, defaults.orientation
            ),
            fixation_char=first_char(design.get('fixation-character'), defaults.fixation_char),
            mask_char=first_char(design.get('masking-character'), defaults.mask_char),
            min_instruction_time=max(0.0, min_time),
        )
