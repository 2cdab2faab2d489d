"""RegionParser: splits a delimited stimulus string into reveal regions.

Format:
- Regions are separated by '|'
- One region may be wrapped in '{}' to mark it as the region of interest
  (ROI). The first such region, scanning left to right, wins; braces on any
  later region are kept as literal text.
- Multi-string items pass a list of strings; region numbering continues
  across strings and each region remembers its line (string) number.
"""
from __future__ import annotations

from typing import Optional, Sequence

from errors import MalformedItemError
from models import Region

REGION_DELIMITER = '|'
ROI_OPEN = '{'
ROI_CLOSE = '}'


def _is_roi_marked(segment: str) -> bool:
    s = segment.strip()
    return len(s) >= 2 and s[0] == ROI_OPEN and s[-1] == ROI_CLOSE


def _strip_roi_markers(segment: str) -> str:
    return segment.strip()[1:-1]


def split_segments(item_id: str, text: str) -> list[str]:
    """Split one stimulus string on the region delimiter.

    Raises:
        MalformedItemError: empty string, or a blank region between delimiters
    """
    if text is None or not str(text).strip():
        raise MalformedItemError(item_id, 'stimulus string is empty')
    segments = str(text).split(REGION_DELIMITER)
    if not segments:
        raise MalformedItemError(item_id, 'no regions found')
    for pos, seg in enumerate(segments, start=1):
        if not seg.strip():
            raise MalformedItemError(item_id, f'region {pos} is blank')
    return segments


def find_roi(segments: Sequence[str]) -> Optional[int]:
    """Return the 1-based index of the first ROI-marked segment, or None."""
    for index, seg in enumerate(segments, start=1):
        if _is_roi_marked(seg):
            return index
    return None


def parse_regions(item_id: str, strings) -> tuple[tuple, Optional[int]]:
    """Parse one or more stimulus strings into Region records.

    Args:
        item_id: Owning item id (used in error messages)
        strings: A single delimited string or a sequence of them

    Returns:
        (regions, roi_index): regions indexed 1..n, roi_index 1-based or None

    Raises:
        MalformedItemError: if any string is empty or yields a blank region
    """
    if isinstance(strings, str):
        strings = [strings]
    if not strings:
        raise MalformedItemError(item_id, 'stimulus string is empty')

    segments: list[str] = []
    lines: list[int] = []
    for line, text in enumerate(strings):
        parts = split_segments(item_id, text)
        segments.extend(parts)
        lines.extend([line] * len(parts))

    roi_index = find_roi(segments)
    regions = []
    for index, (seg, line) in enumerate(zip(segments, lines), start=1):
        if index == roi_index:
            display = _strip_roi_markers(seg)
            if not display.strip():
                raise MalformedItemError(item_id, f'region {index} is blank')
        else:
            display = seg.strip()
        location = None if roi_index is None else index - roi_index
        regions.append(Region(index=index, text=display, location=location, line=line))
    return tuple(regions), roi_index
