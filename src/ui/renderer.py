"""Renderer: applies engine directives to PsychoPy text stimuli.

The engine never touches drawing primitives; it sends Directive values to
this object (it is the session's directive sink). The renderer keeps the
current screen as a set of visible stimuli and redraws them every frame.

Memory Management:
- Pre-creates reusable stimuli (title, instructions, fixation, prompt,
  options, feedback) in __init__
- Region stimuli are created once per item on 'show_item'
- Caller responsible for window.flip() in the main loop
"""
from __future__ import annotations

from typing import Any

from psychopy import visual

import directives
from models import ORIENTATION_VERTICAL, Directive, ExperimentSettings
from spr_types import LayoutConfig


class Renderer:
    """Turns directives into visible PsychoPy stimuli.

    Architecture:
    - __init__: Pre-creates reusable visual objects
    - send: Directive entry point (dispatch by action)
    - draw: Draw everything currently visible (no flip)
    - _layout_regions: Geometry for horizontal / vertical stimulus layout
    """

    def __init__(
        self,
        win: visual.Window,
        layout: LayoutConfig,
        settings: ExperimentSettings,
    ) -> None:
        self._win = win
        self._layout = layout
        self._settings = settings
        font = settings.font_name
        color = settings.text_color
        scale = settings.font_scale
        height = layout['text_height'] * scale

        def text_stim(pos=(0, 0), h=height, **kwargs) -> visual.TextStim:
            return visual.TextStim(
                self._win, text='', pos=pos, height=h, color=color, font=font, **kwargs
            )

        self._text_stim = text_stim
        self._title_stim = text_stim(pos=(0, layout['title_y']), h=layout['title_height'] * scale)
        self._investigators_stim = text_stim(pos=(0, layout['investigators_y']))
        self._instruction_stim = text_stim(wrapWidth=layout['instruction_wrap_width'])
        self._fixation_stim = text_stim(pos=(0, layout['stimulus_y']))
        self._prompt_stim = text_stim(pos=(0, layout['prompt_y']))
        self._option_stims = [
            text_stim(pos=(-layout['option_dx'], layout['option_y'])),
            text_stim(pos=(layout['option_dx'], layout['option_y'])),
        ]
        self._feedback_stim = text_stim(pos=(0, layout['feedback_y']))

        self._region_stims: dict[int, visual.TextStim] = {}
        self._visible: list[Any] = []
        self._ended = False

        self._handlers = {
            directives.SHOW_TITLE: self._show_title,
            directives.SHOW_INSTRUCTIONS: self._show_instructions,
            directives.SHOW_ITEM: self._show_item,
            directives.SHOW_FIXATION: self._show_fixation,
            directives.HIDE_FIXATION: self._hide_fixation,
            directives.UNMASK_REGION: self._set_region_text,
            directives.MASK_REGION: self._set_region_text,
            directives.HIDE_ITEM: self._hide_item,
            directives.SHOW_PROMPT: self._show_prompt,
            directives.SHOW_FEEDBACK: self._show_feedback,
            directives.CLEAR: self._clear,
            directives.END: self._end,
        }

    # =========================================================================
    # DIRECTIVE SINK
    # =========================================================================

    def send(self, directive: Directive) -> None:
        handler = self._handlers.get(directive.action)
        if handler is not None:
            handler(directive)

    def draw(self) -> None:
        """Draw all currently visible stimuli (caller flips)."""
        for stim in self._visible:
            stim.draw()

    @property
    def ended(self) -> bool:
        return self._ended

    # =========================================================================
    # HANDLERS
    # =========================================================================

    def _show(self, stim) -> None:
        if stim not in self._visible:
            self._visible.append(stim)

    def _hide(self, stim) -> None:
        if stim in self._visible:
            self._visible.remove(stim)

    def _clear(self, directive: Directive) -> None:
        self._visible = []
        self._region_stims = {}

    def _end(self, directive: Directive) -> None:
        self._clear(directive)
        self._ended = True

    def _show_title(self, directive: Directive) -> None:
        self._clear(directive)
        self._title_stim.text = directive.get('title', '')
        names = [directive.get('primary_investigators', ''), directive.get('other_investigators', '')]
        self._investigators_stim.text = ' '.join(n for n in names if n)
        self._show(self._title_stim)
        self._show(self._investigators_stim)

    def _show_instructions(self, directive: Directive) -> None:
        self._clear(directive)
        self._instruction_stim.text = directive.get('text', '')
        self._show(self._instruction_stim)

    def _show_item(self, directive: Directive) -> None:
        self._clear(directive)
        regions = directive.get('regions', [])
        positions = self._layout_regions(regions, directive.get('orientation'))
        for (index, masked, _line), pos in zip(regions, positions):
            stim = self._text_stim(pos=pos, anchorHoriz='left')
            stim.text = masked
            self._region_stims[index] = stim
            self._show(stim)

    def _show_fixation(self, directive: Directive) -> None:
        self._fixation_stim.text = directive.get('text', '+')
        self._show(self._fixation_stim)

    def _hide_fixation(self, directive: Directive) -> None:
        self._hide(self._fixation_stim)

    def _set_region_text(self, directive: Directive) -> None:
        stim = self._region_stims.get(directive.get('index'))
        if stim is not None:
            stim.text = directive.get('text', '')

    def _hide_item(self, directive: Directive) -> None:
        for stim in self._region_stims.values():
            self._hide(stim)
        self._hide(self._fixation_stim)

    def _show_prompt(self, directive: Directive) -> None:
        self._prompt_stim.text = directive.get('prompt', '')
        self._show(self._prompt_stim)
        keys = self._layout['option_keys']
        for stim, key, text in zip(self._option_stims, keys, directive.get('options', [])):
            stim.text = f'[{key}] {text}'
            self._show(stim)

    def _show_feedback(self, directive: Directive) -> None:
        self._hide(self._prompt_stim)
        for stim in self._option_stims:
            self._hide(stim)
        self._feedback_stim.text = directive.get('text', '')
        self._feedback_stim.color = directive.get('color') or self._settings.text_color
        self._show(self._feedback_stim)

    # =========================================================================
    # GEOMETRY
    # =========================================================================

    def _layout_regions(self, regions: list, orientation: str | None) -> list[tuple[float, float]]:
        """Left-anchored positions for each region.

        Horizontal: all regions on one centred line. Vertical: one line per
        stimulus string, lines stacked downwards from stimulus_y.
        """
        char_w = self._layout['char_width'] * self._settings.font_scale
        gap = self._layout['region_gap']
        top = self._layout['stimulus_y']
        spacing = self._layout['line_spacing']

        lines: dict[int, list[int]] = {}
        for pos, (_index, masked, line) in enumerate(regions):
            key = line if orientation == ORIENTATION_VERTICAL else 0
            lines.setdefault(key, []).append(pos)

        positions: list[tuple[float, float]] = [(0.0, 0.0)] * len(regions)
        for row, (_line, members) in enumerate(sorted(lines.items())):
            widths = [len(regions[m][1]) * char_w for m in members]
            total = sum(widths) + gap * (len(members) - 1)
            x = -total / 2.0
            y = top - row * spacing
            for member, width in zip(members, widths):
                positions[member] = (x, y)
                x += width + gap
        return positions
