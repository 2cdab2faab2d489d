"""DesignValidator: structural walk of the experiment design document.

Every violation is collected (no fail-fast) so the operator sees all
problems in one report. The document is never mutated.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from psychopy import logging

from errors import MalformedItemError, ValidationError
from models import DISPLAY_MODES, ORIENTATIONS
from regions import parse_regions
from utils import normalize_choice, parse_bool

ITEM_ID_PATTERN = re.compile(r'^[A-Za-z](?:[A-Za-z0-9_.\-]*[A-Za-z0-9])?$')
ORDER_VALUES = ('fixed', 'random')


@dataclass
class ValidationReport:
    """Outcome of a validation pass.

    Attributes:
        messages: Human-readable diagnostics, one per violation, in walk order
    """
    messages: list = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.messages

    def raise_for_errors(self) -> None:
        if self.messages:
            raise ValidationError(self.messages)


def _unwrap(entry: Any, key: str):
    """Return entry[key] for wrapper objects like {"item": {...}}, else None."""
    if isinstance(entry, dict) and key in entry:
        return entry[key]
    return None


class DesignValidator:

    def __init__(self, design: Any) -> None:
        self._design = design
        self._messages: list[str] = []
        self._item_ids: set[str] = set()
        self._feedback_names: set[str] = set()
        self._item_count = 0

    def validate(self) -> ValidationReport:
        """Walk the whole document and return the collected report."""
        self._messages = []
        self._item_ids = set()
        self._item_count = 0
        design = self._design

        logging.info('Validating design')
        if not isinstance(design, dict):
            self._fail('Design document must be a JSON object')
            return ValidationReport(list(self._messages))

        self._check_settings(design)
        self._feedback_names = self._check_feedback_options(design.get('feedback-options'))

        for key in (
            'instruction-screens',
            'post-practice-instruction-screens',
            'post-experiment-instruction-screens',
        ):
            if key in design:
                logging.info(f'Checking {key}')
                self._check_instruction_screens(key, design[key])

        if design.get('practice-stimuli') is not None:
            logging.info('Checking practice stimuli')
            self._check_group('practice-stimuli', design['practice-stimuli'])
        else:
            logging.info('No practice stimuli')

        if design.get('experiment-stimuli'):
            logging.info('Checking experiment-stimuli')
            before = self._item_count
            self._check_experiment_stimuli(design['experiment-stimuli'])
            if self._item_count == before:
                self._fail('Experiment stimuli section contains no items')
        else:
            self._fail('No experiment-stimuli section was found in the design document')

        report = ValidationReport(list(self._messages))
        if report.is_valid:
            logging.info('Design is valid')
        return report

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _fail(self, message: str) -> None:
        logging.warning(message)
        self._messages.append(message)

    def _check_container_settings(self, where: str, node: dict) -> None:
        if 'order' in node and normalize_choice(node['order'], ORDER_VALUES, '') == '':
            self._fail(f"{where}: 'order' must be 'fixed' or 'random', got {node['order']!r}")
        if 'merge' in node and parse_bool(node['merge']) is None:
            self._fail(f"{where}: 'merge' must be true or false, got {node['merge']!r}")

    def _check_settings(self, design: dict) -> None:
        if 'display' in design and normalize_choice(design['display'], DISPLAY_MODES, '') == '':
            self._fail(f"Unknown display mode {design['display']!r}: "
                       "expected 'moving window' or 'cumulative'")
        if 'orientation' in design and normalize_choice(design['orientation'], ORIENTATIONS, '') == '':
            self._fail(f"Unknown orientation {design['orientation']!r}: "
                       "expected 'horizontal' or 'vertical'")
        for key in ('primary-investigators', 'other-investigators'):
            if key in design and not isinstance(design[key], (str, list)):
                self._fail(f"'{key}' must be a name or a list of names")
        if 'font-size' in design:
            try:
                ok = float(str(design['font-size']).strip()) > 0
            except ValueError:
                ok = False
            if not ok:
                self._fail(f"'font-size' must be a positive number, got {design['font-size']!r}")
        if 'min-instruction-time' in design:
            value = design['min-instruction-time']
            try:
                ok = not isinstance(value, bool) and float(value) >= 0
            except (TypeError, ValueError):
                ok = False
            if not ok:
                self._fail(f"'min-instruction-time' must be a non-negative number of "
                           f"milliseconds, got {value!r}")

    def _check_feedback_options(self, options: Any) -> set:
        names: set[str] = set()
        if options is None:
            return names
        if not isinstance(options, list):
            self._fail("'feedback-options' must be a list")
            return names
        for entry in options:
            spec = _unwrap(entry, 'feedback-option')
            if not isinstance(spec, dict):
                self._fail("Unknown name in feedback options: expected 'feedback-option'")
                continue
            name = str(spec.get('name') or '').strip()
            if not name:
                self._fail('Feedback option has no name')
                continue
            if name in names:
                self._fail(f"Duplicate feedback option name '{name}'")
            if not str(spec.get('text') or '').strip():
                self._fail(f"Feedback option '{name}' has no text")
            names.add(name)
        return names

    def _check_instruction_screens(self, key: str, screens: Any) -> None:
        if not isinstance(screens, list):
            self._fail(f"'{key}' must be a list of instruction screens")
            return
        for pos, entry in enumerate(screens, start=1):
            text = entry if isinstance(entry, str) else _unwrap(entry, 'instruction-screen')
            if text is None:
                self._fail(f"{key} #{pos}: unknown name, expected 'instruction-screen'")
            elif not isinstance(text, str) or not text.strip():
                self._fail(f'{key} #{pos}: empty instruction text')

    def _check_experiment_stimuli(self, stimuli: Any) -> None:
        if not isinstance(stimuli, dict):
            self._fail("'experiment-stimuli' must be an object")
            return
        self._check_container_settings('experiment-stimuli', stimuli)
        sets = stimuli.get('stimuli-sets')
        if sets is None:
            self._fail("No 'stimuli-sets' name-value pair in experiment stimuli section")
            return
        if not isinstance(sets, list) or len(sets) < 1:
            self._fail("No 'stimuli-set' found in experiment stimuli section")
            return
        for pos, entry in enumerate(sets, start=1):
            stimuli_set = _unwrap(entry, 'stimuli-set')
            if stimuli_set is None:
                self._fail(f"stimuli-sets #{pos}: unknown name, expected 'stimuli-set'")
            else:
                self._check_stimuli_set(f'stimuli-set #{pos}', stimuli_set)

    def _check_stimuli_set(self, where: str, stimuli_set: Any) -> None:
        if not isinstance(stimuli_set, dict):
            self._fail(f'{where}: must be an object')
            return
        if stimuli_set.get('name'):
            where = f"stimuli-set '{stimuli_set['name']}'"
        self._check_container_settings(where, stimuli_set)
        groups = stimuli_set.get('groups')
        if groups is None:
            self._fail(f"{where}: no 'groups' name-value pair")
            return
        if not isinstance(groups, list) or len(groups) < 1:
            self._fail(f"{where}: no 'group' found in groups list")
            return
        for pos, entry in enumerate(groups, start=1):
            group = _unwrap(entry, 'group')
            if group is None:
                self._fail(f"{where}, groups #{pos}: unknown name, expected 'group'")
            else:
                self._check_group(f'{where}, group #{pos}', group)

    def _check_group(self, where: str, group: Any) -> None:
        if not isinstance(group, dict):
            self._fail(f'{where}: must be an object')
            return
        if group.get('name'):
            where = f"group '{group['name']}'"
        self._check_container_settings(where, group)
        items = group.get('items')
        if items is None:
            self._fail(f"{where}: no 'items' name-value pair")
            return
        if not isinstance(items, list) or len(items) < 1:
            self._fail(f"{where}: no 'item' found in items list")
            return
        for pos, entry in enumerate(items, start=1):
            item = _unwrap(entry, 'item')
            if item is None:
                self._fail(f"{where}, items #{pos}: unknown name, expected 'item'")
            else:
                self._check_item(f'{where}, item #{pos}', item)

    def _check_item(self, where: str, item: Any) -> None:
        if not isinstance(item, dict):
            self._fail(f'{where}: must be an object')
            return
        self._item_count += 1
        item_id = item.get('id')
        if not isinstance(item_id, str) or not item_id.strip():
            self._fail(f'{where}: stimulus item has no id')
            item_id = where
        else:
            item_id = item_id.strip()
            logging.debug(f'Checking item: {item_id}')
            if not ITEM_ID_PATTERN.match(item_id):
                self._fail(f"Item id '{item_id}' must start with a letter, contain only "
                           "letters, digits, '_', '.', '-' and end with a letter or digit")
            if item_id in self._item_ids:
                self._fail(f"Duplicate item id '{item_id}'")
            self._item_ids.add(item_id)

        strings = self._collect_strings(item_id, item)
        if strings:
            try:
                parse_regions(item_id, strings)
            except MalformedItemError as e:
                self._fail(str(e))

        self._check_prompt_and_options(item_id, item)

        tags = item.get('tags')
        if tags is not None and not isinstance(tags, list):
            self._fail(f"Item '{item_id}': 'tags' must be a list")

    def _collect_strings(self, item_id: str, item: dict) -> list:
        if 'strings' in item:
            entries = item['strings']
            if not isinstance(entries, list) or not entries:
                self._fail(f"Item '{item_id}': 'strings' list is empty")
                return []
            strings = []
            for entry in entries:
                text = _unwrap(entry, 'string')
                if text is None:
                    self._fail(f"Item '{item_id}': unknown name in strings, expected 'string'")
                elif not isinstance(text, str) or not text.strip():
                    self._fail(f"Item '{item_id}': empty string found")
                else:
                    strings.append(text)
            return strings if len(strings) == len(entries) else []
        text = item.get('string')
        if text is None:
            self._fail(f"Item '{item_id}' has no string(s)")
            return []
        if not isinstance(text, str) or not text.strip():
            self._fail(f"Item '{item_id}': empty string found")
            return []
        return [text]

    def _check_prompt_and_options(self, item_id: str, item: dict) -> None:
        prompt = item.get('prompt')
        options = item.get('options')
        has_prompt = isinstance(prompt, str) and bool(prompt.strip())
        if prompt is not None and not has_prompt:
            self._fail(f"Item '{item_id}': empty prompt")
        if options is None:
            if has_prompt:
                self._fail(f"Item '{item_id}': a prompt requires two options")
            return
        if not isinstance(options, list) or len(options) not in (0, 2):
            self._fail(f"Item '{item_id}': expected zero or two options")
            return
        if options and not has_prompt:
            self._fail(f"Item '{item_id}': options given without a prompt")
        if has_prompt and not options:
            self._fail(f"Item '{item_id}': a prompt requires two options")
        if 'option-order' in item and normalize_choice(item['option-order'], ORDER_VALUES, '') == '':
            self._fail(f"Item '{item_id}': 'option-order' must be 'fixed' or 'random'")
        for pos, entry in enumerate(options, start=1):
            option = _unwrap(entry, 'option')
            if not isinstance(option, dict):
                self._fail(f"Item '{item_id}', option {pos}: unknown name, expected 'option'")
                continue
            if not str(option.get('text') or '').strip():
                self._fail(f"Item '{item_id}', option {pos}: option has no text")
            ref = option.get('feedback-option')
            has_inline = bool(str(option.get('feedback') or '').strip())
            if ref is not None and str(ref).strip() not in self._feedback_names and not has_inline:
                self._fail(f"Item '{item_id}', option {pos}: unknown feedback option '{ref}'")


def validate_design(design: Any) -> ValidationReport:
    """Convenience wrapper: validate a design document in one call."""
    return DesignValidator(design).validate()
