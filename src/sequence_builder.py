"""SequenceBuilder: resolves order/merge settings into flat item sequences.

Cascade:
- Every container (experiment-stimuli, stimuli-set, group, practice-stimuli)
  may declare `order` (fixed|random) and `merge` (true|false).
- Unset values inherit the nearest ancestor's *resolved* value. Resolution
  happens once, top-down, into a StimulusNode tree whose `settings` are
  always concrete.

Sequencing a node:
- merge=False: children are sequenced on their own, the resulting blocks are
  ordered by the node's `order` and concatenated.
- merge=True: children are sequenced on their own and pooled; the pool is
  ordered by the node's `order`. A merged node nested in a merged ancestor
  simply contributes its items to the ancestor's pool, so the whole merged
  subtree becomes one pool.
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from models import FeedbackOption, Item, ResponseOption
from regions import parse_regions
from utils import normalize_choice, parse_bool

ORDER_FIXED = 'fixed'
ORDER_RANDOM = 'random'

PHASE_PRACTICE = 'practice'
PHASE_EXPERIMENT = 'experiment'


@dataclass(frozen=True)
class ResolvedSettings:
    order: str = ORDER_FIXED
    merge: bool = False

    def inherit(self, node: dict) -> 'ResolvedSettings':
        """Apply a node's explicit settings on top of the inherited ones."""
        order = normalize_choice(node.get('order'), (ORDER_FIXED, ORDER_RANDOM), self.order)
        merge = parse_bool(node.get('merge'))
        return ResolvedSettings(order=order, merge=self.merge if merge is None else merge)


ROOT_SETTINGS = ResolvedSettings()


@dataclass(frozen=True)
class StimulusNode:
    """A container in the stimuli tree with concrete settings."""
    kind: str
    name: Optional[str]
    settings: ResolvedSettings
    children: tuple

    def items(self) -> list:
        """All items below this node, in document order."""
        found = []
        for child in self.children:
            if isinstance(child, StimulusNode):
                found.extend(child.items())
            else:
                found.append(child)
        return found


Child = Union[StimulusNode, Item]


def _unwrap(entry, key):
    if isinstance(entry, dict) and key in entry:
        return entry[key]
    return entry


def build_item(spec: dict, conditions: Sequence[str] = ()) -> Item:
    """Build an Item from its design-document spec.

    Raises:
        MalformedItemError: if the stimulus string(s) cannot be parsed
    """
    item_id = str(spec.get('id', '')).strip()
    if 'strings' in spec:
        strings = [_unwrap(s, 'string') for s in spec.get('strings') or []]
        raw = '\n'.join(strings)
    else:
        strings = spec.get('string')
        raw = strings
    regions, roi_index = parse_regions(item_id, strings)

    options = []
    for entry in spec.get('options') or []:
        opt = _unwrap(entry, 'option')
        ref = opt.get('feedback-option')
        options.append(ResponseOption(
            text=str(opt.get('text', '')),
            feedback_option=str(ref).strip() if ref is not None else None,
            feedback=opt.get('feedback'),
            feedback_color=opt.get('feedback-color'),
        ))

    prompt = spec.get('prompt')
    return Item(
        id=item_id,
        raw=raw,
        regions=regions,
        roi_index=roi_index,
        prompt=prompt.strip() if isinstance(prompt, str) and prompt.strip() else None,
        options=tuple(options),
        option_order=normalize_choice(
            spec.get('option-order'), (ORDER_FIXED, ORDER_RANDOM), ORDER_FIXED
        ),
        tags=tuple(str(t) for t in spec.get('tags') or ()),
        conditions=tuple(conditions),
    )


def build_feedback_options(design: dict) -> dict[str, FeedbackOption]:
    options: dict[str, FeedbackOption] = {}
    for entry in design.get('feedback-options') or []:
        spec = _unwrap(entry, 'feedback-option')
        name = str(spec.get('name', '')).strip()
        options[name] = FeedbackOption(name=name, text=spec.get('text', ''), color=spec.get('color'))
    return options


def resolve_group(
    group: dict,
    inherited: ResolvedSettings,
    conditions: Sequence[str] = (),
    kind: str = 'group',
) -> StimulusNode:
    settings = inherited.inherit(group)
    name = group.get('name')
    labels = tuple(conditions) + ((str(name),) if name else ())
    items = tuple(build_item(_unwrap(e, 'item'), labels) for e in group.get('items') or [])
    return StimulusNode(kind=kind, name=name, settings=settings, children=items)


def resolve_stimuli_set(stimuli_set: dict, inherited: ResolvedSettings) -> StimulusNode:
    settings = inherited.inherit(stimuli_set)
    name = stimuli_set.get('name')
    labels = (str(name),) if name else ()
    groups = tuple(
        resolve_group(_unwrap(e, 'group'), settings, labels)
        for e in stimuli_set.get('groups') or []
    )
    return StimulusNode(kind='stimuli-set', name=name, settings=settings, children=groups)


def resolve_experiment_stimuli(stimuli: dict) -> StimulusNode:
    """Resolve the experiment stimuli tree with fully concrete settings."""
    settings = ROOT_SETTINGS.inherit(stimuli)
    sets = tuple(
        resolve_stimuli_set(_unwrap(e, 'stimuli-set'), settings)
        for e in stimuli.get('stimuli-sets') or []
    )
    return StimulusNode(kind='experiment-stimuli', name=None, settings=settings, children=sets)


def resolve_practice_stimuli(practice: dict) -> StimulusNode:
    labels = () if practice.get('name') else (PHASE_PRACTICE,)
    return resolve_group(practice, ROOT_SETTINGS, labels, kind='practice-stimuli')


class SequenceBuilder:
    """Turns a validated design document into ordered item lists per phase.

    Pure apart from the random source: pass `rng=random.Random(seed)` for a
    reproducible sequence. The default draws a fresh OS-seeded generator
    for every builder, so each run gets its own permutation.
    """

    def __init__(self, design: dict, rng: Optional[random.Random] = None) -> None:
        self._design = design
        self._rng = rng if rng is not None else random.Random()

    def practice_tree(self) -> Optional[StimulusNode]:
        practice = self._design.get('practice-stimuli')
        if not practice:
            return None
        return resolve_practice_stimuli(practice)

    def experiment_tree(self) -> StimulusNode:
        return resolve_experiment_stimuli(self._design['experiment-stimuli'])

    def practice_items(self) -> list[Item]:
        tree = self.practice_tree()
        return self.sequence(tree) if tree is not None else []

    def experiment_items(self) -> list[Item]:
        return self.sequence(self.experiment_tree())

    def sequence(self, node: Child) -> list[Item]:
        """Flatten a node into an ordered item list according to its settings."""
        if isinstance(node, Item):
            return [node]
        blocks = [self.sequence(child) for child in node.children]
        if node.settings.merge:
            pool = [item for block in blocks for item in block]
            return self._ordered(pool, node.settings.order)
        ordered_blocks = self._ordered(blocks, node.settings.order)
        return [item for block in ordered_blocks for item in block]

    def option_order(self, item: Item) -> tuple:
        """Display order of an item's options as 0-based declared indices."""
        return tuple(self._ordered(list(range(len(item.options))), item.option_order))

    def _ordered(self, elements: list, order: str) -> list:
        if order == ORDER_RANDOM:
            shuffled = list(elements)
            self._rng.shuffle(shuffled)
            return shuffled
        return list(elements)
