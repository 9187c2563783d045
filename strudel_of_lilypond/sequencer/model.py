""" YAML bar sequences.

A sequence file looks like:

    tempo: 120
    sequence:
      - description: intro
        item: {RepeatBar: [4, {pattern_name: groove}]}
      - description: verse
        item:
          RepeatGroup:
            - 2
            - - Single: {pattern_name: groove}
              - Single: {pattern_name: fill}

A pattern file `<library>/<name>.yml` holds one bar of drum music per voice:

    description: kick and snare
    voices:
      - bd4 sn4 bd4 sn4
      - hh8 hh8 hh8 hh8 hh8 hh8 hh8 hh8
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Union, Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from strudel_of_lilypond.common import LilyError

yaml = YAML(typ='safe')


@dataclass
class Pattern:
    description: str
    voices: List[str]


@dataclass
class Single:
    pattern_name: str


@dataclass
class Group:
    items: List['BarItem']


@dataclass
class RepeatBar:
    count: int
    bar: Single


@dataclass
class RepeatGroup:
    count: int
    items: List['BarItem']


BarItem = Union[Single, Group, RepeatBar, RepeatGroup]


@dataclass
class SequenceItem:
    item: BarItem
    description: str


@dataclass
class BarSequence:
    tempo: int
    sequence: List[SequenceItem]


# **** Loading ****

def _load_yaml(source: Union[str, Path]) -> Any:
    try:
        return yaml.load(source)
    except YAMLError as e:
        raise LilyError(f'Cannot parse YAML: {e}')


def _expect(cond: bool, message: str):
    if not cond:
        raise LilyError(message)


def _parse_count(value: Any, where: str) -> int:
    _expect(isinstance(value, int) and value >= 0,
            f'invalid repeat count {value!r} in {where}, must be a non-negative integer')
    return value


def parse_single(data: Any) -> Single:
    _expect(isinstance(data, dict) and isinstance(data.get('pattern_name'), str),
            f'invalid bar {data!r}, must be {{pattern_name: name}}')
    return Single(data['pattern_name'])


def parse_bar_item(data: Any) -> BarItem:
    """ Parse an externally tagged item, e.g. {Single: {pattern_name: x}}. """
    _expect(isinstance(data, dict) and len(data) == 1,
            f'invalid sequence item {data!r}, must be a single-key mapping '
            f'(Single, Group, RepeatBar, RepeatGroup)')
    (tag, value), = data.items()

    if tag == 'Single':
        return parse_single(value)

    elif tag == 'Group':
        _expect(isinstance(value, list), f'Group must hold a list, got {value!r}')
        return Group([parse_bar_item(item) for item in value])

    elif tag == 'RepeatBar':
        _expect(isinstance(value, list) and len(value) == 2,
                f'RepeatBar must be [count, bar], got {value!r}')
        count, bar = value
        return RepeatBar(_parse_count(count, tag), parse_single(bar))

    elif tag == 'RepeatGroup':
        _expect(isinstance(value, list) and len(value) == 2 and isinstance(value[1], list),
                f'RepeatGroup must be [count, [items]], got {value!r}')
        count, items = value
        return RepeatGroup(_parse_count(count, tag), [parse_bar_item(item) for item in items])

    raise LilyError(f'unknown sequence item type {tag!r}')


def parse_bar_sequence(data: Any) -> BarSequence:
    _expect(isinstance(data, dict), 'bar sequence must be a YAML mapping')
    tempo = data.get('tempo')
    _expect(isinstance(tempo, int) and tempo > 0, f'invalid tempo {tempo!r}, must be a positive integer')

    sequence = data.get('sequence')
    _expect(isinstance(sequence, list), 'bar sequence is missing a `sequence` list')

    items = []
    for entry in sequence:
        _expect(isinstance(entry, dict) and 'item' in entry,
                f'invalid sequence entry {entry!r}, must have `item` and `description`')
        items.append(SequenceItem(
            parse_bar_item(entry['item']),
            str(entry.get('description', '')),
        ))
    return BarSequence(tempo, items)


def load_bar_sequence(source: Union[str, Path]) -> BarSequence:
    """ :param source: YAML text, or a path to a YAML file. """
    return parse_bar_sequence(_load_yaml(source))


def load_pattern(path: Path) -> Pattern:
    try:
        data = _load_yaml(Path(path))
    except OSError as e:
        raise LilyError(f"Cannot read pattern file '{path}': {e}")

    _expect(isinstance(data, dict), f"Cannot parse pattern file '{path}': not a mapping")
    voices = data.get('voices')
    _expect(isinstance(voices, list) and all(isinstance(v, str) for v in voices),
            f"Cannot parse pattern file '{path}': `voices` must be a list of strings")
    return Pattern(str(data.get('description', '')), voices)
