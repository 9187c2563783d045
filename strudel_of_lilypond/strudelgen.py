""" Strudel pattern generation from parsed staves.

Each bar becomes a bracketed group of items, so Strudel's default timing
(one cycle per item list) lines up with LilyPond bars. Note weights are
relative to a quarter note. Repeats are emitted with `!count` instead of
being unrolled. """

import html
from typing import Iterable, List, Optional, Tuple

from more_itertools import peekable

from strudel_of_lilypond.model import (
    Note, DrumHit, Rest, BarLine, RepeatStart, RepeatEnd, Comment,
    Modifiers, PitchedStaff, DrumStaff, Staff, Tempo,
)

NO_STAVES = '// No staves to convert'
NO_NOTES = '// No notes to convert'
NO_HITS = '// No drum hits to convert'

STAFF_PREFIX = '$: '
DEFAULT_BPM = 120

# LilyPond duration -> weight in quarter notes. None means the default weight of 1.
_WEIGHTS = {
    1: '4',
    2: '2',
    4: None,
    8: '0.5',
    16: '0.25',
}

ACCIDENTAL_SIGNS = {
    'is': '#',
    'es': 'b',
}


# **** Items ****

def format_weight(duration: int) -> Optional[str]:
    if duration in _WEIGHTS:
        return _WEIGHTS[duration]
    return '{:g}'.format(4 / duration)


def _weighted(item: str, duration: int) -> str:
    weight = format_weight(duration)
    if weight is None:
        return item
    return '{}@{}'.format(item, weight)


def format_note(note: Note) -> str:
    """ cis' -> c#4 """
    return '{}{}{}'.format(note.name, ACCIDENTAL_SIGNS.get(note.accidental, ''), note.octave)


def format_pitched_note(note: Note) -> str:
    if note.is_chord:
        pitches = [note] + note.chord_notes
        item = '[{}]'.format(','.join(format_note(pitch) for pitch in pitches))
    else:
        item = format_note(note)
    return _weighted(item, note.duration)


def format_drum_hit(hit: DrumHit) -> str:
    return _weighted(hit.name, hit.duration)


def format_rest(duration: int) -> str:
    """ One ~ per quarter note, at least one. """
    quarters = max(4 // duration, 1)
    return ' '.join(['~'] * quarters)


def format_item(event) -> str:
    if isinstance(event, Note):
        return format_pitched_note(event)
    elif isinstance(event, DrumHit):
        return format_drum_hit(event)
    elif isinstance(event, Rest):
        return format_rest(event.duration)
    raise TypeError(f'invalid pattern item type={type(event)}, programmer error')


# **** Bars and repeats ****

def _generate_bars(events: peekable) -> Tuple[str, int]:
    """ Consume events up to the matching RepeatEnd (or the end).

    :return: (newline-separated bars, number of bars including repeats)
    """
    bars = []           # type: List[str]
    current_bar = []    # type: List[str]
    nbar = 0

    def end_bar():
        nonlocal nbar
        if current_bar:
            bars.append('[{}]'.format(' '.join(current_bar)))
            current_bar.clear()
            nbar += 1

    while events:
        event = next(events)

        if isinstance(event, (Note, DrumHit, Rest)):
            current_bar.append(format_item(event))

        elif isinstance(event, BarLine):
            end_bar()

        elif isinstance(event, RepeatStart):
            end_bar()
            inner, inner_nbar = _generate_bars(events)
            total = inner_nbar * event.count

            # Multi-bar repeats must be stretched to span all their bars.
            if inner_nbar > 1:
                bars.append('[[{}]!{}]@{}'.format(inner, event.count, total))
            else:
                bars.append('[{}]!{}'.format(inner, event.count))
            nbar += total

        elif isinstance(event, RepeatEnd):
            break

        elif isinstance(event, Comment):
            pass

        else:
            raise TypeError(f'invalid event type={type(event)}, programmer error')

    end_bar()
    return '\n'.join(bars), nbar


def generate_pattern(events: Iterable) -> Tuple[str, int]:
    """ Returns (mini-notation pattern, bar count). """
    return _generate_bars(peekable(events))


def count_bars(events: Iterable) -> int:
    return generate_pattern(events)[1]


# **** Staves ****

def format_pattern_value(value: str) -> str:
    """ "<0 .5 1>" is a pattern and must be quoted, "0.5" is not. """
    if '<' in value:
        return '"{}"'.format(value)
    return value


def format_modifiers(modifiers: Modifiers, indent: str = '') -> str:
    out = []
    if modifiers.gain is not None:
        out.append('\n{}.gain({})'.format(indent, format_pattern_value(modifiers.gain)))
    if modifiers.pan is not None:
        out.append('\n{}.pan({})'.format(indent, format_pattern_value(modifiers.pan)))
    if modifiers.punchcard_color is not None:
        out.append('\n{}.color("{}")'.format(indent, modifiers.punchcard_color))
        out.append('\n{}._punchcard()'.format(indent))
    return ''.join(out)


def cpm_expression(nbar: int) -> str:
    # `tempo` is a JS constant defined by the HTML shell.
    return 'tempo/4/{}'.format(nbar)


def _cpm(tempo: Optional[Tempo], nbar: int) -> str:
    if tempo is None or nbar <= 0:
        return ''
    return '\n  .cpm({})'.format(cpm_expression(nbar))


def generate_pitched_staff(staff: PitchedStaff, tempo: Optional[Tempo]) -> str:
    if not any(isinstance(event, Note) for event in staff.events):
        return NO_NOTES

    pattern, nbar = generate_pattern(staff.events)
    out = 'note(`\n{}`){}\n  .s("piano")'.format(pattern, format_modifiers(staff.modifiers))
    return out + _cpm(tempo, nbar)


def generate_drum_staff(staff: DrumStaff, tempo: Optional[Tempo]) -> str:
    voices = staff.voices
    if not voices:
        return NO_HITS

    if len(voices) == 1:
        voice = voices[0]
        if not any(isinstance(event, DrumHit) for event in voice.events):
            return NO_HITS

        pattern, nbar = generate_pattern(voice.events)
        out = 'sound(`\n{}`){}'.format(pattern, format_modifiers(voice.modifiers))
        return out + _cpm(tempo, nbar)

    patterns = []
    max_nbar = 0
    for voice in voices:
        pattern, nbar = generate_pattern(voice.events)
        patterns.append('sound(`\n{}`){}'.format(
            pattern, format_modifiers(voice.modifiers, indent='  ')))
        max_nbar = max(max_nbar, nbar)

    stacked = 'stack(\n  {},\n)'.format(',\n  '.join(patterns))
    # The longest voice sets the cycle length.
    return stacked + _cpm(tempo, max_nbar)


def generate_staff(staff: Staff, tempo: Optional[Tempo]) -> str:
    if isinstance(staff, PitchedStaff):
        return generate_pitched_staff(staff, tempo)
    elif isinstance(staff, DrumStaff):
        return generate_drum_staff(staff, tempo)
    raise TypeError(f'invalid staff type={type(staff)}, programmer error')


def generate(notes: Iterable[Note], tempo: Optional[Tempo]) -> str:
    """ Generate a single pitched staff from bare notes. """
    return generate_pitched_staff(PitchedStaff(list(notes)), tempo)


def generate_multi(staves: List[Staff], tempo: Optional[Tempo]) -> str:
    if not staves:
        return NO_STAVES

    return '\n\n'.join(STAFF_PREFIX + generate_staff(staff, tempo) for staff in staves)


# **** HTML ****

HTML_TEMPLATE = '''\
<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>{title}</title>
  <script src="https://unpkg.com/@strudel/embed@latest"></script>
  <style>
    html, body {{ margin: 0; padding: 0; width: 100%; height: 100%; }}
    strudel-repl {{ width: 100%; height: 100%; display: block; }}
    strudel-repl iframe {{ width: 100%; height: 100%; border: none; }}
  </style>
</head>
<body>
  <strudel-repl>
<!--
const tempo = {bpm};

{pattern}
-->
  </strudel-repl>
</body>
</html>'''


def generate_html(staves: List[Staff], tempo: Optional[Tempo], title: str) -> str:
    bpm = tempo.bpm if tempo is not None else DEFAULT_BPM
    return HTML_TEMPLATE.format(
        title=html.escape(title),
        bpm=bpm,
        pattern=generate_multi(staves, tempo),
    )
