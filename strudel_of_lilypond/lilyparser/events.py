""" Tokenizer, and token -> event parsers for pitched and drum music. """

import logging
import re
from typing import List, Optional, Callable, TypeVar

from strudel_of_lilypond.drums import lookup_drum
from strudel_of_lilypond.lilyparser.text import (
    Stream, mark_comments, strip_comments, COMMENT_FORMAT, COMMENT_SPACE,
    REPEAT_START, REPEAT_END,
)
from strudel_of_lilypond.model import (
    Note, DrumHit, Rest, BarLine, RepeatStart, RepeatEnd, Comment,
    PitchedEvent, DrumEvent, note2pitch, accidental2offset,
)

logger = logging.getLogger(__name__)

# Unmarked `c` is C3, `c'` is middle C (C4).
BASE_OCTAVE = 3
OCTAVE_MARKS = {"'": 1, ',': -1}

DEFAULT_DURATION = 4
DIGITS = '0123456789'
# Dots and ties are accepted but do not lengthen the note.
DURATION_SUFFIXES = '.~'


def tokenize(section: str) -> List[str]:
    """ Split on whitespace, except within <chord brackets>.
    "<a c e>4 b8" -> ["<a c e>4", "b8"] """
    tokens = []
    current = []    # type: List[str]
    in_chord = False

    def flush():
        token = ''.join(current).strip()
        if token:
            tokens.append(token)
        current.clear()

    for char in section:
        if char == '<':
            flush()
            current.append(char)
            in_chord = True
        elif char == '>':
            # Duration digits after > join the same token.
            current.append(char)
            in_chord = False
        elif char.isspace():
            if in_chord:
                current.append(' ')
            else:
                flush()
        else:
            current.append(char)

    flush()
    return tokens


def parse_duration(digits: str) -> Optional[int]:
    """ "" -> quarter note. 0 is not a note length. """
    if not digits:
        return DEFAULT_DURATION
    duration = int(digits)
    if duration <= 0:
        return None
    return duration


# **** Shared events ****

_COMMENT_TOKEN = re.compile(COMMENT_FORMAT.format('(.+)'))
_REPEAT_START_TOKEN = re.compile(REPEAT_START.format(r'(\d+)'))
_REST = re.compile(r'r(\d*)[.~]*')


def parse_rest(token: str) -> Optional[Rest]:
    match = _REST.fullmatch(token.strip())
    if not match:
        return None

    duration = parse_duration(match.group(1))
    if duration is None:
        return None
    return Rest(duration)


def _parse_structural(token: str):
    """ Events common to pitched and drum music. """
    match = _COMMENT_TOKEN.fullmatch(token)
    if match:
        return Comment(match.group(1).replace(COMMENT_SPACE, ' '))

    if token.startswith('|'):
        return BarLine()

    match = _REPEAT_START_TOKEN.fullmatch(token)
    if match:
        return RepeatStart(int(match.group(1)))

    if token == REPEAT_END:
        return RepeatEnd()

    return parse_rest(token)


E = TypeVar('E')


def _parse_section(section: str, parse_token: Callable[[str], Optional[E]]) -> list:
    section = strip_comments(mark_comments(section))

    events = []
    for token in tokenize(section):
        event = _parse_structural(token)
        if event is None:
            event = parse_token(token)

        if event is None:
            logger.debug('Skipping unrecognized token %r', token)
        else:
            events.append(event)

    return events


# **** Pitched ****

def parse_single_note(token: str, duration: Optional[int] = None) -> Optional[Note]:
    """ Parse "cis'8." into a Note.

    :param duration: Overrides the note's own duration (used by chords).
    :return: None if token is not a note.
    """
    stream = Stream(token.strip())

    name = stream.get_char()
    if name not in note2pitch:
        return None

    accidental = None
    for suffix in accidental2offset:
        if stream.peek_equals(suffix):
            accidental = stream.get_chars(len(suffix))
            break

    octave = BASE_OCTAVE
    while stream.peek() in OCTAVE_MARKS:
        octave += OCTAVE_MARKS[stream.get_char()]

    digits = stream.get_while(DIGITS)
    stream.get_while(DURATION_SUFFIXES)

    # "bass", "treble", "clef" etc.
    if any(char.isalpha() for char in stream.rest()):
        return None

    if duration is None:
        duration = parse_duration(digits)
        if duration is None:
            return None

    return Note(name, octave, accidental, duration)


_CHORD_DURATION = re.compile(r'[0-9.~]*')


def parse_chord(token: str) -> Optional[Note]:
    """ Parse "<a c e>4". The first note represents the chord and owns the rest. """
    close = token.find('>')
    if close == -1:
        return None

    duration_str = _CHORD_DURATION.match(token, close + 1).group()
    duration = parse_duration(''.join(c for c in duration_str if c in DIGITS))
    if duration is None:
        return None

    notes = []
    for note_token in token[1:close].split():
        note = parse_single_note(note_token, duration)
        if note is not None:
            notes.append(note)

    if not notes:
        return None

    first, *others = notes
    first.chord_notes = others
    return first


def parse_note(token: str) -> Optional[Note]:
    token = token.strip()
    if token.startswith(('|', '\\')):
        return None

    if token.startswith('<'):
        return parse_chord(token)
    return parse_single_note(token)


def parse_pitched_section(section: str) -> List[PitchedEvent]:
    return _parse_section(section, parse_note)


# **** Drums ****

def parse_drum_hit(token: str) -> Optional[DrumHit]:
    token = token.strip()
    if token.startswith(('|', '\\')):
        return None

    found = lookup_drum(token)
    if found is None:
        return None
    lily_name, strudel_name = found

    stream = Stream(token, len(lily_name))
    duration = parse_duration(stream.get_while(DIGITS))
    if duration is None:
        return None

    return DrumHit(strudel_name, duration)


def parse_drum_section(section: str) -> List[DrumEvent]:
    return _parse_section(section, parse_drum_hit)
