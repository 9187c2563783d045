#!/usr/bin/env python3

# LilyPond parser for strudel-of-lilypond
# Released under the WTFPL

import logging
import re
from typing import List, Optional, Iterator

from strudel_of_lilypond.common import DIRECTIVE_TAG, LilyError
from strudel_of_lilypond.lilyparser.events import (
    tokenize, parse_pitched_section, parse_drum_section,
)
from strudel_of_lilypond.lilyparser.text import (
    extract_braced, mark_repeats, parse_macros, mark_macro_repeats, resolve_macros,
    is_drum_content, Macro, MacroKind, MacroTable, MACRO_REF,
)
from strudel_of_lilypond.model import (
    Modifiers, DrumVoice, PitchedStaff, DrumStaff, Staff, Tempo, ParseResult,
)

logger = logging.getLogger(__name__)

__all__ = ['LilyParser', 'LilyError', 'parse', 'parse_tempo', 'read_modifiers', 'tokenize']


# **** Tempo ****

_TEMPO = re.compile(r'\\tempo\s+(\d+)\s*=\s*(\d+)')
_TEMPO_REF = re.compile(r'\\tempo\s+(\d+)\s*=\s*\\([a-zA-Z_][a-zA-Z0-9_]*)')


def parse_tempo(code: str) -> Optional[Tempo]:
    r""" Find `\tempo 4 = 120`, or `\tempo 4 = \bpm` with `bpm = 120`. """
    match = _TEMPO.search(code)
    if match:
        return Tempo(int(match.group(1)), int(match.group(2)))

    match = _TEMPO_REF.search(code)
    if match:
        name = match.group(2)
        value = re.search(r'^{}\s*=\s*(\d+)'.format(re.escape(name)), code, re.MULTILINE)
        if value:
            return Tempo(int(match.group(1)), int(value.group(1)))
        logger.debug('Tempo refers to \\%s, which has no numeric value', name)

    return None


# **** Directives ****

_DIRECTIVE = r'%\s*' + re.escape(DIRECTIVE_TAG) + r'\s+'

_PUNCHCARD = re.compile(_DIRECTIVE + r'(\w+)\s+punchcard')
_VALUE_DIRECTIVES = {
    'gain': re.compile(_DIRECTIVE + r'gain\s+([^\n]+)'),
    'pan': re.compile(_DIRECTIVE + r'pan\s+([^\n]+)'),
}


def read_modifiers(content: str) -> Modifiers:
    """ Read `punchcard`, `gain` and `pan` directives. The first of each wins. """
    modifiers = Modifiers()

    match = _PUNCHCARD.search(content)
    if match:
        modifiers.punchcard_color = match.group(1)

    for key, regex in _VALUE_DIRECTIVES.items():
        match = regex.search(content)
        if match:
            setattr(modifiers, key, match.group(1).strip())

    return modifiers


# **** Score structure ****

_SCORE = re.compile(r'\\score\s*\{')
_STAFF = re.compile(r'\\new\s+(Staff|TabStaff)\s*\{')
_DRUM_STAFF = re.compile(r'\\new\s+DrumStaff\s*\{')
_DRUM_VOICE = re.compile(r'\\new\s+DrumVoice\s*\{')


def find_simultaneous(content: str) -> Optional[str]:
    """ Returns the text between the first << and the last >>. """
    begin = content.find('<<')
    end = content.rfind('>>')
    if begin == -1 or end == -1 or begin >= end:
        return None
    return content[begin + 2:end]


def iter_blocks(regex, content: str) -> Iterator[str]:
    r""" Yield the braced body following each match of `regex` (ending in `{`). """
    for match in regex.finditer(content):
        body = extract_braced(content, match.end() - 1)
        if body is None:
            logger.debug('Skipping unterminated block %r', match.group())
            continue
        yield body


def iter_macro_refs(content: str, macros: MacroTable) -> Iterator[Macro]:
    for match in MACRO_REF.finditer(content):
        macro = macros.get(match.group(1))
        if macro is not None:
            yield macro


def parse_staff(content: str, macros: MacroTable) -> Optional[Staff]:
    r""" Parse a `\new Staff { ... }` body. A staff referencing a \drummode
    macro becomes a single-voice drum staff. """
    modifiers = read_modifiers(content)
    resolved = resolve_macros(content, macros)

    if is_drum_content(content, macros):
        events = parse_drum_section(resolved)
        if events:
            return DrumStaff([DrumVoice(events, modifiers)])
    else:
        events = parse_pitched_section(resolved)
        if events:
            return PitchedStaff(events, modifiers)
    return None


def parse_drum_voices(content: str, macros: MacroTable) -> List[DrumVoice]:
    r""" Parse a `\new DrumStaff { ... }` body into voices. """
    voices = []

    simultaneous = find_simultaneous(content)
    if simultaneous is not None:
        for voice_content in iter_blocks(_DRUM_VOICE, simultaneous):
            resolved = resolve_macros(voice_content, macros)
            events = parse_drum_section(resolved)
            if events:
                voices.append(DrumVoice(events, read_modifiers(voice_content)))

        # << \kick \hats >>
        if not voices:
            for macro in iter_macro_refs(simultaneous, macros):
                if macro.kind != MacroKind.PERCUSSIVE:
                    continue
                events = parse_drum_section(resolve_macros(macro.body, macros))
                if events:
                    voices.append(DrumVoice(events))

    if not voices:
        events = parse_drum_section(resolve_macros(content, macros))
        if events:
            voices.append(DrumVoice(events))

    return voices


def parse_score_staves(code: str, macros: MacroTable) -> Optional[List[Staff]]:
    r""" Parse staves within `\score { << ... >> }`.
    Returns None if there is no score, or it contains no usable staves. """
    match = _SCORE.search(code)
    if not match:
        return None

    score = extract_braced(code, match.end() - 1)
    if score is None:
        return None

    simultaneous = find_simultaneous(score)
    if simultaneous is None:
        return None

    staves = []  # type: List[Staff]

    for content in iter_blocks(_STAFF, simultaneous):
        staff = parse_staff(content, macros)
        if staff is not None:
            staves.append(staff)

    for content in iter_blocks(_DRUM_STAFF, simultaneous):
        voices = parse_drum_voices(content, macros)
        if voices:
            staves.append(DrumStaff(voices))

    # << \melody \drums >>
    if not staves:
        for macro in iter_macro_refs(simultaneous, macros):
            if macro.kind == MacroKind.PERCUSSIVE:
                events = parse_drum_section(resolve_macros(macro.body, macros))
                if events:
                    staves.append(DrumStaff([DrumVoice(events)]))
            else:
                events = parse_pitched_section(resolve_macros(macro.body, macros))
                if events:
                    staves.append(PitchedStaff(events))

    return staves or None


def extract_notes_section(code: str) -> str:
    """ Fallback for inputs without a score: the text between the first { and last }. """
    begin = code.find('{')
    if begin == -1:
        raise LilyError('No "{" found: expected a { ... } music expression')
    end = code.rfind('}')
    if end == -1:
        raise LilyError('No "}" found: expected a { ... } music expression')
    if begin >= end:
        raise LilyError('Invalid syntax: "}" found before the first "{"')
    return code[begin + 1:end]


class LilyParser:
    MISSING_TEMPO = ('Missing tempo: LilyPond input must include a \\tempo directive '
                     '(e.g. \\tempo 4 = 120)')

    def __init__(self, strict_tempo: bool = True):
        """
        :param strict_tempo: If true, a missing \\tempo is an error.
            Otherwise ParseResult.tempo is None.
        """
        self.strict_tempo = strict_tempo

    def parse(self, code: str) -> ParseResult:
        tempo = parse_tempo(code)
        if tempo is None and self.strict_tempo:
            raise LilyError(self.MISSING_TEMPO)

        macros = mark_macro_repeats(parse_macros(code))
        marked = mark_repeats(code)

        staves = parse_score_staves(marked, macros)
        if staves is None:
            logger.info('No \\score staves found, parsing input as a single staff')
            section = extract_notes_section(marked)
            staves = [PitchedStaff(parse_pitched_section(section))]

        return ParseResult(staves, tempo)


def parse(code: str, strict_tempo: bool = True) -> ParseResult:
    return LilyParser(strict_tempo).parse(code)
