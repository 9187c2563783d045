""" Assemble a bar sequence into a LilyPond drum score. """

import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from strudel_of_lilypond.common import DIRECTIVE_TAG, LilyError, YAML_SUFFIX
from strudel_of_lilypond.sequencer.model import (
    Pattern, Single, Group, RepeatBar, RepeatGroup, BarItem, BarSequence, load_pattern,
)

logger = logging.getLogger(__name__)

INDENT = ' ' * 12
VOICE_DIRECTIVES = ['\\voiceOne', '\\voiceTwo', '\\voiceThree', '\\voiceFour']

SCORE_TEMPLATE = r'''\version "2.24.4"

\paper {{
  #(include-special-characters)
  indent = 0\mm
  line-width = 180\mm
  oddHeaderMarkup = ""
  evenHeaderMarkup = ""
  oddFooterMarkup = ""
  evenFooterMarkup = ""
  #(add-text-replacements!
    '(("100" . "hundred")
      ("dpi" . "dots per inch")))
}}

\score {{
  <<
    \tempo 4 = {tempo}

    \new DrumStaff {{
      <<
{voices}
      >>
    }}
  >>

  \layout {{}}
}}
'''


def lilypond_bar_of_snippet(patterns: Iterable[Pattern]) -> str:
    """ One << ... >> block of DrumVoices per pattern. """
    blocks = []
    for pattern in patterns:
        voices = ['  \\new DrumVoice {{ {} }}'.format(voice.strip()) for voice in pattern.voices]
        blocks.append('<<\n{}\n>>'.format('\n'.join(voices)))
    return '\n'.join(blocks)


class PatternLibrary:
    """ Looks up `<name>.yml` in each library folder, in order. """

    def __init__(self, libraries: Sequence[Path]):
        self.libraries = [Path(lib) for lib in libraries]
        self._cache = {}  # type: Dict[str, Pattern]

    def resolve(self, pattern_name: str) -> Pattern:
        if pattern_name in self._cache:
            return self._cache[pattern_name]

        for lib in self.libraries:
            path = lib / (pattern_name + YAML_SUFFIX)
            if path.exists():
                logger.debug('Loading pattern %s from %s', pattern_name, path)
                pattern = self._cache[pattern_name] = load_pattern(path)
                return pattern

        raise LilyError("pattern '{}' not found in libraries: {}".format(
            pattern_name, [str(lib) for lib in self.libraries]))


def find_first_bar(items: Iterable[BarItem]) -> Optional[Single]:
    for item in items:
        if isinstance(item, Single):
            return item
        elif isinstance(item, RepeatBar):
            return item.bar
        else:
            bar = find_first_bar(item.items)
            if bar is not None:
                return bar
    return None


class VoiceWriter:
    """ Writes the music of one voice across the whole sequence.
    Bar lines are written between bars, but never directly before or after a repeat. """

    def __init__(self, library: PatternLibrary, get_voice: Callable[[Pattern, str], str]):
        self.library = library
        self.get_voice = get_voice
        self.lines = []  # type: List[str]
        self.need_bar_sep = False

    def _put(self, indent: str, text: str):
        self.lines.append(indent + text)

    def _begin_bar(self, indent: str, comment: Optional[str]):
        if self.need_bar_sep:
            self._put(indent, '|')
        if comment is not None:
            self._put(indent, '% {} comment {}'.format(DIRECTIVE_TAG, comment))

    def _voice(self, bar: Single) -> str:
        return self.get_voice(self.library.resolve(bar.pattern_name), bar.pattern_name).strip()

    def write(self, items: Iterable[BarItem], indent: str, comment: Optional[str] = None):
        """ :param comment: Description, written before the first item only. """
        for i, item in enumerate(items):
            item_comment = comment if i == 0 else None

            if isinstance(item, Single):
                self._begin_bar(indent, item_comment)
                self._put(indent, self._voice(item))
                self.need_bar_sep = True

            elif isinstance(item, Group):
                self.write(item.items, indent, item_comment)

            elif isinstance(item, RepeatBar):
                self._begin_bar(indent, item_comment)
                self._put(indent, '\\repeat volta {} {{'.format(item.count))
                self._put(indent, '  ' + self._voice(item.bar))
                self._put(indent, '}')
                self.need_bar_sep = False

            elif isinstance(item, RepeatGroup):
                self._begin_bar(indent, item_comment)
                self._put(indent, '\\repeat volta {} {{'.format(item.count))

                self.need_bar_sep = False
                self.write(item.items, indent + '  ')

                self._put(indent, '}')
                self.need_bar_sep = False

            else:
                raise TypeError(f'invalid bar item type={type(item)}, programmer error')


def _voice_getter(voice_idx: int) -> Callable[[Pattern, str], str]:
    def get_voice(pattern: Pattern, name: str) -> str:
        if voice_idx >= len(pattern.voices):
            raise LilyError("pattern '{}' has {} voices, expected at least {}".format(
                name, len(pattern.voices), voice_idx + 1))
        return pattern.voices[voice_idx]
    return get_voice


def lilypond_of_sequence(bar_sequence: BarSequence, libraries: Sequence[Path]) -> str:
    library = PatternLibrary(libraries)
    items = [entry.item for entry in bar_sequence.sequence]

    first_bar = find_first_bar(items)
    if first_bar is None:
        raise LilyError('Empty sequence')
    num_voices = len(library.resolve(first_bar.pattern_name).voices)

    voice_blocks = []
    for voice_idx in range(num_voices):
        writer = VoiceWriter(library, _voice_getter(voice_idx))
        for entry in bar_sequence.sequence:
            writer.write([entry.item], INDENT, entry.description)

        directive = VOICE_DIRECTIVES[voice_idx] if voice_idx < len(VOICE_DIRECTIVES) else ''
        voice_blocks.append('        \\new DrumVoice {{\n          {}\n{}\n        }}'.format(
            directive, '\n'.join(writer.lines)))

    return SCORE_TEMPLATE.format(tempo=bar_sequence.tempo, voices='\n'.join(voice_blocks))
