from strudel_of_lilypond.common import LilyError
from strudel_of_lilypond.includes import expand_includes
from strudel_of_lilypond.lilyparser import LilyParser, parse
from strudel_of_lilypond.model import (
    Note, DrumHit, Rest, BarLine, RepeatStart, RepeatEnd, Comment,
    Modifiers, DrumVoice, PitchedStaff, DrumStaff, Tempo, ParseResult,
)
from strudel_of_lilypond.strudelgen import generate_multi, generate_html

__version__ = '0.1.0'
