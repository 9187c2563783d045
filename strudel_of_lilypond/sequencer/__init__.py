from pathlib import Path
from typing import Sequence

from strudel_of_lilypond.lilyparser import LilyParser
from strudel_of_lilypond.sequencer.lilypond import lilypond_bar_of_snippet, lilypond_of_sequence
from strudel_of_lilypond.sequencer.model import (
    Pattern, Single, Group, RepeatBar, RepeatGroup, SequenceItem, BarSequence,
    load_bar_sequence, load_pattern,
)
from strudel_of_lilypond.strudelgen import generate_html


def strudel_of_sequence(bar_sequence: BarSequence, libraries: Sequence[Path], title: str) -> str:
    """ Bar sequence -> LilyPond -> Strudel HTML, without touching the filesystem
    (except to read patterns). """
    ly = lilypond_of_sequence(bar_sequence, libraries)
    result = LilyParser().parse(ly)
    return generate_html(result.staves, result.tempo, title)
