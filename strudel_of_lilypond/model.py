from dataclasses import dataclass, field
from typing import List, Optional, Union

OCTAVE = 12

# Semitone of each note letter within its octave.
note2pitch = dict(c=0, d=2, e=4, f=5, g=7, a=9, b=11)

accidental2offset = {
    'is': 1,    # sharp
    'es': -1,   # flat
}


@dataclass
class Note:
    """ A pitched note. If `chord_notes` is non-empty, this note is the
    representative of a chord and owns the remaining pitches. """

    name: str
    octave: int
    accidental: Optional[str]   # 'is' or 'es'
    duration: int               # 4 = quarter note

    chord_notes: List['Note'] = field(default_factory=list)
    midi: int = field(init=False)

    def __post_init__(self):
        midi = note2pitch[self.name]
        if self.accidental is not None:
            midi += accidental2offset[self.accidental]
        self.midi = midi + (self.octave + 1) * OCTAVE

    @property
    def is_chord(self) -> bool:
        return bool(self.chord_notes)


@dataclass
class DrumHit:
    name: str       # Strudel sample name
    duration: int


@dataclass(frozen=True)
class Rest:
    duration: int


@dataclass(frozen=True)
class BarLine:
    pass


@dataclass(frozen=True)
class RepeatStart:
    count: int


@dataclass(frozen=True)
class RepeatEnd:
    pass


@dataclass(frozen=True)
class Comment:
    text: str


PitchedEvent = Union[Note, Rest, BarLine, RepeatStart, RepeatEnd, Comment]
DrumEvent = Union[DrumHit, Rest, BarLine, RepeatStart, RepeatEnd, Comment]


@dataclass
class Modifiers:
    """ Display and mixing options read from `% @strudel-of-lilypond@` comments.
    Values are Strudel expressions, either scalars or "<...>" patterns. """

    punchcard_color: Optional[str] = None
    gain: Optional[str] = None
    pan: Optional[str] = None


@dataclass
class DrumVoice:
    events: List[DrumEvent]
    modifiers: Modifiers = field(default_factory=Modifiers)


@dataclass
class PitchedStaff:
    events: List[PitchedEvent]
    modifiers: Modifiers = field(default_factory=Modifiers)


@dataclass
class DrumStaff:
    voices: List[DrumVoice]


Staff = Union[PitchedStaff, DrumStaff]


@dataclass
class Tempo:
    beat_unit: int
    bpm: int


@dataclass
class ParseResult:
    staves: List[Staff]
    tempo: Optional[Tempo]

    def notes(self) -> List[Note]:
        """ All notes of all pitched staves, without bar lines, rests or repeats. """
        return [
            event
            for staff in self.staves if isinstance(staff, PitchedStaff)
            for event in staff.events if isinstance(event, Note)
        ]

    def hits(self) -> List[DrumHit]:
        return [
            event
            for staff in self.staves if isinstance(staff, DrumStaff)
            for voice in staff.voices
            for event in voice.events if isinstance(event, DrumHit)
        ]
