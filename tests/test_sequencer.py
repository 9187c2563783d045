import pytest

from strudel_of_lilypond import lilyparser, strudelgen
from strudel_of_lilypond.common import LilyError
from strudel_of_lilypond.sequencer import (
    Pattern, Single, Group, RepeatBar, RepeatGroup, SequenceItem, BarSequence,
    load_bar_sequence, lilypond_bar_of_snippet, lilypond_of_sequence, strudel_of_sequence,
)

PATTERN1 = '''\
description: kick and snare
voices:
  - bd4 sn4 bd4 sn4
  - hh8 hh8 hh8 hh8 hh8 hh8 hh8 hh8
'''

PATTERN2 = '''\
description: kick only
voices:
  - bd4 r4 bd4 r4
  - hh8 hh8 hh8 hh8 hh8 hh8 hh8 hh8
'''


@pytest.fixture
def library(tmp_path):
    (tmp_path / 'pattern1.yml').write_text(PATTERN1)
    (tmp_path / 'pattern2.yml').write_text(PATTERN2)
    return tmp_path


def sequence(*items, tempo=120) -> BarSequence:
    return BarSequence(tempo, [
        SequenceItem(item, 'part {}'.format(i)) for i, item in enumerate(items)
    ])


def kick_pattern(ly: str) -> str:
    """ Converts generated LilyPond, and returns the first voice's pattern. """
    staff, = lilyparser.parse(ly).staves
    return strudelgen.generate_pattern(staff.voices[0].events)[0]


# Loading


def test_load_bar_sequence():
    in_str = '''\
tempo: 100
sequence:
  - description: intro
    item: {RepeatBar: [2, {pattern_name: p1}]}
  - description: groove
    item:
      RepeatGroup:
        - 3
        - - Single: {pattern_name: p1}
          - Group: [{Single: {pattern_name: p2}}]
'''
    assert load_bar_sequence(in_str) == BarSequence(100, [
        SequenceItem(RepeatBar(2, Single('p1')), 'intro'),
        SequenceItem(RepeatGroup(3, [Single('p1'), Group([Single('p2')])]), 'groove'),
    ])


def test_load_bar_sequence_file(tmp_path):
    path = tmp_path / 'song.yml'
    path.write_text('tempo: 90\nsequence:\n  - {description: a, item: {Single: {pattern_name: x}}}\n')
    assert load_bar_sequence(path) == BarSequence(90, [SequenceItem(Single('x'), 'a')])


@pytest.mark.parametrize('in_str', [
    'tempo: 120\nsequence:\n  - {description: a, item: {Twice: {pattern_name: x}}}\n',
    'tempo: 120\nsequence:\n  - {description: a, item: {RepeatBar: [-1, {pattern_name: x}]}}\n',
    'tempo: 120\nsequence:\n  - {description: a, item: {Single: x}}\n',
    'tempo: fast\nsequence: []\n',
    'tempo: 120\n',
    'tempo: [120\n',
])
def test_load_bar_sequence_invalid(in_str):
    with pytest.raises(LilyError):
        load_bar_sequence(in_str)


# LilyPond generation


def test_lilypond_bar_of_snippet():
    out = lilypond_bar_of_snippet([Pattern('p', ['bd4 sn4', '  hh8 hh8 '])])
    assert out == '''\
<<
  \\new DrumVoice { bd4 sn4 }
  \\new DrumVoice { hh8 hh8 }
>>'''


def test_lilypond_of_sequence(library):
    ly = lilypond_of_sequence(sequence(Single('pattern1'), Single('pattern2')), [library])

    assert '\\tempo 4 = 120' in ly
    assert '\\new DrumStaff' in ly
    assert '\\voiceOne' in ly
    assert '\\voiceTwo' in ly
    assert '% @strudel-of-lilypond@ comment part 0' in ly
    assert '% @strudel-of-lilypond@ comment part 1' in ly
    assert 'bd4 sn4 bd4 sn4' in ly
    assert 'bd4 r4 bd4 r4' in ly


def test_sequence_round_trip(library):
    ly = lilypond_of_sequence(sequence(Single('pattern1'), Single('pattern2')), [library])
    result = lilyparser.parse(ly)

    assert result.tempo.bpm == 120
    staff, = result.staves
    assert len(staff.voices) == 2
    assert kick_pattern(ly) == '[bd sd bd sd]\n[bd ~ bd ~]'


def test_repeat_bar(library):
    ly = lilypond_of_sequence(
        sequence(RepeatBar(4, Single('pattern1')), Single('pattern2')), [library])
    assert '\\repeat volta 4 {' in ly
    assert kick_pattern(ly) == '[[bd sd bd sd]]!4\n[bd ~ bd ~]'


def test_repeat_group(library):
    ly = lilypond_of_sequence(
        sequence(RepeatGroup(3, [Single('pattern1'), Single('pattern2')])), [library])
    assert kick_pattern(ly) == '[[[bd sd bd sd]\n[bd ~ bd ~]]!3]@6'


def test_group(library):
    ly = lilypond_of_sequence(
        sequence(Group([Single('pattern2'), Single('pattern1')])), [library])
    assert kick_pattern(ly) == '[bd ~ bd ~]\n[bd sd bd sd]'


def test_library_search_order(library, tmp_path_factory):
    override = tmp_path_factory.mktemp('override')
    (override / 'pattern1.yml').write_text(PATTERN2)

    ly = lilypond_of_sequence(sequence(Single('pattern1')), [override, library])
    assert kick_pattern(ly) == '[bd ~ bd ~]'


def test_missing_pattern(library):
    with pytest.raises(LilyError, match="pattern 'nope' not found"):
        lilypond_of_sequence(sequence(Single('nope')), [library])


def test_empty_sequence(library):
    with pytest.raises(LilyError, match='Empty sequence'):
        lilypond_of_sequence(sequence(), [library])
    with pytest.raises(LilyError, match='Empty sequence'):
        lilypond_of_sequence(sequence(Group([])), [library])


def test_too_few_voices(library):
    (library / 'solo.yml').write_text('description: solo\nvoices: [bd1]\n')
    with pytest.raises(LilyError, match="pattern 'solo' has 1 voices"):
        lilypond_of_sequence(sequence(Single('pattern1'), Single('solo')), [library])


def test_strudel_of_sequence(library):
    out = strudel_of_sequence(
        sequence(RepeatBar(4, Single('pattern1')), Single('pattern2'), tempo=96),
        [library], 'song')

    assert 'const tempo = 96;' in out
    assert 'stack(' in out
    assert '.cpm(tempo/4/5)' in out
