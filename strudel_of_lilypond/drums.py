""" LilyPond drummode vocabulary, and its translation to Strudel sample names.
Both tables are plain data: extend them without touching the parser. """

from typing import Optional, Tuple

import pygtrie

DRUM_NAMES = (
    'bd', 'sn',
    'hh', 'hhc', 'hho', 'hhp',
    'cymc', 'cymr', 'cymca', 'cymcb',
    'tom', 'tomh', 'tomm', 'toml', 'tomfl', 'tomfh',
    'cb', 'cl', 'cp', 'cr', 'gui', 'hc', 'lc',
    'mc', 'rc', 'ride', 'rb', 'ss', 'tamb', 'tri', 'whl', 'whs',
    'pedalhihat', 'hihat', 'openhat', 'closehat',
)

# Names missing from this table are passed through unchanged (bd, hh, ...).
LILYPOND_TO_STRUDEL = {
    'sn': 'sd',     # snare drum
    'hhc': 'hh',    # closed hi-hat
    'hho': 'oh',    # open hi-hat
    'cymc': 'cr',   # crash cymbal
    'cymr': 'rd',   # ride cymbal
    'tomh': 'ht',   # high tom
    'tomm': 'mt',   # mid tom
    'toml': 'lt',   # low tom
    'ss': 'rim',    # side stick
}


def _build_trie() -> pygtrie.CharTrie:
    trie = pygtrie.CharTrie()
    for name in DRUM_NAMES:
        trie[name] = LILYPOND_TO_STRUDEL.get(name, name)
    return trie


_drum_trie = _build_trie()


def lookup_drum(token: str) -> Optional[Tuple[str, str]]:
    """ Match the leading alphabetic run of `token` against the vocabulary.

    :return: (LilyPond name, Strudel name), or None if the run is not
        exactly a drum name.
    """
    step = _drum_trie.longest_prefix(token)
    if not step:
        return None

    name = step.key
    if token[len(name):len(name) + 1].isalpha():
        # "hhx" is not "hh".
        return None
    return name, step.value
