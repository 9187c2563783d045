""" Structural text preprocessing: braces, repeats, comments and macros.
Everything here maps LilyPond text to LilyPond text (plus sentinel tokens). """

import enum
import logging
import re
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from strudel_of_lilypond.common import DIRECTIVE_TAG, LilyError

logger = logging.getLogger(__name__)


class Stream:
    """ Read cursor over a string. peek() returns '' at EOF. """

    def __init__(self, in_str: str, pos: int = 0):
        self.in_str = in_str
        self.pos = pos

    def size(self):
        return len(self.in_str)

    def is_eof(self):
        assert self.pos <= self.size()
        return self.pos >= self.size()

    def peek(self) -> str:
        return self.in_str[self.pos:self.pos + 1]

    def peek_equals(self, keyword: str):
        return self.in_str.startswith(keyword, self.pos)

    def get_char(self) -> str:
        out = self.peek()
        self.pos += len(out)
        return out

    def get_chars(self, num: int) -> str:
        """ Gets up to `num` characters. """
        new = min(self.pos + num, self.size())
        skipped = self.in_str[self.pos:new]
        self.pos = new
        return skipped

    def get_while(self, chars) -> str:
        begin = self.pos
        while not self.is_eof() and self.peek() in chars:
            self.pos += 1
        return self.in_str[begin:self.pos]

    def rest(self) -> str:
        out = self.in_str[self.pos:]
        self.pos = self.size()
        return out


# **** Braces ****

_BRACE = re.compile('[{}]')


def extract_braced(code: str, brace_start: int) -> Optional[str]:
    """ Returns the text strictly between code[brace_start] == '{' and its
    matching '}', or None if the brace is never closed. """
    assert code[brace_start] == '{'

    depth = 0
    for match in _BRACE.finditer(code, brace_start):
        if match.group() == '{':
            depth += 1
        else:
            depth -= 1
            if depth == 0:
                return code[brace_start + 1:match.start()]
    return None


# **** Repeats ****

REPEAT_START = '__REPEAT_START_{}__'
REPEAT_END = '__REPEAT_END__'

_REPEAT = re.compile(r'\\repeat\s+\w+\s+(\d+)\s*\{')


def mark_repeats(code: str) -> str:
    r""" Replace each `\repeat volta N { body }` with
    ` __REPEAT_START_N__ body __REPEAT_END__ `. Nested repeats are marked
    recursively within their body, which is never duplicated. """
    out = []
    pos = 0

    while True:
        match = _REPEAT.search(code, pos)
        if not match:
            break

        brace_start = match.end() - 1
        body = extract_braced(code, brace_start)
        if body is None:
            raise LilyError(
                'Unterminated \\repeat at offset {}, missing "}}": {}'.format(
                    match.start(), match.group()))

        count = int(match.group(1))
        out.append(code[pos:match.start()])
        out.append(' {} {} {} '.format(
            REPEAT_START.format(count), mark_repeats(body), REPEAT_END))

        # Skip body and closing brace.
        pos = brace_start + len(body) + 2

    out.append(code[pos:])
    return ''.join(out)


# **** Comments ****

_DIRECTIVE = r'%\s*' + re.escape(DIRECTIVE_TAG) + r'\s+'

COMMENT_FORMAT = '__COMMENT_{}__'
COMMENT_SPACE = '\x01'

_COMMENT_DIRECTIVE = re.compile(_DIRECTIVE + r'comment\s+(.+)$', re.MULTILINE)
_BLOCK_COMMENT = re.compile(r'%\{.*?%\}', re.DOTALL)
_LINE_COMMENT = re.compile(r'%[^\n]*')


def mark_comments(section: str) -> str:
    """ Turn `comment` directives into single __COMMENT_text__ tokens. """
    def replace(match):
        text = re.sub(r'\s', COMMENT_SPACE, match.group(1).strip())
        return COMMENT_FORMAT.format(text)

    return _COMMENT_DIRECTIVE.sub(replace, section)


def strip_comments(section: str) -> str:
    """ Remove remaining LilyPond comments, including other directives. """
    section = _BLOCK_COMMENT.sub(' ', section)
    return _LINE_COMMENT.sub('', section)


# **** Macros ****

class MacroKind(enum.Enum):
    MELODIC = 'melodic'
    PERCUSSIVE = 'percussive'


@dataclass
class Macro:
    kind: MacroKind
    body: str


MacroTable = Dict[str, Macro]

_NAME = r'[a-zA-Z_][a-zA-Z0-9_]*'
_MACRO_DEFS = [
    (MacroKind.MELODIC, re.compile(r'^(' + _NAME + r')\s*=\s*\{', re.MULTILINE)),
    (MacroKind.PERCUSSIVE, re.compile(r'^(' + _NAME + r')\s*=\s*\\drummode\s*\{', re.MULTILINE)),
]
MACRO_REF = re.compile(r'\\(' + _NAME + ')')


def parse_macros(code: str) -> MacroTable:
    """ Find top-level `name = { ... }` and `name = \\drummode { ... }`. """
    macros = {}  # type: MacroTable

    for kind, regex in _MACRO_DEFS:
        for match in regex.finditer(code):
            name = match.group(1)
            body = extract_braced(code, match.end() - 1)
            if body is None:
                logger.debug('Skipping unterminated macro %s', name)
                continue
            macros[name] = Macro(kind, body)

    return macros


def mark_macro_repeats(macros: MacroTable) -> MacroTable:
    return {name: Macro(macro.kind, mark_repeats(macro.body))
            for name, macro in macros.items()}


def resolve_macros(content: str, macros: MacroTable, chain: Tuple[str, ...] = ()) -> str:
    r""" Substitute every `\name` with its macro body, recursively.
    Unknown references are kept verbatim.

    :param chain: Macros currently being expanded, outermost first.
    """

    def replace(match):
        name = match.group(1)
        macro = macros.get(name)
        if macro is None:
            return match.group(0)
        if name in chain:
            cycle = chain[chain.index(name):] + (name,)
            raise LilyError('Cyclic macro reference: ' + ' -> '.join('\\' + n for n in cycle))
        return resolve_macros(macro.body, macros, chain + (name,))

    return MACRO_REF.sub(replace, content)


def is_drum_content(content: str, macros: MacroTable) -> bool:
    """ True if `content` directly references a \\drummode macro. """
    for match in MACRO_REF.finditer(content):
        macro = macros.get(match.group(1))
        if macro is not None and macro.kind == MacroKind.PERCUSSIVE:
            return True
    return False
