import logging
import re
from pathlib import Path
from typing import Tuple, Union

from strudel_of_lilypond.common import LilyError

logger = logging.getLogger(__name__)

_INCLUDE = re.compile(r'\\include\s+"([^"]+)"')


def expand_includes(code: str, base_dir: Union[Path, str]) -> str:
    r""" Recursively inline `\include "file.ly"`. Paths are relative to the
    directory of the including file. """
    return _expand(code, Path(base_dir), ())


def _expand(code: str, base_dir: Path, chain: Tuple[Path, ...]) -> str:
    out = []
    pos = 0

    for match in _INCLUDE.finditer(code):
        file_name = match.group(1)
        try:
            path = (base_dir / file_name).resolve(strict=True)
        except OSError as e:
            raise LilyError(f'Cannot resolve include "{file_name}": {e}')

        if path in chain:
            raise LilyError(f'Circular include detected: "{file_name}"')

        try:
            content = path.read_text()
        except OSError as e:
            raise LilyError(f'Cannot read include "{file_name}": {e}')

        logger.debug('Including %s', path)
        out.append(code[pos:match.start()])
        out.append(_expand(content, path.parent, chain + (path,)))
        pos = match.end()

    out.append(code[pos:])
    return ''.join(out)
