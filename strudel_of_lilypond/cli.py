import logging
import sys
from pathlib import Path
from typing import Tuple

import click

from strudel_of_lilypond.common import LilyError, RETURN_ERR, HTML_SUFFIX, LY_SUFFIX
from strudel_of_lilypond.includes import expand_includes
from strudel_of_lilypond.lilyparser import LilyParser
from strudel_of_lilypond.model import ParseResult
from strudel_of_lilypond.sequencer import load_bar_sequence, lilypond_of_sequence
from strudel_of_lilypond.strudelgen import generate_html
from strudel_of_lilypond.util import perr, coalesce

LOG_LEVELS = [logging.WARNING, logging.INFO, logging.DEBUG]


def setup_logging(verbose: int):
    level = LOG_LEVELS[min(verbose, len(LOG_LEVELS) - 1)]
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')


def pathify(_ctx, _param, value):
    if value is None:
        return value
    return Path(value)


def report(result: ParseResult):
    perr('Parsed {} staves ({} notes, {} drum hits)'.format(
        len(result.staves), len(result.notes()), len(result.hits())))
    if result.tempo is not None:
        perr('Tempo: {} = {} BPM'.format(result.tempo.beat_unit, result.tempo.bpm))


def convert(ly: str, base_dir: Path, title: str, strict_tempo: bool = True) -> str:
    """ LilyPond source -> Strudel HTML document. """
    expanded = expand_includes(ly, base_dir)
    result = LilyParser(strict_tempo).parse(expanded)
    report(result)
    return generate_html(result.staves, result.tempo, title)


def die(message: str):
    perr('Error:', message)
    sys.exit(RETURN_ERR)


def check_not_input(out_path: Path, in_path: Path):
    if out_path.resolve() == in_path.resolve():
        die('Output file {} will overwrite the input file!'.format(out_path))


@click.command()
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False), callback=pathify)
@click.option(
    *'output --output -o'.split(), type=click.Path(dir_okay=False), callback=pathify,
    help='Output HTML path (defaults to <input stem>.html)')
@click.option(
    '--loose-tempo', is_flag=True,
    help='Accept input without \\tempo (the page defaults to 120 BPM)')
@click.option(
    *'verbose --verbose -v'.split(), count=True)
def main(input_path: Path, output: Path, loose_tempo: bool, verbose: int):
    """ Convert a LilyPond file into a Strudel HTML page. """
    setup_logging(verbose)

    output = coalesce(output, Path(input_path.stem + HTML_SUFFIX))
    check_not_input(output, input_path)

    try:
        html = convert(input_path.read_text(), input_path.parent, input_path.stem,
                       strict_tempo=not loose_tempo)
    except LilyError as e:
        die(str(e))

    output.write_text(html)
    click.echo(str(output))


@click.command()
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False), callback=pathify)
@click.option(
    *'libraries --library -L'.split(), multiple=True,
    type=click.Path(exists=True, file_okay=False),
    help='Pattern library folder, searched for <name>.yml (can be repeated)')
@click.option(
    *'verbose --verbose -v'.split(), count=True)
def sequence_main(input_path: Path, libraries: Tuple[str, ...], verbose: int):
    """ Generate a LilyPond drum score from a YAML bar sequence, then convert it
    into a Strudel HTML page. Both are written beside the input. """
    setup_logging(verbose)

    ly_path = input_path.with_suffix(LY_SUFFIX)
    html_path = input_path.with_suffix(HTML_SUFFIX)
    check_not_input(ly_path, input_path)

    try:
        bar_sequence = load_bar_sequence(input_path)
        ly = lilypond_of_sequence(bar_sequence, [Path(lib) for lib in libraries])
    except LilyError as e:
        die(str(e))

    ly_path.write_text(ly)
    perr('Wrote', ly_path)

    try:
        html = convert(ly, ly_path.parent, ly_path.stem)
    except LilyError as e:
        die(str(e))

    html_path.write_text(html)
    click.echo(str(html_path))
