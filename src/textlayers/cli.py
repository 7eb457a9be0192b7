"""Command line interface: transcode files and inspect codecs."""

from __future__ import annotations

from typing import BinaryIO

import click

from textlayers import __version__
from textlayers._config import init
from textlayers.errors import (
    MalformedInputError,
    TruncatedStreamError,
    UnknownCodecError,
    UnrepresentableCharacterError,
)
from textlayers.registry import get_default_registry
from textlayers.streams import FileChannel, StackOptions, open_stack
from textlayers.values import CharString

_CORE_ERRORS = (
    MalformedInputError,
    TruncatedStreamError,
    UnknownCodecError,
    UnrepresentableCharacterError,
)

_NEWLINES = {'lf': '\n', 'crlf': '\r\n'}


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name='textlayers')
@click.option(
    '--log-level',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
    default=None,
    help='Emit library log events at this level to stderr.',
)
@click.option('--log-json', is_flag=True, help='Structured JSON log output to stderr.')
@click.pass_context
def cli(ctx: click.Context, log_level: str | None, log_json: bool) -> None:
    """textlayers - character/octet transcoding tools."""
    init(log_level=log_level, log_json=log_json)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument('src', type=click.File('rb'))
@click.argument('dst', type=click.File('wb'))
@click.option('--from', 'from_codec', default='utf-8', show_default=True, help='Encoding of SRC.')
@click.option('--to', 'to_codec', default='utf-8', show_default=True, help='Encoding to write to DST.')
@click.option(
    '--newline',
    type=click.Choice(sorted(_NEWLINES)),
    default='lf',
    show_default=True,
    help='Line ending written to DST; CRLF in SRC is read as LF.',
)
def transcode(src: BinaryIO, dst: BinaryIO, from_codec: str, to_codec: str, newline: str) -> None:
    """Re-encode SRC from one encoding to another into DST ('-' for stdin/stdout)."""
    try:
        reader = open_stack(FileChannel(src, close_file=False), f'<:encoding({from_codec}):crlf')
        writer = open_stack(
            FileChannel(dst, close_file=False),
            f'>:encoding({to_codec})',
            options=StackOptions(newline=_NEWLINES[newline]),
        )
        with reader, writer:
            while (value := reader.read_value()) is not None:
                writer.write_value(value)
    except _CORE_ERRORS as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command(name='codecs')
def list_codecs() -> None:
    """List the registered codecs."""
    for codec in get_default_registry().codecs():
        aliases = ', '.join(codec.aliases) or '-'
        click.echo(f'{codec.name:<12} max {codec.max_bytes_per_char} byte(s)/char  aliases: {aliases}')


@cli.command()
@click.argument('text', required=False)
@click.option('-e', '--encoding', default='utf-8', show_default=True, help='Codec to encode (or decode) with.')
@click.option(
    '--file',
    'path',
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help='Decode this file instead of taking TEXT.',
)
def inspect(text: str | None, encoding: str, path: str | None) -> None:
    """Show each character of TEXT with its codepoint and encoded bytes."""
    if (text is None) == (path is None):
        raise click.UsageError('give either TEXT or --file')
    registry = get_default_registry()
    try:
        if path is not None:
            with open(path, 'rb') as fh:
                value = registry.decode(encoding, fh.read())
        else:
            value = CharString(text or '')
        for index, char in enumerate(value.text):
            encoded = registry.encode(encoding, char).data
            shown = char if char.isprintable() else repr(char)
            click.echo(f'{index:>6}  {shown:<4} U+{ord(char):04X}  {encoded.hex(" ")}')
    except _CORE_ERRORS as exc:
        raise click.ClickException(str(exc)) from exc
