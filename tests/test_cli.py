"""Tests for the textlayers CLI."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner
from textlayers import __version__
from textlayers.cli import cli


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


def test_cli_help(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ['--help'])
    assert result.exit_code == 0
    assert 'transcode' in result.output


def test_cli_version(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ['--version'])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_no_args(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, [])
    assert result.exit_code == 0
    assert 'Usage' in result.output


# --- transcode ---


def test_transcode_latin1_to_utf8(cli_runner: CliRunner, tmp_path: Path) -> None:
    src, dst = tmp_path / 'in.txt', tmp_path / 'out.txt'
    src.write_bytes(b'caf\xe9\n')
    result = cli_runner.invoke(cli, ['transcode', str(src), str(dst), '--from', 'latin-1', '--to', 'UTF-8'])
    assert result.exit_code == 0, result.output
    assert dst.read_bytes() == b'caf\xc3\xa9\n'


def test_transcode_crlf(cli_runner: CliRunner, tmp_path: Path) -> None:
    src, dst = tmp_path / 'in.txt', tmp_path / 'out.txt'
    src.write_bytes('a\r\nþ\n'.encode())
    result = cli_runner.invoke(cli, ['transcode', str(src), str(dst), '--to', 'utf-16-le', '--newline', 'crlf'])
    assert result.exit_code == 0, result.output
    assert dst.read_bytes() == 'a\r\nþ\r\n'.encode('utf-16-le')


def test_transcode_stdin_stdout(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ['transcode', '-', '-', '--to', 'latin-1'], input='þ'.encode())
    assert result.exit_code == 0, result.output
    assert result.stdout_bytes == b'\xfe'


def test_transcode_unrepresentable(cli_runner: CliRunner, tmp_path: Path) -> None:
    src, dst = tmp_path / 'in.txt', tmp_path / 'out.txt'
    src.write_bytes('þ'.encode())
    result = cli_runner.invoke(cli, ['transcode', str(src), str(dst), '--to', 'ascii'])
    assert result.exit_code == 1
    assert 'U+00FE' in result.output


def test_transcode_malformed(cli_runner: CliRunner, tmp_path: Path) -> None:
    src, dst = tmp_path / 'in.txt', tmp_path / 'out.txt'
    src.write_bytes(b'ok\xff')
    result = cli_runner.invoke(cli, ['transcode', str(src), str(dst)])
    assert result.exit_code == 1
    assert 'byte offset 2' in result.output


def test_transcode_unknown_codec(cli_runner: CliRunner, tmp_path: Path) -> None:
    src, dst = tmp_path / 'in.txt', tmp_path / 'out.txt'
    src.write_bytes(b'x')
    result = cli_runner.invoke(cli, ['transcode', str(src), str(dst), '--from', 'klingon'])
    assert result.exit_code == 1
    assert 'klingon' in result.output


# --- codecs ---


def test_codecs_lists_builtins(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ['codecs'])
    assert result.exit_code == 0
    assert 'utf-8' in result.output
    assert 'iso-8859-1' in result.output


# --- inspect ---


def test_inspect_text(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ['inspect', 'þ', '--encoding', 'utf-8'])
    assert result.exit_code == 0
    assert 'U+00FE' in result.output
    assert 'c3 be' in result.output


def test_inspect_file(cli_runner: CliRunner, tmp_path: Path) -> None:
    path = tmp_path / 'in.bin'
    path.write_bytes('Aþ'.encode('utf-16-le'))
    result = cli_runner.invoke(cli, ['inspect', '--file', str(path), '-e', 'utf-16-le'])
    assert result.exit_code == 0
    assert 'U+0041' in result.output
    assert 'fe 00' in result.output


def test_inspect_unrepresentable(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ['inspect', 'þ', '-e', 'ascii'])
    assert result.exit_code == 1
    assert 'cannot encode' in result.output


def test_inspect_needs_one_source(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ['inspect'])
    assert result.exit_code == 2


# --- global flags ---


def test_log_level_flag(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ['--log-level', 'DEBUG', '--log-json', 'codecs'])
    assert result.exit_code == 0


@pytest.mark.parametrize(('flags', 'json_output'), [(['--log-json'], True), ([], False)])
def test_logging_configured_once(cli_runner: CliRunner, flags: list[str], json_output: bool) -> None:
    with patch('textlayers._config.configure_logging') as configure:
        result = cli_runner.invoke(cli, ['--log-level', 'INFO', *flags, 'codecs'])
    assert result.exit_code == 0
    configure.assert_called_once_with('INFO', json_output=json_output)


def test_no_log_level_leaves_logging_alone(cli_runner: CliRunner) -> None:
    with patch('textlayers._config.configure_logging') as configure:
        result = cli_runner.invoke(cli, ['codecs'])
    assert result.exit_code == 0
    configure.assert_not_called()
