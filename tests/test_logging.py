"""Tests for logging configuration and hooks."""

from __future__ import annotations

import logging
from typing import Any

from textlayers._logging import (
    add_log_hook,
    clear_log_hooks,
    configure_logging,
    get_logger,
    remove_log_hook,
)


class TestLogHooks:
    """Tests for logging hooks functionality."""

    def test_hook_receives_log_events(self) -> None:
        """Registered hooks receive log entry dicts."""
        received: list[dict[str, Any]] = []

        configure_logging(level='DEBUG', json_output=True)
        add_log_hook(received.append)

        logger = get_logger('test')
        logger.info('Test message', extra_field='extra_value')

        test_entries = [e for e in received if e.get('event') == 'Test message']
        assert len(test_entries) == 1
        assert test_entries[0]['extra_field'] == 'extra_value'
        assert test_entries[0]['level'] == 'info'

    def test_hooks_fire_without_configuration(self) -> None:
        """Library events reach hooks even if the host never configured logging."""
        received: list[dict[str, Any]] = []
        add_log_hook(received.append)

        get_logger('textlayers.test').debug('quiet_event')

        assert [e['event'] for e in received] == ['quiet_event']

    def test_remove_hook(self) -> None:
        """remove_log_hook() stops hook from being called."""
        calls: list[str] = []

        def hook(event_dict: dict[str, Any]) -> None:
            calls.append(event_dict['event'])

        add_log_hook(hook)
        get_logger('test').info('first')
        remove_log_hook(hook)
        get_logger('test').info('second')

        assert calls == ['first']

    def test_remove_unknown_hook_is_noop(self) -> None:
        remove_log_hook(lambda event_dict: None)

    def test_clear_hooks(self) -> None:
        calls: list[str] = []
        add_log_hook(lambda event_dict: calls.append('a'))
        clear_log_hooks()
        get_logger('test').info('ignored')
        assert calls == []

    def test_failing_hook_does_not_break_logging(self) -> None:
        """An exception in one hook doesn't stop the others."""
        calls: list[str] = []

        def bad_hook(event_dict: dict[str, Any]) -> None:
            raise RuntimeError('hook failed')

        add_log_hook(bad_hook)
        add_log_hook(lambda event_dict: calls.append('ok'))

        get_logger('test').info('Test')

        assert calls == ['ok']

    def test_hook_receives_copy(self) -> None:
        seen: list[dict[str, Any]] = []

        def mutating_hook(event_dict: dict[str, Any]) -> None:
            event_dict['event'] = 'changed'

        add_log_hook(mutating_hook)
        add_log_hook(seen.append)
        get_logger('test').info('original')

        assert seen[0]['event'] == 'original'


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_sets_root_level(self) -> None:
        configure_logging(level='WARNING')
        assert logging.getLogger().level == logging.WARNING

    def test_unknown_level_defaults_to_info(self) -> None:
        configure_logging(level='chatty')
        assert logging.getLogger().level == logging.INFO

    def test_single_handler(self) -> None:
        configure_logging(level='DEBUG')
        configure_logging(level='DEBUG', json_output=False)
        assert len(logging.getLogger().handlers) == 1

    def test_json_output_renders_event(self, capsys: Any) -> None:
        configure_logging(level='DEBUG', json_output=True)
        get_logger('textlayers.test').warning('rendered_event', codec='utf-8')
        err = capsys.readouterr().err
        assert 'rendered_event' in err
        assert '"codec": "utf-8"' in err

    def test_console_output_renders_event(self, capsys: Any) -> None:
        configure_logging(level='DEBUG', json_output=False)
        get_logger('textlayers.test').warning('console_event', codec='utf-8')
        err = capsys.readouterr().err
        assert 'console_event' in err
        assert '"event"' not in err
