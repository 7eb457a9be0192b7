"""Logging for textlayers: structlog events rendered through stdlib handlers.

Library modules emit debug events (plus a warning when a stack's final flush
fails) through loggers from `get_logger`. Nothing is shown until the host
calls `configure_logging`, directly or via `textlayers.init(log_level=...)`,
which installs one stderr handler rendering JSON lines or console text.

Log hooks see every event dict whether or not logging is configured.
"""

from __future__ import annotations

import contextlib
import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = [
    'add_log_hook',
    'clear_log_hooks',
    'configure_logging',
    'get_logger',
    'remove_log_hook',
]

_log_hooks: list[Callable[[dict[str, Any]], None]] = []


def _run_hooks(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for hook in _log_hooks:
        with contextlib.suppress(Exception):
            hook(event_dict.copy())
    return event_dict


def _event_processors() -> list[Any]:
    # also the pre-chain for records from plain stdlib loggers
    return [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt='iso'),
        _run_hooks,
    ]


def configure_logging(level: str = 'INFO', *, json_output: bool = True) -> None:
    """Send log events at `level` and above to stderr.

    Replaces any handlers on the root logger, so calling it again switches
    level or format instead of duplicating output. Unknown level names mean
    INFO.
    """
    if json_output:
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_event_processors(),
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


def get_logger(name: str | None = None) -> Any:
    """Return a structlog logger over the stdlib logger `name`."""
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=[*_event_processors(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def add_log_hook(hook: Callable[[dict[str, Any]], None]) -> None:
    """Call `hook` with a copy of every event dict; exceptions it raises are ignored."""
    _log_hooks.append(hook)


def remove_log_hook(hook: Callable[[dict[str, Any]], None]) -> None:
    if hook in _log_hooks:
        _log_hooks.remove(hook)


def clear_log_hooks() -> None:
    _log_hooks.clear()
