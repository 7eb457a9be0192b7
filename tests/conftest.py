"""Pytest configuration shared by all textlayers tests."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest
import structlog
from textlayers import _config
from textlayers._logging import clear_log_hooks

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture(autouse=True)
def reset_runtime(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Run every test against default configuration and no log hooks."""
    for name in ('TEXTLAYERS_LOG_LEVEL', 'TEXTLAYERS_DEFAULT_LAYERS', 'TEXTLAYERS_CHUNK_SIZE'):
        monkeypatch.delenv(name, raising=False)
    _config.reset()
    clear_log_hooks()
    yield
    _config.reset()
    clear_log_hooks()


@pytest.fixture(autouse=True)
def restore_root_logger() -> Generator[None]:
    """Undo handlers and levels installed by configure_logging()."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)
    root.setLevel(level)
