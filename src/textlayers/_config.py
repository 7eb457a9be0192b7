"""Runtime configuration: RuntimeConfig and initialization."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from textlayers._logging import configure_logging, get_logger
from textlayers.types import ChunkSize, check

if TYPE_CHECKING:
    from textlayers.registry import CodecRegistry

__all__ = [
    'DEFAULT_CHUNK_SIZE',
    'RuntimeConfig',
    'get_config',
    'init',
]

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 8192


@dataclass(frozen=True)
class RuntimeConfig:
    """Process-wide defaults for textlayers.

    Attributes:
        log_level: Logging level (e.g., "DEBUG", "INFO"). None = leave logging alone.
        default_layers: Layer spec applied by `open_stack` when the mode names
            none, e.g. ":encoding(UTF-8)". Empty means raw octets.
        chunk_size: Bytes requested from a channel per read (1 byte to 16 MiB).
    """

    log_level: str | None = None
    default_layers: str = ''
    chunk_size: int = DEFAULT_CHUNK_SIZE


_config: RuntimeConfig | None = None


def _detect_chunk_size() -> int:
    """Read TEXTLAYERS_CHUNK_SIZE; a bad value falls back to the default."""
    raw = os.environ.get('TEXTLAYERS_CHUNK_SIZE', '')
    if not raw:
        return DEFAULT_CHUNK_SIZE
    try:
        return check(int(raw), ChunkSize, 'TEXTLAYERS_CHUNK_SIZE')
    except ValueError:
        logging.warning("Invalid TEXTLAYERS_CHUNK_SIZE value '%s', using %d", raw, DEFAULT_CHUNK_SIZE)
        return DEFAULT_CHUNK_SIZE


def init(
    log_level: str | None = None,
    default_layers: str | None = None,
    chunk_size: int | None = None,
    *,
    registry: CodecRegistry | None = None,
    freeze_registry: bool = True,
    log_json: bool = True,
) -> RuntimeConfig:
    """Initialize textlayers with the given configuration.

    Unset arguments fall back to TEXTLAYERS_LOG_LEVEL,
    TEXTLAYERS_DEFAULT_LAYERS and TEXTLAYERS_CHUNK_SIZE.

    Args:
        log_level: Logging level ("DEBUG", "INFO", etc.). None = silent.
        default_layers: Layer spec for stacks opened without one.
        chunk_size: Bytes per channel read, 1 byte to 16 MiB.
        registry: A registry the host has finished populating. It is frozen
            when `freeze_registry` is true, so later registrations fail.
        freeze_registry: Freeze `registry` once configured.
        log_json: Render log events as JSON rather than for a console.

    Returns:
        The RuntimeConfig that was set.

    Raises:
        ValueError: If `chunk_size` is out of range.

    Example:
        ```python
        import textlayers

        textlayers.init(log_level='DEBUG', default_layers=':encoding(UTF-8)')
        ```
    """
    global _config  # noqa: PLW0603

    resolved_level = log_level if log_level is not None else os.environ.get('TEXTLAYERS_LOG_LEVEL') or None
    resolved_layers = default_layers if default_layers is not None else os.environ.get('TEXTLAYERS_DEFAULT_LAYERS', '')
    if chunk_size is None:
        resolved_chunk = _detect_chunk_size()
    else:
        resolved_chunk = check(chunk_size, ChunkSize, 'chunk_size')

    _config = RuntimeConfig(
        log_level=resolved_level,
        default_layers=resolved_layers,
        chunk_size=resolved_chunk,
    )

    if resolved_level is not None:
        configure_logging(resolved_level, json_output=log_json)
    if registry is not None and freeze_registry:
        registry.freeze()
    logger.debug('runtime_initialized', default_layers=resolved_layers, chunk_size=resolved_chunk)

    return _config


def get_config() -> RuntimeConfig:
    """Get the current configuration, or the defaults if `init` was never called.

    Codecs and stacks work without initialization, so this never raises.
    """
    if _config is None:
        return RuntimeConfig()
    return _config


def reset() -> None:
    """Forget the configuration set by `init` (used by tests)."""
    global _config  # noqa: PLW0603
    _config = None
