"""Layer stack: transcoding layers bound to one byte channel.

Reads pull raw chunks from the channel and push them up through the read
layers, bottom to top. Writes go down through the write layers in reverse
and end up as bytes in a write buffer that is forwarded to the channel.

Every codec layer consumes octets and produces characters. A codec layer
stacked on another one receives characters; they are turned back into octets
through Latin-1 before decoding (so `:encoding(latin-1):utf8` reads UTF-8
that was mistakenly decoded as Latin-1). On write, octets reaching a codec
layer are upgraded through Latin-1 first, and characters left over when no
codec layer remains are downgraded through Latin-1.

Each read layer owns a held-back buffer for a multi-byte sequence that a
chunk boundary cut in half. Rebinding layers never re-processes data that
was already decoded: decoded values waiting for delivery stay as they are,
and only bytes no layer has decoded yet are handed to the new layers.

Example:
    ```python
    channel = MemoryChannel('þorn\\n'.encode(), chunk_size=1)
    with open_stack(channel, '<:encoding(UTF-8)') as stack:
        stack.read_line()  # CharString(text='þorn\\n')
        stack.read_line()  # None
    ```
"""

from __future__ import annotations

import io
from typing import TYPE_CHECKING, Self

import msgspec

from textlayers._config import get_config
from textlayers._logging import get_logger
from textlayers.coercion import FALLBACK_ENCODING, CoercionPolicy
from textlayers.errors import MalformedInput, StackClosedError, TruncatedStream, UnrepresentableCharacterError
from textlayers.registry import CodecRegistry, DecodeStatus, get_default_registry
from textlayers.streams.layers import Access, Direction, Layer, parse_layers, parse_mode
from textlayers.streams.options import StackOptions, StackStats
from textlayers.values import CharString, Domain, OctetString, StringValue, as_value

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

    from textlayers.registry import Codec
    from textlayers.streams.protocols import Channel

__all__ = ['LayerStack', 'open_stack']

logger = get_logger(__name__)


class LayerStack:
    """Ordered codec layers over a borrowed channel: `Open -> Closed`.

    Not thread-safe; a stack and its channel belong to one owner. Errors are
    raised from the call that hit them and leave no error state behind.

    Attributes:
        channel: The channel the stack reads from and writes to.
        access: Whether reads, writes or both are allowed.
    """

    __slots__ = (
        '_bytes_read',
        '_bytes_written',
        '_closed',
        '_consumed',
        '_cr_held',
        '_eof',
        '_held',
        '_layers',
        '_options',
        '_policy',
        '_ready',
        '_registry',
        '_rejected',
        '_stalled',
        '_truncated',
        '_values_read',
        '_values_written',
        '_write_buffer',
        'access',
        'channel',
    )

    def __init__(
        self,
        channel: Channel,
        access: Access = Access.READ_WRITE,
        *,
        options: StackOptions | None = None,
        registry: CodecRegistry | None = None,
    ) -> None:
        self.channel = channel
        self.access = access
        self._registry = registry or get_default_registry()
        self._policy = CoercionPolicy(self._registry)
        self._options = options or StackOptions()
        self._layers: list[Layer] = []
        # read side: per read layer, undecoded octets and octets decoded so far
        self._held: list[bytes] = []
        self._consumed: list[int] = []
        # characters a stacked layer could not take, waiting for skip()
        self._rejected: list[str] = []
        self._ready: list[StringValue] = []
        self._cr_held = False
        self._eof = False
        self._truncated: TruncatedStream | None = None
        self._stalled: tuple[int, bool] | None = None
        # write side
        self._write_buffer = bytearray()
        self._closed = False
        self._bytes_read = 0
        self._bytes_written = 0
        self._values_read = 0
        self._values_written = 0

    # --- State ---

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def layers(self) -> tuple[Layer, ...]:
        return tuple(self._layers)

    @property
    def options(self) -> StackOptions:
        return self._options

    @property
    def registry(self) -> CodecRegistry:
        return self._registry

    @property
    def pending(self) -> bytes:
        """Bytes read from the channel that no read layer has decoded yet."""
        return b''.join(reversed(self._held))

    @property
    def read_domain(self) -> Domain:
        """Domain of values returned by reads under the current layers."""
        return Domain.CHARACTER if self._read_layers() else Domain.OCTET

    def stats(self) -> StackStats:
        return StackStats(
            bytes_read=self._bytes_read,
            bytes_written=self._bytes_written,
            values_read=self._values_read,
            values_written=self._values_written,
            pending=sum(len(held) for held in self._held),
            buffered=len(self._write_buffer),
            closed=self._closed,
        )

    def _check_open(self) -> None:
        if self._closed:
            raise StackClosedError('I/O operation on closed stack')

    def _check_readable(self) -> None:
        self._check_open()
        if not self.access.readable:
            msg = f'stack opened for {self.access.name.lower()} is not readable'
            raise io.UnsupportedOperation(msg)

    def _check_writable(self) -> None:
        self._check_open()
        if not self.access.writable:
            msg = 'stack opened for read is not writable'
            raise io.UnsupportedOperation(msg)

    # --- Options ---

    def set_autoflush(self, enabled: bool = True) -> None:
        self._options = msgspec.structs.replace(self._options, autoflush=enabled)
        if enabled and self._write_buffer and not self._closed:
            self.flush()

    def set_newline(self, newline: str) -> None:
        if newline not in ('\n', '\r\n'):
            msg = f"newline must be '\\n' or '\\r\\n', got {newline!r}"
            raise ValueError(msg)
        self._options = msgspec.structs.replace(self._options, newline=newline)

    def set_record_separator(self, separator: str | None) -> None:
        if separator == '':
            msg = 'record separator must be non-empty or None'
            raise ValueError(msg)
        self._options = msgspec.structs.replace(self._options, record_separator=separator)

    # --- Layers ---

    def _read_layers(self) -> list[Layer]:
        return [layer for layer in self._layers if layer.direction.reads]

    def _write_layers(self) -> list[Layer]:
        return [layer for layer in self._layers if layer.direction.writes]

    def push_layer(self, codec_name: str, direction: Direction | str = Direction.BOTH) -> Layer:
        """Push a codec layer on top; it applies from the next read/write on.

        Raises:
            UnknownCodecError: If the registry has no such codec.
        """
        self._check_open()
        layer = Layer(self._registry.lookup(codec_name).name, Direction(direction))
        self._rebind([*self._layers, layer])
        return layer

    def pop_layer(self) -> Layer:
        """Remove and return the top layer.

        Raises:
            IndexError: If no layer is bound.
        """
        self._check_open()
        if not self._layers:
            msg = 'pop from a stack without layers'
            raise IndexError(msg)
        layer = self._layers[-1]
        self._rebind(self._layers[:-1])
        return layer

    def set_layers(self, spec: str) -> None:
        """Apply a layer spec such as `':raw:encoding(UTF-8)'`.

        Every codec name is resolved before anything changes, so an unknown
        name leaves the stack untouched.

        Raises:
            ValueError: If the layer spec does not parse.
            UnknownCodecError: If a codec name is not registered.
        """
        self._check_open()
        parsed = parse_layers(spec)
        added = [Layer(self._registry.lookup(name).name) for name in parsed.codecs]
        base = [] if parsed.clear else self._layers
        self._rebind([*base, *added])
        if parsed.newline is not None:
            self.set_newline(parsed.newline)

    def _rebind(self, layers: list[Layer]) -> None:
        old_read = self._read_layers()
        self._layers = layers
        new_read = self._read_layers()
        common = 0
        while common < min(len(old_read), len(new_read)) and old_read[common] == new_read[common]:
            common += 1
        # data held by layers that went away, earliest first
        pieces: list[bytes | str] = []
        for held, rejected in zip(reversed(self._held[common:]), reversed(self._rejected[common:]), strict=True):
            pieces += [piece for piece in (held, rejected) if piece]
        fresh = len(new_read) - common
        self._held = self._held[:common] + [b''] * fresh
        self._rejected = self._rejected[:common] + [''] * fresh
        self._consumed = self._consumed[:common] + [0] * fresh
        for piece in pieces:
            if common == len(new_read):
                self._deliver(OctetString(piece) if isinstance(piece, bytes) else CharString(piece), final=False)
            elif isinstance(piece, bytes) and not self._rejected[common]:
                self._held[common] += piece
            else:
                text = piece if isinstance(piece, str) else self._registry.decode(FALLBACK_ENCODING, piece).text
                self._rejected[common] += text
        self._stalled = None
        logger.debug(
            'stack_rebound',
            layers=[str(layer) for layer in layers],
            carried=sum(len(piece) for piece in pieces),
        )

    # --- Reading ---

    def _codec(self, layer: Layer) -> Codec:
        return self._registry.lookup(layer.codec)

    def _run_read_pipeline(self, chunk: bytes, *, final: bool) -> None:
        """Push one chunk through the read layers into the ready queue.

        Layer state is written back only after every layer has run. A stacked
        layer that meets a character above U+00FF keeps it, with everything
        after it, until `skip` drops it; what decoded before it is delivered.
        """
        value: bytes | str = chunk
        held = list(self._held)
        rejected = list(self._rejected)
        consumed = list(self._consumed)
        truncated = self._truncated
        failure: MalformedInput | UnrepresentableCharacterError | None = None
        stalled: tuple[int, bool] | None = None
        for index, layer in enumerate(self._read_layers()):
            codec = self._codec(layer)
            if isinstance(value, bytes) and not rejected[index]:
                octets = value
            else:
                text = value if isinstance(value, str) else self._registry.decode(FALLBACK_ENCODING, value).text
                text = rejected[index] + text
                rejected[index] = ''
                try:
                    octets = self._registry.encode(FALLBACK_ENCODING, text).data
                except UnrepresentableCharacterError as exc:
                    octets = self._registry.encode(FALLBACK_ENCODING, text[: exc.index]).data
                    rejected[index] = text[exc.index :]
                    if failure is None:
                        failure, stalled = exc, (index, True)
            data = held[index] + octets
            result = codec.decode(data)
            consumed[index] += result.consumed
            held[index] = data[result.consumed :]
            if result.status is DecodeStatus.MALFORMED and failure is None:
                failure, stalled = MalformedInput(codec.name, consumed[index]), (index, False)
            elif result.status is DecodeStatus.INCOMPLETE and final:
                if truncated is None:
                    truncated = TruncatedStream(codec.name, len(held[index]))
                held[index] = b''
            value = result.text
        self._held, self._rejected, self._consumed, self._truncated = held, rejected, consumed, truncated
        if stalled is not None:
            self._stalled = stalled
        self._deliver(CharString(value) if isinstance(value, str) else OctetString(value), final=final)
        if isinstance(failure, UnrepresentableCharacterError):
            raise failure
        if failure is not None:
            prefix = self._drain()
            if isinstance(prefix, OctetString):
                self._ready.append(prefix)
            raise failure.to_exception(prefix=prefix.text if isinstance(prefix, CharString) else '')

    def _deliver(self, value: StringValue, *, final: bool) -> None:
        """Queue decoded data, applying CRLF translation on the way."""
        cr, lf, crlf = ('\r', '\n', '\r\n') if isinstance(value, CharString) else (b'\r', b'\n', b'\r\n')
        data = value.text if isinstance(value, CharString) else value.data
        if self._cr_held:
            data = cr + data
            self._cr_held = False
        if self._options.newline == '\r\n':
            if not final and data.endswith(cr):
                data = data[:-1]
                self._cr_held = True
            data = data.replace(crlf, lf)
        if not data:
            return
        value = CharString(data) if isinstance(data, str) else OctetString(data)
        if self._ready and type(self._ready[-1]) is type(value):
            self._ready[-1] = self._ready[-1] + value
        else:
            self._ready.append(value)

    def _exhausted(self) -> bool:
        return self._eof and not any(self._held) and not any(self._rejected)

    def _fill(self) -> None:
        """Read one chunk from the channel; at EOF run the final pass."""
        if self._eof:
            self._run_read_pipeline(b'', final=True)
            return
        chunk = self.channel.read_chunk()
        if chunk:
            self._bytes_read += len(chunk)
            self._run_read_pipeline(chunk, final=False)
        else:
            self._eof = True
            self._run_read_pipeline(b'', final=True)

    def _drain(self) -> StringValue | None:
        """Take every ready value, joined through the coercion policy."""
        if not self._ready:
            return None
        result = self._ready.pop(0)
        while self._ready:
            result = self._policy.concat(result, self._ready.pop(0))
        return result

    def _end_of_stream(self) -> None:
        if self._truncated is not None:
            truncated, self._truncated = self._truncated, None
            raise truncated.to_exception()

    def _count(self, value: StringValue) -> StringValue:
        self._values_read += 1
        return value

    def read_value(self) -> StringValue | None:
        """Return the next run of decoded data, or None at a clean EOF.

        Pulls chunks until at least one complete unit decodes. Data decoded
        under different layers (after a rebind) comes back as separate
        values, one domain at a time.

        Raises:
            TruncatedStreamError: EOF arrived inside a multi-byte sequence.
            MalformedInputError: Invalid input; `prefix` holds what decoded.
            UnrepresentableCharacterError: A stacked codec layer received a
                character above U+00FF.
            OSError: From the channel.
        """
        self._check_readable()
        while not self._ready:
            if self._exhausted():
                self._end_of_stream()
                return None
            self._fill()
        return self._count(self._ready.pop(0))

    def read_line(self) -> StringValue | None:
        """Return the next record including its separator, or None at EOF.

        Records end at `options.record_separator`, at a change of domain, or
        at EOF. With no separator the rest of the stream is one record.
        """
        self._check_readable()
        while True:
            if self._ready:
                record = self._split_record(self._ready[0])
                if record is not None:
                    return self._count(record)
                if len(self._ready) > 1 or self._exhausted():
                    return self._count(self._ready.pop(0))
            elif self._exhausted():
                self._end_of_stream()
                return None
            self._fill()

    def _split_record(self, head: StringValue) -> StringValue | None:
        separator = self._options.record_separator
        if separator is None:
            return None
        if isinstance(head, CharString):
            index = head.text.find(separator)
            if index < 0:
                return None
            end = index + len(separator)
            record, rest = CharString(head.text[:end]), CharString(head.text[end:])
        else:
            try:
                needle = separator.encode(FALLBACK_ENCODING)
            except UnicodeEncodeError:
                return None
            index = head.data.find(needle)
            if index < 0:
                return None
            end = index + len(needle)
            record, rest = OctetString(head.data[:end]), OctetString(head.data[end:])
        if len(rest):
            self._ready[0] = rest
        else:
            self._ready.pop(0)
        return record

    def read_all(self) -> StringValue:
        """Read to EOF and return everything as one value.

        Values of different domains are joined through the coercion policy.
        An empty stream yields an empty value of the current read domain. A
        truncated final sequence is raised by the next read, after the data
        decoded before it has been returned.
        """
        self._check_readable()
        while not self._exhausted():
            self._fill()
        result = self._drain()
        if result is None:
            self._end_of_stream()
            return CharString('') if self.read_domain is Domain.CHARACTER else OctetString(b'')
        return self._count(result)

    def skip(self, count: int = 1) -> bytes | str:
        """Drop `count` units where decoding last failed and return them.

        Lets a caller step over an invalid sequence after a
        `MalformedInputError` (dropping bytes), or over characters a stacked
        layer refused after an `UnrepresentableCharacterError` (dropping
        characters), instead of aborting.

        Raises:
            ValueError: If no decode failure is outstanding.
        """
        self._check_readable()
        if self._stalled is None:
            msg = 'no failed input to skip'
            raise ValueError(msg)
        index, refused = self._stalled
        self._stalled = None
        if refused:
            text = self._rejected[index][:count]
            self._rejected[index] = self._rejected[index][count:]
            return text
        dropped = self._held[index][:count]
        self._held[index] = self._held[index][count:]
        self._consumed[index] += len(dropped)
        return dropped

    def __iter__(self) -> Iterator[StringValue]:
        """Iterate over records (`read_line`) until EOF."""
        while (record := self.read_line()) is not None:
            yield record

    # --- Writing ---

    def _encode_for_write(self, value: StringValue) -> bytes:
        """Run a value down the write layers; raises before anything is buffered."""
        data: str | bytes = value.text if isinstance(value, CharString) else value.data
        if self._options.newline == '\r\n':
            data = data.replace('\n', '\r\n') if isinstance(data, str) else data.replace(b'\n', b'\r\n')
        for layer in reversed(self._write_layers()):
            if isinstance(data, bytes):
                data = self._policy.upgrade(OctetString(data), operation='write').text
            data = self._codec(layer).encode(data)
        if isinstance(data, str):
            data = self._registry.encode(FALLBACK_ENCODING, data).data
        return data

    def write_value(self, value: StringValue | str | bytes) -> int:
        """Encode and buffer one value; all or nothing.

        Returns:
            Number of bytes the value encoded to.

        Raises:
            UnrepresentableCharacterError: A layer cannot encode a codepoint
                (nothing from this value is buffered).
            OSError: From the channel, if the write triggers a flush.
        """
        self._check_writable()
        data = self._encode_for_write(as_value(value))
        self._write_buffer += data
        self._values_written += 1
        if self._options.autoflush or len(self._write_buffer) >= self._options.buffer_size:
            self.flush()
        return len(data)

    def write_line(self, value: StringValue | str | bytes = '') -> int:
        """Write a value followed by a newline."""
        value = as_value(value)
        newline = CharString('\n') if isinstance(value, CharString) else OctetString(b'\n')
        return self.write_value(value + newline)

    def flush(self) -> None:
        """Forward every buffered byte to the channel.

        On failure the bytes stay buffered and the channel's error propagates.
        """
        self._check_open()
        if not self._write_buffer:
            return
        data = bytes(self._write_buffer)
        self.channel.write_chunk(data)
        self._bytes_written += len(data)
        self._write_buffer.clear()

    # --- Lifecycle ---

    def close(self) -> None:
        """Flush, then release the channel; a second call does nothing.

        The channel is closed even when the flush fails; the flush error is
        raised afterwards. Undelivered read data is discarded.
        """
        if self._closed:
            return
        flush_error: Exception | None = None
        try:
            self.flush()
        except Exception as exc:  # noqa: BLE001
            flush_error = exc
            logger.warning('stack_flush_failed', error=repr(exc), buffered=len(self._write_buffer))
        self._closed = True
        self._held = [b''] * len(self._held)
        self._rejected = [''] * len(self._rejected)
        self._ready.clear()
        self._write_buffer.clear()
        try:
            self.channel.close()
        except Exception as exc:
            if flush_error is None:
                raise
            flush_error.add_note(f'closing the channel also failed: {exc!r}')
        logger.debug('stack_closed', bytes_read=self._bytes_read, bytes_written=self._bytes_written)
        if flush_error is not None:
            raise flush_error

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        layers = ''.join(str(layer) for layer in self._layers) or ':raw'
        state = 'closed' if self._closed else 'open'
        return f'<LayerStack {self.access.value}{layers} {state}>'


def open_stack(
    channel: Channel,
    mode: str = '<',
    *,
    options: StackOptions | None = None,
    registry: CodecRegistry | None = None,
) -> LayerStack:
    """Bind a layer stack to `channel` in `mode`.

    A mode without a layer spec gets `RuntimeConfig.default_layers`.

    Args:
        channel: Byte channel to read from and/or write to.
        mode: Open mode, e.g. `'<'`, `'>:encoding(UTF-8)'`, `'+<:raw'`.
        options: Per-stack options; defaults to `StackOptions()`.
        registry: Codec registry; defaults to the shared frozen one.

    Raises:
        ValueError: If the mode or its layer spec does not parse.
        UnknownCodecError: If a named codec is not registered.
    """
    access, spec = parse_mode(mode)
    stack = LayerStack(channel, access, options=options, registry=registry)
    spec = spec or get_config().default_layers
    if spec:
        stack.set_layers(spec)
    logger.debug('stack_opened', mode=access.value, layers=[str(layer) for layer in stack.layers])
    return stack
