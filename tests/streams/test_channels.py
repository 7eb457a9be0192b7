"""Tests for channel implementations."""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from textlayers.streams import Channel, FileChannel, MemoryChannel


class TestMemoryChannel:
    """Tests for MemoryChannel."""

    def test_is_channel(self) -> None:
        assert isinstance(MemoryChannel(), Channel)

    def test_chunked_reads(self) -> None:
        channel = MemoryChannel(b'\xc3\xbe', chunk_size=1)
        assert channel.read_chunk() == b'\xc3'
        assert channel.read_chunk() == b'\xbe'
        assert channel.read_chunk() == b''
        assert channel.read_chunk() == b''

    def test_from_chunks(self) -> None:
        channel = MemoryChannel.from_chunks([b'ab', b'', b'c'])
        assert [channel.read_chunk() for _ in range(3)] == [b'ab', b'c', b'']

    def test_writes_are_recorded(self) -> None:
        channel = MemoryChannel()
        channel.write_chunk(b'ab')
        channel.write_chunk(b'c')
        assert channel.getvalue() == b'abc'
        assert channel.write_count == 2

    def test_closed_channel_rejects_io(self) -> None:
        channel = MemoryChannel(b'data')
        channel.close()
        assert channel.closed
        with pytest.raises(ValueError):
            channel.read_chunk()
        with pytest.raises(ValueError):
            channel.write_chunk(b'x')

    def test_getvalue_after_close(self) -> None:
        channel = MemoryChannel()
        channel.write_chunk(b'kept')
        channel.close()
        assert channel.getvalue() == b'kept'

    @pytest.mark.parametrize('chunk_size', [0, -1])
    def test_invalid_chunk_size(self, chunk_size: int) -> None:
        with pytest.raises(ValueError, match='invalid chunk_size'):
            MemoryChannel(b'x', chunk_size=chunk_size)


class TestFileChannel:
    """Tests for FileChannel."""

    def test_is_channel(self) -> None:
        assert isinstance(FileChannel(io.BytesIO()), Channel)

    def test_reads_file(self, tmp_path: Path) -> None:
        path = tmp_path / 'in.bin'
        path.write_bytes(b'abcdef')
        with path.open('rb') as fh:
            channel = FileChannel(fh, chunk_size=4)
            chunks = [channel.read_chunk(), channel.read_chunk(), channel.read_chunk()]
        assert b''.join(chunks) == b'abcdef'
        assert chunks[-1] == b''

    def test_close_closes_file(self, tmp_path: Path) -> None:
        fh = (tmp_path / 'out.bin').open('wb')
        channel = FileChannel(fh)
        channel.write_chunk(b'xyz')
        channel.close()
        assert fh.closed
        assert (tmp_path / 'out.bin').read_bytes() == b'xyz'

    def test_borrowed_file_stays_open(self) -> None:
        buffer = io.BytesIO()
        channel = FileChannel(buffer, close_file=False)
        channel.write_chunk(b'x')
        channel.close()
        assert not buffer.closed
        assert buffer.getvalue() == b'x'

    def test_name(self, tmp_path: Path) -> None:
        path = tmp_path / 'named.bin'
        path.write_bytes(b'')
        with path.open('rb') as fh:
            assert FileChannel(fh).name == str(path)
        assert FileChannel(io.BytesIO()).name == '<file>'

    def test_zero_chunk_size_rejected(self) -> None:
        with pytest.raises(ValueError, match='invalid chunk_size'):
            FileChannel(io.BytesIO(b'x'), chunk_size=0)
