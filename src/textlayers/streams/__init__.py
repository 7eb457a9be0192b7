"""Streams: layer stacks over byte channels.

- `open_stack(channel, mode)`: bind a `LayerStack` in an open mode such as
  `'<:encoding(UTF-8)'`
- `LayerStack`: `read_value`/`read_line`/`read_all`, `write_value`,
  `push_layer`/`pop_layer`/`set_layers`, `flush`, `close`
- `Channel`: the byte source/sink protocol; `MemoryChannel` and
  `FileChannel` implement it

Stacks are synchronous and single-owner. Reads and writes block for as long
as the channel does; timeouts belong to the channel.
"""

from textlayers.streams.channels import FileChannel, MemoryChannel
from textlayers.streams.layers import Access, Direction, Layer, LayerSpec, parse_layers, parse_mode
from textlayers.streams.options import StackOptions, StackStats
from textlayers.streams.protocols import Channel
from textlayers.streams.stack import LayerStack, open_stack

__all__ = [
    'Access',
    'Channel',
    'Direction',
    'FileChannel',
    'Layer',
    'LayerSpec',
    'LayerStack',
    'MemoryChannel',
    'StackOptions',
    'StackStats',
    'open_stack',
    'parse_layers',
    'parse_mode',
]
