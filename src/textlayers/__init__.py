"""textlayers: character/octet string values and layered transcoding IO.

Flat imports (preferred):
    from textlayers import CharString, OctetString, decode, encode, open_stack

Submodule imports (for organization):
    from textlayers.registry import CodecRegistry, create_default_registry
    from textlayers.coercion import CoercionPolicy
    from textlayers.streams import LayerStack, MemoryChannel
"""

from textlayers._config import RuntimeConfig, get_config, init
from textlayers._logging import configure_logging, get_logger

# Coercion
from textlayers.coercion import FALLBACK_ENCODING, CoercionPolicy, get_default_policy

# Errors - struct variants and exception variants
from textlayers.errors import (
    MalformedInput,
    MalformedInputError,
    RegistryFrozen,
    RegistryFrozenError,
    StackClosed,
    StackClosedError,
    TruncatedStream,
    TruncatedStreamError,
    UnknownCodec,
    UnknownCodecError,
    UnrepresentableCharacter,
    UnrepresentableCharacterError,
)

# Codecs
from textlayers.registry import (
    Codec,
    CodecRegistry,
    DecodeResult,
    DecodeStatus,
    create_default_registry,
    decode,
    encode,
    get_default_registry,
    lookup,
)

# Streams
from textlayers.streams import (
    Access,
    Channel,
    Direction,
    FileChannel,
    Layer,
    LayerStack,
    MemoryChannel,
    StackOptions,
    open_stack,
)

# Values
from textlayers.values import (
    CharString,
    Domain,
    OctetString,
    StringValue,
    concat,
    domain_of,
    from_literal,
    length,
)

__version__ = '0.1.0'

__all__ = [
    'FALLBACK_ENCODING',
    'Access',
    'Channel',
    'CharString',
    'Codec',
    'CodecRegistry',
    'CoercionPolicy',
    'DecodeResult',
    'DecodeStatus',
    'Direction',
    'Domain',
    'FileChannel',
    'Layer',
    'LayerStack',
    'MalformedInput',
    'MalformedInputError',
    'MemoryChannel',
    'OctetString',
    'RegistryFrozen',
    'RegistryFrozenError',
    'RuntimeConfig',
    'StackClosed',
    'StackClosedError',
    'StackOptions',
    'StringValue',
    'TruncatedStream',
    'TruncatedStreamError',
    'UnknownCodec',
    'UnknownCodecError',
    'UnrepresentableCharacter',
    'UnrepresentableCharacterError',
    '__version__',
    'concat',
    'configure_logging',
    'create_default_registry',
    'decode',
    'domain_of',
    'encode',
    'from_literal',
    'get_config',
    'get_default_policy',
    'get_default_registry',
    'get_logger',
    'init',
    'length',
    'lookup',
    'open_stack',
]
