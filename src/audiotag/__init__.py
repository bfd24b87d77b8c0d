"""audiotag – audio metadata from fixed-layout binary header blocks."""

__version__ = "0.1.0"

from .core import (
    Tag,
    AudiotagError,
    MalformedBlockError,
    FormatError,
    INTEGER_ATTRIBUTES,
    SUPPORTED_EXT,
    register_format,
    open_tag,
    managed_tag
)
from .streaminfo import (
    StreamProperties,
    StreaminfoBlock,
    decode_streaminfo,
    parse_streaminfo_block,
    read_bits
)
from .flac import FlacTag
from .utils import Config

__all__ = [
    "Tag",
    "AudiotagError",
    "MalformedBlockError",
    "FormatError",
    "INTEGER_ATTRIBUTES",
    "SUPPORTED_EXT",
    "register_format",
    "open_tag",
    "managed_tag",
    "StreamProperties",
    "StreaminfoBlock",
    "decode_streaminfo",
    "parse_streaminfo_block",
    "read_bits",
    "FlacTag",
    "Config"
]
