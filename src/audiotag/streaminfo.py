"""
Bit-level decoding of the FLAC STREAMINFO metadata block.

STREAMINFO block data structure (34 bytes, big-endian, MSB first):

    Length(bit)  Meaning

    16           The minimum block size (in samples) used in the stream.
    16           The maximum block size (in samples) used in the stream.
                 (Minimum blocksize == maximum blocksize) implies a fixed-blocksize stream.
    24           The minimum frame size (in bytes) used in the stream.
                 May be 0 to imply the value is not known.
    24           The maximum frame size (in bytes) used in the stream.
                 May be 0 to imply the value is not known.
    20           Sample rate in Hz. 0 means the rate is unknown.
    3            (number of channels)-1. FLAC supports from 1 to 8 channels.
    5            (bits per sample)-1. FLAC supports from 4 to 32 bits per sample.
    36           Total samples in stream. 'Samples' means inter-channel sample,
                 i.e. one second of 44.1Khz audio will have 44100 samples regardless
                 of the number of channels. 0 means the total is unknown.
    128          MD5 signature of the unencoded audio data.
"""

import logging
from typing import NamedTuple, Optional, Tuple

from .core import MalformedBlockError

logger = logging.getLogger(__name__)

STREAMINFO_SIZE = 34

# (name, bit offset, bit width) for every field of the payload, in order.
# Offsets must stay contiguous: consumers rely on the absolute positions.
STREAMINFO_LAYOUT: Tuple[Tuple[str, int, int], ...] = (
    ('min_block_size', 0, 16),
    ('max_block_size', 16, 16),
    ('min_frame_size', 32, 24),
    ('max_frame_size', 56, 24),
    ('sample_rate', 80, 20),
    ('channels', 100, 3),
    ('bits_per_sample', 103, 5),
    ('total_samples', 108, 36),
    ('md5', 144, 128),
)

# The derived metrics only need the packed 64 bits that follow the
# block/frame size fields.
_PROPERTIES_OFFSET = 10
_PROPERTIES_END = _PROPERTIES_OFFSET + 8


class StreamProperties(NamedTuple):
    """Audio properties derived from a STREAMINFO block."""
    sample_rate: int
    duration: Optional[int]
    bitrate: int


class StreaminfoBlock(NamedTuple):
    """Every field of a STREAMINFO block, with the minus-one fields restored."""
    min_block_size: int
    max_block_size: int
    min_frame_size: int
    max_frame_size: int
    sample_rate: int
    channels: int
    bits_per_sample: int
    total_samples: int
    md5: bytes


def read_bits(data: bytes, bit_offset: int, width: int) -> int:
    """
    Read an unsigned big-endian bit field from a byte buffer.

    The field may start and end anywhere inside a byte; only the bytes it
    touches are converted.

    Args:
        data: Buffer to read from
        bit_offset: Position of the field's most significant bit, counted
            from the first bit of ``data``
        width: Number of bits in the field

    Returns:
        The field value as a non-negative integer

    Raises:
        MalformedBlockError: If the field extends past the end of ``data``

    Examples:
        >>> read_bits(b'\\xab\\xcd', 4, 8)
        188
    """
    if bit_offset < 0 or width <= 0:
        raise ValueError(f"Invalid bit field: offset={bit_offset}, width={width}")

    end = bit_offset + width
    if end > len(data) * 8:
        raise MalformedBlockError(
            f"Bit field {bit_offset}+{width} runs past the end of a "
            f"{len(data)}-byte block"
        )

    first_byte = bit_offset // 8
    last_byte = (end + 7) // 8
    chunk = int.from_bytes(data[first_byte:last_byte], 'big')
    shift = last_byte * 8 - end
    return (chunk >> shift) & ((1 << width) - 1)


def round_half_up(numerator: int, denominator: int) -> int:
    """Round a non-negative rational to the nearest integer, ties going up."""
    return (2 * numerator + denominator) // (2 * denominator)


def decode_streaminfo(block_data: bytes) -> StreamProperties:
    """
    Decode sample rate, duration and bitrate from a STREAMINFO payload.

    The first 10 bytes (block and frame size limits) are skipped; the
    following 64 bits carry sample rate (20), channels-1 (3),
    bits-per-sample-1 (5) and total samples (36).

    Duration is only computed when the sample rate is known (non-zero).
    Bitrate is always ``sample_rate * bits_per_sample // 1000`` kbps.

    Raises:
        MalformedBlockError: If ``block_data`` is shorter than 18 bytes
    """
    if len(block_data) < _PROPERTIES_END:
        raise MalformedBlockError(
            f"STREAMINFO block too short: {len(block_data)} bytes, "
            f"need at least {_PROPERTIES_END}"
        )

    info_bits = block_data[_PROPERTIES_OFFSET:_PROPERTIES_END]
    sample_rate = read_bits(info_bits, 0, 20)
    bits_per_sample = read_bits(info_bits, 23, 5) + 1
    total_samples = read_bits(info_bits, 28, 36)

    duration = None
    if sample_rate > 0:
        duration = round_half_up(total_samples, sample_rate)
    else:
        logger.debug("STREAMINFO sample rate is 0 (unknown); duration left unset")

    bitrate = sample_rate * bits_per_sample // 1000

    return StreamProperties(sample_rate=sample_rate, duration=duration, bitrate=bitrate)


def parse_streaminfo_block(block_data: bytes) -> StreaminfoBlock:
    """Decode all nine STREAMINFO fields from a 34-byte payload."""
    if len(block_data) < STREAMINFO_SIZE:
        raise MalformedBlockError(
            f"STREAMINFO block too short: {len(block_data)} bytes, "
            f"need {STREAMINFO_SIZE}"
        )

    fields = {name: read_bits(block_data, offset, width)
              for name, offset, width in STREAMINFO_LAYOUT}
    fields['channels'] += 1
    fields['bits_per_sample'] += 1
    fields['md5'] = fields['md5'].to_bytes(16, 'big')
    return StreaminfoBlock(**fields)
