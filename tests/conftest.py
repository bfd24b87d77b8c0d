"""
Pytest configuration and shared fixtures.
"""

import pytest
from pathlib import Path
from typing import Dict, List, Tuple, Union
from mutagen.flac import Picture, VCFLACDict

from audiotag.utils import Config

# ---------- Constants ----------

BLOCK_STREAMINFO = 0
BLOCK_PADDING = 1
BLOCK_SEEKTABLE = 3
BLOCK_VORBIS_COMMENT = 4
BLOCK_PICTURE = 6

# Two bytes of a FLAC frame sync code, standing in for audio data
AUDIO_FRAMES = b'\xff\xf8' + b'\x00' * 64

PNG_BYTES = b'\x89PNG\r\n\x1a\n' + b'\x00' * 32

TAGS = {
    "title": "Test Title",
    "artist": "Test Artist",
    "album": "Test Album",
    "albumartist": "Test Album Artist",
    "composer": "Test Composer",
    "genre": "TestGenre",
    "date": "2025",
    "tracknumber": "3",
    "tracktotal": "12",
    "discnumber": "1",
    "disctotal": "2",
    "comment": "Test Comment",
}

# ---------- Helper Functions ----------

def streaminfo_payload(
    sample_rate: int = 44100,
    channels: int = 2,
    bits_per_sample: int = 16,
    total_samples: int = 0,
    min_block_size: int = 4096,
    max_block_size: int = 4096,
    min_frame_size: int = 0,
    max_frame_size: int = 0,
    md5: bytes = b'\x00' * 16,
) -> bytes:
    """Pack STREAMINFO fields into their 34-byte wire layout."""
    packed = 0
    for width, value in (
        (16, min_block_size),
        (16, max_block_size),
        (24, min_frame_size),
        (24, max_frame_size),
        (20, sample_rate),
        (3, channels - 1),
        (5, bits_per_sample - 1),
        (36, total_samples),
    ):
        packed = (packed << width) | value
    return packed.to_bytes(18, 'big') + md5

def vorbis_comment_payload(fields: Dict[str, Union[str, List[str]]]) -> bytes:
    """Build a FLAC VORBIS_COMMENT payload (no framing bit)."""
    comment = VCFLACDict()
    for key, value in fields.items():
        comment[key] = value
    return comment.write(framing=False)

def picture_payload(data: bytes, mime: str = 'image/png') -> bytes:
    """Build a FLAC PICTURE payload holding a front cover."""
    picture = Picture()
    picture.type = 3
    picture.mime = mime
    picture.desc = 'cover'
    picture.data = data
    return picture.write()

def metadata_block(block_type: int, payload: bytes, last: bool = False) -> bytes:
    """Prefix a payload with its 4-byte metadata block header."""
    flag = 0x80 if last else 0
    return bytes([flag | block_type]) + len(payload).to_bytes(3, 'big') + payload

def flac_bytes(blocks: List[Tuple[int, bytes]], prefix: bytes = b'',
               audio: bytes = AUDIO_FRAMES) -> bytes:
    """Assemble a FLAC stream; the last block gets the last-block flag."""
    out = bytearray(prefix + b'fLaC')
    for i, (block_type, payload) in enumerate(blocks):
        out += metadata_block(block_type, payload, last=(i == len(blocks) - 1))
    return bytes(out) + audio

def id3v2_header(body_size: int, footer: bool = False) -> bytes:
    """Build an ID3v2.4 header followed by body_size zero bytes (and footer)."""
    size = bytes((body_size >> shift) & 0x7F for shift in (21, 14, 7, 0))
    flags = 0x10 if footer else 0
    tail = b'3DI\x04\x00' + bytes([flags]) + size if footer else b''
    return b'ID3\x04\x00' + bytes([flags]) + size + b'\x00' * body_size + tail

# ---------- Fixtures ----------

@pytest.fixture
def make_streaminfo():
    """Factory for STREAMINFO payloads."""
    return streaminfo_payload

@pytest.fixture
def make_flac():
    """Factory for complete FLAC byte images."""
    return flac_bytes

@pytest.fixture
def make_vorbis_comment():
    """Factory for VORBIS_COMMENT payloads."""
    return vorbis_comment_payload

@pytest.fixture
def make_picture():
    """Factory for PICTURE payloads."""
    return picture_payload

@pytest.fixture
def make_id3v2():
    """Factory for ID3v2 tags placed in front of a FLAC stream."""
    return id3v2_header

@pytest.fixture
def full_flac_bytes() -> bytes:
    """A FLAC image with stream info, comments, padding and a cover picture."""
    return flac_bytes([
        (BLOCK_STREAMINFO, streaminfo_payload(sample_rate=44100, bits_per_sample=16,
                                              total_samples=4410000)),
        (BLOCK_SEEKTABLE, b'\x00' * 18),
        (BLOCK_VORBIS_COMMENT, vorbis_comment_payload(TAGS)),
        (BLOCK_PICTURE, picture_payload(PNG_BYTES)),
        (BLOCK_PADDING, b'\x00' * 128),
    ])

@pytest.fixture
def flac_file(tmp_path, full_flac_bytes) -> Path:
    """Write the full FLAC image to disk."""
    path = tmp_path / "test.flac"
    path.write_bytes(full_flac_bytes)
    return path

@pytest.fixture
def empty_file(tmp_path) -> Path:
    """A zero-length .flac file."""
    path = tmp_path / "empty.flac"
    path.write_bytes(b'')
    return path

@pytest.fixture(autouse=True)
def restore_config():
    """Undo any Config changes a test makes."""
    saved = (Config.LOAD_IMAGES, Config.TEXT_ERRORS, Config.DEFAULT_VERBOSE)
    yield
    Config.LOAD_IMAGES, Config.TEXT_ERRORS, Config.DEFAULT_VERBOSE = saved
