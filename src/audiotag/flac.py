"""
FLAC support: metadata block discovery and the FlacTag format variant.
"""

import io
import struct
import logging
from typing import BinaryIO, Generator, List, Optional, Tuple

from mutagen import MutagenError
from mutagen.flac import Picture, VCFLACDict

from .core import MalformedBlockError, Tag, register_format
from .streaminfo import decode_streaminfo
from .utils import Config

logger = logging.getLogger(__name__)

FLAC_MARKER = b'fLaC'
ID3V2_MARKER = b'ID3'

# Metadata block types
BLOCK_STREAMINFO = 0
BLOCK_PADDING = 1
BLOCK_APPLICATION = 2
BLOCK_SEEKTABLE = 3
BLOCK_VORBIS_COMMENT = 4
BLOCK_CUESHEET = 5
BLOCK_PICTURE = 6
BLOCK_INVALID = 127

# Vorbis comment key -> Tag attribute for single-valued text fields.
# Aliases are listed in priority order; the first key present wins.
TEXT_FIELDS = (
    ('title', ('title',)),
    ('artist', ('artist',)),
    ('album', ('album',)),
    ('albumartist', ('albumartist', 'album artist', 'album_artist')),
    ('composer', ('composer',)),
    ('genre', ('genre',)),
    ('year', ('date', 'year')),
)

COMMENT_KEYS = ('comment', 'description')


def skip_id3v2(file_io: BinaryIO) -> None:
    """Move past an ID3v2 tag at the current position, if there is one."""
    start = file_io.tell()
    header = file_io.read(10)
    if len(header) < 10 or header[:3] != ID3V2_MARKER:
        file_io.seek(start)
        return

    flags = header[5]
    # Synchsafe size: 4 bytes of 7 significant bits each
    size = 0
    for byte in header[6:10]:
        size = (size << 7) | (byte & 0x7F)
    if flags & 0x10:
        size += 10  # footer present
    logger.debug(f"Skipping {size + 10} byte ID3v2 tag in front of FLAC stream")
    file_io.seek(start + 10 + size)


def iter_blocks(file_io: BinaryIO) -> Generator[Tuple[int, Optional[bytes]], None, None]:
    """
    Yield (block_type, payload) for each metadata block after the fLaC marker.

    Payloads of block types nobody reads (padding, seek tables...) are
    skipped without reading them, and yielded as None.

    Raises:
        MalformedBlockError: On a truncated payload or the invalid block type 127
    """
    is_last = False
    while not is_last:
        header = file_io.read(4)
        if len(header) < 4:
            if header:
                raise MalformedBlockError("Truncated FLAC metadata block header")
            return

        is_last = bool(header[0] & 0x80)
        block_type = header[0] & 0x7F
        size = struct.unpack('>I', b'\x00' + header[1:4])[0]

        if block_type == BLOCK_INVALID:
            raise MalformedBlockError("Invalid FLAC metadata block type 127")

        if block_type in (BLOCK_STREAMINFO, BLOCK_VORBIS_COMMENT, BLOCK_PICTURE):
            data = file_io.read(size)
            if len(data) < size:
                raise MalformedBlockError(
                    f"FLAC metadata block type {block_type} declares {size} bytes, "
                    f"only {len(data)} available"
                )
            yield block_type, data
        else:
            file_io.seek(size, io.SEEK_CUR)
            yield block_type, None


def split_number(value: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Split a 'number/total' value into its parts.

    Examples:
        >>> split_number('3/12')
        ('3', '12')
        >>> split_number('7')
        ('7', None)
    """
    if value is None:
        return None, None
    number, _, total = value.partition('/')
    return number.strip() or None, total.strip() or None


class FlacTag(Tag):
    """Tag variant for native FLAC streams."""

    def parse(self) -> None:
        skip_id3v2(self._file_io)
        if self._file_io.read(4) != FLAC_MARKER:
            logger.warning(f"{self.name} is not a FLAC stream, no metadata read")
            return

        for block_type, data in iter_blocks(self._file_io):
            if block_type == BLOCK_STREAMINFO:
                self._parse_streaminfo(data)
            elif block_type == BLOCK_VORBIS_COMMENT:
                self._parse_vorbis_comment(data)
            elif block_type == BLOCK_PICTURE:
                self._parse_picture(data)
            else:
                logger.debug(f"Skipped FLAC metadata block type {block_type}")

    def _parse_streaminfo(self, data: bytes) -> None:
        properties = decode_streaminfo(data)
        self._sample_rate = properties.sample_rate
        self._duration = properties.duration
        self._bitrate = properties.bitrate

    def _parse_vorbis_comment(self, data: bytes) -> None:
        """Map Vorbis comment fields onto the tag attributes."""
        try:
            comment = VCFLACDict(data, errors=Config.TEXT_ERRORS)
        except (MutagenError, struct.error, UnicodeDecodeError) as e:
            raise MalformedBlockError(f"Invalid VORBIS_COMMENT block: {e}") from e

        def first(*keys: str) -> Optional[str]:
            """Return the first value of the first key present."""
            for key in keys:
                values = comment.get(key)
                if values:
                    return values[0]
            return None

        for attr, keys in TEXT_FIELDS:
            value = first(*keys)
            if value is not None:
                setattr(self, '_' + attr, value)

        comments: List[str] = []
        for key in COMMENT_KEYS:
            comments.extend(comment.get(key) or [])
        self._comments.extend(comments)

        track, track_total = split_number(first('tracknumber'))
        disc, disc_total = split_number(first('discnumber'))
        track_total = first('tracktotal', 'totaltracks') or track_total
        disc_total = first('disctotal', 'totaldiscs') or disc_total

        # A later comment block without numbers keeps what an earlier one set
        if track is not None:
            self._track = track
        if track_total is not None:
            self._track_total = track_total
        if disc is not None:
            self._disc = disc
        if disc_total is not None:
            self._disc_total = disc_total

    def _parse_picture(self, data: bytes) -> None:
        if not Config.LOAD_IMAGES:
            return
        try:
            picture = Picture(data)
        except (MutagenError, struct.error) as e:
            raise MalformedBlockError(f"Invalid PICTURE block: {e}") from e
        logger.debug(f"Found {picture.mime} picture ({len(picture.data)} bytes)")
        self._images.append(picture.data)


register_format('.flac', FlacTag)
