"""
audiotag core - the Tag entity every audio format parser plugs into.
"""

import io
import os
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, BinaryIO, Dict, Generator, List, Optional, Type, Union

from .utils import safe_int

logger = logging.getLogger(__name__)

Source = Union[str, os.PathLike, BinaryIO]

# Attributes that always end up as integers after construction.
# A missing or non-numeric value becomes 0.
INTEGER_ATTRIBUTES = ('disc', 'disc_total', 'track', 'track_total')

class AudiotagError(Exception):
    """Base exception for audiotag errors."""
    pass

class MalformedBlockError(AudiotagError):
    """Raised when a metadata block is too short or corrupted for its layout."""
    pass

class FormatError(AudiotagError):
    """Raised when file format is unsupported."""
    pass

class Tag:
    """
    Metadata of one audio file.

    The constructor resolves the source to a readable handle and a size,
    runs the format-specific ``parse()`` when the input is not empty and
    normalizes the integer attributes. After that the tag is read-only.

    A file opened from a path is closed before the constructor returns.
    A caller's stream stays open and gets its original position back.

    Subclasses implement ``parse()`` and fill the underscore attributes.
    """

    def __init__(self, source: Source):
        """Initialize the tag from a file path or an open binary stream."""
        self._file_io: Optional[BinaryIO] = None
        self._owns_file = False
        self._start_position = 0

        self._title: Optional[str] = None
        self._artist: Optional[str] = None
        self._album: Optional[str] = None
        self._albumartist: Optional[str] = None
        self._composer: Optional[str] = None
        self._genre: Optional[str] = None
        self._year: Optional[str] = None
        self._comments: List[str] = []
        self._images: List[bytes] = []

        self._disc: Any = None
        self._disc_total: Any = None
        self._track: Any = None
        self._track_total: Any = None

        self._sample_rate: Optional[int] = None
        self._bitrate: Optional[int] = None
        self._duration: Optional[int] = None

        self._file_size = self._open(source)
        try:
            if self._file_size > 0:
                self._file_io.seek(0)
                self.parse()
            else:
                logger.debug(f"Empty input for {self.name}, skipping parse")
            self._normalize_integers()
        finally:
            if self._owns_file:
                # Attributes are complete here; release an owned handle
                self.close()
            else:
                self._file_io.seek(self._start_position)

    def _open(self, source: Source) -> int:
        """Resolve the source to a handle and return the input size in bytes."""
        if isinstance(source, (str, os.PathLike)):
            self.path: Optional[Path] = Path(source)
            self._file_io = open(self.path, 'rb')
            self._owns_file = True
            try:
                return os.fstat(self._file_io.fileno()).st_size
            except OSError:
                self.close()
                raise

        if hasattr(source, 'read') and hasattr(source, 'seek'):
            self.path = None
            self._file_io = source
            self._owns_file = False
            size = self._stream_size(source)
            self._start_position = source.tell()
            return size

        raise TypeError(
            f"Tag source must be a path or a readable, seekable binary stream, "
            f"not {type(source).__name__}"
        )

    @staticmethod
    def _stream_size(stream: BinaryIO) -> int:
        """Return the total size of a seekable stream, leaving its position untouched."""
        try:
            position = stream.tell()
            size = stream.seek(0, io.SEEK_END)
            stream.seek(position)
        except (AttributeError, ValueError, io.UnsupportedOperation) as e:
            raise OSError(f"Cannot determine stream size: {e}") from e
        if size is None:
            raise OSError("Cannot determine stream size: seek() returned no position")
        return size

    def parse(self) -> None:
        """Read the input and populate the attributes. Implemented by each format."""
        raise NotImplementedError('The parse method is not implemented')

    def _normalize_integers(self) -> None:
        """Coerce disc/track numbers to int, 0 meaning unknown."""
        self._disc = safe_int(self._disc) or 0
        self._disc_total = safe_int(self._disc_total) or 0
        self._track = safe_int(self._track) or 0
        self._track_total = safe_int(self._track_total) or 0

    def close(self) -> None:
        """Close the input handle if this tag opened it. Safe to call repeatedly."""
        if self._owns_file and self._file_io is not None:
            try:
                self._file_io.close()
            finally:
                self._file_io = None
                self._owns_file = False

    def __enter__(self) -> 'Tag':
        """Enter the context manager."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit the context manager and close the file."""
        self.close()

    # ---------- Read-only accessors ----------

    @property
    def name(self) -> str:
        """Display name of the input."""
        return self.path.name if self.path is not None else '<stream>'

    @property
    def file_size(self) -> int:
        return self._file_size

    @property
    def title(self) -> Optional[str]:
        return self._title

    @property
    def artist(self) -> Optional[str]:
        return self._artist

    @property
    def album(self) -> Optional[str]:
        return self._album

    @property
    def albumartist(self) -> Optional[str]:
        return self._albumartist

    @property
    def composer(self) -> Optional[str]:
        return self._composer

    @property
    def genre(self) -> Optional[str]:
        return self._genre

    @property
    def year(self) -> Optional[str]:
        return self._year

    @property
    def comments(self) -> List[str]:
        """Comment texts in file order (a copy)."""
        return list(self._comments)

    @property
    def images(self) -> List[bytes]:
        """Embedded picture data in file order (a copy)."""
        return list(self._images)

    @property
    def disc(self) -> int:
        return self._disc

    @property
    def disc_total(self) -> int:
        return self._disc_total

    @property
    def track(self) -> int:
        return self._track

    @property
    def track_total(self) -> int:
        return self._track_total

    @property
    def sample_rate(self) -> Optional[int]:
        """Sample rate in Hz."""
        return self._sample_rate

    @property
    def bitrate(self) -> Optional[int]:
        """Bitrate in kbps."""
        return self._bitrate

    @property
    def duration(self) -> Optional[int]:
        """Duration in whole seconds."""
        return self._duration

    # ---------- Presentation ----------

    def to_dict(self) -> Dict[str, Any]:
        """Return the attributes as a plain dict; images are reported by size."""
        return {
            'title': self.title,
            'artist': self.artist,
            'album': self.album,
            'albumartist': self.albumartist,
            'composer': self.composer,
            'genre': self.genre,
            'year': self.year,
            'comments': self.comments,
            'track': self.track,
            'track_total': self.track_total,
            'disc': self.disc,
            'disc_total': self.disc_total,
            'images': [len(image) for image in self._images],
            'duration': self.duration,
            'bitrate': self.bitrate,
            'sample_rate': self.sample_rate,
            'file_size': self.file_size,
        }

    def __str__(self) -> str:
        """Return formatted metadata as a string."""
        lines = [f"=== {self.name} ==="]
        for key, value in self.to_dict().items():
            if isinstance(value, list):
                value = "; ".join(str(v) for v in value) or "(none)"
            elif value is None:
                value = "(unknown)"
            lines.append(f"{key:15}: {value}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} size={self.file_size}>"


# ---------- Format registry ----------

_FORMATS: Dict[str, Type[Tag]] = {}

# Extensions with a registered Tag variant, filled by register_format()
SUPPORTED_EXT = set()

def register_format(ext: str, tag_class: Type[Tag]) -> None:
    """Associate a file extension (e.g. '.flac') with a Tag subclass."""
    ext = ext.lower()
    if not ext.startswith('.'):
        ext = '.' + ext
    _FORMATS[ext] = tag_class
    SUPPORTED_EXT.add(ext)

def open_tag(path: Union[str, os.PathLike]) -> Tag:
    """
    Build the Tag variant matching the file extension.

    Raises:
        FormatError: If no variant is registered for the extension
        OSError: If the file cannot be opened
    """
    ext = Path(path).suffix.lower()
    tag_class = _FORMATS.get(ext)
    if tag_class is None:
        raise FormatError(f"Unsupported file format: {ext or '(no extension)'}")
    return tag_class(path)

@contextmanager
def managed_tag(path: Union[str, os.PathLike]) -> Generator[Tag, None, None]:
    """Context manager for open_tag with proper resource cleanup."""
    tag = None
    try:
        tag = open_tag(path)
        yield tag
    except Exception as e:
        logger.error(f"Failed to load audio file {path}: {e}")
        raise
    finally:
        if tag:
            tag.close()
