"""Progressive BED decoding."""

import gzip
import zlib
from pathlib import Path

import numpy as _numpy

from ._shared import CONFIG, ParseError, _drain
from .models import BedEntry, BedFile

_GZIP_MAGIC = b"\x1f\x8b"
_BED_SUFFIXES = (".bed", ".bed.gz")
_MAX_COORD = int(_numpy.iinfo(_numpy.int64).max)


def bed_filter_names(names):
    """
    Keep only names with a recognized BED extension.

    Parameters
    ----------
    names : iterable of str
        File names or paths.

    Returns
    -------
    list of str
        Names ending in ``.bed`` or ``.bed.gz`` (case-insensitive), in
        input order.

    Examples
    --------
    >>> import pybedcompare as pb
    >>> pb.bed_filter_names(["a.bed", "b.BED.GZ", "c.txt"])
    ['a.bed', 'b.BED.GZ']
    """
    return [n for n in names if str(n).lower().endswith(_BED_SUFFIXES)]


def bed_file(path, name=None):
    """
    Read a file from disk into a :class:`BedFile`.

    Parameters
    ----------
    path : str or Path
        Path to a ``.bed`` or ``.bed.gz`` file.
    name : str, optional
        Display name. Defaults to the file's base name.

    Returns
    -------
    BedFile

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)
    return BedFile(name or path.name, path.read_bytes())


def _as_bed_file(file):
    if isinstance(file, BedFile):
        return file
    if isinstance(file, (str, Path)):
        return bed_file(file)
    if isinstance(file, tuple) and len(file) == 2:
        return BedFile(str(file[0]), bytes(file[1]))
    raise TypeError(
        f"Expected a BedFile, a (name, bytes) tuple or a path, got {type(file).__name__}"
    )


def _decode_text(content, file_name=None):
    if content[:2] == _GZIP_MAGIC:
        try:
            content = gzip.decompress(content)
        except (OSError, EOFError, zlib.error) as exc:
            raise ParseError(f"invalid gzip stream ({exc})", file_name) from exc
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError(f"invalid UTF-8 at byte {exc.start}", file_name) from exc


def _parse_line(line):
    """Return a BedEntry for a data line, or None for blank, comment or malformed lines."""
    line = line.strip()
    if not line or line.startswith("#"):
        return None
    cols = line.split("\t")
    if len(cols) < 3:
        return None
    try:
        start = int(cols[1])
        end = int(cols[2])
    except ValueError:
        return None
    if not (0 <= start <= _MAX_COORD and 0 <= end <= _MAX_COORD):
        return None
    return BedEntry(cols[0], start, end, "\t".join(cols[3:]))


def iter_decode(content, file_name=None, chunk_size=None):
    """
    Decode BED bytes, yielding progress fractions along the way.

    This is a generator: it yields floats in ``[0, 1]`` after the
    decompression step, after splitting lines and after every
    *chunk_size* parsed lines, and returns the list of entries.

    Parameters
    ----------
    content : bytes
        Raw file content. Gzip is detected from the magic bytes.
    file_name : str, optional
        Used in error messages.
    chunk_size : int, optional
        Lines per checkpoint. Defaults to ``CONFIG['parse_chunk_size']``.

    Raises
    ------
    ParseError
        If the stream is not valid gzip or not valid UTF-8.
    """
    if chunk_size is None:
        chunk_size = int(CONFIG.get("parse_chunk_size", 50000) or 50000)
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    text = _decode_text(bytes(content), file_name)
    yield 0.3

    lines = text.split("\n")
    del text
    yield 0.4

    entries = []
    total = len(lines)
    for i, line in enumerate(lines):
        entry = _parse_line(line)
        if entry is not None:
            entries.append(entry)
        if i > 0 and i % chunk_size == 0:
            yield 0.4 + 0.6 * (i / total)

    yield 1.0
    return entries


def bed_decode(file, progress=None, chunk_size=None):
    """
    Decode a BED file into a list of :class:`BedEntry` tuples.

    Lines that are empty, start with ``#``, have fewer than three
    tab-separated columns, or coordinates that are non-numeric, negative
    or beyond the 64-bit signed range are skipped.

    Parameters
    ----------
    file : BedFile, tuple, str or Path
        The file to decode: a ``BedFile``, a ``(name, bytes)`` tuple or a
        path on disk.
    progress : callable, optional
        Called with monotonically increasing fractions in ``[0, 1]``.
    chunk_size : int, optional
        Lines parsed between progress reports.

    Returns
    -------
    list of BedEntry

    Raises
    ------
    ParseError
        If the byte stream cannot be decoded.

    See Also
    --------
    iter_decode : Generator form used by the comparison pipeline.

    Examples
    --------
    >>> import pybedcompare as pb
    >>> pb.bed_decode(("a.bed", b"chr1\\t0\\t100\\tpeak1\\n"))
    [BedEntry(chrom='chr1', start=0, end=100, rest='peak1')]
    """
    file = _as_bed_file(file)
    gen = iter_decode(file.content, file.name, chunk_size=chunk_size)
    if progress is None:
        return _drain(gen)
    while True:
        try:
            progress(next(gen))
        except StopIteration as stop:
            return stop.value
