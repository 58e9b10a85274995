"""Reference genome chromosome sizes."""

import gzip
import json
import os
import zlib
from pathlib import Path

from ._shared import CONFIG, ReferenceUnavailable

_GZIP_MAGIC = b"\x1f\x8b"


def normalize_genome_name(name):
    """
    Map assembly aliases to the names reference files are stored under.

    Examples
    --------
    >>> import pybedcompare as pb
    >>> pb.normalize_genome_name("GRCh38")
    'hg38'
    >>> pb.normalize_genome_name("mm10")
    'mm10'
    """
    lower = name.lower()
    if "hg38" in lower or "grch38" in lower:
        return "hg38"
    if "hg19" in lower or "grch37" in lower:
        return "hg19"
    return name


def detect_majority_genome(results, default=None):
    """
    Pick the assembly most input files agree on.

    Parameters
    ----------
    results : iterable of tuple
        ``(genome, tier)`` per file; *genome* may be ``None`` when no match
        was found. Tier 1 denotes an exact match.
    default : str, optional
        Returned when no file has a genome. Defaults to
        ``CONFIG['default_genome']``.

    Returns
    -------
    tuple
        ``(genome, defaulted)``. Tier-1 matches are counted first; if there
        are none, any match counts. Ties keep the genome seen first.
    """
    if default is None:
        default = CONFIG.get('default_genome', 'hg38')
    results = list(results)

    counts = {}
    for genome, tier in results:
        if genome and tier == 1:
            counts[genome] = counts.get(genome, 0) + 1
    if not counts:
        for genome, _ in results:
            if genome:
                counts[genome] = counts.get(genome, 0) + 1
    if not counts:
        return default, True

    best, best_count = default, 0
    for genome, count in counts.items():
        if count > best_count:
            best, best_count = genome, count
    return best, False


def _read_chrom_sizes_file(path):
    """Parse a two-column ``chrom<TAB>size`` file into a dict."""
    sizes = {}
    with open(path, encoding="utf-8") as fh:
        for line_num, line in enumerate(fh, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            chrom, _, rest = line.partition("\t")
            chrom = chrom.strip()
            size = rest.split("\t", 1)[0].strip()
            if not chrom or not size:
                raise ValueError(f"{path}: line {line_num}: expected 'chrom<TAB>size'")
            if not size.isdigit():
                raise ValueError(f"{path}: line {line_num}: invalid size {size!r}")
            sizes[chrom] = int(size)
    return sizes


def _read_json_chrom_sizes(path):
    payload = Path(path).read_bytes()
    # Hosts may or may not have decompressed the file already.
    if payload[:2] == _GZIP_MAGIC:
        try:
            payload = gzip.decompress(payload)
        except (OSError, EOFError, zlib.error) as exc:
            raise ValueError(f"{path}: invalid gzip stream ({exc})") from exc
    data = json.loads(payload.decode("utf-8"))
    sizes = data.get("chromSizes") if isinstance(data, dict) else None
    if not isinstance(sizes, dict):
        raise ValueError(f"{path}: missing 'chromSizes' mapping")

    out = {}
    for chrom, size in sizes.items():
        if isinstance(size, bool) or not isinstance(size, (int, float)):
            raise ValueError(f"{path}: invalid size {size!r} for {chrom!r}")
        if (isinstance(size, float) and not size.is_integer()) or size < 0:
            raise ValueError(f"{path}: invalid size {size!r} for {chrom!r}")
        out[str(chrom)] = int(size)
    return out


class ReferenceLoader:
    """
    Load and cache chromosome sizes per genome assembly.

    Looks in *ref_dir* for, in order, ``{genome}.json.gz``,
    ``{genome}.json`` (columnar reference JSON with a ``chromSizes`` map)
    and ``{genome}.chrom.sizes`` (two tab-separated columns).

    Parameters
    ----------
    ref_dir : str or Path, optional
        Directory with reference files. Defaults to
        ``CONFIG['reference_dir']``.
    """

    _CANDIDATES = ("{genome}.json.gz", "{genome}.json", "{genome}.chrom.sizes")

    def __init__(self, ref_dir=None):
        if ref_dir is None:
            ref_dir = CONFIG.get('reference_dir')
        self.ref_dir = Path(ref_dir).expanduser() if ref_dir else None
        self._cache = {}

    def _find(self, genome):
        if self.ref_dir is None:
            return None
        for pattern in self._CANDIDATES:
            path = self.ref_dir / pattern.format(genome=genome)
            if path.is_file():
                return path
        return None

    def chrom_sizes(self, genome):
        """
        Return ``{chrom: size}`` for *genome*.

        Raises
        ------
        ReferenceUnavailable
            If no reference file exists for the genome.
        ValueError
            If the file exists but is malformed.
        """
        genome = normalize_genome_name(genome)
        if genome in self._cache:
            return dict(self._cache[genome])

        path = self._find(genome)
        if path is None:
            where = os.fspath(self.ref_dir) if self.ref_dir else "<no reference_dir configured>"
            raise ReferenceUnavailable(f"No reference data for genome '{genome}' in {where}")

        if path.name.endswith(".chrom.sizes"):
            sizes = _read_chrom_sizes_file(path)
        else:
            sizes = _read_json_chrom_sizes(path)
        self._cache[genome] = sizes
        return dict(sizes)

    def clear(self):
        self._cache.clear()


def bed_chrom_sizes(genome, ref_dir=None):
    """
    Load chromosome sizes for a genome assembly.

    Parameters
    ----------
    genome : str
        Assembly name or alias (e.g. ``"hg38"``, ``"GRCh38"``).
    ref_dir : str or Path, optional
        Directory with reference files. Defaults to
        ``CONFIG['reference_dir']``.

    Returns
    -------
    dict
        ``{chrom: size_bp}``.

    Raises
    ------
    ReferenceUnavailable
        If no reference file exists for the genome.

    See Also
    --------
    ReferenceLoader : Cached loader used by the comparison pipeline.
    """
    return ReferenceLoader(ref_dir).chrom_sizes(genome)
