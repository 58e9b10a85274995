"""Single-file summaries: bed_summary, bed_chromosome_table, bed_region_distribution, bed_analyze."""

import time

import numpy as _numpy
import pandas as _pandas

from ._shared import CONFIG, _sorted_chroms
from .parser import _as_bed_file, bed_decode
from .regionsets import _resolve_engine, bed_free

_CHROM_TABLE_COLUMNS = ["chromosome", "count", "start", "end", "min", "max", "mean", "median"]


def bed_summary(region_set):
    """Return ``{'regions', 'mean_width', 'nucleotides'}`` for one set."""
    return {
        'regions': int(region_set.n_regions),
        'mean_width': float(region_set.mean_width),
        'nucleotides': int(region_set.nucleotides),
    }


def bed_chromosome_table(region_set):
    """
    Per-chromosome statistics as a DataFrame.

    Parameters
    ----------
    region_set : RegionSet

    Returns
    -------
    DataFrame
        Columns: chromosome, count, start, end, min, max, mean, median.
        ``start``/``end`` are the first and last covered positions;
        ``min``..``median`` describe region widths. Rows follow natural
        chromosome order (chr2 before chr10).

    Examples
    --------
    >>> import pybedcompare as pb
    >>> rs = pb.bed_regionset([("chr2", 0, 10), ("chr10", 5, 25)])
    >>> pb.bed_chromosome_table(rs)["chromosome"].tolist()
    ['chr2', 'chr10']
    """
    stats = region_set.chromosome_statistics()
    if not stats:
        return _pandas.DataFrame(columns=_CHROM_TABLE_COLUMNS)
    rows = [
        [chrom, s.count, s.start, s.end, s.min, s.max, s.mean, s.median]
        for chrom, s in stats.items()
    ]
    return _pandas.DataFrame(rows, columns=_CHROM_TABLE_COLUMNS)


def bed_region_distribution(region_set, bins=None):
    """
    Count regions along each chromosome in bins of a common width.

    The bin width is the largest chromosome extent (maximum region end)
    divided by *bins*; each region is counted in the bin holding its
    midpoint.

    Parameters
    ----------
    region_set : RegionSet
    bins : int, optional
        Bins spanned by the longest extent. Defaults to
        ``CONFIG['region_distribution_bins']``.

    Returns
    -------
    DataFrame
        Columns: chr, start, end, n, rid. ``rid`` is the bin index within
        the chromosome; only non-empty bins are listed.
    """
    if bins is None:
        bins = int(CONFIG.get('region_distribution_bins', 250))
    if bins <= 0:
        raise ValueError("bins must be positive")

    columns = ["chr", "start", "end", "n", "rid"]
    frame = region_set.to_frame()
    if len(frame) == 0:
        return _pandas.DataFrame(columns=columns)

    extent = int(frame['end'].max())
    bin_width = max(1, -(-extent // bins))

    mids = (frame['start'].to_numpy() + frame['end'].to_numpy()) // 2
    frame = frame.assign(rid=_numpy.clip(mids, 0, None) // bin_width)
    counts = frame.groupby(['chrom', 'rid'], sort=False).size()

    rows = []
    by_chrom = {}
    for (chrom, rid), n in counts.items():
        by_chrom.setdefault(chrom, []).append((int(rid), int(n)))
    for chrom in _sorted_chroms(by_chrom):
        for rid, n in sorted(by_chrom[chrom]):
            rows.append([chrom, rid * bin_width, (rid + 1) * bin_width, n, rid])
    return _pandas.DataFrame(rows, columns=columns)


def bed_analyze(file, engine=None, progress=None):
    """
    Decode one BED file and summarize it.

    Parameters
    ----------
    file : BedFile, tuple, str or Path
        The file to analyze.
    engine : module or namespace, optional
        Interval-set engine. Defaults to :mod:`pybedcompare.engine`.
    progress : callable, optional
        Receives decode progress fractions.

    Returns
    -------
    dict
        Keys: ``file_name``, ``file_size``, ``parse_time`` (seconds),
        ``summary``, ``chromosome_stats`` (DataFrame),
        ``region_distribution`` (DataFrame), ``widths`` and
        ``neighbor_distances`` (numpy arrays, the latter ``None`` when the
        engine does not provide it).

    Notes
    -----
    The interval set built here is released before returning.
    """
    file = _as_bed_file(file)
    t0 = time.perf_counter()
    entries = bed_decode(file, progress=progress)
    parse_time = time.perf_counter() - t0

    rs = _resolve_engine(engine).RegionSet(entries)
    del entries
    try:
        neighbor = getattr(rs, "neighbor_distances", None)
        return {
            'file_name': file.name,
            'file_size': len(file.content),
            'parse_time': parse_time,
            'summary': bed_summary(rs),
            'chromosome_stats': bed_chromosome_table(rs),
            'region_distribution': bed_region_distribution(rs),
            'widths': _numpy.asarray(rs.widths()),
            'neighbor_distances': _numpy.asarray(neighbor()) if callable(neighbor) else None,
        }
    finally:
        bed_free(rs)
