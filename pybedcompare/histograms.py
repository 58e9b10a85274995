"""Per-file chromosome, width and genome-position histograms."""

import math

import numpy as _numpy

from ._shared import CONFIG, _drain, _sorted_chroms
from .models import ChrRegionCount, PositionalBin, WidthHistPoint


def bed_chr_counts(region_set, file_name):
    """
    Region count per chromosome for one file.

    Parameters
    ----------
    region_set : RegionSet
    file_name : str

    Returns
    -------
    list of ChrRegionCount
        One record per chromosome in natural order; ``fraction`` is the
        share of the file's regions on that chromosome.
    """
    total = int(region_set.n_regions)
    out = []
    for chrom, stats in region_set.chromosome_statistics().items():
        out.append(ChrRegionCount(
            file_name=file_name,
            chrom=str(chrom),
            count=int(stats.count),
            fraction=stats.count / total if total > 0 else 0.0,
        ))
    return out


def bed_width_hist(widths, file_name, bins=None, log_min=None, log_max=None):
    """
    Bin region widths on a log10 scale.

    Parameters
    ----------
    widths : array-like of int
        Region widths (``end - start``). Widths ``<= 0`` are not binned but
        are counted in the total used for fractions.
    file_name : str
    bins : int, optional
        Number of bins. Defaults to ``CONFIG['width_bins']``.
    log_min, log_max : float, optional
        Histogram span in log10 bp. Default to ``CONFIG['width_log_min']``
        and ``CONFIG['width_log_max']`` (1 bp to 10 Mbp).

    Returns
    -------
    list of WidthHistPoint
        Non-empty bins only, with the geometric bin center.

    Examples
    --------
    >>> import pybedcompare as pb
    >>> [p.count for p in pb.bed_width_hist([100, 120, 5000], "a.bed")]
    [2, 1]
    """
    if bins is None:
        bins = int(CONFIG.get('width_bins', 28))
    if log_min is None:
        log_min = float(CONFIG.get('width_log_min', 0.0))
    if log_max is None:
        log_max = float(CONFIG.get('width_log_max', 7.0))
    if bins <= 0:
        raise ValueError("bins must be positive")
    if log_max <= log_min:
        raise ValueError("log_max must be greater than log_min")

    widths = _numpy.asarray(widths, dtype=_numpy.float64)
    total = len(widths)
    if total == 0:
        return []

    bin_w = (log_max - log_min) / bins
    positive = widths[widths > 0]
    idx = _numpy.floor((_numpy.log10(positive) - log_min) / bin_w).astype(_numpy.int64)
    idx = _numpy.clip(idx, 0, bins - 1)
    counts = _numpy.bincount(idx, minlength=bins)

    return [
        WidthHistPoint(
            file_name=file_name,
            bin_center=float(10 ** (log_min + (i + 0.5) * bin_w)),
            count=int(c),
            fraction=int(c) / total,
        )
        for i, c in enumerate(counts)
        if c > 0
    ]


def pos_bin_width(chrom_sizes, n_bins=None):
    """Bin width (bp) such that the longest chromosome spans *n_bins* bins."""
    if n_bins is None:
        n_bins = int(CONFIG.get('positional_bins', 100))
    if not chrom_sizes:
        return 1.0
    max_size = max(chrom_sizes.values())
    return max_size / n_bins if max_size > 0 else 1.0


def chr_bin_counts(chrom_sizes, n_bins=None):
    """Number of positional bins per chromosome under a common bin width."""
    bw = pos_bin_width(chrom_sizes, n_bins)
    return {chrom: max(1, math.ceil(size / bw)) for chrom, size in chrom_sizes.items()}


def bed_positional_bins(intervals, file_name, chrom_sizes, n_bins=None):
    """
    Count regions per genome-position bin.

    Each region is assigned to the bin holding its midpoint, clamped to
    the chromosome's last bin. Regions on chromosomes missing from
    *chrom_sizes* (or with non-positive size) are ignored.

    Parameters
    ----------
    intervals : DataFrame
        Columns chrom, start, end (e.g. ``RegionSet.to_frame()``).
    file_name : str
    chrom_sizes : dict
        ``{chrom: size_bp}`` of the reference assembly.
    n_bins : int, optional
        Bins spanned by the longest chromosome. Defaults to
        ``CONFIG['positional_bins']``.

    Returns
    -------
    list of PositionalBin
        Non-empty bins in natural chromosome order, then by bin index.
    """
    if not chrom_sizes or intervals is None or len(intervals) == 0:
        return []
    bw = pos_bin_width(chrom_sizes, n_bins)
    max_bins = chr_bin_counts(chrom_sizes, n_bins)

    out = []
    grouped = intervals.groupby('chrom', sort=False)
    present = {str(c): c for c in grouped.groups}
    for chrom in _sorted_chroms(present):
        size = chrom_sizes.get(chrom)
        if not size or size <= 0:
            continue
        rows = grouped.get_group(present[chrom])
        mids = (rows['start'].to_numpy(dtype=_numpy.float64) + rows['end'].to_numpy(dtype=_numpy.float64)) / 2
        idx = _numpy.floor(mids / bw).astype(_numpy.int64)
        idx = _numpy.clip(idx, 0, max_bins[chrom] - 1)
        counts = _numpy.bincount(idx, minlength=max_bins[chrom])
        for b in _numpy.flatnonzero(counts):
            out.append(PositionalBin(file_name=file_name, chrom=chrom, bin=int(b), count=int(counts[b])))
    return out


def iter_histograms(region_sets, file_names, chrom_sizes=None):
    """
    Build all per-file histograms, yielding after each file.

    Returns ``(chr_counts, width_hist, positional_bins)`` as flat lists.
    ``positional_bins`` is empty when *chrom_sizes* is not given.
    """
    chr_counts, width_hist, positional = [], [], []
    n = len(region_sets)
    for i, (rs, name) in enumerate(zip(region_sets, file_names, strict=True)):
        chr_counts.extend(bed_chr_counts(rs, name))
        width_hist.extend(bed_width_hist(rs.widths(), name))
        if chrom_sizes:
            positional.extend(bed_positional_bins(rs.to_frame(), name, chrom_sizes))
        yield (i + 1) / n
    return chr_counts, width_hist, positional


def bed_histograms(region_sets, file_names, chrom_sizes=None):
    """Synchronous form of :func:`iter_histograms`."""
    return _drain(iter_histograms(region_sets, file_names, chrom_sizes))
