"""
Interval-set engine backed by sorted numpy/pandas columns.

A :class:`RegionSet` owns its storage until :meth:`RegionSet.free` is
called; any later access raises ``RuntimeError``. Every operation that
returns a ``RegionSet`` returns a new object with the same obligation.
Coordinates are half-open ``[start, end)``.

Other engines may be plugged into the pipeline; they need to expose the
same ``RegionSet`` (and optionally ``ConsensusBuilder``) surface.
"""

import numpy as _numpy
import pandas as _pandas

from ._shared import _sorted_chroms
from .models import ChromosomeStatistics

_FREED_MSG = "RegionSet has been freed"


def _empty_frame():
    return _pandas.DataFrame({
        'chrom': _pandas.Series([], dtype=object),
        'start': _numpy.array([], dtype=_numpy.int64),
        'end': _numpy.array([], dtype=_numpy.int64),
    })


def _sort_intervals(intervals):
    return intervals.sort_values(['chrom', 'start', 'end'], kind='mergesort').reset_index(drop=True)


def _entries_frame(entries):
    if entries is None:
        raise ValueError("entries cannot be None")
    entries = list(entries)
    if not entries:
        return _empty_frame()

    chroms, starts, ends = [], [], []
    for entry in entries:
        if len(entry) < 3:
            raise ValueError("Each entry must have at least (chrom, start, end)")
        chroms.append(str(entry[0]))
        starts.append(int(entry[1]))
        ends.append(int(entry[2]))

    df = _pandas.DataFrame({
        'chrom': _pandas.Series(chroms, dtype=object),
        'start': _numpy.asarray(starts, dtype=_numpy.int64),
        'end': _numpy.asarray(ends, dtype=_numpy.int64),
    })
    return _sort_intervals(df)


def _chrom_slices(frame):
    """Map chrom -> (row offset, starts, ends) for a chrom-sorted frame."""
    if len(frame) == 0:
        return {}
    chroms = frame['chrom'].to_numpy()
    starts = frame['start'].to_numpy()
    ends = frame['end'].to_numpy()
    bounds = _numpy.flatnonzero(chroms[1:] != chroms[:-1]) + 1
    offsets = _numpy.concatenate(([0], bounds, [len(frame)]))
    out = {}
    for lo, hi in zip(offsets[:-1], offsets[1:], strict=False):
        out[chroms[lo]] = (lo, starts[lo:hi], ends[lo:hi])
    return out


def _merge_frame(intervals, unify_touching=True):
    """Merge overlapping intervals; zero and negative width rows are dropped."""
    intervals = intervals[intervals['end'] > intervals['start']]
    if len(intervals) == 0:
        return _empty_frame()

    intervals = _sort_intervals(intervals[['chrom', 'start', 'end']])
    chroms = intervals['chrom'].to_numpy()
    starts = intervals['start'].to_numpy()
    ends = intervals['end'].to_numpy()

    running_end = intervals.groupby('chrom', sort=False)['end'].cummax().to_numpy()
    new_chrom = _numpy.ones(len(intervals), dtype=bool)
    new_chrom[1:] = chroms[1:] != chroms[:-1]
    prev_end = _numpy.empty_like(running_end)
    prev_end[0] = 0
    prev_end[1:] = running_end[:-1]

    if unify_touching:
        gap = starts > prev_end
    else:
        gap = starts >= prev_end
    first = new_chrom | gap
    idx = _numpy.flatnonzero(first)

    return _pandas.DataFrame({
        'chrom': _pandas.Series(chroms[idx], dtype=object),
        'start': starts[idx],
        'end': _numpy.maximum.reduceat(ends, idx),
    })


def _overlap_pairs(a_starts, a_ends, b_starts, b_ends):
    """Index pairs (i, k) where a[i] overlaps b[k]; b must be disjoint and sorted."""
    lo = _numpy.searchsorted(b_ends, a_starts, side='right')
    hi = _numpy.searchsorted(b_starts, a_ends, side='left')
    counts = _numpy.maximum(hi - lo, 0)
    total = int(counts.sum())
    if total == 0:
        empty = _numpy.array([], dtype=_numpy.int64)
        return empty, empty
    ai = _numpy.repeat(_numpy.arange(len(a_starts)), counts)
    within = _numpy.arange(total) - _numpy.repeat(_numpy.cumsum(counts) - counts, counts)
    bi = _numpy.repeat(lo, counts) + within
    return ai, bi


def _intersect_coverage(a_cov, b_cov):
    b_slices = _chrom_slices(b_cov)
    parts = []
    for chrom, (_, a_starts, a_ends) in _chrom_slices(a_cov).items():
        if chrom not in b_slices:
            continue
        _, b_starts, b_ends = b_slices[chrom]
        ai, bi = _overlap_pairs(a_starts, a_ends, b_starts, b_ends)
        if len(ai) == 0:
            continue
        s = _numpy.maximum(a_starts[ai], b_starts[bi])
        e = _numpy.minimum(a_ends[ai], b_ends[bi])
        keep = e > s
        parts.append(_pandas.DataFrame({
            'chrom': _pandas.Series([chrom] * int(keep.sum()), dtype=object),
            'start': s[keep],
            'end': e[keep],
        }))
    if not parts:
        return _empty_frame()
    return _sort_intervals(_pandas.concat(parts, ignore_index=True))


def _covered_bp(coverage):
    if len(coverage) == 0:
        return 0
    return int((coverage['end'] - coverage['start']).sum())


class RegionSet:
    """
    A set of genomic regions with summary statistics and set algebra.

    Parameters
    ----------
    entries : iterable of tuple
        ``(chrom, start, end[, rest])`` tuples. Extra columns are ignored.

    Notes
    -----
    The object keeps its data until :meth:`free` is called. Derived sets
    returned by :meth:`union`, :meth:`intersect`, :meth:`setdiff` and
    :meth:`reduce` must be freed by the caller as well.
    """

    def __init__(self, entries=None, *, _frame=None):
        self._frame = _entries_frame(entries) if _frame is None else _frame
        self._coverage_cache = None

    def _derive(self, frame):
        return type(self)(_frame=frame)

    def _data(self):
        if self._frame is None:
            raise RuntimeError(_FREED_MSG)
        return self._frame

    def _coverage(self):
        frame = self._data()
        if self._coverage_cache is None:
            self._coverage_cache = _merge_frame(frame)
        return self._coverage_cache

    @staticmethod
    def _other_coverage(other):
        if not isinstance(other, RegionSet):
            raise TypeError(f"expected a RegionSet, got {type(other).__name__}")
        return other._coverage()

    @property
    def is_freed(self):
        return self._frame is None

    def free(self):
        """Release the underlying storage. Safe to call more than once."""
        self._frame = None
        self._coverage_cache = None

    def __len__(self):
        return len(self._data())

    def __repr__(self):
        if self._frame is None:
            return f"<{type(self).__name__} (freed)>"
        return f"<{type(self).__name__} regions={len(self._frame)}>"

    @property
    def n_regions(self):
        return len(self._data())

    @property
    def mean_width(self):
        widths = self.widths()
        if len(widths) == 0:
            return 0.0
        return float(_numpy.clip(widths, 0, None).mean())

    @property
    def nucleotides(self):
        return int(_numpy.clip(self.widths(), 0, None).sum())

    @property
    def covered_bp(self):
        """Base pairs covered, counting overlapping regions once."""
        return _covered_bp(self._coverage())

    def widths(self):
        frame = self._data()
        return (frame['end'] - frame['start']).to_numpy(dtype=_numpy.int64)

    def to_frame(self):
        return self._data().copy()

    def chromosome_statistics(self):
        """Return ``{chrom: ChromosomeStatistics}`` in natural chromosome order."""
        frame = self._data()
        if len(frame) == 0:
            return {}
        stats = (
            frame.assign(width=frame['end'] - frame['start'])
            .groupby('chrom', sort=False)
            .agg(
                count=('start', 'size'),
                start=('start', 'min'),
                end=('end', 'max'),
                min=('width', 'min'),
                max=('width', 'max'),
                mean=('width', 'mean'),
                median=('width', 'median'),
            )
        )
        out = {}
        for chrom in _sorted_chroms(stats.index):
            row = stats.loc[chrom]
            out[chrom] = ChromosomeStatistics(
                count=int(row['count']),
                start=int(row['start']),
                end=int(row['end']),
                min=int(row['min']),
                max=int(row['max']),
                mean=float(row['mean']),
                median=float(row['median']),
            )
        return out

    def neighbor_distances(self):
        """Gaps between consecutive non-overlapping regions on each chromosome."""
        frame = self._data()
        if len(frame) < 2:
            return _numpy.array([], dtype=_numpy.int64)
        chroms = frame['chrom'].to_numpy()
        starts = frame['start'].to_numpy()
        ends = frame['end'].to_numpy()
        gaps = starts[1:] - ends[:-1]
        same = chroms[1:] == chroms[:-1]
        return gaps[same & (gaps >= 0)]

    def reduce(self):
        """Return a new set with overlapping and touching regions merged."""
        return self._derive(self._coverage().copy())

    def jaccard(self, other):
        """Base-pair Jaccard similarity of the two coverages."""
        a_cov = self._coverage()
        b_cov = self._other_coverage(other)
        inter = _covered_bp(_intersect_coverage(a_cov, b_cov))
        union = _covered_bp(a_cov) + _covered_bp(b_cov) - inter
        if union <= 0:
            return 0.0
        return inter / union

    def union(self, other):
        self._other_coverage(other)
        combined = _pandas.concat([self._data(), other._data()], ignore_index=True)
        return self._derive(_merge_frame(combined))

    def intersect(self, other):
        """Regions covered by both sets, one piece per overlapping stretch."""
        return self._derive(_intersect_coverage(self._coverage(), self._other_coverage(other)))

    def setdiff(self, other):
        """Regions of this set that overlap no region of *other*."""
        frame = self._data()
        b_slices = _chrom_slices(self._other_coverage(other))
        keep = _numpy.ones(len(frame), dtype=bool)
        for chrom, (offset, a_starts, a_ends) in _chrom_slices(frame).items():
            if chrom not in b_slices:
                continue
            _, b_starts, b_ends = b_slices[chrom]
            lo = _numpy.searchsorted(b_ends, a_starts, side='right')
            hit = lo < len(b_starts)
            nearest = _numpy.minimum(lo, len(b_starts) - 1)
            hit &= b_starts[nearest] < a_ends
            keep[offset:offset + len(a_starts)] = ~hit
        return self._derive(frame[keep].reset_index(drop=True))


class ConsensusBuilder:
    """
    Accumulate region sets into support-annotated consensus regions.

    Intervals sharing at least one base pair are merged; each merged region
    records how many distinct added sets contributed to it.
    """

    def __init__(self):
        self._frames = []

    def _check(self):
        if self._frames is None:
            raise RuntimeError("ConsensusBuilder has been freed")

    def add(self, region_set):
        self._check()
        frame = region_set.to_frame()[['chrom', 'start', 'end']].assign(source=len(self._frames))
        self._frames.append(frame)

    def compute(self):
        """Return a list of ``(chrom, start, end, count)`` tuples."""
        self._check()
        if not self._frames:
            return []
        combined = _pandas.concat(self._frames, ignore_index=True)
        combined = combined[combined['end'] > combined['start']]
        if len(combined) == 0:
            return []
        combined = _sort_intervals(combined)

        chroms = combined['chrom'].to_numpy()
        starts = combined['start'].to_numpy()
        ends = combined['end'].to_numpy()
        sources = combined['source'].to_numpy(dtype=_numpy.int64)

        running_end = combined.groupby('chrom', sort=False)['end'].cummax().to_numpy()
        first = _numpy.ones(len(combined), dtype=bool)
        first[1:] = (chroms[1:] != chroms[:-1]) | (starts[1:] >= running_end[:-1])
        idx = _numpy.flatnonzero(first)
        group = _numpy.cumsum(first) - 1

        n_sources = len(self._frames)
        distinct = _numpy.unique(group * n_sources + sources)
        support = _numpy.bincount(distinct // n_sources, minlength=len(idx))
        merged_ends = _numpy.maximum.reduceat(ends, idx)

        return [
            (str(chroms[i]), int(starts[i]), int(e), int(c))
            for i, e, c in zip(idx, merged_ends, support, strict=False)
        ]

    def free(self):
        self._frames = None
