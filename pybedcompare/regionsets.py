"""Interval-set adapter: construction, ownership and capability checks."""

import contextlib
import warnings

from . import engine as _default_engine
from ._shared import FeatureUnavailable
from .models import FileStats

SET_OPERATIONS = ("jaccard", "union", "intersect", "setdiff")

# Probe results per engine type; probed once per process.
_FEATURE_CACHE = {}


def _resolve_engine(engine):
    return _default_engine if engine is None else engine


def bed_regionset(entries, engine=None):
    """
    Build an interval set from decoded entries.

    Parameters
    ----------
    entries : list of BedEntry or tuple
        ``(chrom, start, end[, rest])`` tuples.
    engine : module or namespace, optional
        Interval-set engine exposing ``RegionSet``. Defaults to
        :mod:`pybedcompare.engine`.

    Returns
    -------
    RegionSet
        A new owned set. Call :func:`bed_free` (or ``free()``) when done.

    Examples
    --------
    >>> import pybedcompare as pb
    >>> rs = pb.bed_regionset([("chr1", 0, 100), ("chr1", 50, 300)])
    >>> rs.n_regions
    2
    >>> pb.bed_free(rs)
    """
    return _resolve_engine(engine).RegionSet(entries)


def bed_free(region_set):
    """Release an engine object, ignoring errors raised by the engine."""
    if region_set is None:
        return
    free = getattr(region_set, "free", None)
    if free is None:
        return
    try:
        free()
    except Exception as exc:
        warnings.warn(f"Failed to free {region_set!r}: {exc}", RuntimeWarning, stacklevel=2)


def bed_file_stats(region_set, file_name):
    """Summarize one interval set as a :class:`FileStats` value."""
    return FileStats(
        file_name=file_name,
        regions=int(region_set.n_regions),
        mean_width=float(region_set.mean_width),
        nucleotides=int(region_set.nucleotides),
    )


def missing_set_operations(region_set):
    """Return the names of set-algebra operations *region_set* does not provide."""
    key = type(region_set)
    if key not in _FEATURE_CACHE:
        _FEATURE_CACHE[key] = tuple(
            op for op in SET_OPERATIONS if not callable(getattr(region_set, op, None))
        )
    return _FEATURE_CACHE[key]


def has_set_operations(region_set):
    return not missing_set_operations(region_set)


class RegionSetPool:
    """
    Owned engine objects of one pipeline run.

    Every set created during a run is registered with :meth:`track`; the
    pool releases whatever is still live on :meth:`release_all`, whatever
    the outcome of the run.
    """

    def __init__(self):
        self._live = []

    def __len__(self):
        return len(self._live)

    def __contains__(self, obj):
        return any(o is obj for o in self._live)

    def track(self, obj):
        self._live.append(obj)
        return obj

    def release(self, obj):
        for i, live in enumerate(self._live):
            if live is obj:
                del self._live[i]
                bed_free(obj)
                return True
        return False

    def release_all(self):
        while self._live:
            bed_free(self._live.pop())

    @contextlib.contextmanager
    def scoped(self, obj):
        """Track *obj* for the duration of a ``with`` block, then release it."""
        self.track(obj)
        try:
            yield obj
        finally:
            self.release(obj)


class ComparableSet:
    """
    A region set known to support set algebra.

    Construct through :meth:`probe`, which raises
    :class:`FeatureUnavailable` when the engine lacks any of
    ``jaccard``, ``union``, ``intersect`` or ``setdiff``. Results of
    ``union``/``intersect``/``setdiff`` are new owned ``ComparableSet``
    objects.
    """

    __slots__ = ("_rs",)

    def __init__(self, region_set):
        self._rs = region_set

    @classmethod
    def probe(cls, region_set):
        missing = missing_set_operations(region_set)
        if missing:
            raise FeatureUnavailable(missing)
        return cls(region_set)

    @property
    def region_set(self):
        return self._rs

    @property
    def n_regions(self):
        return int(self._rs.n_regions)

    @property
    def nucleotides(self):
        return int(self._rs.nucleotides)

    def jaccard(self, other):
        return float(self._rs.jaccard(other._rs))

    def union(self, other):
        return ComparableSet(self._rs.union(other._rs))

    def intersect(self, other):
        return ComparableSet(self._rs.intersect(other._rs))

    def setdiff(self, other):
        return ComparableSet(self._rs.setdiff(other._rs))

    def free(self):
        bed_free(self._rs)

    def __repr__(self):
        return f"ComparableSet({self._rs!r})"
