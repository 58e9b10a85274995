"""Union, intersection and per-file unique regions across N sets."""

import contextlib
import warnings

from ._shared import _drain
from .models import FileBreakdown, SetStats
from .regionsets import RegionSetPool


@contextlib.contextmanager
def _folded(sets, op, pool):
    """
    Left-fold *op* over *sets* and yield the accumulated set.

    At most one accumulator is alive at a time; it is released when the
    ``with`` block exits. A single input is yielded as-is and not released.
    """
    if len(sets) == 1:
        yield sets[0]
        return
    acc = pool.track(getattr(sets[0], op)(sets[1]))
    try:
        for s in sets[2:]:
            nxt = pool.track(getattr(acc, op)(s))
            pool.release(acc)
            acc = nxt
        yield acc
    finally:
        pool.release(acc)


def _fold_stats(sets, op, label, pool):
    """Fold *op* and summarize the result; ``None`` on engine failure."""
    try:
        with _folded(sets, op, pool) as acc:
            return SetStats(regions=acc.n_regions, nucleotides=acc.nucleotides)
    except Exception as exc:
        warnings.warn(f"{label} failed: {exc}", RuntimeWarning, stacklevel=3)
        return None


def iter_union_intersection(sets, pool=None):
    """
    Fold union and intersection over all sets.

    Yields after each fold and returns ``(union_stats, intersection_stats)``.
    Either is ``None`` when fewer than two sets are given or when the fold
    fails; failures are reported as ``RuntimeWarning``.
    """
    if pool is None:
        pool = RegionSetPool()
    if len(sets) < 2:
        return None, None

    union_stats = _fold_stats(sets, "union", "Union", pool)
    yield 0.5

    intersection_stats = _fold_stats(sets, "intersect", "Intersection", pool)
    yield 1.0

    return union_stats, intersection_stats


def _unique_count(sets, i, pool):
    others = sets[:i] + sets[i + 1:]
    with _folded(others, "union", pool) as others_union:
        with pool.scoped(sets[i].setdiff(others_union)) as diff:
            return diff.n_regions


def _breakdown(name, regions, unique):
    shared = regions - unique
    return FileBreakdown(
        file_name=name,
        regions=regions,
        shared=shared,
        unique=unique,
        overlap_pct=shared / regions * 100.0 if regions > 0 else 0.0,
    )


def iter_per_file(sets, file_names, pool=None):
    """
    Split each file's regions into shared and unique.

    A region of file *i* is unique when it overlaps no region of any other
    file. Yields after each file and returns a list of
    :class:`FileBreakdown`. An engine failure for one file is reported as a
    ``RuntimeWarning`` and that file is reported as fully shared.
    """
    if pool is None:
        pool = RegionSetPool()
    n = len(sets)
    out = []
    for i in range(n):
        regions = sets[i].n_regions
        unique = 0
        if n >= 2:
            try:
                unique = min(max(_unique_count(sets, i, pool), 0), regions)
            except Exception as exc:
                warnings.warn(
                    f"Unique-region computation failed for {file_names[i]}: {exc}",
                    RuntimeWarning,
                    stacklevel=2,
                )
                unique = 0
        out.append(_breakdown(file_names[i], regions, unique))
        yield (i + 1) / n
    return out


def bed_union_stats(sets):
    """
    Region count and covered base pairs of the union of all *sets*.

    Parameters
    ----------
    sets : list of ComparableSet

    Returns
    -------
    SetStats or None
        ``None`` for fewer than two sets or on engine failure.
    """
    if len(sets) < 2:
        return None
    return _fold_stats(sets, "union", "Union", RegionSetPool())


def bed_intersection_stats(sets):
    """Region count and base pairs covered by every one of *sets*, or ``None``."""
    if len(sets) < 2:
        return None
    return _fold_stats(sets, "intersect", "Intersection", RegionSetPool())


def bed_per_file(sets, file_names):
    """
    Shared/unique region breakdown for every file.

    Parameters
    ----------
    sets : list of ComparableSet
    file_names : list of str

    Returns
    -------
    list of FileBreakdown
        ``shared + unique == regions`` for every entry.
    """
    return _drain(iter_per_file(sets, file_names))
