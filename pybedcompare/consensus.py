"""Consensus regions across files."""

import warnings

from ._shared import _chrom_sort_key, _drain
from .models import ConsensusRegion
from .regionsets import _resolve_engine, bed_free


def iter_consensus(region_sets, engine=None):
    """
    Merge all sets into support-annotated consensus regions.

    Yields once after the sets have been added to the builder, and returns
    a list of :class:`ConsensusRegion` sorted by chromosome and start.
    An engine without ``ConsensusBuilder`` yields an empty list; a builder
    failure is reported as a ``RuntimeWarning`` and also yields an empty
    list.
    """
    builder_cls = getattr(_resolve_engine(engine), "ConsensusBuilder", None)
    if builder_cls is None or not region_sets:
        return []

    builder = None
    try:
        builder = builder_cls()
        for rs in region_sets:
            builder.add(rs)
        yield 0.5
        raw = builder.compute()
    except Exception as exc:
        warnings.warn(f"Consensus computation failed: {exc}", RuntimeWarning, stacklevel=2)
        return []
    finally:
        bed_free(builder)

    n = len(region_sets)
    consensus = [
        ConsensusRegion(chrom=str(c), start=int(s), end=int(e), count=min(max(int(k), 1), n))
        for c, s, e, k in raw
    ]
    consensus.sort(key=lambda r: (_chrom_sort_key(r.chrom), r.start, r.end))
    return consensus


def bed_consensus(region_sets, engine=None):
    """
    Compute consensus regions of several interval sets.

    Regions from different sets sharing at least one base pair are merged;
    ``count`` is the number of distinct sets contributing to each merged
    region.

    Parameters
    ----------
    region_sets : list of RegionSet
    engine : module or namespace, optional
        Engine providing ``ConsensusBuilder``.

    Returns
    -------
    list of ConsensusRegion
        Empty if the engine has no consensus builder.

    Examples
    --------
    >>> import pybedcompare as pb
    >>> a = pb.bed_regionset([("chr1", 0, 100)])
    >>> b = pb.bed_regionset([("chr1", 50, 150)])
    >>> pb.bed_consensus([a, b])
    [ConsensusRegion(chrom='chr1', start=0, end=150, count=2)]
    """
    return _drain(iter_consensus(region_sets, engine))
