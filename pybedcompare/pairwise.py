"""Pairwise Jaccard and overlap matrices."""

from ._shared import OperationFailure, _drain
from .regionsets import RegionSetPool


def _identity_matrices(n):
    jaccard = [[0.0] * n for _ in range(n)]
    overlap = [[0.0] * n for _ in range(n)]
    for i in range(n):
        jaccard[i][i] = 1.0
        overlap[i][i] = 100.0
    return jaccard, overlap


def _covered_bp(s, pool):
    """Base pairs covered by *s*, counting overlapping regions once."""
    covered = getattr(s.region_set, "covered_bp", None)
    if covered is not None:
        return int(covered)
    with pool.scoped(s.union(s)) as merged:
        return merged.nucleotides


def _pct(part, whole):
    if whole <= 0:
        return 0.0
    return min(100.0, part / whole * 100.0)


def iter_pairwise(sets, file_names=None, pool=None):
    """
    Compute Jaccard and overlap matrices, yielding progress after each pair.

    Parameters
    ----------
    sets : list of ComparableSet
        One set per file.
    file_names : list of str, optional
        Used in error messages.
    pool : RegionSetPool, optional
        Owner for the per-pair intersection sets.

    Returns
    -------
    tuple of list
        ``(jaccard, overlap)`` as nested lists of floats.

    Raises
    ------
    OperationFailure
        If the engine fails on any pair; the matrix needs full coverage.
    """
    n = len(sets)
    if pool is None:
        pool = RegionSetPool()
    if file_names is None:
        file_names = [str(i) for i in range(n)]
    jaccard, overlap = _identity_matrices(n)
    try:
        covered = [_covered_bp(s, pool) for s in sets]
    except Exception as exc:
        raise OperationFailure(f"Coverage computation failed: {exc}") from exc

    total_pairs = n * (n - 1) // 2
    pairs_done = 0
    for i in range(n):
        for j in range(i + 1, n):
            try:
                value = sets[i].jaccard(sets[j])
                with pool.scoped(sets[i].intersect(sets[j])) as inter:
                    shared_bp = inter.nucleotides
            except Exception as exc:
                raise OperationFailure(
                    f"Comparison of {file_names[i]} and {file_names[j]} failed: {exc}"
                ) from exc

            jaccard[i][j] = jaccard[j][i] = value
            overlap[i][j] = _pct(shared_bp, covered[i])
            overlap[j][i] = _pct(shared_bp, covered[j])

            pairs_done += 1
            yield pairs_done / total_pairs

    return jaccard, overlap


def bed_pairwise(sets, file_names=None):
    """
    Compute the pairwise similarity matrices of *sets*.

    ``jaccard[i][j]`` is the base-pair Jaccard index of files *i* and *j*;
    ``overlap[i][j]`` is the percentage of file *i*'s covered base pairs
    that file *j* also covers. Diagonals are fixed at 1 and 100.

    Parameters
    ----------
    sets : list of ComparableSet
    file_names : list of str, optional

    Returns
    -------
    tuple of list
        ``(jaccard, overlap)``.

    See Also
    --------
    bed_compare : Full comparison pipeline.
    """
    return _drain(iter_pairwise(sets, file_names))
