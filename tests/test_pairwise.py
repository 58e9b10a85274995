import conftest
import numpy as np
import pytest

import pybedcompare as pb


def _comparable(row_lists, engine=None):
    return [pb.ComparableSet.probe(pb.bed_regionset(rows, engine=engine)) for rows in row_lists]


def _random_rows(rng, n):
    starts = rng.integers(0, 10_000, size=n)
    widths = rng.integers(1, 500, size=n)
    chroms = rng.choice(["chr1", "chr2"], size=n)
    return [(str(c), int(s), int(s + w)) for c, s, w in zip(chroms, starts, widths, strict=True)]


def test_pairwise_disjoint_files():
    sets = _comparable([[("chr1", 0, 100)], [("chr1", 200, 300)]])
    jaccard, overlap = pb.bed_pairwise(sets)
    assert jaccard[0][1] == 0.0
    assert overlap[0][1] == 0.0
    assert overlap[1][0] == 0.0


def test_pairwise_identical_files():
    sets = _comparable([[("chr1", 0, 100)], [("chr1", 0, 100)]])
    jaccard, overlap = pb.bed_pairwise(sets)
    assert jaccard[0][1] == pytest.approx(1.0)
    assert overlap[0][1] == pytest.approx(100.0)
    assert overlap[1][0] == pytest.approx(100.0)


def test_pairwise_nested_file():
    sets = _comparable([
        [("chr1", 0, 1000)],
        [("chr1", 100, 200)],
        [("chr1", 5000, 6000)],
    ])
    jaccard, overlap = pb.bed_pairwise(sets, ["A", "B", "C"])
    assert overlap[1][0] == pytest.approx(100.0)
    assert overlap[0][1] == pytest.approx(10.0)
    assert jaccard[0][1] == pytest.approx(0.1)
    for k in (0, 1):
        assert overlap[2][k] == 0.0
        assert overlap[k][2] == 0.0
        assert jaccard[2][k] == 0.0


def test_pairwise_counts_overlapping_regions_once():
    sets = _comparable([
        [("chr1", 0, 100), ("chr1", 0, 100), ("chr1", 50, 100)],
        [("chr1", 0, 100)],
    ])
    _, overlap = pb.bed_pairwise(sets)
    assert overlap[0][1] == pytest.approx(100.0)
    assert overlap[1][0] == pytest.approx(100.0)


def test_pairwise_matrices_symmetric_and_bounded():
    rng = np.random.default_rng(7)
    sets = _comparable([_random_rows(rng, 40) for _ in range(4)])
    jaccard, overlap = pb.bed_pairwise(sets)
    j = np.asarray(jaccard)
    o = np.asarray(overlap)
    np.testing.assert_allclose(j, j.T)
    np.testing.assert_allclose(np.diag(j), 1.0)
    np.testing.assert_allclose(np.diag(o), 100.0)
    assert ((j >= 0) & (j <= 1)).all()
    assert ((o >= 0) & (o <= 100)).all()


def test_pairwise_single_file():
    sets = _comparable([[("chr1", 0, 10)]])
    assert pb.bed_pairwise(sets) == ([[1.0]], [[100.0]])


def test_iter_pairwise_yields_per_pair():
    sets = _comparable([[("chr1", 0, 10)], [("chr1", 5, 15)], [("chr1", 8, 20)]])
    gen = pb.iter_pairwise(sets)
    fractions = []
    while True:
        try:
            fractions.append(next(gen))
        except StopIteration:
            break
    assert fractions == pytest.approx([1 / 3, 2 / 3, 1.0])


def test_iter_pairwise_releases_temporaries():
    eng = conftest.make_engine()
    sets = _comparable([[("chr1", 0, 10)], [("chr1", 5, 15)], [("chr2", 8, 20)]], engine=eng)
    pool = pb.RegionSetPool()
    pb._shared._drain(pb.iter_pairwise(sets, pool=pool))
    assert len(pool) == 0
    assert eng.ledger.outstanding == 3


def test_pairwise_engine_failure_names_files():
    eng = conftest.make_engine(fail=("jaccard",))
    sets = _comparable([[("chr1", 0, 10)], [("chr1", 5, 15)]], engine=eng)
    with pytest.raises(pb.OperationFailure, match="a.bed and b.bed"):
        pb.bed_pairwise(sets, ["a.bed", "b.bed"])
    assert eng.ledger.outstanding == 2


def test_pairwise_coverage_failure():
    eng = conftest.make_engine(hide=("covered_bp",), fail=("union",))
    sets = _comparable([[("chr1", 0, 10)], [("chr1", 5, 15)]], engine=eng)
    with pytest.raises(pb.OperationFailure, match="Coverage"):
        pb.bed_pairwise(sets)
    assert eng.ledger.outstanding == 2


def test_pairwise_coverage_uses_engine_covered_bp():
    eng = conftest.make_engine()
    sets = _comparable([[("chr1", 0, 10), ("chr1", 5, 15)], [("chr1", 5, 15)]], engine=eng)
    created = eng.ledger.created
    _, overlap = pb.bed_pairwise(sets)
    # one intersection per pair, no per-file merged copies
    assert eng.ledger.created == created + 1
    assert overlap[0][1] == pytest.approx(100 * 10 / 15)
    assert overlap[1][0] == pytest.approx(100.0)


def test_pairwise_coverage_falls_back_to_union():
    eng = conftest.make_engine(hide=("covered_bp",))
    sets = _comparable([[("chr1", 0, 10), ("chr1", 5, 15)], [("chr1", 5, 15)]], engine=eng)
    _, overlap = pb.bed_pairwise(sets)
    assert overlap[0][1] == pytest.approx(100 * 10 / 15)
    assert eng.ledger.outstanding == 2
