import conftest
import numpy as np
import pytest

import pybedcompare as pb


def test_bed_summary():
    rs = pb.bed_regionset([("chr1", 0, 100), ("chr1", 200, 250)])
    assert pb.bed_summary(rs) == {'regions': 2, 'mean_width': 75.0, 'nucleotides': 150}


def test_bed_chromosome_table_columns_and_order():
    rs = pb.bed_regionset([("chr10", 5, 25), ("chr2", 0, 10), ("chr2", 20, 50)])
    table = pb.bed_chromosome_table(rs)
    assert list(table.columns) == ["chromosome", "count", "start", "end", "min", "max", "mean", "median"]
    assert table["chromosome"].tolist() == ["chr2", "chr10"]
    row = table.iloc[0]
    assert row["count"] == 2
    assert (row["start"], row["end"]) == (0, 50)
    assert (row["min"], row["max"]) == (10, 30)
    assert row["median"] == pytest.approx(20.0)


def test_bed_chromosome_table_empty():
    table = pb.bed_chromosome_table(pb.bed_regionset([]))
    assert len(table) == 0
    assert "median" in table.columns


def test_bed_region_distribution():
    rs = pb.bed_regionset([("chr1", 0, 100), ("chr1", 900, 1000), ("chr2", 0, 10), ("chr2", 2, 8)])
    dist = pb.bed_region_distribution(rs, bins=10)
    assert dist.values.tolist() == [
        ["chr1", 0, 100, 1, 0],
        ["chr1", 900, 1000, 1, 9],
        ["chr2", 0, 100, 2, 0],
    ]


def test_bed_region_distribution_edge_cases():
    assert list(pb.bed_region_distribution(pb.bed_regionset([])).columns) == ["chr", "start", "end", "n", "rid"]
    with pytest.raises(ValueError, match="bins"):
        pb.bed_region_distribution(pb.bed_regionset([("chr1", 0, 1)]), bins=0)


def test_bed_analyze_releases_set(tracked_engine):
    content = conftest.bed_bytes([("chr1", 0, 100), ("chr1", 150, 200), ("chr2", 0, 10)])
    seen = []
    report = pb.bed_analyze(("a.bed", content), engine=tracked_engine, progress=seen.append)
    assert report['file_name'] == "a.bed"
    assert report['file_size'] == len(content)
    assert report['parse_time'] >= 0
    assert report['summary'] == {'regions': 3, 'mean_width': pytest.approx(160 / 3), 'nucleotides': 160}
    np.testing.assert_array_equal(np.sort(report['widths']), [10, 50, 100])
    np.testing.assert_array_equal(report['neighbor_distances'], [50])
    assert report['chromosome_stats']["chromosome"].tolist() == ["chr1", "chr2"]
    assert seen[-1] == 1.0
    assert tracked_engine.ledger.created == 1
    assert tracked_engine.ledger.outstanding == 0


def test_bed_analyze_parse_error_creates_no_set(tracked_engine):
    with pytest.raises(pb.ParseError):
        pb.bed_analyze(("a.bed", b"\xff\xfe"), engine=tracked_engine)
    assert tracked_engine.ledger.created == 0
