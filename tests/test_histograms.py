import pandas as pd
import pytest

import pybedcompare as pb

SIZES = {"chr1": 1000, "chr2": 500}


def _frame(rows):
    return pd.DataFrame(rows, columns=["chrom", "start", "end"])


def test_chr_counts_fractions_sum_to_one():
    rs = pb.bed_regionset([("chr2", 0, 10), ("chr10", 0, 10), ("chr2", 20, 30), ("chr1", 0, 5)])
    counts = pb.bed_chr_counts(rs, "a.bed")
    assert [(c.chrom, c.count) for c in counts] == [("chr1", 1), ("chr2", 2), ("chr10", 1)]
    assert sum(c.fraction for c in counts) == pytest.approx(1.0)
    assert all(c.file_name == "a.bed" for c in counts)


def test_chr_counts_empty_set():
    assert pb.bed_chr_counts(pb.bed_regionset([]), "a.bed") == []


def test_width_hist_log_bins():
    points = pb.bed_width_hist([100, 120, 5000], "a.bed")
    assert [p.count for p in points] == [2, 1]
    assert [p.fraction for p in points] == pytest.approx([2 / 3, 1 / 3])
    assert points[0].bin_center == pytest.approx(10 ** 2.125)


def test_width_hist_counts_non_positive_widths_in_total():
    points = pb.bed_width_hist([0, -5, 10, 10], "a.bed")
    assert sum(p.count for p in points) == 2
    assert sum(p.fraction for p in points) == pytest.approx(0.5)


def test_width_hist_clamps_out_of_range_widths():
    points = pb.bed_width_hist([1, 10 ** 9], "a.bed", bins=7, log_min=0.0, log_max=7.0)
    assert [p.count for p in points] == [1, 1]
    assert points[-1].bin_center == pytest.approx(10 ** 6.5)


def test_width_hist_conserves_positive_widths():
    widths = [1, 3, 17, 250, 999, 1000, 123456, 7_000_000]
    points = pb.bed_width_hist(widths, "a.bed")
    assert sum(p.count for p in points) == len(widths)
    assert sum(p.fraction for p in points) == pytest.approx(1.0)


def test_width_hist_empty_and_invalid_arguments():
    assert pb.bed_width_hist([], "a.bed") == []
    with pytest.raises(ValueError, match="bins"):
        pb.bed_width_hist([1], "a.bed", bins=0)
    with pytest.raises(ValueError, match="log_max"):
        pb.bed_width_hist([1], "a.bed", log_min=3.0, log_max=3.0)


def test_width_hist_uses_config(restore_config):
    restore_config['width_bins'] = 1
    points = pb.bed_width_hist([1, 10, 1000], "a.bed")
    assert len(points) == 1
    assert points[0].count == 3


def test_pos_bin_width_and_counts():
    assert pb.pos_bin_width(SIZES, 100) == pytest.approx(10.0)
    assert pb.chr_bin_counts(SIZES, 100) == {"chr1": 100, "chr2": 50}
    assert pb.pos_bin_width({}, 100) == 1.0


def test_positional_bins_by_midpoint_with_clamping():
    intervals = _frame([
        ("chr1", 0, 10),
        ("chr1", 2, 8),
        ("chr1", 990, 1010),
        ("chr2", 495, 600),
        ("chr3", 0, 10),
    ])
    bins = pb.bed_positional_bins(intervals, "a.bed", SIZES, n_bins=100)
    assert [(b.chrom, b.bin, b.count) for b in bins] == [
        ("chr1", 0, 2),
        ("chr1", 99, 1),
        ("chr2", 49, 1),
    ]


def test_positional_bins_without_sizes():
    assert pb.bed_positional_bins(_frame([("chr1", 0, 10)]), "a.bed", {}) == []
    assert pb.bed_positional_bins(_frame([]), "a.bed", SIZES) == []


def test_histograms_per_file():
    sets = [pb.bed_regionset([("chr1", 0, 100)]), pb.bed_regionset([("chr2", 0, 10), ("chr2", 20, 30)])]
    chr_counts, width_hist, positional = pb.bed_histograms(sets, ["a", "b"], SIZES)
    assert [(c.file_name, c.chrom, c.count) for c in chr_counts] == [("a", "chr1", 1), ("b", "chr2", 2)]
    assert {p.file_name for p in width_hist} == {"a", "b"}
    assert [(p.file_name, p.chrom) for p in positional] == [("a", "chr1"), ("b", "chr2"), ("b", "chr2")]

    _, _, positional = pb.bed_histograms(sets, ["a", "b"])
    assert positional == []
