"""
Run a PyBedCompare comparison on a few synthetic BED files.

Usage:
    python tools/examples.py
"""

import numpy as np

import pybedcompare as pb


def _synthetic_bed(rng, n, chroms=("chr1", "chr2", "chrX")):
    lines = []
    for _ in range(n):
        chrom = rng.choice(chroms)
        start = int(rng.integers(0, 1_000_000))
        width = int(10 ** rng.uniform(1.5, 4))
        lines.append(f"{chrom}\t{start}\t{start + width}")
    return ("\n".join(lines) + "\n").encode()


def main():
    rng = np.random.default_rng(0)
    files = [pb.BedFile(f"sample{i}.bed", _synthetic_bed(rng, 500)) for i in range(3)]

    summary = pb.bed_analyze(files[0])
    print("Single file summary:", summary['summary'])
    print(summary['chromosome_stats'])

    res = pb.bed_compare(
        files,
        chrom_sizes={"chr1": 1_100_000, "chr2": 1_050_000, "chrX": 1_000_000},
        progress='text',
    )

    print("Jaccard:")
    print(res.similarity_frame("jaccard"))
    print("Overlap (%):")
    print(res.similarity_frame("overlap"))
    print("Per file:")
    print(res.frame("per_file"))
    print("Union:", res.union_stats, "Intersection:", res.intersection_stats)
    print("Consensus regions:", len(res.consensus))


if __name__ == "__main__":
    main()
