"""Value types produced by the comparison pipeline.

All records are frozen dataclasses so a finished result can be handed to a
rendering layer and cached without defensive copies.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import NamedTuple

import pandas as pd

from ._shared import _records_frame


class BedEntry(NamedTuple):
    """One decoded BED line. ``start < end`` is not guaranteed."""

    chrom: str
    start: int
    end: int
    rest: str = ""


class BedFile(NamedTuple):
    """A named, undecoded input file."""

    name: str
    content: bytes


@dataclass(frozen=True)
class FileStats:
    file_name: str
    regions: int
    mean_width: float
    nucleotides: int


@dataclass(frozen=True)
class FileBreakdown:
    """Shared/unique split of one file's regions against all other files."""

    file_name: str
    regions: int
    shared: int
    unique: int
    overlap_pct: float


@dataclass(frozen=True)
class ConsensusRegion:
    chrom: str
    start: int
    end: int
    count: int


@dataclass(frozen=True)
class ChrRegionCount:
    file_name: str
    chrom: str
    count: int
    fraction: float


@dataclass(frozen=True)
class WidthHistPoint:
    file_name: str
    bin_center: float
    count: int
    fraction: float


@dataclass(frozen=True)
class PositionalBin:
    file_name: str
    chrom: str
    bin: int
    count: int


@dataclass(frozen=True)
class SetStats:
    regions: int
    nucleotides: int


@dataclass(frozen=True)
class ChromosomeStatistics:
    """Per-chromosome summary of one interval set."""

    count: int
    start: int
    end: int
    min: int
    max: int
    mean: float
    median: float


_FRAME_FIELDS = {
    'file_stats': FileStats,
    'per_file': FileBreakdown,
    'chr_counts': ChrRegionCount,
    'width_hist': WidthHistPoint,
    'positional_bins': PositionalBin,
    'consensus': ConsensusRegion,
}


@dataclass(frozen=True)
class MultiFileResult:
    """Terminal result of one comparison run.

    ``jaccard_matrix[i][j]`` is the symmetric base-pair Jaccard similarity of
    files *i* and *j*. ``overlap_matrix[i][j]`` is the percentage of file
    *i*'s covered base pairs that file *j* also covers.
    """

    file_stats: tuple[FileStats, ...]
    jaccard_matrix: tuple[tuple[float, ...], ...]
    overlap_matrix: tuple[tuple[float, ...], ...]
    per_file: tuple[FileBreakdown, ...]
    chr_counts: tuple[ChrRegionCount, ...]
    width_hist: tuple[WidthHistPoint, ...]
    positional_bins: tuple[PositionalBin, ...]
    consensus: tuple[ConsensusRegion, ...]
    union_stats: SetStats | None = None
    intersection_stats: SetStats | None = None

    @property
    def file_names(self):
        return [fs.file_name for fs in self.file_stats]

    def frame(self, name):
        """
        Return one of the flat record lists as a DataFrame.

        Parameters
        ----------
        name : str
            One of ``file_stats``, ``per_file``, ``chr_counts``,
            ``width_hist``, ``positional_bins`` or ``consensus``.

        Returns
        -------
        DataFrame
            One row per record, one column per record field.
        """
        if name not in _FRAME_FIELDS:
            raise ValueError(
                f"Unknown record list {name!r}; expected one of {sorted(_FRAME_FIELDS)}"
            )
        columns = [f.name for f in fields(_FRAME_FIELDS[name])]
        return _records_frame(getattr(self, name), columns)

    def similarity_frame(self, kind="jaccard"):
        """Return the Jaccard or overlap matrix labelled with file names."""
        if kind == "jaccard":
            matrix = self.jaccard_matrix
        elif kind == "overlap":
            matrix = self.overlap_matrix
        else:
            raise ValueError("kind must be 'jaccard' or 'overlap'")
        names = self.file_names
        return pd.DataFrame([list(row) for row in matrix], index=names, columns=names)
