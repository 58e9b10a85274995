"""
PyBedCompare - summary statistics and multi-file comparison of BED interval files
"""

__version__ = '0.1.0'

from . import engine
from ._shared import (
    CONFIG,
    BedCompareError,
    FeatureUnavailable,
    OperationFailure,
    ParseError,
    ReferenceUnavailable,
)
from .analysis import bed_analyze, bed_chromosome_table, bed_region_distribution, bed_summary
from .consensus import bed_consensus, iter_consensus
from .histograms import (
    bed_chr_counts,
    bed_histograms,
    bed_positional_bins,
    bed_width_hist,
    chr_bin_counts,
    iter_histograms,
    pos_bin_width,
)
from .models import (
    BedEntry,
    BedFile,
    ChromosomeStatistics,
    ChrRegionCount,
    ConsensusRegion,
    FileBreakdown,
    FileStats,
    MultiFileResult,
    PositionalBin,
    SetStats,
    WidthHistPoint,
)
from .pairwise import bed_pairwise, iter_pairwise
from .parser import bed_decode, bed_file, bed_filter_names, iter_decode
from .pipeline import (
    CachedComparison,
    ComparisonPipeline,
    ComparisonState,
    Phase,
    ResultCache,
    bed_compare,
)
from .reference import (
    ReferenceLoader,
    bed_chrom_sizes,
    detect_majority_genome,
    normalize_genome_name,
)
from .regionsets import (
    SET_OPERATIONS,
    ComparableSet,
    RegionSetPool,
    bed_file_stats,
    bed_free,
    bed_regionset,
    has_set_operations,
    missing_set_operations,
)
from .setops import (
    bed_intersection_stats,
    bed_per_file,
    bed_union_stats,
    iter_per_file,
    iter_union_intersection,
)

__all__ = [
    # Configuration
    'CONFIG',

    # Errors
    'BedCompareError',
    'ParseError',
    'FeatureUnavailable',
    'OperationFailure',
    'ReferenceUnavailable',

    # Records
    'BedEntry',
    'BedFile',
    'ChromosomeStatistics',
    'FileStats',
    'FileBreakdown',
    'ConsensusRegion',
    'ChrRegionCount',
    'WidthHistPoint',
    'PositionalBin',
    'SetStats',
    'MultiFileResult',

    # Decoding
    'bed_decode',
    'bed_file',
    'bed_filter_names',
    'iter_decode',

    # Interval sets
    'engine',
    'SET_OPERATIONS',
    'ComparableSet',
    'RegionSetPool',
    'bed_regionset',
    'bed_free',
    'bed_file_stats',
    'has_set_operations',
    'missing_set_operations',

    # Comparison steps
    'bed_pairwise',
    'iter_pairwise',
    'bed_consensus',
    'iter_consensus',
    'bed_union_stats',
    'bed_intersection_stats',
    'bed_per_file',
    'iter_union_intersection',
    'iter_per_file',

    # Histograms
    'bed_chr_counts',
    'bed_width_hist',
    'bed_positional_bins',
    'bed_histograms',
    'iter_histograms',
    'pos_bin_width',
    'chr_bin_counts',

    # Reference data
    'ReferenceLoader',
    'bed_chrom_sizes',
    'normalize_genome_name',
    'detect_majority_genome',

    # Pipeline
    'Phase',
    'ComparisonState',
    'CachedComparison',
    'ResultCache',
    'ComparisonPipeline',
    'bed_compare',

    # Single-file analysis
    'bed_summary',
    'bed_chromosome_table',
    'bed_region_distribution',
    'bed_analyze',
]
