"""
Shared configuration, exceptions and utilities for PyBedCompare modules.

Thread-safety note:
``CONFIG`` is process-global and not synchronized for concurrent mutation.
Drive comparisons from a single controlling thread (one event loop).
"""

import re as _re
import sys as _sys
from contextlib import contextmanager

import pandas as _pandas

# Configuration dictionary
CONFIG = {
    'parse_chunk_size': 50000,          # Lines parsed between checkpoints
    'width_bins': 28,                   # Log-scale width histogram bins
    'width_log_min': 0.0,               # log10(1 bp)
    'width_log_max': 7.0,               # log10(10 Mbp)
    'positional_bins': 100,             # Bins spanned by the longest chromosome
    'region_distribution_bins': 250,    # Single-file region distribution
    'default_genome': 'hg38',           # Fallback reference assembly
    'reference_dir': None,              # Directory with reference data files
    'progress': False,                  # False, True, 'tqdm', 'rich', 'text', or callable
    'progress_style': 'rich'            # Default when progress=True
}


class BedCompareError(Exception):
    """Base class for all PyBedCompare errors."""


class ParseError(BedCompareError, ValueError):
    """A BED byte stream could not be decoded."""

    def __init__(self, message, file_name=None):
        if file_name:
            message = f"{file_name}: {message}"
        super().__init__(message)
        self.file_name = file_name


class FeatureUnavailable(BedCompareError, RuntimeError):
    """The interval-set engine lacks operations required for comparison."""

    def __init__(self, missing, hint=None):
        self.missing = tuple(missing)
        self.hint = hint or (
            "Install or configure an interval-set engine that provides "
            "jaccard, union, intersect and setdiff, then retry."
        )
        ops = ", ".join(self.missing)
        super().__init__(
            f"Set operations ({ops}) are not available in this engine build. {self.hint}"
        )


class OperationFailure(BedCompareError, RuntimeError):
    """An interval-set engine operation raised during a comparison."""


class ReferenceUnavailable(BedCompareError, LookupError):
    """No reference chromosome sizes could be found for a genome."""


def _progress_sink(progress=None, desc=None, total=100):
    """
    Turn a public ``progress`` argument into a fraction sink.

    Returns ``(report, close)``. ``report(fraction)`` accepts a value in
    ``[0, 1]`` and is None when progress is disabled. ``close`` tears the
    display down and is None when nothing needs closing. A callable
    *progress* receives ``(done, total, pct)`` with *done* scaled to
    *total*.
    """
    if progress is None:
        progress = CONFIG.get('progress', False)
    if not progress:
        return None, None

    def percent(fraction):
        return int(round(min(max(fraction, 0.0), 1.0) * total))

    if callable(progress):
        def report(fraction):
            pct = percent(fraction)
            progress(pct, total, pct)

        return report, None

    style = CONFIG.get('progress_style', 'rich') if progress is True else progress
    label = desc or "progress"

    if style in ('tqdm', 'auto'):
        try:
            from tqdm.auto import tqdm
        except ImportError:
            style = 'text'
        else:
            pbar = tqdm(total=total, desc=label)

            def report(fraction):
                pbar.n = percent(fraction)
                pbar.refresh()

            return report, pbar.close

    if style == 'rich':
        try:
            from rich.progress import Progress
        except ImportError:
            style = 'text'
        else:
            display = Progress()
            display.start()
            task_id = display.add_task(label, total=total)

            def report(fraction):
                display.update(task_id, completed=percent(fraction))

            return report, display.stop

    if style != 'text':
        raise ValueError(
            f"Unknown progress style {style!r}; use 'rich', 'tqdm', 'auto', 'text' or a callable"
        )

    shown = [-1]

    def report(fraction):
        pct = percent(fraction)
        if pct == shown[0]:
            return
        shown[0] = pct
        _sys.stderr.write(f"\r{label}: {pct}%")
        if pct >= total:
            _sys.stderr.write("\n")
        _sys.stderr.flush()

    return report, None


@contextmanager
def _progress_context(progress=None, desc=None):
    report, close = _progress_sink(progress, desc=desc)
    try:
        yield report
    finally:
        if close:
            close()


def _drain(gen):
    """Run a progress generator to completion and return its result."""
    while True:
        try:
            next(gen)
        except StopIteration as stop:
            return stop.value


_CHROM_KEY_RE = _re.compile(r'(\d+)')


def _chrom_sort_key(chrom):
    """Natural sort key: chr2 < chr10, numeric parts compared as numbers."""
    parts = _CHROM_KEY_RE.split(str(chrom).lower())
    return tuple((0, int(p), "") if p.isdigit() else (1, 0, p) for p in parts if p != "")


def _sorted_chroms(chroms):
    return sorted(chroms, key=_chrom_sort_key)


def _records_frame(records, columns):
    """Build a DataFrame from a sequence of dataclass records."""
    if not records:
        return _pandas.DataFrame(columns=list(columns))
    return _pandas.DataFrame(
        [[getattr(rec, col) for col in columns] for rec in records],
        columns=list(columns),
    )
