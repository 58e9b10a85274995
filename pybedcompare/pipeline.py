"""
Multi-file comparison pipeline.

The pipeline moves through ``idle -> parsing -> analyzing -> done | error``
on a single event loop, handing control back to the loop between heavy
steps. Every interval set it creates is owned by the run and released
before the run reaches a terminal state, is cancelled, or fails.
"""

import asyncio
import enum
import warnings
from dataclasses import dataclass, replace

from ._shared import (
    CONFIG,
    ReferenceUnavailable,
    _progress_context,
)
from .consensus import iter_consensus
from .histograms import iter_histograms
from .models import MultiFileResult
from .pairwise import iter_pairwise
from .parser import _as_bed_file, iter_decode
from .reference import ReferenceLoader, detect_majority_genome, normalize_genome_name
from .regionsets import ComparableSet, RegionSetPool, bed_file_stats, bed_regionset
from .setops import iter_per_file, iter_union_intersection

# Progress range owned by each step, in execution order.
_BANDS = {
    'parse': (0.00, 0.30),
    'build': (0.30, 0.35),
    'pairwise': (0.35, 0.60),
    'consensus': (0.60, 0.70),
    'setops': (0.70, 0.80),
    'per_file': (0.80, 0.95),
    'histograms': (0.95, 1.00),
}


class Phase(str, enum.Enum):
    IDLE = 'idle'
    PARSING = 'parsing'
    ANALYZING = 'analyzing'
    DONE = 'done'
    ERROR = 'error'


@dataclass(frozen=True)
class ComparisonState:
    """Snapshot of the pipeline, replaced wholesale on every change."""

    phase: Phase = Phase.IDLE
    progress: float = 0.0
    parse_done: int = 0
    parse_total: int = 0
    current_file: str = ""
    message: str = ""
    file_names: tuple = ()
    result: MultiFileResult | None = None
    error: str | None = None


@dataclass(frozen=True)
class CachedComparison:
    file_names: tuple
    result: MultiFileResult
    chrom_sizes: dict | None = None
    genome: str | None = None
    genome_defaulted: bool = False


class ResultCache:
    """Single-slot, last-write-wins store for the most recent finished run."""

    def __init__(self):
        self._entry = None

    def get(self):
        return self._entry

    def set(self, entry):
        self._entry = entry

    def clear(self):
        self._entry = None


class _Cancelled(Exception):
    pass


class _Run:
    """Per-run token: cancellation flag, progress high-water mark, owned sets."""

    def __init__(self):
        self.cancelled = False
        self.progress = 0.0
        self.pool = RegionSetPool()
        self.released = asyncio.Event()


class ComparisonPipeline:
    """
    Drive comparisons of several BED files.

    Parameters
    ----------
    cache : ResultCache, optional
        Receives the result of every successful run. A fresh cache is
        created when omitted.
    engine : module or namespace, optional
        Interval-set engine. Defaults to :mod:`pybedcompare.engine`.
    reference : ReferenceLoader, optional
        Source of chromosome sizes for the positional histogram.
    on_progress : callable, optional
        Called with the run's overall progress in ``[0, 1]``; never
        decreases within a run and is silent after cancellation.
    on_state : callable, optional
        Called with a :class:`ComparisonState` on every phase change and
        after each parsed file.

    Examples
    --------
    >>> import asyncio
    >>> import pybedcompare as pb
    >>> pipe = pb.ComparisonPipeline()
    >>> files = [("a.bed", b"chr1\\t0\\t100\\n"), ("b.bed", b"chr1\\t50\\t150\\n")]
    >>> result = asyncio.run(pipe.run(files))
    >>> pipe.state.phase
    <Phase.DONE: 'done'>
    """

    def __init__(self, cache=None, engine=None, reference=None, on_progress=None, on_state=None):
        self.cache = cache if cache is not None else ResultCache()
        self.engine = engine
        self.reference = reference if reference is not None else ReferenceLoader()
        self.on_progress = on_progress
        self.on_state = on_state
        self.exception = None
        self._state = ComparisonState()
        self._run = None
        self._pending = None
        self._task = None

    @property
    def state(self):
        return self._state

    @property
    def running(self):
        return self._run is not None

    # -- state and progress -------------------------------------------------

    def _emit(self):
        if self.on_state is not None:
            self.on_state(self._state)

    def _set_state(self, run, **changes):
        if run.cancelled:
            return
        self._state = replace(self._state, **changes)
        self._emit()

    def _report(self, run, fraction):
        if run.cancelled:
            return
        fraction = min(max(float(fraction), 0.0), 1.0)
        if fraction <= run.progress:
            return
        run.progress = fraction
        self._state = replace(self._state, progress=fraction)
        if self.on_progress is not None:
            self.on_progress(fraction)

    async def _checkpoint(self, run):
        await asyncio.sleep(0)
        if run.cancelled:
            raise _Cancelled()

    async def _drive(self, run, gen, band):
        """Run a step generator, rescaling its fractions into *band*."""
        lo, hi = band
        try:
            while True:
                try:
                    fraction = next(gen)
                except StopIteration as stop:
                    self._report(run, hi)
                    await self._checkpoint(run)
                    return stop.value
                self._report(run, lo + (hi - lo) * fraction)
                await self._checkpoint(run)
        finally:
            gen.close()

    # -- reference data -----------------------------------------------------

    def _resolve_reference(self, genome, chrom_sizes):
        """Return ``(chrom_sizes, genome, defaulted)``; sizes are None when unavailable."""
        if chrom_sizes:
            return dict(chrom_sizes), genome, False
        if genome is None:
            return None, None, False

        defaulted = False
        if isinstance(genome, str):
            genome = normalize_genome_name(genome)
        else:
            genome, defaulted = detect_majority_genome(genome)

        fallback = CONFIG.get('default_genome', 'hg38')
        candidates = [genome] if genome == fallback else [genome, fallback]
        last_exc = None
        for i, candidate in enumerate(candidates):
            try:
                sizes = self.reference.chrom_sizes(candidate)
            except (ReferenceUnavailable, ValueError, OSError) as exc:
                last_exc = exc
                continue
            return sizes, candidate, defaulted or i > 0

        warnings.warn(
            f"Reference data unavailable, positional histogram disabled: {last_exc}",
            RuntimeWarning,
            stacklevel=3,
        )
        return None, genome, defaulted

    # -- run ----------------------------------------------------------------

    async def _execute(self, run, files, genome, chrom_sizes):
        n = len(files)
        lo, hi = _BANDS['parse']
        span = (hi - lo) / n

        sets, names = [], []
        for i, f in enumerate(files):
            await self._checkpoint(run)
            self._set_state(
                run, parse_done=i, current_file=f.name,
                message=f"Parsing {f.name} ({i + 1}/{n})",
            )
            entries = await self._drive(
                run, iter_decode(f.content, f.name), (lo + i * span, lo + (i + 1) * span)
            )
            sets.append(run.pool.track(bed_regionset(entries, self.engine)))
            names.append(f.name)
            del entries
        self._set_state(run, parse_done=n, current_file="")

        comparable = [ComparableSet.probe(rs) for rs in sets]
        sizes, used_genome, defaulted = self._resolve_reference(genome, chrom_sizes)

        self._set_state(run, phase=Phase.ANALYZING, message="Computing file statistics")
        file_stats = [bed_file_stats(rs, name) for rs, name in zip(sets, names, strict=True)]
        self._report(run, _BANDS['build'][1])
        await self._checkpoint(run)

        self._set_state(run, message="Comparing file pairs")
        jaccard, overlap = await self._drive(
            run, iter_pairwise(comparable, names, run.pool), _BANDS['pairwise']
        )

        self._set_state(run, message="Building consensus regions")
        consensus = await self._drive(run, iter_consensus(sets, self.engine), _BANDS['consensus'])

        self._set_state(run, message="Computing union and intersection")
        union_stats, intersection_stats = await self._drive(
            run, iter_union_intersection(comparable, run.pool), _BANDS['setops']
        )

        self._set_state(run, message="Finding unique regions")
        per_file = await self._drive(
            run, iter_per_file(comparable, names, run.pool), _BANDS['per_file']
        )

        self._set_state(run, message="Building histograms")
        chr_counts, width_hist, positional = await self._drive(
            run, iter_histograms(sets, names, sizes), _BANDS['histograms']
        )

        result = MultiFileResult(
            file_stats=tuple(file_stats),
            jaccard_matrix=tuple(tuple(row) for row in jaccard),
            overlap_matrix=tuple(tuple(row) for row in overlap),
            per_file=tuple(per_file),
            chr_counts=tuple(chr_counts),
            width_hist=tuple(width_hist),
            positional_bins=tuple(positional),
            consensus=tuple(consensus),
            union_stats=union_stats,
            intersection_stats=intersection_stats,
        )
        cached = CachedComparison(
            file_names=tuple(names),
            result=result,
            chrom_sizes=sizes,
            genome=used_genome,
            genome_defaulted=defaulted,
        )
        return cached

    async def _run_token(self, run, files, genome, chrom_sizes):
        if run.cancelled:
            return None
        if self._run is not None:
            raise RuntimeError("A comparison is already running; cancel it first")
        files = [_as_bed_file(f) for f in files]
        if not files:
            raise ValueError("At least one file is required")

        self._run = run
        self.exception = None
        self.cache.clear()
        self._state = ComparisonState(
            phase=Phase.PARSING,
            parse_total=len(files),
            message="Parsing files",
            file_names=tuple(f.name for f in files),
        )
        self._emit()

        cached = None
        error = None
        try:
            cached = await self._execute(run, files, genome, chrom_sizes)
        except _Cancelled:
            pass
        except Exception as exc:
            error = exc
        finally:
            run.pool.release_all()
            if self._run is run:
                self._run = None
            run.released.set()

        if run.cancelled:
            return None
        if error is not None:
            self.exception = error
            self._set_state(run, phase=Phase.ERROR, error=str(error) or type(error).__name__,
                            message="Comparison failed")
            return None

        self.cache.set(cached)
        self._report(run, 1.0)
        self._set_state(run, phase=Phase.DONE, result=cached.result, message="Done")
        return cached.result

    async def run(self, files, genome=None, chrom_sizes=None):
        """
        Compare *files* and return the result.

        Parameters
        ----------
        files : list
            ``BedFile`` objects, ``(name, bytes)`` tuples or paths, in
            comparison order.
        genome : str or list of tuple, optional
            Assembly for the positional histogram, or per-file
            ``(genome, tier)`` guesses to take the majority of.
        chrom_sizes : dict, optional
            Explicit ``{chrom: size}``; takes precedence over *genome*.

        Returns
        -------
        MultiFileResult or None
            ``None`` when the run failed (see :attr:`state` and
            :attr:`exception`) or was cancelled.

        Raises
        ------
        RuntimeError
            If another run is in flight.
        ValueError
            If *files* is empty.
        """
        return await self._run_token(_Run(), files, genome, chrom_sizes)

    def start(self, files, genome=None, chrom_sizes=None):
        """
        Schedule a run on the running event loop and return its task.

        An in-flight run is cancelled first, whether it was scheduled here
        or awaited directly through :meth:`run`; the new run starts only
        after the previous one has released its resources.
        """
        previous = self._task
        active = self._run
        if active is not None or (previous is not None and not previous.done()):
            self.cancel()
        run = _Run()
        self._pending = run

        async def _after_previous():
            if previous is not None and not previous.done():
                await asyncio.wait({previous})
            if active is not None:
                await active.released.wait()
            if self._pending is run:
                self._pending = None
            return await self._run_token(run, files, genome, chrom_sizes)

        self._task = asyncio.get_running_loop().create_task(_after_previous())
        return self._task

    def cancel(self):
        """Abandon the in-flight (or scheduled) run; no further transitions are emitted."""
        for run in (self._run, self._pending):
            if run is not None:
                run.cancelled = True

    def reset(self):
        """Return to ``idle`` from ``done`` or ``error``, clearing the cached result."""
        if self.running:
            raise RuntimeError("Cannot reset while a comparison is running; cancel it first")
        self.cache.clear()
        self.exception = None
        self._state = ComparisonState()
        self._emit()

    def restore_cached(self):
        """
        Show the cached result of an earlier run.

        Returns ``True`` and moves an idle pipeline to ``done`` when the
        cache holds a result, ``False`` otherwise.
        """
        entry = self.cache.get()
        if entry is None or self.running or self._state.phase != Phase.IDLE:
            return False
        self._state = ComparisonState(
            phase=Phase.DONE,
            progress=1.0,
            file_names=tuple(entry.file_names),
            result=entry.result,
            message="Done",
        )
        self._emit()
        return True


def bed_compare(files, genome=None, chrom_sizes=None, progress=None, engine=None,
                cache=None, ref_dir=None):
    """
    Compare several BED files.

    Decodes every file, builds one interval set per file and computes
    pairwise Jaccard/overlap matrices, consensus regions, union and
    intersection statistics, per-file unique regions and per-file
    histograms.

    Parameters
    ----------
    files : list
        ``BedFile`` objects, ``(name, bytes)`` tuples or paths.
    genome : str, optional
        Reference assembly used for the positional histogram.
    chrom_sizes : dict, optional
        Explicit chromosome sizes; takes precedence over *genome*.
    progress : bool, str or callable, optional
        Progress display (``True``, ``'rich'``, ``'tqdm'``, ``'text'``) or
        a ``callback(done, total, pct)``. Defaults to
        ``CONFIG['progress']``.
    engine : module or namespace, optional
        Interval-set engine. Defaults to :mod:`pybedcompare.engine`.
    cache : ResultCache, optional
        Receives the result.
    ref_dir : str or Path, optional
        Directory with reference files. Defaults to
        ``CONFIG['reference_dir']``.

    Returns
    -------
    MultiFileResult

    Raises
    ------
    ParseError
        If a file cannot be decoded.
    FeatureUnavailable
        If the engine lacks set-algebra operations.
    OperationFailure
        If a pairwise comparison fails.

    Notes
    -----
    Uses :func:`asyncio.run`; inside a running event loop use
    :class:`ComparisonPipeline` directly.

    Examples
    --------
    >>> import pybedcompare as pb
    >>> files = [("a.bed", b"chr1\\t0\\t100\\n"), ("b.bed", b"chr1\\t200\\t300\\n")]
    >>> res = pb.bed_compare(files)
    >>> res.jaccard_matrix[0][1]
    0.0
    """
    with _progress_context(progress, desc="comparing") as report:
        pipeline = ComparisonPipeline(
            cache=cache,
            engine=engine,
            reference=ReferenceLoader(ref_dir),
            on_progress=report,
        )
        result = asyncio.run(pipeline.run(files, genome=genome, chrom_sizes=chrom_sizes))
    if pipeline.exception is not None:
        raise pipeline.exception
    return result
