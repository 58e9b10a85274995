import gzip
import types

import pytest

import pybedcompare as pb
from pybedcompare import engine as default_engine


def bed_bytes(rows, gz=False):
    """Encode (chrom, start, end[, rest]) rows as BED file content."""
    lines = []
    for row in rows:
        lines.append("\t".join(str(c) for c in row))
    data = ("\n".join(lines) + "\n").encode("utf-8")
    return gzip.compress(data) if gz else data


def bed_files(*row_lists):
    return [pb.BedFile(f"f{i}.bed", bed_bytes(rows)) for i, rows in enumerate(row_lists)]


class Ledger:
    """Counts engine objects created and released."""

    def __init__(self):
        self.created = 0
        self.freed = 0
        self.live = {}

    @property
    def outstanding(self):
        return len(self.live)


def make_engine(hide=(), fail=(), fail_after=0, consensus=True):
    """
    Build an instrumented engine namespace.

    hide : operation names to remove (feature probing).
    fail : operation names that raise RuntimeError once ``fail_after``
           successful calls of that operation have happened.
    """
    ledger = Ledger()
    calls = {}

    class TrackedRegionSet(default_engine.RegionSet):
        def __init__(self, entries=None, *, _frame=None):
            super().__init__(entries, _frame=_frame)
            ledger.created += 1
            ledger.live[id(self)] = self

        def free(self):
            if ledger.live.pop(id(self), None) is not None:
                ledger.freed += 1
            super().free()

    def _failing(name):
        base = getattr(default_engine.RegionSet, name)

        def op(self, other):
            calls[name] = calls.get(name, 0) + 1
            if calls[name] > fail_after:
                raise RuntimeError(f"{name} exploded")
            return base(self, other)

        return op

    for name in fail:
        setattr(TrackedRegionSet, name, _failing(name))
    for name in hide:
        setattr(TrackedRegionSet, name, None)

    class TrackedBuilder(default_engine.ConsensusBuilder):
        def __init__(self):
            super().__init__()
            ledger.created += 1
            ledger.live[id(self)] = self

        def free(self):
            if ledger.live.pop(id(self), None) is not None:
                ledger.freed += 1
            super().free()

    ns = types.SimpleNamespace(RegionSet=TrackedRegionSet, ledger=ledger, calls=calls)
    if consensus:
        ns.ConsensusBuilder = TrackedBuilder
    return ns


@pytest.fixture
def tracked_engine():
    return make_engine()


@pytest.fixture
def restore_config():
    saved = pb.CONFIG.copy()
    yield pb.CONFIG
    pb.CONFIG.clear()
    pb.CONFIG.update(saved)


@pytest.fixture
def ref_dir(tmp_path):
    (tmp_path / "hg38.chrom.sizes").write_text("chr1\t1000\nchr2\t500\n")
    return tmp_path
