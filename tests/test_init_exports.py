import ast
from pathlib import Path

import pytest

import pybedcompare as pb
from pybedcompare import _shared


def test_all_exports_resolve():
    missing = [name for name in pb.__all__ if not hasattr(pb, name)]
    assert missing == []
    assert len(pb.__all__) == len(set(pb.__all__))


def test_config_is_shared_object():
    assert pb.CONFIG is _shared.CONFIG


def test_error_hierarchy():
    for cls in (pb.ParseError, pb.FeatureUnavailable, pb.OperationFailure, pb.ReferenceUnavailable):
        assert issubclass(cls, pb.BedCompareError)
    assert issubclass(pb.ParseError, ValueError)
    assert issubclass(pb.FeatureUnavailable, RuntimeError)
    assert issubclass(pb.ReferenceUnavailable, LookupError)


def test_parse_error_prefixes_file_name():
    err = pb.ParseError("invalid UTF-8 at byte 3", "a.bed")
    assert str(err) == "a.bed: invalid UTF-8 at byte 3"
    assert str(pb.ParseError("oops")) == "oops"


def test_natural_chromosome_sort():
    chroms = ["chr10", "chrX", "chr2", "chr1", "chrM", "chr2_random"]
    assert _shared._sorted_chroms(chroms) == ["chr1", "chr2", "chr2_random", "chr10", "chrM", "chrX"]


def test_progress_sink_scales_and_clamps():
    calls = []
    report, close = _shared._progress_sink(lambda *args: calls.append(args))
    report(0.5)
    report(-0.2)
    report(1.7)
    assert calls == [(50, 100, 50), (0, 100, 0), (100, 100, 100)]
    assert close is None


def test_progress_sink_disabled(restore_config):
    assert _shared._progress_sink(False) == (None, None)
    restore_config['progress'] = False
    assert _shared._progress_sink(None) == (None, None)


def test_progress_sink_text_writes_each_percent_once(capsys):
    report, close = _shared._progress_sink('text', desc="work")
    for fraction in (0.0, 0.001, 0.5, 1.0):
        report(fraction)
    assert close is None
    assert capsys.readouterr().err == "\rwork: 0%\rwork: 50%\rwork: 100%\n"


def test_progress_sink_rejects_unknown_style():
    with pytest.raises(ValueError, match="Unknown progress style"):
        _shared._progress_sink('spinner')


def test_package_metadata_matches_setup():
    tree = ast.parse((Path(__file__).parents[1] / "setup.py").read_text())
    call = next(
        node for node in ast.walk(tree)
        if isinstance(node, ast.Call) and getattr(node.func, "id", None) == "setup"
    )
    meta = {
        kw.arg: kw.value.value for kw in call.keywords if isinstance(kw.value, ast.Constant)
    }
    assert meta['name'] == "pybedcompare"
    assert meta['version'] == pb.__version__
    assert meta['author']
