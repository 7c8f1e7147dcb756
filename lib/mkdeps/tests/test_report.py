import math
import pytest
from mkdeps import report
from mkdeps.project import Closure, SourceFile
from mkdeps.scanner import MAIN_TARGET, NOT_TARGET

def test_external_dirs():
    files = [
        SourceFile("a", "a.c", MAIN_TARGET, {"x.h", "inc/y.h"}),
        SourceFile("b", "b.c", NOT_TARGET, {"/usr/include/z.h", "/proj/w.h",
                                            "../ext/v.h"}),
    ]
    assert report.external_dirs(files, "/proj") == [
        "../ext", "/usr/include", "inc"]

def closures():
    return {
        "a": Closure("a", MAIN_TARGET, {"a", "b"}),
        "b": Closure("b", NOT_TARGET, {"b"}),
    }

def test_dependency_metrics():
    metrics = report.dependency_metrics(closures())
    assert metrics.components == 2
    assert metrics.ccd == 5
    assert metrics.acd == pytest.approx(2.5)
    assert metrics.nccd == pytest.approx(5 / (3 * (math.log(3, 2) - 1) + 1))

def test_dependency_metrics_empty():
    assert report.dependency_metrics({}) == report.Metrics(0, 0, 0.0, 0.0)

def test_levels():
    assert report.levels(closures()) == [(2, ["b"]), (3, ["a"])]

def test_format_levels():
    text = report.format_levels(closures())
    assert text.startswith("components=2   ccd=5  acd=2.5  nccd=")
    assert text.endswith("level 2: b\nlevel 3: a")
