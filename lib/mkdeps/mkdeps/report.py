'''Diagnostics printed in verbose mode.

Component dependency metrics follow Lakos: the dependency count of a
component is one plus the size of its closure, CCD is the sum over all
components, ACD its average, and NCCD the ratio of CCD to that of a balanced
binary tree with the same number of components.'''
import collections, math
from . import paths

Metrics = collections.namedtuple("Metrics", ["components", "ccd", "acd", "nccd"])

def external_dirs(files, cwd):
    '''Directories, other than `cwd` itself, that dependencies live in.
    These hint at the libraries a project uses.'''
    dirs = set()
    for src in files:
        for dep in src.deps:
            d = paths.dirname(paths.normalize(dep)).rstrip("/")
            try:
                merged = paths.merge(cwd, d)
            except paths.PathError:
                merged = d
            if merged != cwd:
                dirs.add(d)
    return sorted(dirs)

def dependency_counts(closures):
    return dict((name, 1 + len(c.deps)) for name, c in closures.items())

def dependency_metrics(closures):
    counts = dependency_counts(closures)
    n = len(counts)
    if not n:
        return Metrics(0, 0, 0.0, 0.0)
    ccd = sum(counts.values())
    balanced = (n + 1) * (math.log(n + 1, 2) - 1) + 1
    return Metrics(n, ccd, float(ccd) / n, ccd / balanced)

def levels(closures):
    '''Group module names by dependency count: [(level, [name, ...]), ...]'''
    grouped = {}
    for name, count in dependency_counts(closures).items():
        grouped.setdefault(count, []).append(name)
    return [(level, sorted(grouped[level])) for level in sorted(grouped)]

def format_levels(closures):
    metrics = dependency_metrics(closures)
    lines = ["components={}   ccd={}  acd={:g}  nccd={:g}"
             .format(metrics.components, metrics.ccd,
                     metrics.acd, metrics.nccd)]
    for level, names in levels(closures):
        lines.append("level {}: {}".format(level, " ".join(names)))
    return "\n".join(lines)
