import collections, logging
from . import paths, utils
from .scanner import MAIN_TARGET

logger = logging.getLogger(__name__)

class SourceFile(object):
    '''A scanned input file.  `name` is the base name (the module key) and
    `full_name` is the path as given on the command line.'''

    def __init__(self, name, full_name, target, deps):
        self.name = name
        self.full_name = full_name
        self.target = target
        self.deps = frozenset(deps)

    def __repr__(self):
        return utils.simple_repr(self, "SourceFile")

class Closure(object):
    '''The link-time view of a module: `deps` holds the base names of every
    module it needs, `deps_full_path` the given sources and headers that
    implied them.'''

    def __init__(self, name, target, deps=(), deps_full_path=()):
        self.name = name
        self.target = target
        self.deps = set(deps)
        self.deps_full_path = set(deps_full_path)

    def __repr__(self):
        return utils.simple_repr(self, "Closure")

class Project(object):

    def __init__(self):
        self.files = {}
        self.given_files = set()
        self.given_files_full = set()

    def __repr__(self):
        return utils.simple_repr(self, "Project")

    def add_given_file(self, path):
        self.given_files.add(paths.base_name(path))
        self.given_files_full.add(path)

    def add(self, full_name, deps, target):
        '''Register a scanned file.  A later file with the same base name
        replaces the earlier one.'''
        src = SourceFile(paths.base_name(full_name), full_name, target, deps)
        old = self.files.get(src.name)
        if old is not None:
            logger.warning("{!r} replaces {!r} (same module name {!r})"
                           .format(full_name, old.full_name, src.name))
        self.files[src.name] = src
        return src

    def sorted_files(self):
        return [self.files[name] for name in sorted(self.files)]

    def module_deps(self, deps):
        '''Base names of `deps` that belong to explicitly given files.'''
        return set(base for base in map(paths.base_name, deps)
                   if base in self.given_files)

    def _given_by_base(self):
        index = {}
        for path in sorted(self.given_files_full):
            index.setdefault(paths.base_name(path), path)
        return index

    def compute_closures(self):
        '''Compute, for every registered file, the set of modules it needs
        at link time.  Returns a dict keyed by module name.'''
        given_by_base = self._given_by_base()
        closures = {}
        for src in self.sorted_files():
            closure = Closure(src.name, src.target, self.module_deps(src.deps))
            for dep in src.deps:
                source = given_by_base.get(paths.base_name(dep))
                if source is not None:
                    closure.deps_full_path.update((source, dep))
            if src.target == MAIN_TARGET:
                # a program links against its own object
                closure.deps.add(src.name)
                source = given_by_base.get(src.name)
                if source is not None:
                    closure.deps_full_path.add(source)
            closures[src.name] = closure

        pending = collections.deque(sorted(closures))
        queued = set(pending)
        rounds = 0
        while pending:
            name = pending.popleft()
            queued.discard(name)
            rounds += 1
            closure = closures[name]
            changed = False
            for dep in sorted(closure.deps):
                src = self.files.get(dep)
                if src is None:
                    continue
                added = self.module_deps(src.deps) - closure.deps
                if added:
                    closure.deps.update(added)
                    changed = True
            if changed and name not in queued:
                pending.append(name)
                queued.add(name)
        logger.debug("closures converged after {} rounds".format(rounds))
        return closures
