'''Rendering of makefile rules and saving of the generated makefile.

Every rule and variable is a sequence of space-separated tokens.  Lines are
wrapped at token boundaries so that they stay within `WIDTH` columns where
possible; a continuation is a backslash, a newline and `INDENT`.  Removing
every `CONTINUATION` from the output yields the unwrapped text.'''
import io, logging
from . import paths, utils
from .scanner import LIB_TARGET, MAIN_TARGET, NOT_TARGET

logger = logging.getLogger(__name__)

MARKER = "# Generated automatically. Do not edit beyond here."

WIDTH = 80
INDENT = "    "
CONTINUATION = "\\\n" + INDENT

PCH_INCL = "-incls.hpp"
PCH_SUFFIX = ".gch"
PRECOMP = "-precomp.hpp"
PRECOMPILED_NAME = "precompiled"

def wrap_words(words, width=WIDTH):
    if isinstance(words, str):
        raise TypeError("words must be a list of str, not a str: {!r}"
                        .format(words))
    words = list(words)
    last = len(words) - 1
    out = []
    column = 0
    for i, word in enumerate(words):
        if i:
            # a word that is not last also needs room for a trailing " \"
            reserve = 0 if i == last else 2
            if column + 1 + len(word) + reserve > width:
                out.append(" " + CONTINUATION)
                column = len(INDENT)
            else:
                out.append(" ")
                column += 1
        out.append(word)
        column += len(word)
    return "".join(out)

def unwrap(text):
    return text.replace(CONTINUATION, "")

def render_rule(targets, prerequisites):
    words = list(targets)
    if not words:
        raise ValueError("a rule needs at least one target")
    words[-1] += ":"
    return wrap_words(words + list(prerequisites)) + "\n"

def render_variable(name, values):
    return wrap_words([name, "="] + list(values)) + "\n"

def include_lines(headers):
    return "".join("#include \"{}\"\n".format(h) for h in headers)

class Emitter(object):
    '''Turns a scanned project into makefile text.  Shim headers for
    precompiled headers are collected in `shims` (file name -> contents);
    writing them is left to the caller.'''

    def __init__(self, config):
        self.config = config
        self.shims = {}
        self.full_lib_headers = []

    def header(self, dep):
        return self.config.header_prefix + paths.clean_file_name(
            dep, self.config.cwd)

    def headers(self, deps):
        return sorted(set(self.header(dep) for dep in deps))

    def object_dirs(self):
        return self.config.object_dirs or (".",)

    def variants(self):
        '''Name infixes: the default build, then one per ABI.'''
        return ("",) + tuple("-" + abi for abi in self.config.abis)

    @staticmethod
    def in_dir(odir, name):
        return name if odir == "." else odir + "/" + name

    # ------------------------------------------------------------------------
    # Object rules
    # ------------

    def object_rules(self, src):
        config = self.config
        headers = self.headers(src.deps)
        targets = []
        pch_targets = []
        pch_rules = []
        for odir in self.object_dirs():
            if src.name == PRECOMPILED_NAME:
                targets.append(self.in_dir(odir, PRECOMPILED_NAME + ".hpp" +
                                           PCH_SUFFIX))
                continue
            for variant in self.variants():
                obj = self.in_dir(odir, src.name + variant + config.object_ext)
                targets.append(obj)
                if config.precomp_headers:
                    gch = self.in_dir(odir, src.name + PCH_INCL + variant +
                                      PCH_SUFFIX)
                    pch_targets.append(gch)
                    pch_rules.append(render_rule([obj], [gch]))
        if pch_targets:
            self.shims[src.name + PCH_INCL] = include_lines(headers)
        return "".join(pch_rules) + render_rule(
            targets + pch_targets, [src.full_name] + headers) + "\n"

    def library_headers(self, src):
        var = "DEPS_" + src.name
        self.full_lib_headers.append("$({})".format(var))
        return render_variable(var, self.headers(src.deps)) + "\n"

    def emit_objects(self, files):
        chunks = ["# Object dependencies.\n"]
        for src in files:
            chunks.append(self.object_rules(src))
            if src.target == LIB_TARGET:
                chunks.append(self.library_headers(src))
        return "".join(chunks)

    # ------------------------------------------------------------------------
    # Link rules
    # ----------

    def objects(self, odir, closure, variant):
        ext = variant + self.config.object_ext
        return [self.in_dir(odir, dep + ext) for dep in sorted(closure.deps)]

    def program_rules(self, odir, closure):
        return [(self.in_dir(odir, closure.name + variant +
                             self.config.exe_ext),
                 self.objects(odir, closure, variant))
                for variant in self.variants()]

    def library_rules(self, odir, closure):
        config = self.config
        name = closure.name
        if not name.startswith(config.lib_prefix):
            name = config.lib_prefix + name
        rules = [(self.in_dir(odir, name + config.ar_suffix),
                  self.objects(odir, closure, ""))]
        for abi in config.abis:
            shared = name + ("" if abi == "pic" else "-" + abi)
            rules.append((self.in_dir(odir, shared + config.lib_suffix),
                          self.objects(odir, closure, "-" + abi)))
        if "pic" not in config.abis:
            rules.append((self.in_dir(odir, name + config.lib_suffix),
                          self.objects(odir, closure, "")))
        return rules

    def emit_links(self, closures):
        chunks = ["# Main programs\n"]
        full_targets = []
        targets = [closures[name] for name in sorted(closures)
                   if closures[name].target != NOT_TARGET]
        for odir in self.object_dirs():
            for closure in targets:
                if closure.target == MAIN_TARGET:
                    rules = self.program_rules(odir, closure)
                else:
                    rules = self.library_rules(odir, closure)
                for target, objs in rules:
                    full_targets.append(target)
                    chunks.append(render_rule([target], objs) + "\n")
        if self.config.potdeps:
            for closure in targets:
                chunks.append(render_rule(
                    ["pot/{}.pot".format(closure.name)],
                    sorted(closure.deps_full_path)) + "\n")
        chunks.append(render_variable("FULL_TARGETS", full_targets))
        chunks.append("full_targets: $(FULL_TARGETS)\n")
        chunks.append(render_variable("FULL_LIB_HEADERS",
                                      self.full_lib_headers))
        return "".join(chunks)

    # ------------------------------------------------------------------------
    # Per-target precompiled headers
    # ------------------------------

    def emit_target_pchs(self, files, closures):
        chunks = ["\n# Precompiled headers.\n"]
        for name in sorted(closures):
            closure = closures[name]
            if closure.target == NOT_TARGET:
                continue
            targets = [self.in_dir(odir, name + PRECOMP + variant + PCH_SUFFIX)
                       for odir in self.object_dirs()
                       for variant in self.variants()]
            deps = set()
            for module in closure.deps:
                src = files.get(module)
                if src is not None:
                    deps.update(src.deps)
            headers = self.headers(deps)
            self.shims[name + PRECOMP] = include_lines(headers)
            chunks.append(render_rule(targets, headers) + "\n")
        return "".join(chunks)

    def render(self, project, closures):
        '''Render the generated part of the makefile.'''
        self.shims = {}
        self.full_lib_headers = []
        text = (self.emit_objects(project.sorted_files()) +
                self.emit_links(closures))
        if self.config.precomp_targets:
            text += self.emit_target_pchs(project.files, closures)
        return text

def transfer_header(path, out, append=False, encoding="utf-8"):
    '''Copy the hand-written part of an existing makefile into `out`.  In
    append mode the whole file is copied.'''
    try:
        stream = io.open(path, "rt", encoding=encoding,
                         errors="surrogateescape")
    except OSError:
        return
    with stream:
        for line in stream:
            line = line.rstrip("\n")
            if not append and line == MARKER:
                break
            out.write(line + "\n")

def write_makefile(path, body, append=False, encoding="utf-8"):
    '''Write the generated `body` into the makefile at `path`, keeping
    whatever precedes the marker line.  Returns whether the makefile was
    replaced; if not, the output is left in `<path>.tmp`.'''
    saver = utils.TemporarySaveFile(path, "w", encoding=encoding,
                                    errors="surrogateescape", newline="\n")
    try:
        with saver as out:
            transfer_header(path, out, append=append, encoding=encoding)
            if not append:
                out.write(MARKER + "\n\n")
            out.write(body)
    except OSError as e:
        raise utils.OutputError("can't write file {!r}: {}"
                                .format(saver.name, e.strerror or e)) from e
    return saver.replaced
