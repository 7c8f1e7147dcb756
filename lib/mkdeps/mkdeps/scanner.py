'''A small, conditional-aware `#include` scanner.

This is not a preprocessor: macros are never expanded and conditions are
limited to the presence or absence of a bare identifier.  The recognized
directives are:

    #include "name"        #include <name>
    #define NAME
    #ifdef NAME            #ifndef NAME
    #if defined(NAME)      #if !defined(NAME)

A line starting with `int main` or `main` marks the file as a program; a line
starting with `/* LIBRARY */` marks it as a library.'''
import io, logging, os
from . import paths, utils

logger = logging.getLogger(__name__)

NOT_TARGET = "none"
MAIN_TARGET = "main"
LIB_TARGET = "library"

CONDITIONALS = (
    ("ifdef", True),
    ("ifndef", False),
    ("if defined(", True),
    ("if !defined(", False),
)

# always undefined, so that `#ifdef 0` disables a block
DISABLED_IDENTIFIER = "0"

def is_space(char):
    return char.isspace()

def is_word(char):
    return char == "_" or char.isalnum()

def skip_while(text, pos, predicate):
    '''Return the first index at or after `pos` whose character does not
    satisfy `predicate`.'''
    end = len(text)
    while pos < end and predicate(text[pos]):
        pos += 1
    return pos

def skip_space(text, pos=0):
    return skip_while(text, pos, is_space)

def read_word(text, pos=0):
    return text[pos:skip_while(text, pos, is_word)]

def parse_include(text):
    '''Parse the operand of an `#include`.  Returns `(name, local)` or `None`
    if the operand is neither a quoted nor a bracketed name.'''
    text = text.strip()
    if not text or text[0] not in "\"<":
        return None
    local = text[0] == "\""
    body = text[1:]
    end = body.find("\"" if local else ">")
    name = (body if end < 0 else body[:end]).strip()
    if not name:
        return None
    return name, local

class ScanState(object):
    '''What one top-level scan has collected so far.'''

    def __init__(self):
        self.deps = set()
        self.defines = set()
        self.already_seen = set()
        self.target = NOT_TARGET

    def __repr__(self):
        return utils.simple_repr(self, "ScanState")

class Scanner(object):

    def __init__(self, config, exists=os.path.isfile):
        '''`exists` decides whether an include candidate is usable.'''
        self.config = config
        self._exists = exists

    def open(self, path):
        return io.open(path, "rt", encoding=self.config.encoding,
                       errors="surrogateescape")

    def scan_file(self, path, state=None):
        '''Scan a top-level file.  Returns `None` if it can't be opened.'''
        state = ScanState() if state is None else state
        try:
            stream = self.open(path)
        except OSError as e:
            logger.debug("skipping {!r}: {}".format(path, e))
            return None
        with stream:
            return self.scan(stream, path, state)

    def scan(self, stream, name, state):
        '''Scan `stream` and every file it includes.  Included files are
        followed with an explicit stack, so the depth of an include chain is
        not limited by the recursion limit.'''
        key = paths.normalize(name)
        if key in state.already_seen:
            return state
        state.already_seen.add(key)
        logger.debug("scanning {}".format(name))

        stack = [(iter(stream), paths.dirname(name) or ".")]
        while stack:
            lines, parent_dir = stack[-1]
            line = next(lines, None)
            if line is None:
                stack.pop()
                continue
            dep = self._process_line(lines, line, parent_dir, state)
            if dep is None:
                continue
            included = self._read_include(dep, state)
            if included is not None:
                stack.append((iter(included), paths.dirname(dep) or "."))
        return state

    def _process_line(self, lines, line, parent_dir, state):
        '''Handle one line.  Returns the resolved path of an `#include`, or
        `None` for every other line.'''
        pos = skip_space(line)
        if line.startswith("#", pos):
            return self._process_directive(lines, line,
                                           skip_space(line, pos + 1),
                                           parent_dir, state)
        if line.startswith(("int main", "main"), pos):
            state.target = MAIN_TARGET
        elif line.startswith("/* LIBRARY */", pos):
            state.target = LIB_TARGET
        return None

    def _process_directive(self, lines, line, pos, parent_dir, state):
        if line.startswith("include", pos):
            dep = self.locate(line[pos + len("include"):], parent_dir)
            if dep is not None:
                state.deps.add(dep)
            return dep
        if line.startswith("define", pos):
            self._add_define(read_word(line, skip_space(line, pos + 6)), state)
            return None
        for keyword, positive in CONDITIONALS:
            if line.startswith(keyword, pos):
                needle = read_word(line, skip_space(line, pos + len(keyword)))
                self._process_conditional(lines, needle, positive, state)
                break
        return None

    def _add_define(self, name, state):
        if not name or name in state.defines:
            return
        state.defines.add(name)
        if self.config.show_defines:
            logger.info("#defined {!r}".format(name))

    def _read_include(self, path, state):
        '''Read the lines of an included file that this scan has not visited
        yet.  The file is closed before its lines are scanned.'''
        key = paths.normalize(path)
        if key in state.already_seen:
            return None
        try:
            with self.open(path) as stream:
                lines = stream.readlines()
        except OSError as e:
            logger.debug("cannot open {!r}: {}".format(path, e))
            return None
        state.already_seen.add(key)
        logger.debug("scanning {}".format(path))
        return lines

    def _process_conditional(self, lines, needle, positive, state):
        defined = needle != DISABLED_IDENTIFIER and needle in state.defines
        if defined == positive:
            return
        # skip to the matching #else or #endif
        nesting = 1
        for line in lines:
            pos = skip_space(line)
            if line.startswith("#if", pos):
                nesting += 1
            elif nesting == 1 and line.startswith("#else", pos):
                return
            elif line.startswith("#endif", pos):
                nesting -= 1
                if nesting == 0:
                    return

    def locate(self, operand, parent_dir):
        '''Resolve the operand of an `#include` to a path, or `None`.

        Quoted names are looked up in `parent_dir` first, then along the
        search path; bracketed names only along the search path.'''
        parsed = parse_include(operand)
        if parsed is None:
            return None
        name, local = parsed
        if paths.is_absolute(name):
            candidates = [name]
        else:
            dirs = ((parent_dir,) if local else ()) + self.config.search_dirs
            candidates = [name if d == "." else d + "/" + name for d in dirs]
        for candidate in candidates:
            if self._exists(candidate):
                return self._display_path(candidate)
        return None

    def _display_path(self, path):
        cwd = self.config.cwd
        return paths.strip_cwd(paths.rebase_to_cwd(path, cwd), cwd)
