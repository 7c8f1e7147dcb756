'''Path manipulation for dependency paths.

Paths are handled as plain strings with `/` as the separator; backslashes are
converted on the way in and a leading drive letter is lower-cased, so the
same file always yields the same string.  None of these functions touch the
file system.'''
from .utils import MkdepsError

SEP = "/"

class PathError(MkdepsError, ValueError):
    pass

def _split_drive(path):
    if len(path) > 1 and path[1] == ":" and path[0].isalpha():
        return path[:2], path[2:]
    return "", path

def to_forward_slashes(path):
    '''Convert backslashes and lower-case a leading drive letter.'''
    path = path.replace("\\", SEP)
    drive, rest = _split_drive(path)
    return drive.lower() + rest

def normalize(path):
    '''Collapse `.` and `..` segments and duplicate separators.

    A `..` with no real directory before it is kept, so `../a/../b` becomes
    `../b`.  At the root of an absolute path, `..` is dropped.  A trailing
    separator is removed, except for the root itself.'''
    if not path:
        return path
    drive, rest = _split_drive(to_forward_slashes(path))
    head = drive
    if rest.startswith(SEP):
        head += SEP
    parts = []
    for segment in rest.split(SEP):
        if segment in ("", "."):
            continue
        if segment == "..":
            if parts and parts[-1] != "..":
                parts.pop()
            elif not head.endswith(SEP):
                parts.append(segment)
            continue
        parts.append(segment)
    result = head + SEP.join(parts)
    return result or "."

def is_absolute(path):
    return path.startswith(SEP) or bool(_split_drive(path)[0])

def merge(head, tail):
    '''Join `tail` onto `head` and normalize.  Fails if `tail` is absolute.'''
    if is_absolute(tail):
        raise PathError("cannot merge absolute path {!r} onto {!r}"
                        .format(tail, head))
    if not head:
        return normalize(tail)
    return normalize(head + SEP + tail)

def _under(path, root):
    '''Return `path` relative to `root` if it lies strictly under it.'''
    prefix = root.rstrip(SEP) + SEP
    if len(path) > len(prefix) and path.startswith(prefix):
        return path[len(prefix):]
    return None

def rebase_to_cwd(path, cwd):
    '''Normalize `path`; if it still escapes upward with `../` but actually
    ends up inside `cwd`, rewrite it relative to `cwd`.'''
    path = normalize(path)
    if path.startswith(".." + SEP):
        relative = _under(merge(cwd, path), cwd)
        if relative is not None:
            return relative
    return path

def strip_cwd(path, cwd):
    '''Drop a leading `cwd/` from an absolute path.'''
    relative = _under(path, cwd)
    return path if relative is None else relative

def dirname(path):
    path = to_forward_slashes(path)
    i = path.rfind(SEP)
    if i < 0:
        return ""
    return path[:i]

def base_name(path):
    '''The final path component without its extension.'''
    name = to_forward_slashes(path).rsplit(SEP, 1)[-1]
    i = name.rfind(".")
    if i > 0:
        name = name[:i]
    return name

def clean_file_name(path, cwd):
    '''The form of a dependency path written into the makefile.'''
    if is_absolute(path):
        merged = normalize(path)
    else:
        merged = merge(cwd, path)
    merged = _split_drive(merged)[1]
    relative = _under(merged, _split_drive(cwd)[1])
    if relative is not None:
        return relative
    if len(merged) > len(path):
        return path
    return merged
