import ctypes
import errno
import io
import logging
import os
import shutil

if os.name == "nt":
    import ctypes.wintypes

logger = logging.getLogger(__name__)

class MkdepsError(Exception):
    pass

class OutputError(MkdepsError):
    pass

class CwdError(MkdepsError):
    pass

def rename(src, dest):
    '''Rename a file (allows overwrites on Windows).'''
    if os.name == "nt":
        MoveFileExW = ctypes.windll.kernel32.MoveFileExW
        MoveFileExW.restype = ctypes.wintypes.BOOL
        MOVEFILE_REPLACE_EXISTING = ctypes.wintypes.DWORD(0x1)
        success = MoveFileExW(ctypes.wintypes.LPCWSTR(src),
                              ctypes.wintypes.LPCWSTR(dest),
                              MOVEFILE_REPLACE_EXISTING)
        if not success:
            raise ctypes.WinError()
    else:
        os.rename(src, dest)

def try_remove(path):
    try:
        os.remove(path)
    except OSError:
        return False
    return True

class TemporarySaveFile(object):
    '''A context manager for saving files atomically.  The data is written to
    `<filename>.tmp`.  If the body of the `with` statement succeeds, the
    temporary file is renamed to the target filename, overwriting any existing
    file.  Otherwise, the temporary file is deleted.

    A failed final rename does not raise: it is logged and the temporary file
    is left behind so that the output is not lost.  The `replaced` attribute
    records whether the rename happened.'''

    def __init__(self, filename, mode="w", suffix=".tmp", **kwargs):
        self._fn = filename
        self._tmp_fn = filename + suffix
        self._mode = mode
        self._kwargs = kwargs
        self.replaced = False

    @property
    def name(self):
        return self._tmp_fn

    def __enter__(self):
        if hasattr(self, "_stream"):
            raise ValueError("attempted to __enter__ twice")
        try:
            stream = io.open(self._tmp_fn, self._mode, **self._kwargs)
        except OSError as e:
            raise OutputError("can't open file {!r}: {}"
                              .format(self._tmp_fn, e.strerror or e))
        try:
            shutil.copymode(self._fn, stream.name)
        except BaseException as e:
            if not (isinstance(e, OSError) and e.errno == errno.ENOENT):
                try:
                    stream.close()
                finally:
                    try_remove(stream.name)
                raise
        self._stream = stream
        return stream

    def __exit__(self, exc_type, exc_value, traceback):
        try:
            self._stream.close()
            if exc_type is None:
                try:
                    rename(self._tmp_fn, self._fn)
                except OSError as e:
                    logger.warning("renaming {!r} to {!r} failed: {}"
                                   .format(self._tmp_fn, self._fn, e))
                else:
                    self.replaced = True
            else:
                try_remove(self._tmp_fn)
        except BaseException:
            try_remove(self._tmp_fn)
            raise
        finally:
            del self._stream

def save_file(filename, contents, encoding, errors=None, newline=None):
    '''Write the contents to a file by first writing into a temporary file and
    then replacing the original file with the temporary file.  This ensures
    that the file will not end up in a half-written state.'''
    with TemporarySaveFile(filename, "w", encoding=encoding,
                           errors=errors, newline=newline) as stream:
        stream.write(contents)

# ----------------------------------------------------------------------------
# Generic utilities
# -----------------

def merge_dicts(*dicts):
    d0 = {}
    for d in dicts:
        d0.update(d)
    return d0

def freeze_value(value):
    '''Convert a collection into a tuple.  Sets become sorted tuples; lists
    keep their order.'''
    if isinstance(value, set) or isinstance(value, frozenset):
        return tuple(sorted(value))
    return tuple(value)

def simple_repr(value, name):
    return "{0}({1})".format(name, ", ".join(
        "{0}={1}".format(k, repr(v))
        for k, v in sorted(value.__dict__.items())
    ))
