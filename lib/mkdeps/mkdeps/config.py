import collections, os
from . import paths, utils

# Default settings.  `search_dirs`, `object_dirs` and `abis` are collections;
# everything else is a scalar.  A `cwd` of `None` means "ask the operating
# system".
DEFAULTS = {
    "search_dirs": (),
    "cwd": None,
    "object_dirs": (),
    "abis": (),
    "object_ext": ".o",
    "exe_ext": "",
    "lib_prefix": "lib",
    "lib_suffix": ".so.$(SONAME)",
    "ar_suffix": ".a",
    "header_prefix": "",
    "makefile": "makefile",
    "append": False,
    "precomp_headers": False,
    "precomp_targets": False,
    "potdeps": False,
    "show_defines": False,
    "encoding": "utf-8",
}

class Config(collections.namedtuple("Config", sorted(DEFAULTS))):
    '''Settings shared by the scanner, the project and the emitter.  Built
    once with `make_config` and never modified afterwards.

      - `search_dirs` is ordered and always starts with `"."`.
      - `object_dirs` and `abis` are sorted tuples without duplicates.
      - `cwd` is normalized and uses forward slashes.'''
    __slots__ = ()

def current_dir():
    try:
        cwd = os.getcwd()
    except OSError as e:
        raise utils.CwdError("Failure getting cwd: {}".format(e)) from e
    return cwd

def make_config(**overrides):
    for key in overrides:
        if key not in DEFAULTS:
            raise TypeError("unknown configuration key: {!r}".format(key))
    values = utils.merge_dicts(DEFAULTS, overrides)
    for key in ("search_dirs", "object_dirs", "abis"):
        if isinstance(values[key], str):
            raise TypeError("{} must be a list of str, not a str: {!r}"
                            .format(key, values[key]))
    values["search_dirs"] = (".",) + utils.freeze_value(
        list(values["search_dirs"]))
    values["object_dirs"] = utils.freeze_value(set(values["object_dirs"]))
    values["abis"] = utils.freeze_value(set(values["abis"]))
    cwd = values["cwd"]
    values["cwd"] = paths.normalize(current_dir() if cwd is None else cwd)
    return Config(**values)
