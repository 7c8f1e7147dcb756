import argparse, logging, sys
from . import __version__, config, emit, project, report, scanner, utils

logger = logging.getLogger(__name__)

DESCRIPTION = "Scan files for dependencies."

EPILOG = ("It will scan the source files, check the corresponding header "
          "files and compute the dependencies.  It understands #ifdefs.")

def build_parser():
    p = argparse.ArgumentParser(prog="mkdeps", description=DESCRIPTION,
                                epilog=EPILOG)
    p.add_argument("--version", action="version",
                   version="%(prog)s " + __version__)
    p.add_argument("-I", dest="search_dirs", metavar="DIR", action="append",
                   default=[], help="add a dir to the search path")
    p.add_argument("-v", "--verbose", action="store_true",
                   help="verbose output")
    p.add_argument("--trace", action="store_true",
                   help="show file names as they are scanned")
    p.add_argument("-d", "--show-defines", action="store_true",
                   help="show defines")
    p.add_argument("-o", dest="object_ext", metavar="EXT",
                   default=config.DEFAULTS["object_ext"],
                   help="set the object extension")
    p.add_argument("-e", dest="exe_ext", metavar="EXT",
                   default=config.DEFAULTS["exe_ext"],
                   help="set the exe extension")
    p.add_argument("-a", dest="ar_suffix", metavar="SUFFIX",
                   default=config.DEFAULTS["ar_suffix"],
                   help="set the suffix for static libraries")
    p.add_argument("-f", dest="makefile", metavar="MAKEFILE",
                   default=config.DEFAULTS["makefile"],
                   help="set the name of the makefile to modify")
    p.add_argument("--libpfx", dest="lib_prefix", metavar="PREFIX",
                   default=config.DEFAULTS["lib_prefix"],
                   help="set the prefix for libraries")
    p.add_argument("--libsfx", dest="lib_suffix", metavar="SUFFIX",
                   default=config.DEFAULTS["lib_suffix"],
                   help="set the suffix for shared libraries")
    p.add_argument("--odir", dest="object_dirs", metavar="DIRECTORY",
                   action="append", default=[],
                   help="add an object directory")
    p.add_argument("--abi", dest="abis", metavar="ABINAME",
                   action="append", default=[],
                   help="add an additional ABI")
    p.add_argument("--hpfx", dest="header_prefix", metavar="PREFIX",
                   default=config.DEFAULTS["header_prefix"],
                   help="set the prefix to prepend to header names")
    p.add_argument("--append", action="store_true",
                   help="append to makefile instead of modifying")
    p.add_argument("--pch", dest="precomp_headers", action="store_true",
                   help="use precompiled headers for each file in gcc")
    p.add_argument("--tch", dest="precomp_targets", action="store_true",
                   help="use precompiled headers for each target in gcc")
    p.add_argument("--potdeps", action="store_true",
                   help="generate dependencies for C++ POT files")
    p.add_argument("files", metavar="SOURCE", nargs="*",
                   help="source files to scan")
    return p

def config_from_args(args):
    return config.make_config(
        search_dirs=args.search_dirs,
        object_dirs=args.object_dirs,
        abis=args.abis,
        object_ext=args.object_ext,
        exe_ext=args.exe_ext,
        lib_prefix=args.lib_prefix,
        lib_suffix=args.lib_suffix,
        ar_suffix=args.ar_suffix,
        header_prefix=args.header_prefix,
        makefile=args.makefile,
        append=args.append,
        precomp_headers=args.precomp_headers,
        precomp_targets=args.precomp_targets,
        potdeps=args.potdeps,
        show_defines=args.show_defines,
    )

def scan_files(cfg, files):
    proj = project.Project()
    scan = scanner.Scanner(cfg)
    for fn in files:
        state = scan.scan_file(fn)
        if state is not None:
            proj.add(fn, state.deps, state.target)
        proj.add_given_file(fn)
    return proj

def run(cfg, files, verbose=False):
    '''Scan `files` and regenerate the makefile named by `cfg`.'''
    if verbose:
        logger.info("search path:\n{}".format("\n".join(cfg.search_dirs)))
    proj = scan_files(cfg, files)
    closures = proj.compute_closures()
    emitter = emit.Emitter(cfg)
    body = emitter.render(proj, closures)

    if verbose:
        logger.info("potential libraries used (based on included files):\n{}"
                    .format("\n".join(report.external_dirs(
                        proj.sorted_files(), cfg.cwd))))
        logger.info(report.format_levels(closures))

    if not emit.write_makefile(cfg.makefile, body, append=cfg.append,
                               encoding=cfg.encoding):
        logger.warning("the generated makefile was left in {!r}"
                       .format(cfg.makefile + ".tmp"))
    for name, contents in sorted(emitter.shims.items()):
        utils.save_file(name, contents, encoding=cfg.encoding)
    return 0

def describe(e):
    '''Reasons for an exception, outermost first, following `__cause__`.'''
    reasons = []
    while e is not None:
        reasons.append(str(e))
        e = e.__cause__
    return reasons

def main(argv=None):
    args = build_parser().parse_args(argv)
    level = logging.WARNING
    if args.trace:
        level = logging.DEBUG
    elif args.verbose or args.show_defines:
        level = logging.INFO
    logging.basicConfig(format="mkdeps: %(message)s", level=level)
    try:
        return run(config_from_args(args), args.files, verbose=args.verbose)
    except utils.MkdepsError as e:
        sys.stderr.write("The program was interrupted\n")
        for reason in describe(e):
            sys.stderr.write("Reason: {}\n".format(reason))
        return 1
