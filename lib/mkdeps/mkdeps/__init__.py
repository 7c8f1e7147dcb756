'''Compute dependencies of C/C++ programs for use in makefiles.

The source files are scanned for `#include`s (following `#ifdef`s), the
link-time closure of every program and library is computed, and the rules
are written below a marker line of an existing makefile.'''

__version__ = "0.1.0"
