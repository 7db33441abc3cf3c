"""Log output of the regdiag command.

Library modules only create module loggers. Handlers are installed here, by
the command line front end.
"""

from __future__ import annotations

import logging
import sys

__all__ = [ 'setup_logging', ]

VERBOSE_FORMAT = '[%(levelname)s] %(name)s: %(message)s'
QUIET_FORMAT = '%(message)s'


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Send log records to stderr, replacing any earlier handlers.

    Warnings and errors are shown by default, debug output with verbose and
    only errors with quiet. verbose wins when both are set.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(QUIET_FORMAT if quiet and not verbose else VERBOSE_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
