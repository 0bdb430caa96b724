from __future__ import annotations

import logging
import sys


def configure_logging(*, verbose: bool, quiet: bool) -> None:
    """
    Configure process-wide logging defaults for CLI usage.

    - Default: INFO
    - --verbose: DEBUG
    - --quiet: WARNING

    Logging is written to stderr so it does not corrupt JSON on stdout.
    """

    if quiet and not verbose:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    fmt = "findtree: %(message)s"
    if verbose:
        fmt = "findtree [%(levelname)s] %(name)s: %(message)s"

    logging.basicConfig(level=level, format=fmt, stream=sys.stderr, force=True)
