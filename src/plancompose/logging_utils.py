"""Process-level logging setup for the plancompose CLIs.

Library modules only create named loggers; handlers are configured here,
once per process, by the command-line entry points.
"""

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s | %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger once. Level: arg, $PLANCOMPOSE_LOG_LEVEL, WARNING."""
    name = (level or os.getenv("PLANCOMPOSE_LOG_LEVEL", "WARNING")).upper()
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(getattr(logging, name, logging.WARNING))
        return
    logging.basicConfig(
        level=getattr(logging, name, logging.WARNING),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )
