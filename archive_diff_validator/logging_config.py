"""
Logging configuration of the command line interface.
"""

import logging
import os
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(log_level: Optional[str] = None) -> None:
    """
    Configures the root logger to write to stderr, so that log lines don't mix with the diff
    output on stdout.

    :param log_level: Level name, defaults to the `LOG_LEVEL` environment variable or WARNING.
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'WARNING')

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )
