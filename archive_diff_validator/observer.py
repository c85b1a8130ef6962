"""
Observer collecting the non-fatal events of a validation run.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from archive_diff_validator.diff_data import CollectorWarning


class DiffObserver:
    """
    Collects warnings as data and forwards them to a logger. One observer is passed to the
    collector and the validator of a single run, so that the warnings of different runs never mix.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        :param logger: Logger receiving the forwarded events. Defaults to the module logger.
        """
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self._warnings: List[CollectorWarning] = []

    @property
    def warnings(self) -> List[CollectorWarning]:
        """
        :return: Copy of the warnings recorded so far, in order of occurrence.
        """
        return list(self._warnings)

    def warn(self, message: str, relpath: Optional[str] = None, source: Optional[str] = None):
        """
        Records a warning and logs it.

        :param message: Human-readable description.
        :param relpath: Relative path the warning refers to, if any.
        :param source: Archive root or reference the warning originates from, if any.
        """
        self._warnings.append(CollectorWarning(message, relpath, source))
        self.logger.warning('%s%s', message, f' ({source})' if source else '')

    def info(self, message: str, *args):
        self.logger.info(message, *args)

    def debug(self, message: str, *args):
        self.logger.debug(message, *args)
